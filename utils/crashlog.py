# utils/crashlog.py
import os, sys, faulthandler, datetime, traceback, threading
from typing import Optional

_fault_file = None
_log_root: Optional[str] = None

def log_dir() -> str:
    base = _log_root or os.path.join(getattr(sys, "_MEIPASS", os.getcwd()), "logs")
    os.makedirs(base, exist_ok=True)
    return base

def _new_log_path(prefix: str = "crash") -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{prefix}-{stamp}.txt")

def setup_crashlog(root: Optional[str] = None):
    """Send native faults and uncaught exceptions (main and worker threads) to logs/."""
    global _fault_file, _log_root
    if root:
        _log_root = root
    try:
        if _fault_file is None:
            _fault_file = open(_new_log_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except OSError:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            with open(_new_log_path("crash"), "w", encoding="utf-8") as out:
                out.write("UNCAUGHT EXCEPTION\n")
                out.write("=" * 60 + "\n")
                traceback.print_exception(exc_type, exc, tb, file=out)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook

def log_exception(title: str, exc: BaseException) -> str:
    path = _new_log_path("error")
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"[{title}] {type(exc).__name__}: {exc}\n")
        kind = getattr(exc, "kind", None)
        if kind:
            out.write(f"kind: {kind}\n")
        out.write("Traceback:\n")
        out.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return path
