# main.py
import sys, os
sys.path.append(os.path.dirname(__file__))  # 確保能找到 config.py

from utils.crashlog import setup_crashlog, log_exception, log_dir
setup_crashlog()

import argparse
import logging, traceback
from config import AppConfig
from midi.errors import ParseError
from midi.parser import MidiParser

def _init_logging(verbose: bool = False):
    log_path = os.path.join(log_dir(), "app.log")

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        encoding="utf-8"
    )
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(log_path, maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(fh)
    except OSError:
        logging.warning("Cannot open %s, logging to console only", log_path)

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Falling-note viewer for (black) MIDI files")
    ap.add_argument('midi', nargs='?', help='MIDI file to open')
    ap.add_argument('--config', help='JSON config file')
    ap.add_argument('--slow', action='store_true', help='start in slow mode (30 fps)')
    ap.add_argument('--speed', type=float, help='playback speed, 0.5 - 2.0')
    ap.add_argument('--window', type=float, help='seconds of song visible at once')
    ap.add_argument('--min-duration', type=float, help='drop notes shorter than this (seconds)')
    ap.add_argument('--merge-tempo', action='store_true', help='apply tempo events of all tracks to every track')
    ap.add_argument('--dump', action='store_true', help='parse and print a summary, no window')
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap

def config_from_args(args) -> AppConfig:
    cfg = AppConfig.load(args.config) if args.config else AppConfig()
    if args.slow:
        cfg.performance.slow_mode = True
        cfg.performance.frame_lock = 30
    if args.speed is not None:
        cfg.performance.playback_speed = args.speed
    if args.window is not None:
        cfg.display.time_window = args.window
    if args.min_duration is not None:
        cfg.parse.min_note_duration = args.min_duration
    if args.merge_tempo:
        cfg.parse.merge_tempo_tracks = True
    return cfg

def dump(path: str, cfg: AppConfig) -> int:
    try:
        notes = MidiParser.from_config(cfg.parse).parse_file(path)
    except ParseError as e:
        logging.error("%s", e)
        print(f"{path}: {e}", file=sys.stderr)
        return 1
    channels = sorted({n.channel for n in notes})
    print(f"{path}: {len(notes)} notes, {MidiParser.get_duration(notes):.3f}s, channels={channels}")
    return 0

def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    _init_logging(args.verbose)
    logging.info("應用程式啟動")
    cfg = config_from_args(args)

    if args.dump:
        if not args.midi:
            print("--dump needs a MIDI file", file=sys.stderr)
            return 2
        return dump(args.midi, cfg)

    from app import App
    app = App(cfg)
    if args.midi:
        app.load_midi(args.midi)
    app.run()
    return 0

if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as e:
        try:
            log_exception("Top-level exception", e)
        except OSError:
            pass
        logging.error("未捕捉的例外：%s", e, exc_info=True)
        print("程式發生錯誤，請到 logs/ 資料夾看 app.log 與 error-*.txt")
        traceback.print_exc()
        sys.exit(1)
