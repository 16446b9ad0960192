# ========================= config.py =========================
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Optional, Tuple

@dataclass
class DisplayConfig:
    window_w: int = 1600
    window_h: int = 900
    piano_h: int = 120
    target_fps: int = 60
    time_window: float = 4.0          # seconds of song shown in the lane
    background_color: Tuple[int, int, int] = (12, 12, 14)

@dataclass
class PerformanceConfig:
    """Mutable playback/render state shared by input handlers."""
    slow_mode: bool = False
    playback_speed: float = 1.0
    frame_lock: Optional[int] = None
    show_hud: bool = True

@dataclass
class ParseConfig:
    min_note_duration: float = 0.001
    fallback_duration: float = 0.1    # unclosed notes
    default_tempo: float = 500000.0   # us per beat (120 bpm)
    merge_tempo_tracks: bool = False

@dataclass
class AppConfig:
    display: DisplayConfig = field(default_factory=DisplayConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    parse: ParseConfig = field(default_factory=ParseConfig)

    @classmethod
    def slow_mode_config(cls) -> "AppConfig":
        cfg = cls()
        cfg.performance.slow_mode = True
        cfg.performance.frame_lock = 30
        return cfg

    @classmethod
    def performance_mode_config(cls) -> "AppConfig":
        cfg = cls()
        cfg.performance.slow_mode = False
        cfg.performance.frame_lock = 144
        return cfg

    @classmethod
    def from_dict(cls, obj: dict) -> "AppConfig":
        def build(section_cls, data):
            if not isinstance(data, dict):
                return section_cls()
            known = {f.name for f in fields(section_cls)}
            kwargs = {k: v for k, v in data.items() if k in known}
            if "background_color" in kwargs:
                kwargs["background_color"] = tuple(kwargs["background_color"])
            return section_cls(**kwargs)
        return cls(
            display=build(DisplayConfig, obj.get("display")),
            performance=build(PerformanceConfig, obj.get("performance")),
            parse=build(ParseConfig, obj.get("parse")),
        )

    @classmethod
    def load(cls, path: str) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        logging.debug("Loaded config from %s", path)
        return cls.from_dict(obj)

    def save(self, path: str):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, ensure_ascii=False, indent=2)

def effective_fps(display: DisplayConfig, perf: PerformanceConfig) -> int:
    return perf.frame_lock if perf.frame_lock else display.target_fps
