# notes/model.py
import colorsys
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import List, Sequence, Tuple

PLAYHEAD = 0.15     # playhead height in the note lane (bottom = 0)
LOOKAHEAD = 0.85    # share of the window above the playhead


@dataclass(frozen=True)
class Note:
    pitch: int        # MIDI note number
    velocity: int
    start_time: float  # seconds
    duration: float    # seconds
    channel: int

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def is_visible(self, current_time: float, time_window: float) -> bool:
        """True if any part of the note falls inside the window around current_time.

        The window reaches 15% of `time_window` into the past and 85% into the future.
        """
        window_start = current_time - time_window * PLAYHEAD
        window_end = current_time + time_window * LOOKAHEAD
        return self.start_time <= window_end and self.end_time >= window_start

    # ---- lane geometry, normalized to 0..1 ----
    def x_position(self) -> float:
        return self.pitch / 128.0

    def width(self) -> float:
        return 1.0 / 128.0

    def y_position(self, current_time: float, time_window: float) -> float:
        # future notes sit above the playhead
        return PLAYHEAD + ((self.start_time - current_time) / time_window) * LOOKAHEAD

    def height(self, time_window: float) -> float:
        return (self.duration / time_window) * LOOKAHEAD

    def color(self) -> Tuple[float, float, float, float]:
        """RGBA; hue from channel, brightness from velocity."""
        r, g, b = colorsys.hsv_to_rgb((self.channel % 16) / 16.0, 0.8,
                                      0.5 + (self.velocity / 127.0) * 0.5)
        return (r, g, b, 1.0)


def visible_notes(notes_sorted: Sequence[Note], note_starts: Sequence[float],
                  current_time: float, time_window: float, max_duration: float) -> List[Note]:
    """All visible notes of a start-sorted list, without scanning the whole song."""
    if not notes_sorted:
        return []
    end_idx = bisect_right(note_starts, current_time + time_window * LOOKAHEAD)
    # a note ending inside the window cannot start earlier than this
    start_idx = bisect_left(note_starts, current_time - time_window * PLAYHEAD - max_duration)
    return [n for n in notes_sorted[start_idx:end_idx] if n.is_visible(current_time, time_window)]
