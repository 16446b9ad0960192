# timeline/player.py
from bisect import bisect_left, bisect_right
from typing import Sequence, Set
from notes.model import Note

MIN_SPEED = 0.5
MAX_SPEED = 2.0
SPEED_STEP = 0.1

class Player:
    """Playback clock. Renderer and input handlers read and drive it each frame."""
    def __init__(self, speed: float = 1.0):
        self.current_time = 0.0
        self.is_playing = False
        self.playback_speed = 1.0
        self.set_playback_speed(speed)

    def play(self):
        self.is_playing = True

    def pause(self):
        self.is_playing = False

    def toggle_playback(self):
        self.is_playing = not self.is_playing

    def set_playback_speed(self, speed: float):
        self.playback_speed = min(MAX_SPEED, max(MIN_SPEED, speed))

    def increase_speed(self):
        self.set_playback_speed(self.playback_speed + SPEED_STEP)

    def decrease_speed(self):
        self.set_playback_speed(self.playback_speed - SPEED_STEP)

    def seek(self, t: float):
        self.current_time = max(0.0, t)

    def reset(self):
        self.current_time = 0.0
        self.is_playing = False

    def update(self, dt: float):
        if self.is_playing:
            self.current_time += dt * self.playback_speed

    def sounding(self, notes_sorted: Sequence[Note], note_starts: Sequence[float],
                 max_duration: float) -> Set[int]:
        t = self.current_time
        lo = bisect_left(note_starts, t - max_duration)
        hi = bisect_right(note_starts, t)
        return {n.pitch for n in notes_sorted[lo:hi] if n.start_time <= t <= n.end_time}
