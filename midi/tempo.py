# midi/tempo.py
from bisect import bisect_right
from typing import Iterable, List, Sequence, Tuple

DEFAULT_TEMPO = 500000.0  # us per beat, 120 bpm

TempoMap = Tuple[Tuple[int, float], ...]


def build_tempo_map(track: Iterable, default_tempo: float = DEFAULT_TEMPO) -> TempoMap:
    """Collect (absolute tick, microseconds per beat) for every set_tempo in a track.

    The map always starts with the default tempo at tick 0; explicit tempo
    events follow in arrival order, so one at tick 0 takes over from the default.
    """
    entries: List[Tuple[int, float]] = [(0, float(default_tempo))]
    tick = 0
    for msg in track:
        tick += msg.time
        if msg.is_meta and msg.type == 'set_tempo':
            entries.append((tick, float(msg.tempo)))
    return tuple(entries)


def merge_tempo_maps(maps: Sequence[TempoMap], default_tempo: float = DEFAULT_TEMPO) -> TempoMap:
    """One map out of several tracks' maps; ties keep track order."""
    explicit = [e for m in maps for e in m[1:]]
    explicit.sort(key=lambda e: e[0])
    return ((0, float(default_tempo)),) + tuple(explicit)


class TickClock:
    """Converts absolute ticks into seconds since the start of the track."""

    def __init__(self, tempo_map: TempoMap, ticks_per_beat: float):
        if not tempo_map:
            tempo_map = ((0, DEFAULT_TEMPO),)
        self.tempo_map = tempo_map
        self.ticks_per_beat = float(ticks_per_beat)
        self._ticks = [t for t, _ in tempo_map]

        # seconds elapsed when each tempo entry takes effect
        self._offsets: List[float] = []
        seconds = 0.0
        last_tick = 0
        last_tempo = tempo_map[0][1]
        for tick, tempo in tempo_map:
            seconds += ((tick - last_tick) / self.ticks_per_beat) * (last_tempo / 1_000_000.0)
            self._offsets.append(seconds)
            last_tick, last_tempo = tick, tempo

    def ticks_to_seconds(self, tick: int) -> float:
        i = bisect_right(self._ticks, tick) - 1
        if i < 0:
            return 0.0
        seg_tick, seg_tempo = self.tempo_map[i]
        return self._offsets[i] + ((tick - seg_tick) / self.ticks_per_beat) * (seg_tempo / 1_000_000.0)

    __call__ = ticks_to_seconds
