# midi/pairing.py
from typing import Dict, Iterable, List, Tuple
from notes.model import Note
from midi.tempo import TickClock

DEFAULT_MIN_DURATION = 0.001   # 1ms
DEFAULT_FALLBACK_DURATION = 0.1  # unclosed notes


def pair_track_notes(track: Iterable, clock: TickClock,
                     min_duration: float = DEFAULT_MIN_DURATION,
                     fallback_duration: float = DEFAULT_FALLBACK_DURATION) -> List[Note]:
    """Match note_on / note_off messages of one track into Notes.

    A note_on with velocity 0 closes a note like note_off does. Closing events
    with nothing open are dropped, as are notes shorter than `min_duration`.
    Notes still open at the end of the track get `fallback_duration`.
    """
    notes: List[Note] = []
    # (pitch, channel) -> (start_tick, velocity)
    active: Dict[Tuple[int, int], Tuple[int, int]] = {}
    tick = 0

    for msg in track:
        tick += msg.time
        if msg.is_meta:
            continue
        if msg.type == 'note_on' and msg.velocity > 0:
            active[(msg.note, msg.channel)] = (tick, msg.velocity)
        elif msg.type == 'note_off' or msg.type == 'note_on':
            opened = active.pop((msg.note, msg.channel), None)
            if opened is None:
                continue
            start_tick, velocity = opened
            start = clock.ticks_to_seconds(start_tick)
            duration = clock.ticks_to_seconds(tick) - start
            if duration >= min_duration:
                notes.append(Note(pitch=msg.note, velocity=velocity, start_time=start,
                                  duration=duration, channel=msg.channel))

    for (pitch, channel), (start_tick, velocity) in active.items():
        notes.append(Note(pitch=pitch, velocity=velocity,
                          start_time=clock.ticks_to_seconds(start_tick),
                          duration=fallback_duration, channel=channel))
    return notes
