# midi/parser.py
import io
import logging
import struct
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

import mido

from notes.model import Note
from midi.errors import InvalidMidiFileError, MidiFormatError, MidiIOError
from midi.pairing import DEFAULT_FALLBACK_DURATION, DEFAULT_MIN_DURATION, pair_track_notes
from midi.tempo import DEFAULT_TEMPO, TickClock, build_tempo_map, merge_tempo_maps

if TYPE_CHECKING:
    from config import ParseConfig

HEADER_MAGIC = b'MThd'
HEADER_SIZE = 14  # 'MThd' + length + format/ntracks/division
SMF_FORMATS = (0, 1, 2)


def ticks_per_beat_from_division(division: int) -> float:
    """Timing resolution from the header's division word.

    Metrical files give ticks per quarter note directly. SMPTE files are
    approximated as frames per second times ticks per frame.
    """
    division &= 0xFFFF
    if not division & 0x8000:
        return float(division)
    fps = 256 - (division >> 8)  # stored as a negative byte
    subframe = division & 0xFF
    fps_f = 29.97 if fps == 29 else float(fps)
    return fps_f * subframe


def describe_division(division: int) -> str:
    division &= 0xFFFF
    if not division & 0x8000:
        return f"{division} ticks per beat"
    return f"SMPTE {256 - (division >> 8)} fps x {division & 0xFF} ticks per frame"


def merge_tracks(per_track: Iterable[List[Note]]) -> List[Note]:
    """Concatenate in track order, then stable sort by start time."""
    all_notes: List[Note] = []
    for notes in per_track:
        all_notes.extend(notes)
    all_notes.sort(key=lambda n: n.start_time)
    return all_notes


class MidiParser:
    """Tempo-aware SMF note parser, usable on black MIDI sized files."""

    def __init__(self, min_note_duration: float = DEFAULT_MIN_DURATION,
                 fallback_duration: float = DEFAULT_FALLBACK_DURATION,
                 default_tempo: float = DEFAULT_TEMPO,
                 merge_tempo_tracks: bool = False):
        self.min_note_duration = min_note_duration
        self.fallback_duration = fallback_duration
        self.default_tempo = default_tempo
        self.merge_tempo_tracks = merge_tempo_tracks

    @classmethod
    def from_config(cls, cfg) -> "MidiParser":
        return cls(min_note_duration=cfg.min_note_duration,
                   fallback_duration=cfg.fallback_duration,
                   default_tempo=cfg.default_tempo,
                   merge_tempo_tracks=cfg.merge_tempo_tracks)

    def with_min_duration(self, duration: float) -> "MidiParser":
        self.min_note_duration = duration
        return self

    def parse_file(self, path: str) -> List[Note]:
        logging.info("Parsing MIDI file: %s", path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise MidiIOError(str(e)) from e
        return self.parse_bytes(data)

    def parse_bytes(self, data: bytes) -> List[Note]:
        if len(data) < HEADER_SIZE or data[:4] != HEADER_MAGIC:
            raise InvalidMidiFileError("not a Standard MIDI File (missing MThd header)")
        try:
            mid = mido.MidiFile(file=io.BytesIO(data))
        except (OSError, EOFError, ValueError, KeyError, IndexError,
                struct.error, mido.KeySignatureError) as e:
            raise MidiFormatError(str(e) or type(e).__name__) from e
        if mid.type not in SMF_FORMATS:
            raise MidiFormatError(f"invalid SMF format: {mid.type}")

        tpb = ticks_per_beat_from_division(mid.ticks_per_beat)
        if tpb <= 0:
            raise MidiFormatError(f"invalid timing resolution: {describe_division(mid.ticks_per_beat)}")
        logging.info("Ticks per beat: %s", tpb)
        logging.info("Number of tracks: %d", len(mid.tracks))

        tempo_maps = [build_tempo_map(track, self.default_tempo) for track in mid.tracks]
        if self.merge_tempo_tracks:
            shared = merge_tempo_maps(tempo_maps, self.default_tempo)
            tempo_maps = [shared] * len(tempo_maps)

        per_track = []
        for idx, (track, tempo_map) in enumerate(zip(mid.tracks, tempo_maps)):
            notes = pair_track_notes(track, TickClock(tempo_map, tpb),
                                     self.min_note_duration, self.fallback_duration)
            logging.debug("Track %d has %d notes", idx, len(notes))
            per_track.append(notes)

        all_notes = merge_tracks(per_track)
        logging.info("Total notes parsed: %d", len(all_notes))
        return all_notes

    @staticmethod
    def get_duration(notes: Iterable[Note]) -> float:
        return max((n.end_time for n in notes), default=0.0)


def parse_midi_to_notes(path: str, config: Optional["ParseConfig"] = None) -> Tuple[List[Note], float]:
    """Parse a file into (start-sorted notes, total duration in seconds)."""
    parser = MidiParser.from_config(config) if config is not None else MidiParser()
    notes = parser.parse_file(path)
    return notes, MidiParser.get_duration(notes)
