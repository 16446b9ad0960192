import pytest

from midi_factory import on, off, tempo, raw_smf
from midi.errors import InvalidMidiFileError, MidiFormatError, MidiIOError, ParseError
from midi.parser import MidiParser, merge_tracks, parse_midi_to_notes
from notes.model import Note
from config import ParseConfig


def test_single_track_end_to_end(make_midi):
    notes = MidiParser().parse_bytes(make_midi([on(60, 100), off(60, time=480)]))
    assert notes == [Note(pitch=60, velocity=100, start_time=0.0, duration=0.5, channel=0)]


def test_output_sorted_across_tracks(make_midi):
    data = make_midi(
        [on(60, time=960), off(60, time=100), on(61, time=10), off(61, time=100)],
        [on(70, time=10), off(70, time=100), on(71, time=2000), off(71, time=100)],
        [on(80), off(80, time=480)],
    )
    notes = MidiParser().parse_bytes(data)
    starts = [n.start_time for n in notes]
    assert all(a <= b for a, b in zip(starts, starts[1:]))
    assert [n.pitch for n in notes] == [80, 70, 60, 61, 71]


def test_ties_keep_track_order():
    a = [Note(60, 100, 1.0, 0.5, 0), Note(61, 100, 2.0, 0.5, 0)]
    b = [Note(62, 100, 1.0, 0.5, 1), Note(63, 100, 0.5, 0.5, 1)]
    assert [n.pitch for n in merge_tracks([a, b])] == [63, 60, 62, 61]


def test_tempo_applies_per_track(make_midi):
    data = make_midi(
        [tempo(250000), on(60), off(60, time=480)],
        [on(62), off(62, time=480)],
    )
    notes = MidiParser().parse_bytes(data)
    durations = {n.pitch: n.duration for n in notes}
    assert durations[60] == pytest.approx(0.25)
    assert durations[62] == pytest.approx(0.5)


def test_merged_tempo_applies_to_all_tracks(make_midi):
    data = make_midi(
        [tempo(250000)],
        [on(62), off(62, time=480)],
    )
    notes = MidiParser(merge_tempo_tracks=True).parse_bytes(data)
    assert notes[0].duration == pytest.approx(0.25)


def test_min_duration_filter(make_midi):
    data = make_midi([on(60), off(60, time=1), on(61), off(61, time=1000)], ticks_per_beat=1000)
    assert [n.pitch for n in MidiParser().parse_bytes(data)] == [61]
    assert MidiParser().with_min_duration(0.0001).parse_bytes(data)[0].pitch == 60


def test_from_config(make_midi):
    parser = MidiParser.from_config(ParseConfig(fallback_duration=0.3))
    notes = parser.parse_bytes(make_midi([on(72, time=1000)]))
    assert notes[0].duration == 0.3


def test_smpte_timing():
    # 25 fps x 40 ticks per frame -> 1000 ticks per beat
    track = bytes([0x00, 0x90, 60, 100, 0x87, 0x68, 0x80, 60, 0, 0x00, 0xFF, 0x2F, 0x00])
    notes = MidiParser().parse_bytes(raw_smf(0xE728, track))
    assert len(notes) == 1
    assert notes[0].duration == pytest.approx(0.5)


def test_get_duration():
    notes = [Note(60, 100, 0.0, 0.5, 0), Note(61, 100, 1.0, 2.0, 0), Note(62, 100, 2.0, 0.1, 0)]
    assert MidiParser.get_duration(notes) == 3.0
    assert MidiParser.get_duration([]) == 0.0


def test_parse_file_and_total(tmp_path, make_midi):
    path = tmp_path / "song.mid"
    path.write_bytes(make_midi([on(60), off(60, time=960)]))
    notes, total = parse_midi_to_notes(str(path))
    assert len(notes) == 1
    assert total == pytest.approx(1.0)


def test_missing_file_is_io_error(tmp_path):
    with pytest.raises(MidiIOError) as info:
        MidiParser().parse_file(str(tmp_path / "missing.mid"))
    assert info.value.kind == "io"


@pytest.mark.parametrize("data", [b"", b"RIFF\x00\x00\x00\x00RMIDdata", b"MThd"])
def test_not_a_midi_file(data):
    with pytest.raises(InvalidMidiFileError) as info:
        MidiParser().parse_bytes(data)
    assert info.value.kind == "invalid"
    assert str(info.value).startswith("Invalid file: ")


def test_missing_track_is_format_error():
    with pytest.raises(MidiFormatError) as info:
        MidiParser().parse_bytes(raw_smf(480, None))
    assert info.value.kind == "format"


def test_bad_track_chunk_is_format_error():
    data = raw_smf(480, None) + b'XXXX\x00\x00\x00\x04\x00\xff\x2f\x00'
    with pytest.raises(MidiFormatError):
        MidiParser().parse_bytes(data)


def test_truncated_track_is_format_error():
    data = raw_smf(480, bytes([0x00, 0x90, 60, 100, 0x83, 0x60, 0x80, 60, 0, 0x00, 0xFF, 0x2F, 0x00]))
    with pytest.raises(ParseError):
        MidiParser().parse_bytes(data[:-6])


def test_zero_division_is_format_error():
    with pytest.raises(MidiFormatError):
        MidiParser().parse_bytes(raw_smf(0, bytes([0x00, 0xFF, 0x2F, 0x00])))


def test_corrupt_key_signature_is_format_error():
    # key signature with 80 sharps
    track = bytes([0x00, 0xFF, 0x59, 0x02, 0x50, 0x05, 0x00, 0xFF, 0x2F, 0x00])
    with pytest.raises(MidiFormatError) as info:
        MidiParser().parse_bytes(raw_smf(480, track))
    assert info.value.kind == "format"


def test_short_header_chunk_is_format_error():
    data = b'MThd' + bytes([0, 0, 0, 2, 0, 0]) + bytes(4)
    with pytest.raises(MidiFormatError):
        MidiParser().parse_bytes(data)


@pytest.mark.parametrize("fmt", [3, 7])
def test_unknown_smf_format_is_format_error(fmt):
    track = bytes([0x00, 0x90, 60, 100, 0x83, 0x60, 0x80, 60, 0, 0x00, 0xFF, 0x2F, 0x00])
    with pytest.raises(MidiFormatError) as info:
        MidiParser().parse_bytes(raw_smf(480, track, fmt=fmt))
    assert "format" in str(info.value)


@pytest.mark.parametrize("fmt", [0, 1, 2])
def test_known_smf_formats_parse(fmt):
    track = bytes([0x00, 0x90, 60, 100, 0x83, 0x60, 0x80, 60, 0, 0x00, 0xFF, 0x2F, 0x00])
    notes = MidiParser().parse_bytes(raw_smf(480, track, fmt=fmt))
    assert len(notes) == 1


def test_zero_smpte_resolution_message():
    with pytest.raises(MidiFormatError) as info:
        MidiParser().parse_bytes(raw_smf(0xE700, bytes([0x00, 0xFF, 0x2F, 0x00])))
    assert "SMPTE 25 fps x 0 ticks per frame" in str(info.value)
