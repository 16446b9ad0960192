"""Builders for in-memory MIDI test input."""
import io
import struct

import mido


def midi_bytes(*tracks, ticks_per_beat=480):
    mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    for msgs in tracks:
        mid.tracks.append(mido.MidiTrack(msgs))
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def raw_smf(division, track_data, ntracks=1, fmt=0):
    """Hand-assembled single-track file, for headers mido will not write."""
    header = b'MThd' + struct.pack('>IhhH', 6, fmt, ntracks, division)
    if track_data is None:
        return header
    return header + b'MTrk' + struct.pack('>I', len(track_data)) + track_data


def on(note, velocity=100, time=0, channel=0):
    return mido.Message('note_on', note=note, velocity=velocity, time=time, channel=channel)


def off(note, time=0, channel=0, velocity=64):
    return mido.Message('note_off', note=note, velocity=velocity, time=time, channel=channel)


def tempo(us, time=0):
    return mido.MetaMessage('set_tempo', tempo=us, time=time)
