import os
import struct
import tempfile

import pytest
from mido import Message, MetaMessage as MidoMeta, MidiFile, MidiTrack

from json_midi import cli
from json_midi.events import (
    ChannelMessage, MetaMessage, Metrical, SystemExclusive, Timecode, TrackLayout,
)
from json_midi.exceptions import MIDIParsingError
from json_midi.midi_parser import (
    clock_basis_from_division, decode_midi_file, parse_midi, sequence_number_sizes,
)
from json_midi.player import parse_meta


def build_file(midi_type=1):
    mid = MidiFile(type=midi_type, ticks_per_beat=480)
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(MidoMeta('set_tempo', tempo=250000, time=0))
    track.append(MidoMeta('track_name', name='Piano', time=0))
    track.append(Message('note_on', note=60, velocity=64, channel=2, time=0))
    track.append(Message('pitchwheel', pitch=0, channel=2, time=10))
    track.append(Message('sysex', data=[1, 2, 3], time=5))
    track.append(MidoMeta('key_signature', key='Eb', time=0))
    track.append(MidoMeta('end_of_track', time=0))
    return mid


def test_decode_keeps_raw_bytes():
    decoded = decode_midi_file(build_file())
    assert decoded.header.layout is TrackLayout.SIMULTANEOUS
    assert decoded.header.timing == Metrical(480)
    assert len(decoded.tracks) == 1

    events = decoded.tracks[0]
    assert [ev.delta_ticks for ev in events] == [0, 0, 0, 10, 5, 0, 0]
    assert events[0].payload == MetaMessage(0x51, bytes([0x03, 0xD0, 0x90]))
    assert events[1].payload == MetaMessage(0x03, b'Piano')
    assert events[2].payload == ChannelMessage(0x90, 2, (60, 64))
    assert events[3].payload == ChannelMessage(0xE0, 2, (0x00, 0x40))
    assert events[4].payload == SystemExclusive(b'\x01\x02\x03')
    assert events[6].payload == MetaMessage(0x2F, b'')


def test_decoded_meta_classifies_back():
    events = decode_midi_file(build_file()).tracks[0]
    assert parse_meta(events[0].payload).value == 250000
    assert parse_meta(events[5].payload).value == (-3, False)


@pytest.mark.parametrize('midi_type, layout', [
    (0, TrackLayout.SINGLE),
    (1, TrackLayout.SIMULTANEOUS),
    (2, TrackLayout.SEQUENTIAL),
])
def test_format_maps_to_layout(midi_type, layout):
    assert decode_midi_file(build_file(midi_type)).header.layout is layout


def test_clock_basis_from_division():
    assert clock_basis_from_division(96) == Metrical(96)
    assert clock_basis_from_division(-(25 << 8) + 40) == Timecode(25, 40)
    assert clock_basis_from_division(0xE728) == Timecode(25, 40)
    assert clock_basis_from_division(0xE250) == Timecode(30, 80)
    assert clock_basis_from_division(0xE804) == Timecode(24, 4)


def test_parse_midi_from_disk():
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix='.mid')
    tmp.close()
    try:
        build_file().save(tmp.name)
        decoded = parse_midi(tmp.name)
        events = decoded.tracks[0]
        assert events[1].payload == MetaMessage(0x03, b'Piano')
        assert events[-1].payload == MetaMessage(0x2F, b'')
        assert sum(ev.delta_ticks for ev in events) == 15
    finally:
        os.unlink(tmp.name)


def test_parse_midi_rejects_garbage():
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix='.mid')
    tmp.write(b'definitely not a midi file')
    tmp.close()
    try:
        with pytest.raises(MIDIParsingError):
            parse_midi(tmp.name)
    finally:
        os.unlink(tmp.name)


END_OF_TRACK = b'\x00\xff\x2f\x00'


def smf_bytes(*tracks, midi_format=0, division=480):
    header = b'MThd' + struct.pack('>LHHH', 6, midi_format, len(tracks), division)
    return header + b''.join(b'MTrk' + struct.pack('>L', len(t)) + t for t in tracks)


@pytest.fixture
def smf_path():
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix='.mid')
    tmp.close()

    def write(*tracks, **header):
        with open(tmp.name, 'wb') as f:
            f.write(smf_bytes(*tracks, **header))
        return tmp.name

    yield write
    os.unlink(tmp.name)


def test_text_meta_keeps_its_bytes_under_another_charset(smf_path):
    path = smf_path(b'\x00\xff\x03\x05Caf\xc3\xa9' + END_OF_TRACK)
    decoded = parse_midi(path, charset='utf-8')
    assert decoded.tracks[0][0].payload == MetaMessage(0x03, 'Café'.encode('utf-8'))


def test_text_meta_that_does_not_decode_is_a_parsing_error(smf_path):
    path = smf_path(b'\x00\xff\x03\x05Caf\xc3\xa9' + END_OF_TRACK)
    with pytest.raises(MIDIParsingError):
        parse_midi(path, charset='ascii')


def test_empty_sequence_number_stays_empty(smf_path):
    track = (b'\x00\x90\x3c\x40'          # note on
             b'\x0a\x3c\x00'              # running status
             b'\x00\xff\x00\x00'          # sequence number, no body
             b'\x00\xff\x00\x02\x00\x00'  # sequence number 0
             + END_OF_TRACK)
    path = smf_path(track)
    events = parse_midi(path).tracks[0]

    assert events[1].payload == ChannelMessage(0x90, 0, (0x3C, 0x00))
    assert events[2].payload == MetaMessage(0x00, b'')
    assert events[3].payload == MetaMessage(0x00, b'\x00\x00')
    assert parse_meta(events[2].payload).value is None
    assert parse_meta(events[3].payload).value == 0


def test_sequence_number_sizes_per_track():
    data = smf_bytes(b'\x00\xf0\x02\x01\xf7\x00\xff\x00\x00' + END_OF_TRACK,
                     b'\x00\xc0\x05\x00\xff\x00\x02\x00\x07' + END_OF_TRACK,
                     midi_format=1)
    assert sequence_number_sizes(data, 2) == [[0], [2]]


def test_bad_key_signature_is_a_parsing_error(smf_path):
    path = smf_path(b'\x00\xff\x59\x02\x08\x00' + END_OF_TRACK)
    with pytest.raises(MIDIParsingError):
        parse_midi(path)
    assert cli.main([path]) == 1


def test_unsupported_format_is_a_parsing_error():
    mid = build_file()
    mid.type = 3
    with pytest.raises(MIDIParsingError):
        decode_midi_file(mid)
