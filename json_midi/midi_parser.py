"""json_midi.midi_parser

Decodes Standard MIDI Files (SMF) into the immutable input model used by
the converter.

Features:
- Format 0/1/2 files mapped to single/simultaneous/sequential track layouts
- Metrical (ticks per quarter note) and SMPTE timecode clock bases
- Channel, meta and system exclusive events kept as their raw bytes

mido does the byte-level parsing. This module only reshapes its messages:
channel and meta messages are turned back into their wire bytes with
`Message.bytes()` / `MetaMessage.bytes()` so the player works on exactly
what the file contained, not on mido's interpretation of it.
Text meta events survive the trip unchanged because they are re-encoded
with the charset the file was read with (latin-1 unless told otherwise).
The one body mido cannot give back is an empty sequence number, which is
recovered from the raw track chunks.
"""
import io
import logging
from typing import List, Optional, Sequence, Tuple, Union

import mido
from mido.messages.specs import SPEC_BY_STATUS
from mido.midifiles.meta import meta_charset

from .events import (
    ChannelMessage, DecodedMidi, EscapeBytes, Metrical, MetaMessage, MidiHeader, RawTrackEvent,
    SystemExclusive, Timecode, Timing, TrackLayout,
)
from .exceptions import MIDIParsingError

logger = logging.getLogger(__name__)

META = 0xFF
SYSEX = 0xF0
ESCAPE = 0xF7
SEQUENCE_NUMBER = 0x00


def clock_basis_from_division(division: int) -> Timing:
    """Interpret the header's 16-bit division field.

    With the high bit clear the field is ticks per quarter note. With it
    set, the high byte is the negated SMPTE frame rate and the low byte the
    ticks per frame. mido reads the field as a signed short, so both the
    signed and the unsigned spelling are accepted.

    Args:
        division: Division value as read from the header.

    Returns:
        Metrical or Timecode clock basis.

    Example:
        >>> clock_basis_from_division(480)
        Metrical(ticks_per_quarter_note=480)
        >>> clock_basis_from_division(-(25 << 8) + 40)
        Timecode(frames_per_second=25, ticks_per_frame=40)
    """
    raw = division & 0xFFFF
    if raw & 0x8000:
        return Timecode(frames_per_second=256 - (raw >> 8), ticks_per_frame=raw & 0xFF)
    return Metrical(ticks_per_quarter_note=raw)


def _meta_body(raw: List[int]) -> bytes:
    # FF <type> <variable-length size> <body>
    i = 2
    while raw[i] & 0x80:
        i += 1
    return bytes(raw[i + 1:])


def decode_message(msg: Union[mido.Message, mido.MetaMessage]) -> RawTrackEvent:
    """Turn one mido track message into a RawTrackEvent.

    Meta bodies are re-encoded with mido's active meta charset, so call this
    inside `meta_charset(...)` when the file was read with a non-default one.
    """
    if msg.is_meta:
        raw = msg.bytes()
        payload = MetaMessage(type_byte=raw[1], data=_meta_body(raw))
    elif msg.type == 'sysex':
        payload = SystemExclusive(data=bytes(msg.data))
    else:
        raw = msg.bytes()
        status = raw[0]
        if 0x80 <= status < 0xF0:
            payload = ChannelMessage(status=status & 0xF0, channel=status & 0x0F, data=tuple(raw[1:]))
        else:
            # system common / realtime bytes inside a track
            payload = EscapeBytes(data=bytes(raw))
    return RawTrackEvent(delta_ticks=msg.time, payload=payload)


def _read_varlen(data: bytes, i: int) -> Tuple[int, int]:
    value = 0
    while True:
        byte = data[i]
        i += 1
        value = (value << 7) | (byte & 0x7F)
        if byte < 0x80:
            return value, i


def sequence_number_sizes(data: bytes, num_tracks: int) -> List[List[int]]:
    """Body size of every sequence-number meta event, per track in file order.

    mido decodes an empty sequence-number body (`FF 00 00`) as number 0, the
    same as an explicit `FF 00 02 00 00`. Walking the track chunks again
    recovers which one the file held. `data` must be a file mido has
    already read without error.
    """
    sizes: List[List[int]] = []
    pos = 8 + int.from_bytes(data[4:8], 'big')
    for _ in range(num_tracks):
        length = int.from_bytes(data[pos + 4:pos + 8], 'big')
        i, end = pos + 8, pos + 8 + length
        track_sizes: List[int] = []
        running = None
        while i < end:
            _, i = _read_varlen(data, i)
            if data[i] >= 0x80:
                status = data[i]
                i += 1
                if status != META:
                    running = status
            else:
                status = running
            if status == META:
                meta_type = data[i]
                size, i = _read_varlen(data, i + 1)
                if meta_type == SEQUENCE_NUMBER:
                    track_sizes.append(size)
                i += size
            elif status in (SYSEX, ESCAPE):
                size, i = _read_varlen(data, i)
                i += size
            else:
                # running status data starts at i as well
                i += SPEC_BY_STATUS[status]['length'] - 1
        sizes.append(track_sizes)
        pos = end
    return sizes


def _decode_track(track: mido.MidiTrack, seq_sizes: Sequence[int]) -> Tuple[RawTrackEvent, ...]:
    sizes = iter(seq_sizes)
    events = []
    for msg in track:
        event = decode_message(msg)
        if msg.type == 'sequence_number' and next(sizes, 2) == 0:
            event = RawTrackEvent(delta_ticks=event.delta_ticks,
                                  payload=MetaMessage(type_byte=SEQUENCE_NUMBER, data=b''))
        events.append(event)
    return tuple(events)


def decode_midi_file(mid: mido.MidiFile,
                     seq_sizes: Optional[Sequence[Sequence[int]]] = None) -> DecodedMidi:
    """Convert an already loaded mido.MidiFile into a DecodedMidi.

    Args:
        mid: A mido.MidiFile, read from disk or built in memory.
        seq_sizes: Optional output of `sequence_number_sizes` for the bytes
            `mid` was read from. Without it every sequence-number event is
            taken to carry a two-byte body.

    Returns:
        DecodedMidi with the header and one tuple of events per track.

    Raises:
        MIDIParsingError: If the file's format number is not 0, 1 or 2.
    """
    try:
        layout = TrackLayout.from_smf_format(mid.type)
    except ValueError as e:
        raise MIDIParsingError(str(e)) from e

    timing = clock_basis_from_division(mid.ticks_per_beat)
    tracks: List[Tuple[RawTrackEvent, ...]] = []
    with meta_charset(mid.charset):
        for ti, track in enumerate(mid.tracks):
            track_sizes = seq_sizes[ti] if seq_sizes is not None and ti < len(seq_sizes) else ()
            tracks.append(_decode_track(track, track_sizes))

    logger.debug("Decoded %d track(s), layout=%s, timing=%s", len(tracks), layout.value, timing)
    return DecodedMidi(header=MidiHeader(layout=layout, timing=timing), tracks=tuple(tracks))


def parse_midi(path: str, charset: str = 'latin1') -> DecodedMidi:
    """Read a MIDI file from disk and decode it.

    This is the main entry point for reading MIDI files.

    Args:
        path: File path to the MIDI file to parse.
        charset: Text encoding mido uses for text meta events. The raw
            bytes are passed on unchanged as long as they decode in it.

    Returns:
        DecodedMidi for the file.

    Raises:
        MIDIParsingError: If the file cannot be read, is not a valid SMF, or
            holds text or key signatures mido cannot decode.

    Example:
        >>> decoded = parse_midi('song.mid')
        >>> decoded.header.layout
        <TrackLayout.SIMULTANEOUS: 'simultaneous'>
    """
    try:
        with open(path, 'rb') as f:
            data = f.read()
        mid = mido.MidiFile(file=io.BytesIO(data), charset=charset)
    except (OSError, EOFError, ValueError, LookupError, mido.KeySignatureError) as e:
        raise MIDIParsingError(f"Failed to read MIDI file {path}: {e}") from e
    return decode_midi_file(mid, sequence_number_sizes(data, len(mid.tracks)))
