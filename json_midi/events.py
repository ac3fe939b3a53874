"""json_midi.events

Decoded input model: the file header and the per-track raw events handed
over by the decoder. Everything here is immutable; the conversion pipeline
only ever reads it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class TrackLayout(Enum):
    """How the tracks of a file relate to each other in time."""

    SINGLE = 'single'
    SEQUENTIAL = 'sequential'
    SIMULTANEOUS = 'simultaneous'

    @classmethod
    def from_smf_format(cls, smf_format: int) -> 'TrackLayout':
        """Map the SMF header format number (0, 1, 2) to a layout."""
        try:
            return _SMF_FORMATS[smf_format]
        except KeyError:
            raise ValueError(f"Unsupported SMF format: {smf_format}") from None


_SMF_FORMATS = {
    0: TrackLayout.SINGLE,
    1: TrackLayout.SIMULTANEOUS,
    2: TrackLayout.SEQUENTIAL,
}


@dataclass(frozen=True)
class Metrical:
    """Tick length defined relative to a quarter note."""

    ticks_per_quarter_note: int


@dataclass(frozen=True)
class Timecode:
    """Tick length fixed by an SMPTE frame rate and frame subdivision."""

    frames_per_second: int
    ticks_per_frame: int


Timing = Union[Metrical, Timecode]


@dataclass(frozen=True)
class MidiHeader:
    layout: TrackLayout
    timing: Timing


# Channel voice status nibbles
NOTE_OFF = 0x80
NOTE_ON = 0x90
AFTERTOUCH = 0xA0
CONTROLLER = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_AFTERTOUCH = 0xD0
PITCH_BEND = 0xE0


@dataclass(frozen=True)
class ChannelMessage:
    """A channel voice message as it appears on the wire.

    Attributes:
        status: High nibble of the status byte (0x80..0xE0).
        channel: Low nibble of the status byte (0-15).
        data: The one or two data bytes following the status byte.
    """

    status: int
    channel: int
    data: Tuple[int, ...]


@dataclass(frozen=True)
class MetaMessage:
    """A meta event: its type byte and the undecoded body."""

    type_byte: int
    data: bytes


@dataclass(frozen=True)
class SystemExclusive:
    data: bytes


@dataclass(frozen=True)
class EscapeBytes:
    data: bytes


Payload = Union[ChannelMessage, MetaMessage, SystemExclusive, EscapeBytes]


@dataclass(frozen=True)
class RawTrackEvent:
    """A decoded track event; delta_ticks is relative to the previous event of the same track."""

    delta_ticks: int
    payload: Payload


@dataclass(frozen=True)
class DecodedMidi:
    """Header plus the ordered list of tracks, each an ordered tuple of events."""

    header: MidiHeader
    tracks: Tuple[Tuple[RawTrackEvent, ...], ...]
