"""json_midi.model

Normalized output records produced by the player.

Each record knows how to turn itself into plain Python data (`to_dict`)
matching the JSON layout of the converter output:

    {"event": "midi", "time": {"tick": 96, "micros": 500000, "seconds": 0.5},
     "data": {"type": "note_on", "chan": 0, "note": 60, "velocity": 64}}
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class TimeInfo:
    tick: int
    micros: int
    seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ChannelEvent:
    """Base class for normalized channel voice events.

    Subclasses are dataclasses; `type_name` is the tag written to the
    output and the dataclass fields follow it in declaration order.
    """
    type_name = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type_name, **asdict(self)}


@dataclass(frozen=True)
class NoteOff(ChannelEvent):
    type_name = 'note_off'
    chan: int
    note: int
    velocity: int


@dataclass(frozen=True)
class NoteOn(ChannelEvent):
    type_name = 'note_on'
    chan: int
    note: int
    velocity: int


@dataclass(frozen=True)
class Aftertouch(ChannelEvent):
    type_name = 'aftertouch'
    chan: int
    note: int
    velocity: int


@dataclass(frozen=True)
class Controller(ChannelEvent):
    type_name = 'controller'
    chan: int
    ctrl: int
    value: int


@dataclass(frozen=True)
class ProgramChange(ChannelEvent):
    type_name = 'program_change'
    chan: int
    program: int


@dataclass(frozen=True)
class ChannelAftertouch(ChannelEvent):
    type_name = 'channel_aftertouch'
    chan: int
    velocity: int


@dataclass(frozen=True)
class PitchBend(ChannelEvent):
    type_name = 'pitch_bend'
    chan: int
    bend_by: int


# meta kinds that carry no data field in the output
UNIT_META_KINDS = frozenset({'end_of_track'})


@dataclass(frozen=True)
class MetaEvent:
    """A classified meta event.

    Attributes:
        kind: Snake-case subtype name, e.g. 'tempo', 'track_name', 'unknown'.
        value: Subtype payload. Text-like subtypes hold raw bytes, tempo an
            int, time/key signatures and unknown events a tuple.
    """

    kind: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        if self.kind in UNIT_META_KINDS:
            return {'type': self.kind}
        return {'type': self.kind, 'data': _plain(self.value)}


def _plain(value: Any) -> Any:
    """Turn bytes into lists of ints and tuples into lists, recursively."""
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return value


EventData = Union[ChannelEvent, MetaEvent]


@dataclass(frozen=True)
class NormalizedOutput:
    """One emitted record: 'midi' or 'meta', its time and its data."""

    kind: str
    time: TimeInfo
    data: EventData

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event': self.kind,
            'time': self.time.to_dict(),
            'data': self.data.to_dict(),
        }
