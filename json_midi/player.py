"""json_midi.player

Plays a merged event sequence through a clock and yields normalized records.

For every merged event the player decides whether it is emitted, whether it
only moves the clock (a hidden tempo change), or whether it is dropped. A
dropped event's delta is not lost: it is carried forward and added to the
next event that reads the clock.

Emission rules:
- channel voice messages are always emitted;
- meta messages are emitted only when include_meta is set, except SMPTE
  offset and sequencer-specific events, which are never emitted;
- tempo events always retime the clock, visible or not;
- end-of-track finishes its own track only; events still pending on other
  tracks keep playing;
- system exclusive and escape events are never emitted.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Set

from .events import (
    AFTERTOUCH, CHANNEL_AFTERTOUCH, CONTROLLER, NOTE_OFF, NOTE_ON, PITCH_BEND, PROGRAM_CHANGE,
    ChannelMessage, DecodedMidi, MetaMessage,
)
from .model import (
    Aftertouch, ChannelAftertouch, ChannelEvent, Controller, MetaEvent, NormalizedOutput,
    NoteOff, NoteOn, PitchBend, ProgramChange, TimeInfo,
)
from .timing import MidiClock, TickReading, micros_to_seconds
from .track_merger import MergedEvent, merge_tracks

logger = logging.getLogger(__name__)


class PlayerState(Enum):
    RUNNING = 'running'
    EXHAUSTED = 'exhausted'


class TrackState(Enum):
    PLAYING = 'playing'
    TRACK_DONE = 'track_done'


_TEXT_META = {
    0x01: 'text',
    0x02: 'copyright',
    0x03: 'track_name',
    0x04: 'instrument_name',
    0x05: 'lyric',
    0x06: 'marker',
    0x07: 'cue_point',
    0x08: 'program_name',
    0x09: 'device_name',
}

SEQUENCE_NUMBER = 0x00
CHANNEL_PREFIX = 0x20
MIDI_PORT = 0x21
END_OF_TRACK = 0x2F
SET_TEMPO = 0x51
SMPTE_OFFSET = 0x54
TIME_SIGNATURE = 0x58
KEY_SIGNATURE = 0x59
SEQUENCER_SPECIFIC = 0x7F

# never emitted, whatever include_meta says
ALWAYS_DROPPED_META = frozenset({'smpte_offset', 'sequencer_specific'})


def parse_meta(message: MetaMessage) -> MetaEvent:
    """Classify a raw meta message into a MetaEvent.

    Bodies whose length does not fit their type are reported as 'unknown'
    rather than rejected.

    Args:
        message: Meta type byte plus undecoded body.

    Returns:
        The classified MetaEvent.

    Example:
        >>> parse_meta(MetaMessage(0x51, bytes([0x07, 0xA1, 0x20])))
        MetaEvent(kind='tempo', value=500000)
    """
    tb, data = message.type_byte, bytes(message.data)
    size = len(data)

    if tb in _TEXT_META:
        return MetaEvent(_TEXT_META[tb], data)
    if tb == SEQUENCE_NUMBER and size in (0, 2):
        return MetaEvent('track_number', int.from_bytes(data, 'big') if size else None)
    if tb == CHANNEL_PREFIX and size == 1:
        return MetaEvent('midi_channel', data[0])
    if tb == MIDI_PORT and size == 1:
        return MetaEvent('midi_port', data[0])
    if tb == END_OF_TRACK and size == 0:
        return MetaEvent('end_of_track')
    if tb == SET_TEMPO and size == 3:
        return MetaEvent('tempo', int.from_bytes(data, 'big'))
    if tb == SMPTE_OFFSET and size == 5:
        return MetaEvent('smpte_offset', tuple(data))
    if tb == TIME_SIGNATURE and size == 4:
        return MetaEvent('time_signature', tuple(data))
    if tb == KEY_SIGNATURE and size == 2:
        sharps_flats = int.from_bytes(data[:1], 'big', signed=True)
        return MetaEvent('key_signature', (sharps_flats, bool(data[1])))
    if tb == SEQUENCER_SPECIFIC:
        return MetaEvent('sequencer_specific', data)
    return MetaEvent('unknown', (tb, data))


def translate_channel_message(message: ChannelMessage) -> ChannelEvent:
    """Translate a channel voice message 1:1 into its normalized event."""
    chan, data = message.channel, message.data
    status = message.status
    if status == NOTE_OFF:
        return NoteOff(chan=chan, note=data[0], velocity=data[1])
    if status == NOTE_ON:
        return NoteOn(chan=chan, note=data[0], velocity=data[1])
    if status == AFTERTOUCH:
        return Aftertouch(chan=chan, note=data[0], velocity=data[1])
    if status == CONTROLLER:
        return Controller(chan=chan, ctrl=data[0], value=data[1])
    if status == PROGRAM_CHANGE:
        return ProgramChange(chan=chan, program=data[0])
    if status == CHANNEL_AFTERTOUCH:
        return ChannelAftertouch(chan=chan, velocity=data[0])
    if status == PITCH_BEND:
        # 14-bit value, LSB first
        return PitchBend(chan=chan, bend_by=data[0] | (data[1] << 7))
    raise ValueError(f"Not a channel voice status: {status:#04x}")


class MidiPlayer:
    """Dispatcher that turns merged events into normalized output records.

    A player is good for one pass: iterate it once, then read the
    counters.

    Attributes:
        include_meta: Emit meta events.
        use_delta_time: Report time since the previous emitted record
            instead of time since the start of the file.
        seconds_precision: Decimal places of the seconds field, None for full.
        events_processed: Events pulled from the merged sequence so far.
        events_emitted: Records yielded so far.
        state: RUNNING until the merged sequence is drained.

    Example:
        >>> player = MidiPlayer.from_decoded(decoded, include_meta=True)
        >>> records = [r.to_dict() for r in player]
        >>> summary = (player.events_processed, player.events_emitted)
    """

    def __init__(self, events: Iterable[MergedEvent], clock: MidiClock,
                 include_meta: bool = False, use_delta_time: bool = False,
                 seconds_precision: Optional[int] = None):
        self.include_meta = include_meta
        self.use_delta_time = use_delta_time
        self.seconds_precision = seconds_precision
        self.clock = clock
        self.events_processed = 0
        self.events_emitted = 0
        self.state = PlayerState.RUNNING
        self.track_states: Dict[int, TrackState] = {}

        self._events = iter(events)
        self._pending_skip = 0
        self._last_emitted = (0, 0)

    @classmethod
    def from_decoded(cls, decoded: DecodedMidi, **options) -> 'MidiPlayer':
        """Build a player with a fresh merge and a fresh clock over a decoded file."""
        clock = MidiClock.from_timing(decoded.header.timing)
        events = merge_tracks(decoded.header.layout, decoded.tracks)
        return cls(events, clock, **options)

    @property
    def pending_skip(self) -> int:
        return self._pending_skip

    @property
    def finished_tracks(self) -> Set[int]:
        return {t for t, s in self.track_states.items() if s is TrackState.TRACK_DONE}

    def __iter__(self) -> Iterator[NormalizedOutput]:
        for event in self._events:
            self.events_processed += 1
            output = self.next_output(event)
            if output is not None:
                self.events_emitted += 1
                yield output
        self.state = PlayerState.EXHAUSTED
        if self._pending_skip:
            logger.debug("%d trailing tick(s) belong to dropped events", self._pending_skip)

    def next_output(self, event: MergedEvent) -> Optional[NormalizedOutput]:
        """Handle one merged event; return its record or None if nothing is emitted."""
        if self.track_states.setdefault(event.track, TrackState.PLAYING) is TrackState.TRACK_DONE:
            logger.debug("Dropping event on finished track %d", event.track)
            return self._skip(event)

        payload = event.payload
        if isinstance(payload, ChannelMessage):
            data = translate_channel_message(payload)
            return self._emit('midi', self._advance(event.delta_ticks), data)
        if isinstance(payload, MetaMessage):
            return self._handle_meta(event, parse_meta(payload))
        # system exclusive and escape sequences
        return self._skip(event)

    def _handle_meta(self, event: MergedEvent, meta: MetaEvent) -> Optional[NormalizedOutput]:
        if meta.kind == 'tempo':
            reading = self._advance(event.delta_ticks, tempo=meta.value)
            if self.include_meta:
                return self._emit('meta', reading, meta)
            return None

        if meta.kind == 'end_of_track':
            self.track_states[event.track] = TrackState.TRACK_DONE
            logger.debug("Track %d finished", event.track)

        if meta.kind in ALWAYS_DROPPED_META or not self.include_meta:
            return self._skip(event)
        return self._emit('meta', self._advance(event.delta_ticks), meta)

    def _skip(self, event: MergedEvent) -> None:
        self._pending_skip += event.delta_ticks
        return None

    def _advance(self, delta_ticks: int, tempo: Optional[int] = None) -> TickReading:
        delta = self._pending_skip + delta_ticks
        self._pending_skip = 0
        if tempo is None:
            return self.clock.advance(delta)
        return self.clock.retime(delta, tempo)

    def _emit(self, kind: str, reading: TickReading, data) -> NormalizedOutput:
        if self.use_delta_time:
            last_ticks, last_micros = self._last_emitted
            tick = reading.absolute_ticks - last_ticks
            micros = reading.absolute_micros - last_micros
        else:
            tick, micros = reading.absolute_ticks, reading.absolute_micros
        self._last_emitted = (reading.absolute_ticks, reading.absolute_micros)

        time = TimeInfo(tick=tick, micros=micros,
                        seconds=micros_to_seconds(micros, self.seconds_precision))
        return NormalizedOutput(kind, time, data)
