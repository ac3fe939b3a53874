"""json_midi.timing

Tick-to-wall-clock conversion for a single pass over a file.

A MidiClock accumulates ticks and microseconds as events are timed. Two
clock models exist:

- Metrical: a tick is 1/ticks_per_quarter_note of a quarter note whose
  length (microseconds) changes with tempo meta events. 500000 us per
  quarter note (120 BPM) applies until the first tempo event.
- Timecode: a tick is 1/(frames_per_second * ticks_per_frame) of a second
  for the whole file.

Elapsed time is tracked as an exact fraction. Integer microseconds are
obtained by rounding the exact cumulative value half up, and the delta
reported for a step is the difference between consecutive rounded
cumulative values, so deltas always add up to the absolute reading.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import NamedTuple, Optional, Union

from .events import Metrical, Timecode, Timing
from .exceptions import ConfigurationError
from .validators import ValidationError, validate_tempo, validate_ticks_per_beat, validate_timecode

logger = logging.getLogger(__name__)

MICROS_PER_SECOND = 1_000_000
DEFAULT_MICROS_PER_QUARTER_NOTE = 500_000


class TickReading(NamedTuple):
    """Clock reading returned for one timed step."""
    delta_ticks: int
    delta_micros: int
    absolute_ticks: int
    absolute_micros: int


@dataclass
class MetricalModel:
    ticks_per_quarter_note: int
    micros_per_quarter_note: int = DEFAULT_MICROS_PER_QUARTER_NOTE

    @property
    def micros_per_tick(self) -> Fraction:
        return Fraction(self.micros_per_quarter_note, self.ticks_per_quarter_note)


@dataclass(frozen=True)
class TimecodeModel:
    micros_per_tick: Fraction

    @classmethod
    def from_frame_rate(cls, frames_per_second: int, ticks_per_frame: int) -> 'TimecodeModel':
        return cls(Fraction(MICROS_PER_SECOND, frames_per_second * ticks_per_frame))


ClockModel = Union[MetricalModel, TimecodeModel]


def round_half_up(value: Fraction) -> int:
    """Round a non-negative fraction to the nearest integer, .5 going up."""
    return math.floor(value + Fraction(1, 2))


def micros_to_seconds(micros: int, precision: Optional[int] = None) -> float:
    """Convert microseconds to seconds.

    Args:
        micros: Whole microseconds.
        precision: Number of decimal places to keep. None keeps the full
            value; otherwise the value is rounded half up.

    Returns:
        Seconds as a float.

    Example:
        >>> micros_to_seconds(1_234_500, precision=3)
        1.235
    """
    if precision is None:
        return micros / MICROS_PER_SECOND
    seconds = Decimal(micros) / Decimal(MICROS_PER_SECOND)
    return float(seconds.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP))


class MidiClock:
    """Stateful clock for one conversion run.

    Attributes:
        model: The active clock model.
        cumulative_ticks: Ticks advanced so far.
        cumulative_micros: Exact elapsed microseconds so far.

    Example:
        >>> clock = MidiClock.from_timing(Metrical(480))
        >>> clock.advance(480).absolute_micros
        500000
        >>> clock.retime(480, 250000).delta_micros   # timed at the old tempo
        500000
        >>> clock.advance(480).delta_micros
        250000
    """

    def __init__(self, model: ClockModel):
        self.model = model
        self.cumulative_ticks = 0
        self.cumulative_micros = Fraction(0)
        self._reported_micros = 0

    @classmethod
    def from_timing(cls, timing: Timing) -> 'MidiClock':
        """Build a clock from the header's clock basis.

        Raises:
            ConfigurationError: If the basis would give a zero or undefined tick length.
        """
        try:
            if isinstance(timing, Metrical):
                validate_ticks_per_beat(timing.ticks_per_quarter_note)
                model = MetricalModel(timing.ticks_per_quarter_note)
            elif isinstance(timing, Timecode):
                validate_timecode(timing.frames_per_second, timing.ticks_per_frame)
                model = TimecodeModel.from_frame_rate(timing.frames_per_second, timing.ticks_per_frame)
            else:
                raise ConfigurationError(f"Unknown clock basis: {timing!r}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid clock configuration: {e}") from e
        logger.debug("Clock model %s, %s us per tick", type(model).__name__, model.micros_per_tick)
        return cls(model)

    @property
    def micros_per_tick(self) -> Fraction:
        return self.model.micros_per_tick

    def advance(self, delta_ticks: int) -> TickReading:
        """Move the clock forward by delta_ticks at the current rate."""
        self.cumulative_ticks += delta_ticks
        self.cumulative_micros += delta_ticks * self.micros_per_tick

        micros = round_half_up(self.cumulative_micros)
        delta_micros = micros - self._reported_micros
        self._reported_micros = micros
        return TickReading(delta_ticks, delta_micros, self.cumulative_ticks, micros)

    def retime(self, delta_ticks: int, micros_per_quarter_note: int) -> TickReading:
        """Time a tempo event and then switch to its tempo.

        The tempo event itself is placed under the tempo that was in effect
        when it occurred; the new tempo only applies to later advances.
        """
        reading = self.advance(delta_ticks)
        self.set_tempo(micros_per_quarter_note)
        return reading

    def set_tempo(self, micros_per_quarter_note: int) -> None:
        try:
            validate_tempo(micros_per_quarter_note)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

        if isinstance(self.model, TimecodeModel):
            # timecode tick length is fixed by the header
            logger.debug("Ignoring tempo %d on a timecode clock at tick %d",
                         micros_per_quarter_note, self.cumulative_ticks)
            return
        if micros_per_quarter_note == 0:
            logger.warning("Tempo of 0 us per quarter note at tick %d; time stops until the next tempo event",
                           self.cumulative_ticks)
        logger.debug("Tempo change at tick %d: %d -> %d us per quarter note", self.cumulative_ticks,
                     self.model.micros_per_quarter_note, micros_per_quarter_note)
        self.model.micros_per_quarter_note = micros_per_quarter_note
