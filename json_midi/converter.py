"""json_midi.converter

Runs the conversion pipeline and collects its output.

decoded file -> merge -> player (+ clock) -> ConversionResult
"""
import logging
from datetime import datetime
from typing import Optional

from .config import ConversionConfig
from .conversion_result import ConversionResult
from .events import DecodedMidi
from .exceptions import InvalidInputError
from .midi_parser import parse_midi
from .player import MidiPlayer
from .validators import ValidationError, validate_midi_file_path

logger = logging.getLogger(__name__)


def convert(decoded: DecodedMidi, config: Optional[ConversionConfig] = None,
            source_file: str = '') -> ConversionResult:
    """Convert a decoded file into a ConversionResult.

    A fresh clock and player are built for every call, so converting the
    same input twice gives the same events.

    Args:
        decoded: Decoded header and tracks.
        config: Run options; defaults to ConversionConfig().
        source_file: Name recorded in the result envelope.

    Returns:
        ConversionResult with the emitted records and both counters.

    Raises:
        ConfigurationError: If the header's clock basis is invalid.
    """
    config = config or ConversionConfig()
    player = MidiPlayer.from_decoded(
        decoded,
        include_meta=config.include_meta,
        use_delta_time=config.use_delta_time,
        seconds_precision=config.seconds_precision,
    )
    events = [record.to_dict() for record in player]

    logger.info("Processed %d events, emitted %d", player.events_processed, player.events_emitted)
    return ConversionResult(
        generated=datetime.now().astimezone().isoformat(),
        source_file=source_file,
        events_processed=player.events_processed,
        events_emitted=player.events_emitted,
        emitted_meta=config.include_meta,
        events=events,
    )


def convert_file(path: str, config: Optional[ConversionConfig] = None) -> ConversionResult:
    """Read a MIDI file and convert it.

    Args:
        path: Path to the MIDI file.
        config: Run options.

    Returns:
        ConversionResult for the file.

    Raises:
        InvalidInputError: If the path does not name a readable file.
        MIDIParsingError: If the file is not a valid MIDI file.
        ConfigurationError: If the file's clock basis is invalid.

    Example:
        >>> result = convert_file('song.mid', ConversionConfig(include_meta=True))
        >>> result.events[0]['event']
        'meta'
    """
    try:
        validate_midi_file_path(path)
    except ValidationError as e:
        raise InvalidInputError(str(e), parameter_name='path', expected='existing MIDI file') from e

    logger.info("Converting %s", path)
    return convert(parse_midi(path), config, source_file=path)
