"""json_midi.validators

Input validation functions for MIDI conversion.
"""
import os


class ValidationError(Exception):
    """Exception raised when validation fails."""
    pass


def validate_midi_file_path(path: str) -> None:
    """Validate MIDI file path exists and is readable.

    Args:
        path: Path to MIDI file

    Raises:
        ValidationError: If path is invalid or file doesn't exist
    """
    if not isinstance(path, str):
        raise ValidationError(f"path must be a string, got {type(path).__name__}")
    if not path:
        raise ValidationError("path cannot be empty")
    if not os.path.exists(path):
        raise ValidationError(f"MIDI file not found: {path}")
    if not os.path.isfile(path):
        raise ValidationError(f"path is not a file: {path}")


def validate_ticks_per_beat(ticks_per_beat: int) -> None:
    """Validate ticks per quarter note value.

    Args:
        ticks_per_beat: Ticks per quarter note from the file header

    Raises:
        ValidationError: If value is invalid
    """
    if not isinstance(ticks_per_beat, int):
        raise ValidationError(f"ticks_per_beat must be an integer, got {type(ticks_per_beat).__name__}")
    if ticks_per_beat <= 0:
        raise ValidationError(f"ticks_per_beat must be positive, got {ticks_per_beat}")


def validate_timecode(frames_per_second: int, ticks_per_frame: int) -> None:
    """Validate an SMPTE timecode clock basis.

    Args:
        frames_per_second: Frame rate (24, 25, 29 or 30 in practice)
        ticks_per_frame: Subdivisions of a single frame

    Raises:
        ValidationError: If either value is not a positive integer
    """
    for name, value in (('frames_per_second', frames_per_second), ('ticks_per_frame', ticks_per_frame)):
        if not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer, got {type(value).__name__}")
        if value <= 0:
            raise ValidationError(f"{name} must be positive, got {value}")


def validate_tempo(tempo: int) -> None:
    """Validate tempo value (microseconds per quarter note).

    Zero is accepted: it stops the clock but never divides.

    Args:
        tempo: Tempo in microseconds per quarter note

    Raises:
        ValidationError: If tempo is invalid
    """
    if not isinstance(tempo, int):
        raise ValidationError(f"tempo must be an integer, got {type(tempo).__name__}")
    if tempo < 0:
        raise ValidationError(f"tempo must not be negative, got {tempo}")


def validate_seconds_precision(precision) -> None:
    """Validate the number of decimal places used for the seconds field.

    Args:
        precision: None for full precision, otherwise a non-negative integer

    Raises:
        ValidationError: If precision is invalid
    """
    if precision is None:
        return
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise ValidationError(f"seconds_precision must be an integer or None, got {type(precision).__name__}")
    if precision < 0:
        raise ValidationError(f"seconds_precision must not be negative, got {precision}")


def validate_config_path(config_path: str) -> None:
    """Validate configuration file path.

    Args:
        config_path: Path to configuration file

    Raises:
        ValidationError: If path is invalid
    """
    if not isinstance(config_path, str):
        raise ValidationError(f"config_path must be a string, got {type(config_path).__name__}")
    if not config_path:
        raise ValidationError("config_path cannot be empty")
