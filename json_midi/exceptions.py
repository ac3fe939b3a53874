"""json_midi.exceptions

Custom exception classes for MIDI conversion errors.
"""


class MIDIProcessingError(Exception):
    """Base exception for all MIDI conversion errors."""
    pass


class MIDIParsingError(MIDIProcessingError):
    """Exception raised when a MIDI file cannot be read or decoded."""
    pass


class ConfigurationError(MIDIProcessingError):
    """Exception raised when the clock or run configuration is invalid."""
    pass


class InvalidInputError(MIDIProcessingError):
    """Exception raised when input parameters are invalid."""

    def __init__(self, message: str, parameter_name: str = None, expected: str = None):
        super().__init__(message)
        self.parameter_name = parameter_name
        self.expected = expected
