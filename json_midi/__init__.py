from .events import (
	TrackLayout, Metrical, Timecode, MidiHeader, RawTrackEvent, DecodedMidi,
	ChannelMessage, MetaMessage, SystemExclusive, EscapeBytes,
)
from .midi_parser import parse_midi, decode_midi_file
from .track_merger import merge_tracks, MergedEvent
from .timing import MidiClock, TickReading, MICROS_PER_SECOND
from .player import MidiPlayer, parse_meta
from .model import TimeInfo, MetaEvent, NormalizedOutput
from .config import ConversionConfig, load_conversion_config
from .converter import convert, convert_file
from .validators import ValidationError
from .exceptions import MIDIProcessingError, MIDIParsingError, ConfigurationError, InvalidInputError
from .conversion_result import ConversionResult
from .exporter import export_result, export_json, export_csv, export_yaml, export_text, ExportError

__all__ = [
	'TrackLayout', 'Metrical', 'Timecode', 'MidiHeader', 'RawTrackEvent', 'DecodedMidi',
	'ChannelMessage', 'MetaMessage', 'SystemExclusive', 'EscapeBytes',
	'parse_midi', 'decode_midi_file',
	'merge_tracks', 'MergedEvent',
	'MidiClock', 'TickReading', 'MICROS_PER_SECOND',
	'MidiPlayer', 'parse_meta',
	'TimeInfo', 'MetaEvent', 'NormalizedOutput',
	'ConversionConfig', 'load_conversion_config',
	'convert', 'convert_file',
	'ConversionResult',
	'export_result', 'export_json', 'export_csv', 'export_yaml', 'export_text', 'ExportError'
]
