"""json_midi.cli

Command-line entry point: convert a MIDI file into a timed event listing.

    json-midi song.mid --meta --pretty -o song.json
"""
import argparse
import logging
import sys
from typing import List, Optional

from .config import SUPPORTED_FORMATS, load_conversion_config
from .converter import convert_file
from .exceptions import MIDIProcessingError
from .exporter import ExportError, export_result

logger = logging.getLogger(__name__)


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="json-midi", description="Convert a MIDI file into timed JSON events")
    parser.add_argument("midi_file", metavar="FILE", help="The file to convert")
    parser.add_argument("-m", "--meta", dest="include_meta", action="store_true", default=None,
                        help="Include meta events")
    parser.add_argument("-p", "--pretty", action="store_true", default=None, help="Emit json prettified")
    parser.add_argument("-d", "--delta", dest="use_delta_time", action="store_true", default=None,
                        help="Emit timing information as a delta instead of an absolute timestamp")
    parser.add_argument("-o", "--output", default=None, help="File to write to, otherwise stdout")
    parser.add_argument("-f", "--format", dest="output_format", choices=SUPPORTED_FORMATS, default=None,
                        help="Output format (default json)")
    parser.add_argument("-c", "--config", default=None, help="YAML file with default options")
    parser.add_argument("--precision", dest="seconds_precision", type=int, default=None,
                        help="Round the seconds field to this many decimals (half up)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_conversion_config(args.config).merged(
            include_meta=args.include_meta,
            use_delta_time=args.use_delta_time,
            seconds_precision=args.seconds_precision,
            pretty=args.pretty,
            output_format=args.output_format,
        )
        result = convert_file(args.midi_file, config)
        export_result(result, args.output, format=config.output_format, pretty=config.pretty)
    except (MIDIProcessingError, ExportError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
