"""json_midi.exporter

Export conversion results to various formats (JSON, YAML, CSV, text).

Every exporter takes an output path; None or '-' writes to stdout.
"""
import contextlib
import csv
import json
import sys
from typing import Any, Dict, Iterator, List, Optional, TextIO

import yaml

from .conversion_result import ConversionResult


class ExportError(Exception):
    """Exception raised when export fails."""
    pass


@contextlib.contextmanager
def _open_output(output_path: Optional[str], newline: Optional[str] = None) -> Iterator[TextIO]:
    if output_path in (None, '-'):
        yield sys.stdout
        sys.stdout.flush()
    else:
        with open(output_path, 'w', encoding='utf-8', newline=newline) as f:
            yield f


def export_json(result: ConversionResult, output_path: Optional[str], pretty: bool = False) -> None:
    """Export conversion result to JSON.

    Args:
        result: ConversionResult instance
        output_path: Path to output JSON file, None or '-' for stdout
        pretty: Indent the document

    Raises:
        ExportError: If export fails
    """
    try:
        with _open_output(output_path) as f:
            if pretty:
                json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
            else:
                json.dump(result.to_dict(), f, separators=(',', ':'), ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"Failed to export JSON: {e}") from e


def export_yaml(result: ConversionResult, output_path: Optional[str]) -> None:
    """Export conversion result to YAML.

    Args:
        result: ConversionResult instance
        output_path: Path to output YAML file, None or '-' for stdout

    Raises:
        ExportError: If export fails
    """
    try:
        with _open_output(output_path) as f:
            yaml.safe_dump(result.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        raise ExportError(f"Failed to export YAML: {e}") from e


CSV_FIELDS = ['event', 'tick', 'micros', 'seconds', 'type', 'data']


def flatten_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten one record into a CSV row.

    Channel event fields (chan, note, ...) and meta data are packed into a
    single JSON-encoded 'data' column.
    """
    data = dict(event['data'])
    kind = data.pop('type')
    if 'data' in data and len(data) == 1:
        payload = data['data']
    else:
        payload = data
    return {
        'event': event['event'],
        'tick': event['time']['tick'],
        'micros': event['time']['micros'],
        'seconds': event['time']['seconds'],
        'type': kind,
        'data': json.dumps(payload, separators=(',', ':')),
    }


def export_csv(result: ConversionResult, output_path: Optional[str]) -> None:
    """Export conversion result to CSV (events only, one row per record).

    Args:
        result: ConversionResult instance
        output_path: Path to output CSV file, None or '-' for stdout

    Raises:
        ExportError: If export fails
    """
    if not result.events:
        raise ExportError("No events to export")

    try:
        with _open_output(output_path, newline='') as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            writer.writerows(flatten_event(ev) for ev in result.events)
    except (OSError, csv.Error, KeyError) as e:
        raise ExportError(f"Failed to export CSV: {e}") from e


def _text_lines(result: ConversionResult, limit: int = 50) -> List[str]:
    lines = ["=== MIDI Event Timeline ===", ""]
    if result.source_file:
        lines.append(f"Source: {result.source_file}")
    lines.append(f"Generated: {result.generated}")
    lines.append(f"Events processed: {result.events_processed}")
    lines.append(f"Events emitted: {result.events_emitted}")
    lines.append(f"Meta events included: {'yes' if result.emitted_meta else 'no'}")
    lines.append("")

    for ev in result.events[:limit]:
        row = flatten_event(ev)
        lines.append(f"  {row['seconds']:>12.6f}s  tick {row['tick']:>8}  {row['event']:<4}  {row['type']}  {row['data']}")
    if len(result.events) > limit:
        lines.append(f"  ... and {len(result.events) - limit} more")
    return lines


def export_text(result: ConversionResult, output_path: Optional[str]) -> None:
    """Export conversion result to a human-readable text report.

    Args:
        result: ConversionResult instance
        output_path: Path to output text file, None or '-' for stdout

    Raises:
        ExportError: If export fails
    """
    try:
        with _open_output(output_path) as f:
            f.write("\n".join(_text_lines(result)) + "\n")
    except OSError as e:
        raise ExportError(f"Failed to export text: {e}") from e


def export_result(result: ConversionResult, output_path: Optional[str] = None,
                  format: str = 'json', pretty: bool = False) -> None:
    """Export conversion result to specified format.

    Args:
        result: ConversionResult instance
        output_path: Path to output file, None or '-' for stdout
        format: Export format ('json', 'yaml', 'csv', 'text')
        pretty: Indent JSON output

    Raises:
        ExportError: If format is unsupported or export fails
    """
    format = format.lower()

    if format == 'json':
        export_json(result, output_path, pretty=pretty)
    elif format == 'yaml':
        export_yaml(result, output_path)
    elif format == 'csv':
        export_csv(result, output_path)
    elif format == 'text' or format == 'txt':
        export_text(result, output_path)
    else:
        raise ExportError(f"Unsupported export format: {format}. Supported formats: json, yaml, csv, text")
