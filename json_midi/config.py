"""json_midi.config

Run configuration for a conversion.

Options can come from a YAML file (by default `config/conversion_config.yaml`
at the repository root) and are overridden by command-line flags.

Example file:

    include_meta: true
    use_delta_time: false
    seconds_precision: 6
    pretty: true
    output_format: json
"""
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError
from .validators import ValidationError, validate_config_path, validate_seconds_precision

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'yaml', 'csv', 'text')

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', 'conversion_config.yaml')


@dataclass(frozen=True)
class ConversionConfig:
    """Options for one conversion run.

    Attributes:
        include_meta: Emit meta events. Tempo changes affect timing either way.
        use_delta_time: Report each record's time as the increment since the
            previous emitted record instead of the position from the start.
        seconds_precision: Decimal places of the seconds field (rounded half
            up); None keeps full precision.
        pretty: Indent JSON output.
        output_format: One of json, yaml, csv, text.
    """

    include_meta: bool = False
    use_delta_time: bool = False
    seconds_precision: Optional[int] = None
    pretty: bool = False
    output_format: str = 'json'

    def __post_init__(self):
        try:
            validate_seconds_precision(self.seconds_precision)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
        if self.output_format not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unsupported output format: {self.output_format}. Supported formats: {', '.join(SUPPORTED_FORMATS)}")

    def merged(self, **overrides: Any) -> 'ConversionConfig':
        """Return a copy with the given options replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_EXPECTED_TYPES = {
    'include_meta': bool,
    'use_delta_time': bool,
    'pretty': bool,
    'output_format': str,
}


def _coerce(doc: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ConversionConfig)}
    values: Dict[str, Any] = {}
    for key, value in doc.items():
        if key not in known:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        expected = _EXPECTED_TYPES.get(key)
        if expected is not None and not isinstance(value, expected):
            logger.warning("Config key %r should be %s, got %r; using default", key, expected.__name__, value)
            continue
        if key == 'seconds_precision':
            try:
                validate_seconds_precision(value)
            except ValidationError as e:
                logger.warning("%s; using default", e)
                continue
        if key == 'output_format':
            value = value.lower()
            if value not in SUPPORTED_FORMATS:
                logger.warning("Unsupported output format %r in config; using default", value)
                continue
        values[key] = value
    return values


def load_conversion_config(config_path: Optional[str] = None) -> ConversionConfig:
    """Load conversion options from a YAML file.

    Args:
        config_path: YAML file path. If None, the default
            config/conversion_config.yaml is used when it exists.

    Returns:
        ConversionConfig. A missing file gives the defaults; keys with
        wrongly typed values fall back to their defaults.

    Raises:
        ConfigurationError: If the path is invalid, the file cannot be read
            or is not a YAML mapping.
    """
    if config_path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return ConversionConfig()
        config_path = DEFAULT_CONFIG_PATH

    try:
        validate_config_path(config_path)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e

    if not os.path.exists(config_path):
        logger.warning("Config file %s not found; using defaults", config_path)
        return ConversionConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            doc = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}") from e

    if doc is None:
        return ConversionConfig()
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Config {config_path} must be a mapping, got {type(doc).__name__}")

    logger.debug("Loaded config from %s", config_path)
    return ConversionConfig(**_coerce(doc))
