"""json_midi.conversion_result

Data class for storing the result of one conversion run.
"""
from typing import List, Dict, Any
from dataclasses import dataclass, field


@dataclass
class ConversionResult:
    """Container for conversion results.

    `events` holds the records already turned into plain data, in emission
    order.
    """

    generated: str = ''
    source_file: str = ''
    events_processed: int = 0
    events_emitted: int = 0
    emitted_meta: bool = False
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert conversion result to dictionary.

        Returns:
            Dictionary representation of conversion result
        """
        return {
            'generated': self.generated,
            'source_file': self.source_file,
            'events_processed': self.events_processed,
            'events_emitted': self.events_emitted,
            'emitted_meta': self.emitted_meta,
            'events': self.events,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversionResult':
        """Create ConversionResult from dictionary.

        Args:
            data: Dictionary containing conversion data

        Returns:
            ConversionResult instance
        """
        return cls(
            generated=data.get('generated', ''),
            source_file=data.get('source_file', ''),
            events_processed=data.get('events_processed', 0),
            events_emitted=data.get('events_emitted', 0),
            emitted_meta=data.get('emitted_meta', False),
            events=data.get('events', []),
        )
