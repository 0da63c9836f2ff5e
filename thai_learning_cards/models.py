"""
Core data models for Thai Learning Cards.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union


# Keys used by card files written before the field rename
LEGACY_FIELD_NAMES = {
    'thai': 'headword',
    'chinese': 'translation',
}

CARD_FIELDS = (
    'id', 'headword', 'pronunciation', 'translation',
    'example', 'example_translation', 'level'
)


@dataclass(frozen=True)
class Card:
    """A vocabulary card: headword with pronunciation, translation and an example."""
    id: int
    headword: str
    pronunciation: str
    translation: str
    example: str
    example_translation: str
    level: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Card':
        """Create instance from dictionary, accepting legacy field names."""
        values = {}
        for key, value in data.items():
            key = LEGACY_FIELD_NAMES.get(key, key)
            if key in CARD_FIELDS:
                values[key] = value

        missing = [name for name in CARD_FIELDS if name not in values]
        if missing:
            raise ValueError(f"Card is missing fields: {', '.join(missing)}")

        values['id'] = int(values['id'])
        values['level'] = int(values['level'])
        for name in CARD_FIELDS[1:-1]:
            values[name] = str(values[name] or '')
        return cls(**values)


@dataclass(frozen=True)
class LocatorSource:
    """Audio reachable through a URL or a local file path."""
    locator: str
    origin: str  # cache, stored, provided, generated

    @property
    def is_local_file(self) -> bool:
        return not self.locator.startswith(('http://', 'https://'))


@dataclass(frozen=True)
class SynthesisSource:
    """Audio produced on the host by speech synthesis; there is no locator."""
    text: str
    language: str
    origin: str = "synthesis"


# An audio source is either a locator or a local synthesis request
AudioSource = Union[LocatorSource, SynthesisSource]


@dataclass(frozen=True)
class StoredAudio:
    """Metadata for audio persisted by the stored-audio collaborator."""
    key: str
    audio_url: str
    text: str
    local_file: Optional[str] = None
    local_path: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def local_file_available(self) -> bool:
        return bool(self.local_file)

    @property
    def locator(self) -> str:
        """Local file when present, otherwise the original URL."""
        return self.local_path or self.audio_url

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'audioUrl': self.audio_url,
            'localFile': self.local_file,
            'text': self.text,
            'createdAt': self.created_at,
        }
