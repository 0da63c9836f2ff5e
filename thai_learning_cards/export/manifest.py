"""
In-memory description of an export before it is encoded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Card


TEXT_MIME_TYPES = ('text/', 'application/json', 'image/svg+xml')


@dataclass
class ArchiveFile:
    """A virtual file inside an export."""
    path: str
    content: bytes
    mime_type: str = 'application/octet-stream'

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith(TEXT_MIME_TYPES)


@dataclass
class ArchiveManifest:
    """Files and metadata for one export."""
    level: int
    cards: List[Card]
    created: datetime = field(default_factory=datetime.now)
    files: List[ArchiveFile] = field(default_factory=list)
    audio_urls: Dict[str, str] = field(default_factory=dict)
    instructions: str = ""

    @property
    def card_count(self) -> int:
        return len(self.cards)

    @property
    def created_iso(self) -> str:
        return self.created.isoformat()

    def add_file(self, path: str, content, mime_type: str = 'application/octet-stream') -> ArchiveFile:
        if isinstance(content, str):
            content = content.encode('utf-8')
        archive_file = ArchiveFile(path=path, content=content, mime_type=mime_type)
        self.files.append(archive_file)
        return archive_file

    def get_file(self, path: str) -> Optional[ArchiveFile]:
        for archive_file in self.files:
            if archive_file.path == path:
                return archive_file
        return None
