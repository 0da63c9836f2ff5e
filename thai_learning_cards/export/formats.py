"""
Archive formats for card exports.

Each format turns an ArchiveManifest into bytes:

- ZipArchiveFormat: stored ZIP that any archive tool can open
- JsonContainerFormat: single JSON document, binary files base64-encoded
- AnkiPackageFormat: Anki .apkg deck with the cards and their audio
"""

import base64
import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict

import genanki

from ..config import Config
from ..errors import EncodingFailure
from .card_images import card_basename
from .manifest import ArchiveManifest
from .zip_encoder import ZipEncoder


logger = logging.getLogger(__name__)


class ArchiveFormat(ABC):
    """Strategy for encoding an export."""

    name = ""
    extension = ""
    mime_type = "application/octet-stream"

    @abstractmethod
    def encode(self, manifest: ArchiveManifest) -> bytes:
        """
        Encode the manifest.

        Raises:
            EncodingFailure: If the archive cannot be built
        """

    def filename(self, level: int) -> str:
        return f"thai-learning-level-{level}{self.extension}"


class ZipArchiveFormat(ArchiveFormat):
    """Every manifest file as an entry of a stored ZIP."""

    name = "zip"
    extension = ".zip"
    mime_type = "application/zip"

    def __init__(self, encoder: ZipEncoder = None):
        self.encoder = encoder or ZipEncoder()

    def encode(self, manifest: ArchiveManifest) -> bytes:
        return self.encoder.encode((f.path, f.content) for f in manifest.files)


class JsonContainerFormat(ArchiveFormat):
    """One JSON document holding the card data and every file inline."""

    name = "json"
    extension = ".json"
    mime_type = "application/json"

    def build_document(self, manifest: ArchiveManifest) -> Dict:
        files = {}
        for archive_file in manifest.files:
            if archive_file.is_text:
                files[archive_file.path] = {
                    'type': 'text',
                    'content': archive_file.content.decode('utf-8'),
                    'size': archive_file.size,
                    'mimeType': archive_file.mime_type
                }
            else:
                files[archive_file.path] = {
                    'type': 'blob',
                    'content': base64.b64encode(archive_file.content).decode('ascii'),
                    'size': archive_file.size,
                    'mimeType': archive_file.mime_type
                }

        return {
            'type': Config.PACKAGE_TYPE,
            'version': Config.PACKAGE_VERSION,
            'level': manifest.level,
            'created': manifest.created_iso,
            'totalCards': manifest.card_count,
            'cards': [card.to_dict() for card in manifest.cards],
            'audioUrls': dict(manifest.audio_urls),
            'instructions': manifest.instructions,
            'files': files
        }

    def encode(self, manifest: ArchiveManifest) -> bytes:
        try:
            document = self.build_document(manifest)
        except UnicodeDecodeError as e:
            raise EncodingFailure(f"Text file is not valid UTF-8: {e}")
        return json.dumps(document, ensure_ascii=False, indent=2).encode('utf-8')


class AnkiCardModel:
    """Anki note type for Thai vocabulary cards."""

    # Fixed so re-imports update the same note type
    MODEL_ID = 1849204417

    CSS = """
.card {
    font-family: "Helvetica Neue", Helvetica, Arial, sans-serif;
    font-size: 20px;
    text-align: center;
    color: black;
    background-color: white;
    padding: 20px;
}

.headword {
    font-size: 32px;
    font-weight: bold;
}

.pronunciation {
    color: #64748b;
}

.example {
    margin-top: 20px;
    padding: 15px;
    background-color: #f8fafc;
    border-radius: 8px;
    border: 1px solid #cbd5e1;
}
"""

    FRONT = """
<div class="headword">{{Headword}}</div>
{{WordAudio}}
"""

    BACK = """
{{FrontSide}}
<hr id="answer">
<div class="pronunciation">[{{Pronunciation}}]</div>
<div class="translation">{{Translation}}</div>
<div class="example">
    <div>{{Example}}</div>
    <div>{{ExampleTranslation}}</div>
    {{ExampleAudio}}
</div>
"""

    @classmethod
    def create_model(cls) -> genanki.Model:
        return genanki.Model(
            cls.MODEL_ID,
            'Thai Vocabulary',
            fields=[
                {'name': 'Headword'},
                {'name': 'Pronunciation'},
                {'name': 'Translation'},
                {'name': 'Example'},
                {'name': 'ExampleTranslation'},
                {'name': 'WordAudio'},
                {'name': 'ExampleAudio'},
            ],
            templates=[
                {
                    'name': 'Thai Card',
                    'qfmt': cls.FRONT,
                    'afmt': cls.BACK,
                },
            ],
            css=cls.CSS
        )


class AnkiPackageFormat(ArchiveFormat):
    """Anki deck with one note per card and the cached audio as media."""

    name = "apkg"
    extension = ".apkg"
    mime_type = "application/octet-stream"

    def __init__(self, deck_name: str = Config.ANKI_DECK_NAME):
        self.deck_name = deck_name
        self.model = AnkiCardModel.create_model()

    def _deck_id(self, name: str) -> int:
        hash_object = hashlib.md5(name.encode('utf-8'))
        return int(hash_object.hexdigest()[:8], 16) % 2147483647

    def encode(self, manifest: ArchiveManifest) -> bytes:
        name = f"{self.deck_name} - Level {manifest.level}"
        deck = genanki.Deck(self._deck_id(name), name)

        with tempfile.TemporaryDirectory() as media_dir:
            media_files = []

            for index, card in enumerate(manifest.cards):
                basename = card_basename(card, index)
                sounds = {}
                for kind, folder in (('word', 'words'), ('example', 'examples')):
                    archive_file = manifest.get_file(f"audio/{folder}/{basename}_{kind}.mp3")
                    if archive_file is None:
                        sounds[kind] = ''
                        continue
                    media_name = f"{basename}_{kind}.mp3"
                    media_path = os.path.join(media_dir, media_name)
                    with open(media_path, 'wb') as fh:
                        fh.write(archive_file.content)
                    media_files.append(media_path)
                    sounds[kind] = f"[sound:{media_name}]"

                deck.add_note(genanki.Note(
                    model=self.model,
                    fields=[
                        card.headword,
                        card.pronunciation,
                        card.translation,
                        card.example,
                        card.example_translation,
                        sounds['word'],
                        sounds['example'],
                    ],
                    guid=genanki.guid_for('thai-learning-cards', card.id),
                    tags=[f"level_{card.level}"]
                ))

            package = genanki.Package(deck)
            package.media_files = media_files
            output_path = os.path.join(media_dir, 'deck.apkg')
            try:
                package.write_to_file(output_path)
            except Exception as e:
                raise EncodingFailure(f"Failed to write Anki package: {e}")

            with open(output_path, 'rb') as fh:
                data = fh.read()

        logger.info(f"Created Anki package with {len(manifest.cards)} notes and {len(media_files)} media files")
        return data


ARCHIVE_FORMATS = {
    ZipArchiveFormat.name: ZipArchiveFormat,
    JsonContainerFormat.name: JsonContainerFormat,
    AnkiPackageFormat.name: AnkiPackageFormat,
}


def get_archive_format(name: str) -> ArchiveFormat:
    """
    Look up an archive format by name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return ARCHIVE_FORMATS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown export format '{name}'. Choose one of: {', '.join(ARCHIVE_FORMATS)}"
        )
