"""
Downloadable package export for a level's cards.

The exporter collects card images, existing audio and the card data into an
ArchiveManifest, then hands it to an ArchiveFormat. Export never triggers
audio generation: only locators already in the audio cache or in stored
audio are downloaded.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..audio.cache import AudioCache
from ..audio.loader import AudioLoader, AudioLoadError
from ..audio.resolver import AudioSourceResolver
from ..config import Config
from ..errors import ErrorHandler, ProcessingError
from ..models import Card
from .card_images import card_basename, card_image_filename, render_card_svg
from .formats import ArchiveFormat, ZipArchiveFormat
from .manifest import ArchiveManifest


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

README_TEMPLATE = """# Thai Learning Cards - Level {level}

## Contents
- audio/words/ - headword pronunciation files
- audio/examples/ - example sentence pronunciation files
- images/ - SVG card images
- data/ - card data as JSON

## Files
- Audio: MP3, only for audio generated before this export
- Images: SVG, scalable vector graphics
- Data: JSON with the complete card information

## Naming
- Audio: card_001_สวัสดี_word.mp3 (card number_headword_type.mp3)
- Images: card_001_สวัสดี.svg (card number_headword.svg)

Audio is only included for cards whose audio was generated before export.
Use "Generate audio" in content management to add more.

Created: {created}
Cards: {card_count}
Audio files: {audio_count}
Level: {level}
"""


@dataclass
class ExportedArchive:
    """Result of an export, ready for a download sink."""
    content: bytes
    filename: str
    mime_type: str
    is_fallback: bool = False
    error: Optional[str] = None
    errors: List[ProcessingError] = field(default_factory=list)


class ExportProgress:
    """
    Forwards progress to a callback, keeping percentages in 0-100 and never
    letting them go backwards.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.percent = 0

    def report(self, message: str, percent: float) -> None:
        value = max(self.percent, min(100, int(round(percent))))
        self.percent = value
        logger.debug(f"Export progress {value}%: {message}")
        if self.callback is not None:
            try:
                self.callback(message, value)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")


class PackageExporter:
    """
    Builds export archives for a set of cards.

    Any failure while building or encoding is recovered by returning a
    minimal JSON document with the card list and an error marker, so a
    caller always gets something to download.

    With a resolver, audio is looked up in the cache and in stored audio;
    without one only the cache is used.
    """

    def __init__(self, cache: AudioCache, loader: Optional[AudioLoader] = None,
                 language: str = Config.DEFAULT_LANGUAGE,
                 default_format: Optional[ArchiveFormat] = None,
                 resolver: Optional[AudioSourceResolver] = None):
        self.cache = cache
        self.loader = loader or AudioLoader()
        self.language = language
        self.default_format = default_format or ZipArchiveFormat()
        self.resolver = resolver

    def build_archive(self, cards: List[Card], level: int,
                      progress_callback: Optional[ProgressCallback] = None,
                      archive_format: Optional[ArchiveFormat] = None) -> ExportedArchive:
        """
        Export cards into a downloadable archive.

        Args:
            cards: Cards in export order
            level: Level the cards belong to
            progress_callback: Receives (message, percent) updates
            archive_format: Output format, the exporter default if None

        Returns:
            ExportedArchive; ``is_fallback`` is set when the minimal JSON was produced
        """
        archive_format = archive_format or self.default_format
        progress = ExportProgress(progress_callback)
        error_handler = ErrorHandler()

        try:
            manifest = self.build_manifest(cards, level, progress)

            progress.report("Building download file...", 95)
            content = archive_format.encode(manifest)

            progress.report("Download ready!", 100)
            logger.info(
                f"Exported {len(cards)} cards for level {level} as {archive_format.name} "
                f"({len(content)} bytes)"
            )
            return ExportedArchive(
                content=content,
                filename=archive_format.filename(level),
                mime_type=archive_format.mime_type
            )

        except Exception as e:
            error_handler.add_exception(e, context={'level': level})
            progress.report(f"Download failed: {e}", progress.percent)
            fallback = self.build_fallback(cards, level, str(e))
            fallback.errors = list(error_handler.errors)
            return fallback

    def build_manifest(self, cards: List[Card], level: int,
                       progress: Optional[ExportProgress] = None) -> ArchiveManifest:
        """Collect images, cached audio, card data and instructions for the cards."""
        progress = progress or ExportProgress()
        manifest = ArchiveManifest(level=level, cards=list(cards))
        total_steps = len(cards) * 3
        processed = 0

        for index, card in enumerate(cards):
            if total_steps:
                progress.report(
                    f"Processing card {index + 1}/{len(cards)}: {card.headword}",
                    processed / total_steps * 100
                )

            manifest.add_file(
                f"images/{card_image_filename(card, index)}",
                render_card_svg(card, index),
                'image/svg+xml'
            )
            processed += 1

            basename = card_basename(card, index)
            self._add_cached_audio(
                manifest, card.headword, f"word_{card.id}",
                f"audio/words/{basename}_word.mp3"
            )
            processed += 1

            self._add_cached_audio(
                manifest, card.example, f"example_{card.id}",
                f"audio/examples/{basename}_example.mp3"
            )
            processed += 1

        cards_data = {
            'level': level,
            'cards': [card.to_dict() for card in cards],
            'created': manifest.created_iso,
            'totalCards': len(cards)
        }
        manifest.add_file(
            f"data/cards_level_{level}.json",
            json.dumps(cards_data, ensure_ascii=False, indent=2),
            'application/json'
        )

        manifest.instructions = README_TEMPLATE.format(
            level=level,
            created=manifest.created.strftime('%Y-%m-%d %H:%M:%S'),
            card_count=len(cards),
            audio_count=len(manifest.audio_urls)
        )
        manifest.add_file('README.md', manifest.instructions, 'text/markdown')
        return manifest

    def build_fallback(self, cards: List[Card], level: int, reason: str) -> ExportedArchive:
        """Minimal JSON export with just the cards and an error marker."""
        fallback_data = {
            'cards': [card.to_dict() for card in cards],
            'level': level,
            'created': datetime.now().isoformat(),
            'error': f"Failed to generate complete package, this is a basic card export ({reason})"
        }
        logger.warning(f"Export for level {level} fell back to a basic card export: {reason}")
        return ExportedArchive(
            content=json.dumps(fallback_data, ensure_ascii=False, indent=2).encode('utf-8'),
            filename=f"thai-learning-level-{level}-basic.json",
            mime_type='application/json',
            is_fallback=True,
            error=reason
        )

    def _existing_locator(self, text: str) -> Optional[str]:
        if self.resolver is not None:
            return self.resolver.lookup(text, self.language)
        return self.cache.get(text, self.language)

    def _add_cached_audio(self, manifest: ArchiveManifest, text: str, key: str, path: str) -> None:
        locator = self._existing_locator(text)
        if not locator:
            return

        manifest.audio_urls[key] = locator
        try:
            content = self.loader.load_bytes(locator)
            manifest.add_file(path, content, 'audio/mpeg')
            logger.debug(f"Added audio: {path} ({len(content)} bytes)")
        except AudioLoadError as e:
            logger.warning(f"Could not download audio for '{text}': {e}")
            note = (
                f"Audio URL: {locator}\n"
                f"Filename: {path.rsplit('/', 1)[-1]}\n"
                f"Error: {e}\n\n"
                f"Note: the audio file could not be downloaded; open the URL to fetch it manually."
            )
            manifest.add_file(path[:-len('.mp3')] + '.txt', note, 'text/plain')
