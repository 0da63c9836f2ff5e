"""Tests for package export."""

import base64
import io
import json
import zipfile
from unittest.mock import MagicMock

import pytest

from thai_learning_cards.audio.cache import audio_key
from thai_learning_cards.audio.loader import AudioLoadError
from thai_learning_cards.audio.resolver import AudioSourceResolver
from thai_learning_cards.errors import EncodingFailure
from thai_learning_cards.export.card_images import (
    card_basename,
    render_card_svg,
    sanitize_name,
    truncate
)
from thai_learning_cards.export.exporter import ExportProgress, PackageExporter
from thai_learning_cards.export.formats import (
    AnkiPackageFormat,
    ArchiveFormat,
    JsonContainerFormat,
    ZipArchiveFormat,
    get_archive_format
)
from thai_learning_cards.models import Card

from conftest import FakeStoredAudio, FakeTTSClient


WORD_MP3 = b"ID3word-audio"
EXAMPLE_MP3 = b"ID3example-audio"


@pytest.fixture
def loader():
    loader = MagicMock()
    loader.load_bytes.side_effect = lambda locator: {
        "https://a.example.com/word.mp3": WORD_MP3,
        "https://a.example.com/example.mp3": EXAMPLE_MP3,
    }[locator]
    return loader


@pytest.fixture
def exporter(cache, loader):
    return PackageExporter(cache, loader=loader, language="th")


class FailingFormat(ArchiveFormat):
    name = "failing"
    extension = ".bin"

    def encode(self, manifest):
        raise EncodingFailure("disk full")


class TestCardImages:

    def test_basename_keeps_thai(self, sample_cards):
        assert card_basename(sample_cards[0], 0) == "card_001_สวัสดี"

    def test_sanitize_replaces_separators(self):
        assert sanitize_name("a/b c?") == "a_b_c_"

    def test_truncate(self):
        assert truncate("abc", 5) == "abc"
        assert truncate("abcdef", 3) == "abc..."

    def test_svg_escapes_markup(self):
        card = Card(1, "<b>", "p&q", "t", "e", "et", 2)
        svg = render_card_svg(card, 4)

        assert "&lt;b&gt;" in svg
        assert "p&amp;q" in svg
        assert "Card 005 | Level 2" in svg


class TestExportProgress:

    def test_monotonic_and_clamped(self):
        seen = []
        progress = ExportProgress(lambda message, percent: seen.append(percent))

        progress.report("a", 40)
        progress.report("b", 20)
        progress.report("c", 140)

        assert seen == [40, 40, 100]

    def test_callback_errors_ignored(self):
        progress = ExportProgress(MagicMock(side_effect=RuntimeError("closed")))
        progress.report("a", 10)
        assert progress.percent == 10


class TestPackageExporter:
    """Test the export pipeline."""

    def test_export_without_cached_audio(self, exporter, sample_cards, loader):
        archive = exporter.build_archive(sample_cards, 1)

        assert not archive.is_fallback
        assert archive.filename == "thai-learning-level-1.zip"
        assert archive.mime_type == "application/zip"
        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            names = zf.namelist()
        assert names == [
            "images/card_001_สวัสดี.svg",
            "images/card_002_ขอบคุณ.svg",
            "data/cards_level_1.json",
            "README.md",
        ]
        loader.load_bytes.assert_not_called()

    def test_cached_audio_included(self, exporter, cache, sample_cards):
        cache.set("สวัสดี", "th", "https://a.example.com/word.mp3")
        cache.set("สวัสดีครับ ผมชื่อจอห์น", "th", "https://a.example.com/example.mp3")

        archive = exporter.build_archive(sample_cards, 1)

        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            assert zf.read("audio/words/card_001_สวัสดี_word.mp3") == WORD_MP3
            assert zf.read("audio/examples/card_001_สวัสดี_example.mp3") == EXAMPLE_MP3
            cards = json.loads(zf.read("data/cards_level_1.json").decode("utf-8"))
            readme = zf.read("README.md").decode("utf-8")
        assert cards['totalCards'] == 2
        assert cards['cards'][0]['headword'] == "สวัสดี"
        assert "Audio files: 2" in readme

    def test_download_failure_writes_note(self, cache, sample_cards):
        loader = MagicMock()
        loader.load_bytes.side_effect = AudioLoadError("HTTP 404")
        cache.set("สวัสดี", "th", "https://a.example.com/gone.mp3")
        exporter = PackageExporter(cache, loader=loader, language="th")

        archive = exporter.build_archive(sample_cards, 1)

        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            note = zf.read("audio/words/card_001_สวัสดี_word.txt").decode("utf-8")
        assert "https://a.example.com/gone.mp3" in note
        assert not archive.is_fallback

    def test_stored_audio_found_through_resolver(self, cache, loader, sample_cards):
        stored = FakeStoredAudio({audio_key("สวัสดี", "th"): "https://a.example.com/word.mp3"})
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts)
        exporter = PackageExporter(cache, loader=loader, language="th", resolver=resolver)

        archive = exporter.build_archive(sample_cards, 1)

        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            assert zf.read("audio/words/card_001_สวัสดี_word.mp3") == WORD_MP3
            assert "audio/examples/card_001_สวัสดี_example.mp3" not in zf.namelist()
        assert tts.submitted == []

    def test_progress_ends_at_100(self, exporter, sample_cards):
        seen = []
        exporter.build_archive(sample_cards, 1, lambda message, percent: seen.append(percent))

        assert seen == sorted(seen)
        assert seen[-1] == 100
        assert 95 in seen
        assert all(0 <= p <= 100 for p in seen)

    def test_encoding_failure_falls_back(self, exporter, sample_cards):
        messages = []
        archive = exporter.build_archive(
            sample_cards, 3, lambda message, percent: messages.append(message),
            archive_format=FailingFormat()
        )

        assert archive.is_fallback
        assert archive.filename == "thai-learning-level-3-basic.json"
        data = json.loads(archive.content.decode("utf-8"))
        assert data['level'] == 3
        assert len(data['cards']) == 2
        assert "disk full" in data['error']
        assert messages[-1].startswith("Download failed")
        assert archive.errors[0].message == "disk full"

    def test_empty_level(self, exporter):
        archive = exporter.build_archive([], 4)
        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            assert zf.namelist() == ["data/cards_level_4.json", "README.md"]


class TestArchiveFormats:

    def test_lookup(self):
        assert isinstance(get_archive_format("ZIP"), ZipArchiveFormat)
        assert isinstance(get_archive_format("json"), JsonContainerFormat)
        with pytest.raises(ValueError):
            get_archive_format("rar")

    def test_json_container(self, exporter, cache, sample_cards):
        cache.set("สวัสดี", "th", "https://a.example.com/word.mp3")
        archive = exporter.build_archive(sample_cards, 1, archive_format=JsonContainerFormat())

        document = json.loads(archive.content.decode("utf-8"))
        assert archive.filename == "thai-learning-level-1.json"
        assert document['type'] == "thai-learning-package"
        assert document['totalCards'] == 2
        assert document['audioUrls'] == {"word_1": "https://a.example.com/word.mp3"}
        audio = document['files']["audio/words/card_001_สวัสดี_word.mp3"]
        assert audio['type'] == "blob"
        assert base64.b64decode(audio['content']) == WORD_MP3
        readme = document['files']["README.md"]
        assert readme['type'] == "text"
        assert readme['content'] == document['instructions']

    def test_anki_package(self, exporter, cache, sample_cards):
        cache.set("สวัสดี", "th", "https://a.example.com/word.mp3")
        archive = exporter.build_archive(sample_cards, 1, archive_format=AnkiPackageFormat())

        assert not archive.is_fallback
        assert archive.filename == "thai-learning-level-1.apkg"
        with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
            names = zf.namelist()
            media = json.loads(zf.read("media").decode("utf-8"))
        assert "collection.anki2" in names
        assert list(media.values()) == ["card_001_สวัสดี_word.mp3"]
