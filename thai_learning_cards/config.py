"""
Configuration settings for Thai Learning Cards.
"""

import os
from pathlib import Path


class Config:
    """Configuration class for application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    DATA_DIR = Path(os.environ.get('THAI_CARDS_DATA_DIR', PROJECT_ROOT / "data"))
    AUDIO_DIR = DATA_DIR / "audio"
    BACKUP_DIR = Path(os.environ.get('THAI_CARDS_BACKUP_DIR', PROJECT_ROOT / "backups"))
    OUTPUT_DIR = PROJECT_ROOT / "output"

    # Card levels
    LEVELS = (1, 2, 3, 4)
    DEFAULT_LANGUAGE = "th"

    # Remote TTS (soundoftext.com)
    TTS_API_URL = "https://api.soundoftext.com"
    TTS_ENGINE = "Google"
    TTS_VOICES = {
        "th": "th-TH",
        "zh": "zh-CN",
        "en": "en-US",
    }
    TTS_POLL_INTERVAL = 1.0  # seconds
    TTS_POLL_ATTEMPTS = 10
    HTTP_TIMEOUT = 15  # seconds

    # Playback timing
    SETTLE_DELAY = 0.5  # between headword and example
    COMPLETION_DELAY = 0.5  # after example, before the completion callback
    FAILURE_FALLBACK_DELAY = 1.0  # stands in for a clip that could not play
    MAX_CLIP_SECONDS = 30.0

    # Local speech synthesis
    SPEECH_RATE = 120
    SPEECH_VOLUME = 1.0

    # Bulk audio generation
    BULK_GENERATION_DELAY = 1.0

    # Learning progress
    PROGRESS_TTL_HOURS = 24

    # Content management login
    ADMIN_USERNAME = os.environ.get('THAI_CARDS_ADMIN_USERNAME', 'admin')
    ADMIN_PASSWORD = os.environ.get('THAI_CARDS_ADMIN_PASSWORD', 'change-me')
    SECRET_KEY = os.environ.get('THAI_CARDS_SECRET_KEY', 'dev-secret-key')
    SESSION_DAYS = 7

    # Backups
    BACKUP_KEEP = 10
    BACKUP_INTERVAL_HOURS = 24

    # Export
    PACKAGE_TYPE = "thai-learning-package"
    PACKAGE_VERSION = "1.0"
    ANKI_DECK_NAME = "Thai Learning Cards"

    @classmethod
    def ensure_directories(cls):
        """Create necessary directories if they don't exist."""
        for directory in [cls.DATA_DIR, cls.AUDIO_DIR, cls.BACKUP_DIR]:
            directory.mkdir(parents=True, exist_ok=True)
