"""
On-device speech synthesis using pyttsx3.

This is the last resort of the audio fallback chain. It needs a platform
speech driver (SAPI5, NSSpeechSynthesizer or eSpeak); when none is present
the synthesizer reports itself unavailable instead of raising.
"""

import logging
import threading
from typing import Callable, Optional

import pyttsx3

from ..config import Config


logger = logging.getLogger(__name__)


def _voice_languages(voice) -> list:
    langs = getattr(voice, 'languages', []) or []
    return [
        bytes(lang).decode(errors='ignore') if isinstance(lang, (bytes, bytearray)) else str(lang)
        for lang in langs
    ]


class LocalSpeechSynthesizer:
    """
    Speaks text through the host's speech engine.

    The engine is created lazily on first use. ``speak`` blocks until the
    utterance ends or ``stop`` is called from another thread.
    """

    def __init__(self, rate: int = Config.SPEECH_RATE, volume: float = Config.SPEECH_VOLUME,
                 engine_factory: Callable = pyttsx3.init):
        self.rate = rate
        self.volume = volume
        self._engine_factory = engine_factory
        self._engine = None
        self._available: Optional[bool] = None
        self._lock = threading.Lock()

    def _get_engine(self):
        with self._lock:
            if self._engine is None and self._available is not False:
                try:
                    engine = self._engine_factory()
                    engine.setProperty('rate', self.rate)
                    engine.setProperty('volume', self.volume)
                    self._engine = engine
                    self._available = True
                except Exception as e:
                    # Driver load failures surface as assorted exception types
                    logger.warning(f"Speech synthesis not supported on this host: {e}")
                    self._available = False
            return self._engine

    def is_available(self) -> bool:
        """Check whether a speech engine can be used on this host."""
        return self._get_engine() is not None

    def select_voice(self, language: str) -> Optional[str]:
        """
        Pick an installed voice whose language starts with the requested prefix.

        Returns:
            Voice id, or None when no installed voice matches
        """
        engine = self._get_engine()
        if engine is None:
            return None

        prefix = language.split('-')[0].lower()
        for voice in engine.getProperty('voices') or []:
            langs = [lang.lower() for lang in _voice_languages(voice)]
            if any(lang.startswith(prefix) for lang in langs):
                return voice.id
            if f"{prefix}_" in voice.id.lower() or f"/{prefix}" in voice.id.lower():
                return voice.id
        return None

    def speak(self, text: str, language: str) -> bool:
        """
        Speak text and block until finished.

        Returns:
            True if the utterance ran, False if synthesis is unsupported
        """
        engine = self._get_engine()
        if engine is None:
            return False

        voice_id = self.select_voice(language)
        if voice_id:
            engine.setProperty('voice', voice_id)
        else:
            logger.info(f"No installed voice for '{language}', using the default voice")

        engine.say(text)
        engine.runAndWait()
        return True

    def stop(self) -> None:
        """Interrupt the current utterance, if any."""
        engine = self._engine
        if engine is not None:
            engine.stop()
