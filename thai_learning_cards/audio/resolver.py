"""
Audio source resolution through an ordered fallback chain.

For a piece of text the resolver tries, in order: the in-process cache, the
stored-audio collaborator, a locator supplied by the caller, a remote TTS
generation job, and finally on-device speech synthesis.
"""

import logging
import time
from typing import Callable, Iterator, Optional

from ..config import Config
from ..errors import GenerationError, GenerationTimeout, ResolutionFailure
from ..models import AudioSource, LocatorSource, SynthesisSource
from .cache import AudioCache, audio_key
from .tts_client import JobState


logger = logging.getLogger(__name__)


class AudioSourceResolver:
    """
    Resolves (text, language) into a playable AudioSource.

    ``candidates`` yields sources lazily so that a player can fall through to
    the next source when one fails to play; later steps (notably remote
    generation) only run if an earlier candidate was rejected.
    """

    def __init__(self, cache: AudioCache, stored_audio=None, tts_client=None,
                 synthesizer=None,
                 poll_interval: float = Config.TTS_POLL_INTERVAL,
                 poll_attempts: int = Config.TTS_POLL_ATTEMPTS,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the resolver.

        Args:
            cache: Locator cache shared with the exporter
            stored_audio: Object with get_stored_audio/store_audio, or None
            tts_client: Object with submit_job/get_job_status, or None
            synthesizer: LocalSpeechSynthesizer, or None to disable the last step
            poll_interval: Seconds between job status checks
            poll_attempts: Status checks before giving up
            sleep: Sleep function used between status checks
        """
        self.cache = cache
        self.stored_audio = stored_audio
        self.tts_client = tts_client
        self.synthesizer = synthesizer
        self.poll_interval = poll_interval
        self.poll_attempts = poll_attempts
        self._sleep = sleep

    def candidates(self, text: str, language: str,
                   locator: Optional[str] = None) -> Iterator[AudioSource]:
        """Yield every available source for the text, best first."""
        tried = set()

        cached = self.cache.get(text, language)
        if cached:
            tried.add(cached)
            yield LocatorSource(cached, 'cache')

        stored = self._lookup_stored(text, language)
        if stored and stored not in tried:
            tried.add(stored)
            yield LocatorSource(stored, 'stored')

        if locator and locator not in tried:
            tried.add(locator)
            yield LocatorSource(locator, 'provided')

        generated = self._try_generate(text, language)
        if generated and generated not in tried:
            yield LocatorSource(generated, 'generated')

        if self.synthesizer is not None and self.synthesizer.is_available():
            yield SynthesisSource(text, language)

    def resolve(self, text: str, language: str, locator: Optional[str] = None) -> AudioSource:
        """
        Return the first available source.

        Raises:
            ResolutionFailure: If every step of the chain failed
        """
        for source in self.candidates(text, language, locator):
            logger.debug(f"Resolved '{text}' via {source.origin}")
            return source

        raise ResolutionFailure(
            f"No audio available for '{text}'",
            context={'text': text, 'language': language}
        )

    def pregenerate(self, text: str, language: str) -> Optional[str]:
        """
        Make sure a locator exists for the text without playing anything.

        Uses the cache, stored audio and remote generation only.

        Returns:
            Locator, or None if generation failed
        """
        return self.lookup(text, language) or self._try_generate(text, language)

    def lookup(self, text: str, language: str) -> Optional[str]:
        """
        Find an existing locator in the cache or stored audio.

        Never generates or synthesizes audio.
        """
        return self.cache.get(text, language) or self._lookup_stored(text, language)

    def generate(self, text: str, language: str) -> str:
        """
        Run a remote TTS job to completion.

        Raises:
            GenerationError: If the job could not be submitted or reported an error
            GenerationTimeout: If the job did not finish within the polling budget
        """
        if self.tts_client is None:
            raise GenerationError("No TTS service configured")

        job_id = self.tts_client.submit_job(text, language)

        for attempt in range(1, self.poll_attempts + 1):
            status = self.tts_client.get_job_status(job_id)
            if status.state == JobState.DONE and status.locator:
                logger.info(f"TTS job {job_id} done after {attempt} check(s)")
                return status.locator
            if status.state == JobState.ERROR:
                raise GenerationError(
                    f"TTS job {job_id} failed",
                    context={'text': text, 'job_id': job_id}
                )
            if attempt < self.poll_attempts:
                self._sleep(self.poll_interval)

        raise GenerationTimeout(
            f"TTS job {job_id} not done after {self.poll_attempts} checks",
            context={'text': text, 'job_id': job_id}
        )

    def _lookup_stored(self, text: str, language: str) -> Optional[str]:
        if self.stored_audio is None:
            return None

        stored = self.stored_audio.get_stored_audio(audio_key(text, language))
        if stored is None or not stored.locator:
            return None

        self.cache.set(text, language, stored.locator)
        return stored.locator

    def _try_generate(self, text: str, language: str) -> Optional[str]:
        if self.tts_client is None:
            return None

        try:
            locator = self.generate(text, language)
        except ResolutionFailure as e:
            logger.warning(f"Audio generation failed for '{text}': {e}")
            return None

        self.cache.set(text, language, locator)
        if self.stored_audio is not None:
            if not self.stored_audio.store_audio(audio_key(text, language), locator, text):
                logger.debug(f"Could not persist generated audio for '{text}'")
        return locator
