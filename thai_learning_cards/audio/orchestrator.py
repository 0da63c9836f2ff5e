"""
Sequential playback of a card's headword and example sentence.

The orchestrator drives card-by-card auto-advance: it plays the headword,
waits for it to end, pauses, plays the example, pauses again and then calls
the completion callback. The callback is invoked exactly once per call even
when audio fails, so an auto-advancing session never stalls on one card.
"""

import logging
import threading
import time
from typing import Callable, Optional

from ..config import Config
from ..errors import PlaybackFailure, ResolutionFailure
from .playback import AudioPlaybackController, PlaybackHandle
from .resolver import AudioSourceResolver


logger = logging.getLogger(__name__)


class SequentialPlaybackOrchestrator:
    """
    Plays audio clips through the resolver and the playback controller.

    Overlapping ``play_sequential`` calls follow a latest-call-wins policy:
    every call takes a new generation number, and a call that finds a newer
    generation at a suspension point stops scheduling clips, invokes its own
    callback and returns False.
    """

    def __init__(self, resolver: AudioSourceResolver,
                 controller: AudioPlaybackController,
                 settle_delay: float = Config.SETTLE_DELAY,
                 completion_delay: float = Config.COMPLETION_DELAY,
                 failure_delay: float = Config.FAILURE_FALLBACK_DELAY,
                 max_clip_seconds: float = Config.MAX_CLIP_SECONDS,
                 sleep: Callable[[float], None] = time.sleep):
        self.resolver = resolver
        self.controller = controller
        self.settle_delay = settle_delay
        self.completion_delay = completion_delay
        self.failure_delay = failure_delay
        self.max_clip_seconds = max_clip_seconds
        self._sleep = sleep
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self._generation == generation

    def start_audio(self, text: str, language: str = Config.DEFAULT_LANGUAGE,
                    locator: Optional[str] = None) -> Optional[PlaybackHandle]:
        """
        Start playing text through the fallback chain.

        Each candidate source is tried in turn; a source the backend rejects
        moves on to the next one.

        Returns:
            Handle of the started playback, or None if nothing could play
        """
        try:
            for source in self.resolver.candidates(text, language, locator):
                try:
                    return self.controller.start(source)
                except PlaybackFailure as e:
                    logger.warning(f"Could not play '{text}' from {source.origin}: {e}")
        except ResolutionFailure as e:
            logger.warning(f"Audio resolution failed for '{text}': {e}")

        logger.warning(f"No audio played for '{text}'")
        return None

    def play_audio(self, text: str, language: str = Config.DEFAULT_LANGUAGE,
                   locator: Optional[str] = None) -> bool:
        """Play a single clip without waiting for it. Returns True if audio started."""
        self._next_generation()
        return self.start_audio(text, language, locator) is not None

    def play_sequential(self, headword: str, example: str,
                        language: str = Config.DEFAULT_LANGUAGE,
                        on_complete: Optional[Callable[[], None]] = None) -> bool:
        """
        Play headword then example, then invoke the completion callback.

        Args:
            headword: Word to play first
            example: Example sentence to play second
            language: Language tag for both clips
            on_complete: Called exactly once when the sequence is over

        Returns:
            True if both clips played and the sequence was not superseded
        """
        generation = self._next_generation()
        success = False
        try:
            success = self._run_sequence(generation, headword, example, language)
        except Exception as e:
            logger.error(f"Error playing sequential audio: {e}", exc_info=True)
            success = False
        finally:
            if on_complete is not None:
                try:
                    on_complete()
                except Exception as e:
                    logger.error(f"Completion callback failed: {e}", exc_info=True)
        return success

    def stop_current(self) -> None:
        """Stop playback and end any sequence in flight."""
        self._next_generation()
        self.controller.stop_current()

    def _run_sequence(self, generation: int, headword: str, example: str, language: str) -> bool:
        headword_ok = self._play_clip(generation, headword, language)
        if not self._is_current(generation):
            return False

        self._sleep(self.settle_delay)
        if not self._is_current(generation):
            return False

        example_ok = self._play_clip(generation, example, language)
        if not self._is_current(generation):
            return False

        self._sleep(self.completion_delay)
        if not self._is_current(generation):
            return False

        return headword_ok and example_ok

    def _play_clip(self, generation: int, text: str, language: str) -> bool:
        if not self._is_current(generation):
            return False

        handle = self.start_audio(text, language)
        if handle is None:
            self._sleep(self.failure_delay)
            return False

        if not handle.wait(self.max_clip_seconds):
            logger.warning(f"Clip '{text}' did not finish within {self.max_clip_seconds}s")
            if self._is_current(generation):
                self.controller.stop_current()
        return not (handle.stopped or handle.failed)
