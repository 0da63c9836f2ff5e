"""
Audio playback with a single live playback slot.

The controller owns at most one PlaybackHandle at a time. Starting a new
playback always stops the previous one first, so rapid user interaction
never produces overlapping audio.
"""

import io
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import numpy as np
import soundfile as sf

from ..errors import PlaybackFailure
from ..models import AudioSource, LocatorSource, SynthesisSource
from .loader import AudioLoader, AudioLoadError
from .synthesis import LocalSpeechSynthesizer


logger = logging.getLogger(__name__)


class PlaybackHandle:
    """
    One playback of one source.

    The handle finishes exactly once: on natural completion, on stop, or when
    the backend fails mid-playback, in which case ``failed`` is set. ``wait``
    blocks until then.
    """

    def __init__(self, source: AudioSource, generation: int):
        self.source = source
        self.generation = generation
        self.stopped = False
        self.failed = False
        self._done = threading.Event()
        self._callbacks: List[Callable[['PlaybackHandle'], None]] = []
        self._lock = threading.Lock()

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until playback ends. Returns False if the timeout expired first."""
        return self._done.wait(timeout)

    def add_done_callback(self, callback: Callable[['PlaybackHandle'], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def mark_finished(self) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)

    def __repr__(self):
        state = 'finished' if self.finished else 'playing'
        return f"PlaybackHandle(generation={self.generation}, origin={self.source.origin}, {state})"


class PlaybackBackend(ABC):
    """Plays one kind of AudioSource."""

    @abstractmethod
    def start(self, source: AudioSource, handle: PlaybackHandle) -> None:
        """
        Begin playing and return immediately.

        The backend must call ``handle.mark_finished()`` when playback ends.

        Raises:
            PlaybackFailure: If the source cannot be played
        """

    @abstractmethod
    def stop(self, handle: PlaybackHandle) -> None:
        """Stop the playback behind the handle."""


class SoundDeviceBackend(PlaybackBackend):
    """
    Plays locator sources on the default output device.

    Audio is decoded with soundfile and handed to sounddevice; a timer set to
    the clip duration marks the handle finished.
    """

    def __init__(self, loader: Optional[AudioLoader] = None, volume: float = 1.0):
        self.loader = loader or AudioLoader()
        self.volume = volume
        self._timers = {}

    def decode(self, data: bytes):
        """Decode audio bytes into float32 samples and a sample rate."""
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype='float32')
        except (RuntimeError, TypeError) as e:
            raise PlaybackFailure(f"Could not decode audio: {e}")

        samples = np.clip(np.asarray(samples, dtype=np.float32) * self.volume, -1.0, 1.0)
        return samples, sample_rate

    def start(self, source: AudioSource, handle: PlaybackHandle) -> None:
        if not isinstance(source, LocatorSource):
            raise PlaybackFailure(f"SoundDeviceBackend cannot play {source!r}")

        try:
            data = self.loader.load_bytes(source.locator)
        except AudioLoadError as e:
            raise PlaybackFailure(str(e), context={'locator': source.locator})

        samples, sample_rate = self.decode(data)
        duration = samples.shape[0] / float(sample_rate)

        try:
            import sounddevice as sd  # needs PortAudio at import time
            sd.play(samples, sample_rate)
        except (OSError, RuntimeError) as e:
            raise PlaybackFailure(f"Audio output unavailable: {e}")

        timer = threading.Timer(duration, handle.mark_finished)
        timer.daemon = True
        self._timers[id(handle)] = timer
        handle.add_done_callback(lambda h: self._timers.pop(id(h), None))
        timer.start()
        logger.debug(f"Playing {source.locator} ({duration:.2f}s)")

    def stop(self, handle: PlaybackHandle) -> None:
        timer = self._timers.pop(id(handle), None)
        if timer is not None:
            timer.cancel()
        import sounddevice as sd
        sd.stop()


class SpeechSynthesisBackend(PlaybackBackend):
    """Plays synthesis sources through the host speech engine."""

    def __init__(self, synthesizer: Optional[LocalSpeechSynthesizer] = None):
        self.synthesizer = synthesizer or LocalSpeechSynthesizer()

    def start(self, source: AudioSource, handle: PlaybackHandle) -> None:
        if not isinstance(source, SynthesisSource):
            raise PlaybackFailure(f"SpeechSynthesisBackend cannot play {source!r}")
        if not self.synthesizer.is_available():
            raise PlaybackFailure("Speech synthesis not supported")

        thread = threading.Thread(
            target=self._speak, args=(source, handle), daemon=True
        )
        thread.start()

    def _speak(self, source: SynthesisSource, handle: PlaybackHandle) -> None:
        try:
            if not self.synthesizer.speak(source.text, source.language):
                handle.failed = True
        except Exception as e:
            logger.error(f"Error with speech synthesis: {e}")
            handle.failed = True
        finally:
            handle.mark_finished()

    def stop(self, handle: PlaybackHandle) -> None:
        self.synthesizer.stop()


class AudioPlaybackController:
    """
    Owns the single current playback.

    ``start``/``play`` stop whatever is playing before starting the new
    source. ``stop_current`` is always safe to call.
    """

    def __init__(self, file_backend: Optional[PlaybackBackend] = None,
                 synthesis_backend: Optional[PlaybackBackend] = None):
        self.file_backend = file_backend or SoundDeviceBackend()
        self.synthesis_backend = synthesis_backend
        self._current: Optional[PlaybackHandle] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def current(self) -> Optional[PlaybackHandle]:
        with self._lock:
            return self._current

    def is_playing(self) -> bool:
        handle = self.current
        return handle is not None and not handle.finished

    def start(self, source: AudioSource) -> PlaybackHandle:
        """
        Stop the current playback and start the given source.

        Returns:
            Handle for the new playback

        Raises:
            PlaybackFailure: If the source cannot be played
        """
        backend = self._backend_for(source)

        with self._lock:
            self._stop_locked()
            self._generation += 1
            handle = PlaybackHandle(source, self._generation)
            self._current = handle
            handle.add_done_callback(self._on_finished)

            try:
                backend.start(source, handle)
            except PlaybackFailure:
                handle.mark_finished()
                raise
            except Exception as e:
                handle.mark_finished()
                raise PlaybackFailure(f"Playback failed: {e}")

        return handle

    def play(self, source: AudioSource) -> bool:
        """Start a source. Returns True if playback started."""
        try:
            self.start(source)
            return True
        except PlaybackFailure as e:
            logger.warning(f"Error playing audio: {e}")
            return False

    def stop_current(self) -> None:
        """Stop the current playback. No-op when nothing is playing."""
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        handle = self._current
        if handle is None:
            return

        self._current = None
        if handle.finished:
            return

        handle.stopped = True
        backend = self._backend_for_quiet(handle.source)
        try:
            if backend is not None:
                backend.stop(handle)
        except Exception as e:
            logger.error(f"Error stopping audio: {e}")
        finally:
            handle.mark_finished()

    def _on_finished(self, handle: PlaybackHandle) -> None:
        with self._lock:
            if self._current is handle:
                self._current = None

    def _backend_for(self, source: AudioSource) -> PlaybackBackend:
        backend = self._backend_for_quiet(source)
        if backend is None:
            raise PlaybackFailure(f"No playback backend for {source!r}")
        return backend

    def _backend_for_quiet(self, source: AudioSource) -> Optional[PlaybackBackend]:
        if isinstance(source, SynthesisSource):
            return self.synthesis_backend
        if isinstance(source, LocatorSource):
            return self.file_backend
        return None
