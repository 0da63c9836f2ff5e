"""
Wiring of the audio and export components.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .audio.cache import AudioCache
from .audio.loader import AudioLoader
from .audio.orchestrator import SequentialPlaybackOrchestrator
from .audio.playback import AudioPlaybackController, SoundDeviceBackend, SpeechSynthesisBackend
from .audio.resolver import AudioSourceResolver
from .audio.store import AudioStore, RemoteAudioStore
from .audio.synthesis import LocalSpeechSynthesizer
from .audio.tts_client import SoundOfTextClient
from .config import Config
from .export.exporter import PackageExporter


logger = logging.getLogger(__name__)


@dataclass
class AudioServices:
    """The components a study session or an export needs, sharing one cache."""
    cache: AudioCache
    loader: AudioLoader
    stored_audio: object
    tts_client: Optional[SoundOfTextClient]
    synthesizer: Optional[LocalSpeechSynthesizer]
    resolver: AudioSourceResolver
    controller: AudioPlaybackController
    orchestrator: SequentialPlaybackOrchestrator
    exporter: PackageExporter


def build_audio_services(audio_dir: str = None, server_url: str = None,
                         enable_tts: bool = True, enable_synthesis: bool = True,
                         language: str = Config.DEFAULT_LANGUAGE) -> AudioServices:
    """
    Create the audio stack.

    Args:
        audio_dir: Directory of the filesystem audio store. Ignored when server_url is set.
        server_url: Base URL of a running server to use as the stored-audio collaborator
        enable_tts: Use the remote TTS service for missing audio
        enable_synthesis: Fall back to on-device speech synthesis
        language: Language used by the exporter for audio lookups

    Returns:
        AudioServices with every component wired together
    """
    session = requests.Session()
    cache = AudioCache()
    loader = AudioLoader(session=session)

    if server_url:
        stored_audio = RemoteAudioStore(server_url, session=session)
        logger.info(f"Using stored audio from {server_url}")
    else:
        stored_audio = AudioStore(audio_dir or Config.AUDIO_DIR, loader=loader)

    tts_client = SoundOfTextClient(session=session) if enable_tts else None
    synthesizer = LocalSpeechSynthesizer() if enable_synthesis else None

    resolver = AudioSourceResolver(
        cache,
        stored_audio=stored_audio,
        tts_client=tts_client,
        synthesizer=synthesizer
    )
    controller = AudioPlaybackController(
        file_backend=SoundDeviceBackend(loader=loader, volume=Config.SPEECH_VOLUME),
        synthesis_backend=SpeechSynthesisBackend(synthesizer) if synthesizer else None
    )
    orchestrator = SequentialPlaybackOrchestrator(resolver, controller)
    exporter = PackageExporter(cache, loader=loader, language=language, resolver=resolver)

    return AudioServices(
        cache=cache,
        loader=loader,
        stored_audio=stored_audio,
        tts_client=tts_client,
        synthesizer=synthesizer,
        resolver=resolver,
        controller=controller,
        orchestrator=orchestrator,
        exporter=exporter
    )
