"""
Audio resolution, playback and sequencing.
"""

from .cache import AudioCache, audio_key
from .loader import AudioLoader, AudioLoadError
from .tts_client import SoundOfTextClient, JobState, JobStatus
from .store import AudioStore, RemoteAudioStore
from .synthesis import LocalSpeechSynthesizer
from .resolver import AudioSourceResolver
from .playback import (
    AudioPlaybackController,
    PlaybackBackend,
    PlaybackHandle,
    SoundDeviceBackend,
    SpeechSynthesisBackend
)
from .orchestrator import SequentialPlaybackOrchestrator
from .bulk import generate_bulk_audio, BulkGenerationResult

__all__ = [
    'AudioCache',
    'audio_key',
    'AudioLoader',
    'AudioLoadError',
    'SoundOfTextClient',
    'JobState',
    'JobStatus',
    'AudioStore',
    'RemoteAudioStore',
    'LocalSpeechSynthesizer',
    'AudioSourceResolver',
    'AudioPlaybackController',
    'PlaybackBackend',
    'PlaybackHandle',
    'SoundDeviceBackend',
    'SpeechSynthesisBackend',
    'SequentialPlaybackOrchestrator',
    'generate_bulk_audio',
    'BulkGenerationResult'
]
