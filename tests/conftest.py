"""
Shared fixtures and test doubles for the audio, store and export tests.
"""

import threading

import pytest
from hypothesis import settings, Verbosity

from thai_learning_cards.audio.cache import AudioCache
from thai_learning_cards.audio.playback import PlaybackBackend
from thai_learning_cards.audio.tts_client import JobState, JobStatus
from thai_learning_cards.errors import GenerationError, PlaybackFailure
from thai_learning_cards.models import Card, StoredAudio


settings.register_profile(
    "thai_cards",
    max_examples=50,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("thai_cards")


class FakeTTSClient:
    """Remote TTS double returning scripted job statuses."""

    def __init__(self, statuses=None, locator="https://files.example.com/sound.mp3",
                 submit_error=False):
        self.statuses = list(statuses) if statuses is not None else [JobStatus(JobState.DONE, locator)]
        self.submit_error = submit_error
        self.submitted = []
        self.status_checks = 0

    def submit_job(self, text, language):
        if self.submit_error:
            raise GenerationError("service unreachable")
        self.submitted.append((text, language))
        return f"job-{len(self.submitted)}"

    def get_job_status(self, job_id):
        self.status_checks += 1
        if self.statuses:
            return self.statuses.pop(0)
        return JobStatus(JobState.PENDING)


class FakeStoredAudio:
    """In-memory stored-audio collaborator."""

    def __init__(self, entries=None, store_result=True):
        self.entries = dict(entries or {})
        self.store_result = store_result
        self.stored = []

    def get_stored_audio(self, text_key):
        locator = self.entries.get(text_key)
        if locator is None:
            return None
        return StoredAudio(key=text_key, audio_url=locator, text="")

    def store_audio(self, text_key, locator, text):
        self.stored.append((text_key, locator, text))
        if self.store_result:
            self.entries[text_key] = locator
        return self.store_result


class FakeSynthesizer:
    def __init__(self, available=True):
        self.available = available
        self.spoken = []
        self.stopped = 0

    def is_available(self):
        return self.available

    def speak(self, text, language):
        self.spoken.append((text, language))
        return self.available

    def stop(self):
        self.stopped += 1


class FakeBackend(PlaybackBackend):
    """
    Playback backend double.

    With ``auto_finish`` the handle finishes on a short-lived thread right
    after start; otherwise it stays playing until stopped or finished by the
    test. Locators listed in ``fail_locators`` are rejected.
    """

    def __init__(self, auto_finish=True, fail_locators=(), fail_all=False):
        self.auto_finish = auto_finish
        self.fail_locators = set(fail_locators)
        self.fail_all = fail_all
        self.started = []
        self.stopped = []
        self.handles = []
        self.on_start = None

    def start(self, source, handle):
        locator = getattr(source, 'locator', None)
        if self.fail_all or locator in self.fail_locators:
            raise PlaybackFailure(f"cannot play {locator}")
        self.started.append(source)
        self.handles.append(handle)
        if self.on_start is not None:
            self.on_start(source, handle)
        if self.auto_finish:
            threading.Thread(target=handle.mark_finished, daemon=True).start()

    def stop(self, handle):
        self.stopped.append(handle)


class RecordingSleep:
    """Sleep replacement recording requested delays without waiting."""

    def __init__(self):
        self.calls = []
        self.hook = None

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.hook is not None:
            self.hook(seconds)


@pytest.fixture
def cache():
    return AudioCache()


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def sample_cards():
    return [
        Card(
            id=1,
            headword="สวัสดี",
            pronunciation="sà-wàt-dii",
            translation="你好",
            example="สวัสดีครับ ผมชื่อจอห์น",
            example_translation="你好，我叫约翰",
            level=1
        ),
        Card(
            id=2,
            headword="ขอบคุณ",
            pronunciation="kɔ̀ɔp-kun",
            translation="谢谢",
            example="ขอบคุณมากครับ",
            example_translation="非常感谢",
            level=1
        ),
    ]


@pytest.fixture
def card_dicts(sample_cards):
    return [card.to_dict() for card in sample_cards]
