"""Tests for the audio source fallback chain."""

import pytest

from thai_learning_cards.audio.cache import audio_key
from thai_learning_cards.audio.resolver import AudioSourceResolver
from thai_learning_cards.audio.tts_client import JobState, JobStatus
from thai_learning_cards.errors import GenerationError, GenerationTimeout, ResolutionFailure
from thai_learning_cards.models import LocatorSource, SynthesisSource

from conftest import FakeStoredAudio, FakeSynthesizer, FakeTTSClient


GENERATED = "https://files.example.com/generated.mp3"


class TestAudioKey:

    def test_stable_and_language_sensitive(self):
        assert audio_key("สวัสดี", "th") == audio_key("สวัสดี", "th")
        assert audio_key("สวัสดี", "th") != audio_key("สวัสดี", "zh")
        assert len(audio_key("สวัสดี", "th")) == 32


class TestResolutionOrder:
    """Test which step of the chain wins."""

    def test_cache_hit_skips_everything(self, cache, no_sleep):
        cache.set("สวัสดี", "th", "https://cached.example.com/a.mp3")
        tts = FakeTTSClient()
        stored = FakeStoredAudio()
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts, sleep=no_sleep)

        source = resolver.resolve("สวัสดี", "th")

        assert source == LocatorSource("https://cached.example.com/a.mp3", "cache")
        assert tts.submitted == []

    def test_stored_audio_populates_cache(self, cache, no_sleep):
        stored = FakeStoredAudio({audio_key("สวัสดี", "th"): "/data/audio/abc.mp3"})
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts, sleep=no_sleep)

        source = resolver.resolve("สวัสดี", "th")

        assert source.origin == "stored"
        assert source.locator == "/data/audio/abc.mp3"
        assert cache.get("สวัสดี", "th") == "/data/audio/abc.mp3"
        assert tts.submitted == []

    def test_provided_locator_before_generation(self, cache, no_sleep):
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, tts_client=tts, sleep=no_sleep)

        source = resolver.resolve("สวัสดี", "th", locator="https://given.example.com/x.mp3")

        assert source == LocatorSource("https://given.example.com/x.mp3", "provided")
        assert tts.submitted == []

    def test_synthesis_is_last_resort(self, cache, no_sleep):
        tts = FakeTTSClient(submit_error=True)
        resolver = AudioSourceResolver(
            cache, tts_client=tts, synthesizer=FakeSynthesizer(), sleep=no_sleep
        )

        source = resolver.resolve("สวัสดี", "th")

        assert source == SynthesisSource("สวัสดี", "th")

    def test_everything_fails(self, cache, no_sleep):
        resolver = AudioSourceResolver(
            cache,
            tts_client=FakeTTSClient(submit_error=True),
            synthesizer=FakeSynthesizer(available=False),
            sleep=no_sleep
        )

        with pytest.raises(ResolutionFailure):
            resolver.resolve("สวัสดี", "th")

    def test_candidates_are_lazy(self, cache, no_sleep):
        cache.set("สวัสดี", "th", "https://cached.example.com/a.mp3")
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, tts_client=tts, sleep=no_sleep)

        candidates = resolver.candidates("สวัสดี", "th")
        first = next(candidates)

        assert first.origin == "cache"
        assert tts.submitted == []

        rest = list(candidates)
        assert [s.origin for s in rest] == ["generated"]

    def test_candidates_skip_duplicate_locators(self, cache, no_sleep):
        cache.set("สวัสดี", "th", "https://same.example.com/a.mp3")
        resolver = AudioSourceResolver(cache, sleep=no_sleep)

        sources = list(resolver.candidates("สวัสดี", "th", locator="https://same.example.com/a.mp3"))

        assert len(sources) == 1


class TestGeneration:
    """Test remote generation polling."""

    def test_done_on_third_check(self, cache, no_sleep):
        tts = FakeTTSClient(statuses=[
            JobStatus(JobState.PENDING),
            JobStatus(JobState.PENDING),
            JobStatus(JobState.DONE, GENERATED),
        ])
        stored = FakeStoredAudio()
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts, sleep=no_sleep)

        source = resolver.resolve("สวัสดี", "th")

        assert source == LocatorSource(GENERATED, "generated")
        assert tts.status_checks == 3
        assert no_sleep.calls == [1.0, 1.0]
        assert cache.get("สวัสดี", "th") == GENERATED
        assert stored.stored == [(audio_key("สวัสดี", "th"), GENERATED, "สวัสดี")]

    def test_second_resolution_hits_cache(self, cache, no_sleep):
        tts = FakeTTSClient(statuses=[JobStatus(JobState.DONE, GENERATED)])
        resolver = AudioSourceResolver(cache, tts_client=tts, sleep=no_sleep)

        first = resolver.resolve("สวัสดี", "th")
        second = resolver.resolve("สวัสดี", "th")

        assert first.locator == second.locator == GENERATED
        assert second.origin == "cache"
        assert len(tts.submitted) == 1

    def test_timeout_after_poll_budget(self, cache, no_sleep):
        tts = FakeTTSClient(statuses=[])
        resolver = AudioSourceResolver(cache, tts_client=tts, poll_attempts=10, sleep=no_sleep)

        with pytest.raises(GenerationTimeout):
            resolver.generate("สวัสดี", "th")

        assert tts.status_checks == 10
        assert len(no_sleep.calls) == 9

    def test_job_error(self, cache, no_sleep):
        tts = FakeTTSClient(statuses=[JobStatus(JobState.ERROR)])
        resolver = AudioSourceResolver(cache, tts_client=tts, sleep=no_sleep)

        with pytest.raises(GenerationError):
            resolver.generate("สวัสดี", "th")

        assert no_sleep.calls == []

    def test_no_client_configured(self, cache):
        with pytest.raises(GenerationError):
            AudioSourceResolver(cache).generate("สวัสดี", "th")

    def test_failed_store_does_not_fail_generation(self, cache, no_sleep):
        stored = FakeStoredAudio(store_result=False)
        tts = FakeTTSClient(statuses=[JobStatus(JobState.DONE, GENERATED)])
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts, sleep=no_sleep)

        assert resolver.pregenerate("สวัสดี", "th") == GENERATED
        assert cache.get("สวัสดี", "th") == GENERATED


class TestPregenerate:

    def test_uses_cache_without_generation(self, cache, no_sleep):
        cache.set("น้ำ", "th", "https://cached.example.com/n.mp3")
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, tts_client=tts, sleep=no_sleep)

        assert resolver.pregenerate("น้ำ", "th") == "https://cached.example.com/n.mp3"
        assert tts.submitted == []

    def test_never_synthesizes(self, cache, no_sleep):
        synthesizer = FakeSynthesizer()
        resolver = AudioSourceResolver(
            cache, tts_client=FakeTTSClient(submit_error=True),
            synthesizer=synthesizer, sleep=no_sleep
        )

        assert resolver.pregenerate("น้ำ", "th") is None
        assert synthesizer.spoken == []
        assert cache.get("น้ำ", "th") is None


class TestLookup:
    """Test the lookup used by export, which never generates audio."""

    def test_finds_stored_audio_and_caches_it(self, cache, no_sleep):
        stored = FakeStoredAudio({audio_key("น้ำ", "th"): "/audio/n.mp3"})
        tts = FakeTTSClient()
        resolver = AudioSourceResolver(cache, stored_audio=stored, tts_client=tts, sleep=no_sleep)

        assert resolver.lookup("น้ำ", "th") == "/audio/n.mp3"
        assert cache.get("น้ำ", "th") == "/audio/n.mp3"
        assert tts.submitted == []

    def test_missing_audio_is_not_generated(self, cache, no_sleep):
        tts = FakeTTSClient()
        synthesizer = FakeSynthesizer()
        resolver = AudioSourceResolver(cache, stored_audio=FakeStoredAudio(), tts_client=tts,
                                       synthesizer=synthesizer, sleep=no_sleep)

        assert resolver.lookup("น้ำ", "th") is None
        assert tts.submitted == []
        assert synthesizer.spoken == []
