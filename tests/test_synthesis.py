"""Tests for on-device speech synthesis."""

from types import SimpleNamespace
from unittest.mock import MagicMock

from thai_learning_cards.audio.synthesis import LocalSpeechSynthesizer


def make_engine(voices):
    engine = MagicMock()
    engine.getProperty.side_effect = lambda name: voices if name == 'voices' else None
    return engine


class TestLocalSpeechSynthesizer:

    def test_unsupported_host(self):
        factory = MagicMock(side_effect=RuntimeError("no driver"))
        synthesizer = LocalSpeechSynthesizer(engine_factory=factory)

        assert synthesizer.is_available() is False
        assert synthesizer.speak("สวัสดี", "th") is False
        synthesizer.is_available()
        factory.assert_called_once()

    def test_selects_voice_by_language(self):
        voices = [
            SimpleNamespace(id="english", languages=[b"\x05en-us"]),
            SimpleNamespace(id="thai", languages=["th_TH"]),
        ]
        engine = make_engine(voices)
        synthesizer = LocalSpeechSynthesizer(engine_factory=lambda: engine)

        assert synthesizer.speak("สวัสดี", "th-TH") is True

        engine.setProperty.assert_any_call('voice', "thai")
        engine.say.assert_called_once_with("สวัสดี")
        engine.runAndWait.assert_called_once()

    def test_voice_matched_by_id(self):
        voices = [SimpleNamespace(id="com.apple.voice.th_TH.Kanya", languages=[])]
        synthesizer = LocalSpeechSynthesizer(engine_factory=lambda: make_engine(voices))
        assert synthesizer.select_voice("th") == "com.apple.voice.th_TH.Kanya"

    def test_default_voice_when_none_match(self):
        engine = make_engine([SimpleNamespace(id="english", languages=["en"])])
        synthesizer = LocalSpeechSynthesizer(engine_factory=lambda: engine)

        assert synthesizer.speak("สวัสดี", "th") is True
        assert all(call.args[0] != 'voice' for call in engine.setProperty.call_args_list)

    def test_stop(self):
        engine = make_engine([])
        synthesizer = LocalSpeechSynthesizer(engine_factory=lambda: engine)

        synthesizer.stop()
        engine.stop.assert_not_called()

        synthesizer.is_available()
        synthesizer.stop()
        engine.stop.assert_called_once()
