import random
import pytest
from model.bank import is_default_voice, pick_random, should_be_included
from model.voice import NamedVoice, Voice


def _voice(name: str, feedback: int = 1) -> NamedVoice:
    return NamedVoice(name, Voice.default().replace(feedback=feedback))


def test_default_voice_detected():
    assert is_default_voice(NamedVoice("ANYTHING", Voice.default()))
    assert not is_default_voice(_voice("BRASS"))


def test_should_be_included():
    assert should_be_included(_voice("BRASS"))
    assert not should_be_included(_voice("INIT VOICE"))
    assert not should_be_included(NamedVoice("BRASS", Voice.default()))


def test_pick_random_excludes_init_voices():
    voices = [_voice("INIT VOICE"), NamedVoice("X", Voice.default()), _voice("KEEP")]
    assert [v.name for v in pick_random(voices, 32)] == ["KEEP"]


def test_pick_random_caps_count():
    voices = [_voice(f"V{i}") for i in range(40)]
    picked = pick_random(voices, 32, random.Random(1))
    assert len(picked) == 32
    assert len({v.name for v in picked}) == 32


def test_pick_random_is_seeded():
    voices = [_voice(f"V{i}") for i in range(10)]
    a = pick_random(voices, 5, random.Random(7))
    b = pick_random(voices, 5, random.Random(7))
    assert a == b


def test_pick_random_negative_count():
    with pytest.raises(ValueError):
        pick_random([], -1)
