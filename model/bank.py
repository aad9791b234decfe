"""Selecting voices for a bank: filtering out empty patches and random picks."""
from __future__ import annotations
import random
from typing import Iterable

from model.voice import NamedVoice, Voice

BANK_SIZE = 32
INIT_VOICE_NAME = "INIT VOICE"
DEFAULT_VOICE = Voice.default()


def is_default_voice(named: NamedVoice) -> bool:
    return named.voice == DEFAULT_VOICE


def should_be_included(named: NamedVoice) -> bool:
    """False for initialised slots: the factory init name or the default voice."""
    if named.name.strip() == INIT_VOICE_NAME:
        return False
    return not is_default_voice(named)


def pick_random(
    voices: Iterable[NamedVoice],
    count: int = BANK_SIZE,
    rng: random.Random | None = None,
) -> list[NamedVoice]:
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    candidates = [v for v in voices if should_be_included(v)]
    (rng or random.Random()).shuffle(candidates)
    return candidates[:min(count, len(candidates))]
