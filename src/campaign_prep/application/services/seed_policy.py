from __future__ import annotations

import math
import random
from typing import Callable, Union

Rng = Callable[[], float]
Seed = Union[str, int, float]

_MASK_32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_MULBERRY_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296


def _imul(left: int, right: int) -> int:
    return (left * right) & _MASK_32


def seed_to_text(seed: Seed) -> str:
    if isinstance(seed, bool):
        return "true" if seed else "false"
    if isinstance(seed, float):
        if not math.isfinite(seed):
            raise ValueError("Seed must be a finite number")
        if seed.is_integer():
            return str(int(seed))
        return repr(seed)
    return str(seed)


def hash_seed(seed: Seed) -> int:
    """32-bit FNV-1a over the UTF-16 code units of the seed text."""
    encoded = seed_to_text(seed).encode("utf-16-le")
    value = _FNV_OFFSET
    for index in range(0, len(encoded), 2):
        value ^= encoded[index] | (encoded[index + 1] << 8)
        value = _imul(value, _FNV_PRIME)
    return value


def create_seeded_rng(seed: Seed) -> Rng:
    """Return a mulberry32 float source in [0, 1); same seed, same sequence."""
    state = hash_seed(seed)

    def _next() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _MASK_32
        t = _imul(state ^ (state >> 15), 1 | state)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK_32) ^ t
        return ((t ^ (t >> 14)) & _MASK_32) / _TWO_POW_32

    return _next


def resolve_rng(seed: Seed | None) -> tuple[Rng, bool]:
    """Seeded generator when a seed is given, platform randomness otherwise.

    The flag tells the caller whether the draws are reproducible.
    """
    if seed is None:
        return random.random, False
    return create_seeded_rng(seed), True


def roll_die(sides: int, rng: Rng) -> int:
    return math.floor(rng() * sides) + 1


def pick_index(length: int, rng: Rng) -> int:
    return math.floor(rng() * length)
