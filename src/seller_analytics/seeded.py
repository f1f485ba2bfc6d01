"""Deterministic pseudo-random values derived from integer seeds.

Every synthesized figure in the engine is a pure function of a composite
integer key.  The generator below is the SplitMix64 output finaliser: it mixes
the 64-bit two's-complement image of the seed and keeps the top 53 bits as the
mantissa of a float in ``[0, 1)``.  Neighbouring seeds (consecutive dates,
the periods of one set) land on uncorrelated values.

The function holds no state and never touches :mod:`random`, so reloading a
view with the same filters reproduces the same numbers.
"""

from __future__ import annotations

_MASK64 = (1 << 64) - 1
_GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_MIX_1 = 0xBF58476D1CE4E5B9
_MIX_2 = 0x94D049BB133111EB
_MANTISSA_SCALE = float(1 << 53)


def _splitmix64(seed: int) -> int:
    z = (int(seed) + _GOLDEN_GAMMA) & _MASK64
    z = ((z ^ (z >> 30)) * _MIX_1) & _MASK64
    z = ((z ^ (z >> 27)) * _MIX_2) & _MASK64
    return z ^ (z >> 31)


def seeded_value(seed: int) -> float:
    """Map an integer seed to a reproducible float in ``[0, 1)``."""
    return (_splitmix64(seed) >> 11) / _MANTISSA_SCALE


def mix_seed(*parts: int) -> int:
    """
    Fold several integers into one 64-bit seed.

    Unlike adding the parts, ``mix_seed(a, b)`` and ``mix_seed(c, d)`` do not
    collide just because ``a + b == c + d``.  Used to split one date seed into
    independent noise streams.
    """
    h = 0
    for part in parts:
        h = _splitmix64(h ^ (int(part) & _MASK64))
    return h


def seeded_between(seed: int, low: float, high: float) -> float:
    """Seeded value scaled into ``[low, high)``."""
    return low + seeded_value(seed) * (high - low)


def string_seed(text: str) -> int:
    """
    Stable 32-bit polynomial hash of *text*.

    The builtin ``hash()`` is salted per interpreter process and would make
    region output change between runs.
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h
