"""
Seeded pseudo-random source for jitter and tier shuffles.

Determinism is a property of the generator, not of the caller: the same seed
key always yields the same sequence, on every platform and interpreter run.
SplitMix64 is keyed by a SHA-256 hash of the session id (or the viewer id when
there is no session); Python's built-in hash() is salted per process and is
never used here.
"""

import hashlib
from typing import List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")

_MASK64 = (1 << 64) - 1


class RandomSource(Protocol):
    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def randbelow(self, n: int) -> int:
        """Uniform int in [0, n)."""
        ...


class SplitMix64:
    """SplitMix64 generator (64-bit state, full period)."""

    GOLDEN_GAMMA = 0x9E3779B97F4A7C15

    def __init__(self, seed: int):
        self._state = seed & _MASK64

    def next_u64(self) -> int:
        self._state = (self._state + self.GOLDEN_GAMMA) & _MASK64
        z = self._state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
        return z ^ (z >> 31)

    def random(self) -> float:
        # Top 53 bits -> double in [0, 1)
        return (self.next_u64() >> 11) * (1.0 / (1 << 53))

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        # Rejection sampling keeps the result unbiased
        limit = (1 << 64) - ((1 << 64) % n)
        while True:
            x = self.next_u64()
            if x < limit:
                return x % n


def seed_from_key(key: str) -> int:
    """Stable 64-bit seed from a string key."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def session_seed_key(viewer_id: str, session_id: Optional[str]) -> str:
    """Session id when present, else viewer id."""
    return session_id if session_id else viewer_id


def seeded_random(key: str, purpose: str = "") -> SplitMix64:
    """Generator for one key; purpose separates independent streams (jitter vs shuffle)."""
    return SplitMix64(seed_from_key(f"{purpose}:{key}" if purpose else key))


def fisher_yates(items: List[T], rng: RandomSource) -> None:
    """In-place Fisher-Yates shuffle driven by rng."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randbelow(i + 1)
        items[i], items[j] = items[j], items[i]


def shuffle_within_tiers(items: Sequence[T], tier_size: int, rng: RandomSource) -> List[T]:
    """
    Shuffle each consecutive chunk of tier_size items independently.

    Items never move across tiers, so a strong candidate can only trade places
    with neighbours of similar rank.
    """
    if tier_size <= 1:
        return list(items)
    result: List[T] = []
    for start in range(0, len(items), tier_size):
        tier = list(items[start:start + tier_size])
        fisher_yates(tier, rng)
        result.extend(tier)
    return result
