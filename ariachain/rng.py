"""Deterministic 48-bit linear congruential random number generator."""

from __future__ import annotations

_MULTIPLIER = 0x5DEECE66D
_INCREMENT = 0xB
_MASK48 = (1 << 48) - 1
_MASK64 = (1 << 64) - 1
_ALPHA = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class Random:
    """A small reproducible generator using the classic 48-bit LCG."""

    def __init__(self, seed: int = 0) -> None:
        self.seed = 0
        self.init_seed(seed)

    def init_seed(self, seed: int) -> None:
        """Scramble ``seed`` and use it as the new state."""
        self.seed = (seed ^ _MULTIPLIER) & _MASK48

    def next_bits(self, bits: int) -> int:
        """Advance the state and return its ``bits`` highest bits."""
        self.seed = (self.seed * _MULTIPLIER + _INCREMENT) & _MASK48
        return self.seed >> (48 - bits)

    def next_u64(self) -> int:
        """Return a 64-bit value built from two 32-bit draws."""
        high = self.next_bits(32)
        low = self.next_bits(32)
        return ((high << 32) + low) & _MASK64

    def next_double(self) -> float:
        """Return a float in [0.0, 1.0)."""
        high = self.next_bits(26)
        low = self.next_bits(27)
        return ((high << 27) + low) / float(1 << 53)

    def uniform_dist(self, a: int, b: int) -> int:
        """Return an integer in the inclusive range [a, b]."""
        if a == b:
            return a
        span = (b - a + 1) & _MASK64
        if span == 0:
            raise ValueError("range spans the whole 64-bit space")
        return (self.next_u64() % span + a) & _MASK64

    def rand_str(self, length: int, alphabet: str) -> str:
        """Return ``length`` characters drawn from ``alphabet``."""
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        top = len(alphabet) - 1
        return "".join(alphabet[self.uniform_dist(0, top)] for _ in range(length))

    def a_string(self, min_len: int, max_len: int) -> str:
        """Return an alphanumeric string with a length in [min_len, max_len]."""
        length = self.uniform_dist(min_len, max_len)
        return self.rand_str(length, _ALPHA)

    def non_uniform_distribution(self, a: int, x: int, y: int) -> int:
        """Return a skewed value in [x, y], as used by TPC-C style workloads."""
        first = self.uniform_dist(0, a)
        second = self.uniform_dist(x, y)
        span = (y - x + 1) & _MASK64
        if span == 0:
            raise ValueError("range spans the whole 64-bit space")
        return ((first | second) % span + x) & _MASK64