"""Key generators used by benchmark workloads."""

from __future__ import annotations

import random
import threading
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Tuple, TypeVar

_MASK64 = (1 << 64) - 1

T = TypeVar("T")


class Generator(ABC, Generic[T]):
    """A source of values that remembers the last one it produced."""

    @abstractmethod
    def next(self) -> T:
        """Produce the next value."""

    @abstractmethod
    def last(self) -> T:
        """Return the value produced most recently."""


class UniformGenerator(Generator[int]):
    """Uniform integers in the inclusive range [minimum, maximum]."""

    def __init__(self, minimum: int, maximum: int, seed: int = 0) -> None:
        if minimum > maximum:
            raise ValueError("minimum must not exceed maximum")
        self._minimum = minimum
        self._maximum = maximum
        self._rng = random.Random(seed)
        self._last = seed

    def next(self) -> int:
        self._last = self._rng.randint(self._minimum, self._maximum)
        return self._last

    def last(self) -> int:
        return self._last


class DiscreteGenerator(Generator[T]):
    """Chooses among weighted values."""

    def __init__(self, seed: int = 0) -> None:
        self._rng = random.Random(seed)
        self._values: List[Tuple[T, float]] = []
        self._sum = 0.0
        self._last: Optional[T] = None

    def add_value(self, value: T, weight: float) -> None:
        """Add ``value`` with the relative ``weight``."""
        if not self._values:
            self._last = value
        self._values.append((value, weight))
        self._sum += weight

    def next(self) -> T:
        chooser = self._rng.random()
        for value, weight in self._values:
            share = weight / self._sum
            if chooser < share:
                self._last = value
                return value
            chooser -= share
        raise RuntimeError("no value could be chosen")

    def last(self) -> Optional[T]:
        return self._last


class ConstGenerator(Generator[int]):
    """Always yields the same value."""

    def __init__(self, constant: int) -> None:
        self._constant = constant & _MASK64

    def next(self) -> int:
        return self._constant

    def last(self) -> int:
        return self._constant


class ZipfianGenerator(Generator[int]):
    """Zipf-distributed integers, popular items near the low end."""

    ZIPFIAN_CONST = 0.99
    MAX_NUM_ITEMS = _MASK64 >> 24

    def __init__(
        self,
        minimum: int,
        maximum: int,
        seed: int = 0,
        zipfian_const: float = ZIPFIAN_CONST,
    ) -> None:
        self._num_items = maximum - minimum + 1
        self._check_items(self._num_items)
        self._base = minimum
        self._theta = zipfian_const
        self._rng = random.Random(seed)
        self._zeta_n = 0.0
        self._n_for_zeta = 0
        self._last = 0
        self._zeta2 = self._zeta(0, 2, self._theta, 0.0)
        self._alpha = 1.0 / (1.0 - self._theta)
        self._raise_zeta(self._num_items)
        self._eta = self._compute_eta()
        self.next()

    @classmethod
    def _check_items(cls, num_items: int) -> None:
        if not 2 <= num_items < cls.MAX_NUM_ITEMS:
            raise ValueError(f"number of items out of range: {num_items}")

    @staticmethod
    def _zeta(last_num: int, cur_num: int, theta: float, last_zeta: float) -> float:
        zeta = last_zeta
        for i in range(last_num + 1, cur_num + 1):
            zeta += 1.0 / (i**theta)
        return zeta

    def _raise_zeta(self, num: int) -> None:
        if num < self._n_for_zeta:
            raise ValueError("zeta can only be raised")
        self._zeta_n = self._zeta(self._n_for_zeta, num, self._theta, self._zeta_n)
        self._n_for_zeta = num

    def _compute_eta(self) -> float:
        return (1 - (2.0 / self._num_items) ** (1 - self._theta)) / (
            1 - self._zeta2 / self._zeta_n
        )

    def next(self, num_items: Optional[int] = None) -> int:
        if num_items is None:
            num_items = self._num_items
        self._check_items(num_items)
        if num_items > self._n_for_zeta:
            self._raise_zeta(num_items)
            self._eta = self._compute_eta()
        u = self._rng.random()
        uz = u * self._zeta_n
        if uz < 1.0:
            self._last = 0
        elif uz < 1.0 + 0.5**self._theta:
            self._last = 1
        else:
            scaled = num_items * (self._eta * u - self._eta + 1) ** self._alpha
            self._last = (self._base + int(scaled)) & _MASK64
        return self._last

    def last(self) -> int:
        return self._last


class CounterGenerator(Generator[int]):
    """A thread-safe monotonically increasing counter."""

    def __init__(self, start: int = 0) -> None:
        self._counter = start & _MASK64
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._counter
            self._counter = (self._counter + 1) & _MASK64
        return value

    def last(self) -> int:
        with self._lock:
            return (self._counter - 1) & _MASK64

    def reset(self, start: int) -> None:
        """Restart counting at ``start``."""
        with self._lock:
            self._counter = start & _MASK64


class SkewedLatestGenerator(Generator[int]):
    """Favours values close to the latest value of a counter."""

    def __init__(self, counter: CounterGenerator) -> None:
        self._basis = counter
        num_items = counter.last()
        self._zipfian = ZipfianGenerator(0, num_items - 1, random.getrandbits(31))
        self._last = 0
        self.next()

    def next(self) -> int:
        maximum = self._basis.last()
        self._last = (maximum - self._zipfian.next(maximum)) & _MASK64
        return self._last

    def last(self) -> int:
        return self._last