from collections import namedtuple
from typing import List, Optional

import numpy as np

from hivacsim.exc import SamplingError

Pair = namedtuple("Pair", ["source", "target"])


def pair_index(a: int, b: int) -> int:
    """
    Order independent position of the unordered pair (a, b), a != b, in the
    packed lower triangle of an n x n matrix.
    """
    if a < b:
        a, b = b, a
    return a * (a - 1) // 2 + b


class _PoolSampler:
    """
    Draws items without replacement. The drawn slot is refilled with the
    last live item and the pool shrinks by one, so every draw costs a single
    random number.
    """

    __slots__ = ("_items", "_count", "_rng")

    def __init__(self, items: list, rng):
        self._items = items
        self._count = len(items)
        self._rng = rng

    @property
    def remaining(self) -> int:
        return self._count

    def __len__(self):
        return self._count

    def next(self):
        if self._count == 0:
            return None
        if self._count < 2:
            idx = 0
        else:
            idx = int(self._rng.integers(self._count))
        item = self._items[idx]
        self._count -= 1
        self._items[idx] = self._items[self._count]
        self._items[self._count] = item
        return item

    def __iter__(self):
        while self._count > 0:
            yield self.next()

    def reset(self):
        self._count = len(self._items)


class IndexSampler(_PoolSampler):
    """
    Random permutation of 0..size-1 produced one index at a time.
    """

    __slots__ = ()

    def __init__(self, size: int, rng):
        super().__init__(list(range(size)), rng)


class PersonSampler(_PoolSampler):
    __slots__ = ()

    def __init__(self, persons, rng):
        super().__init__(list(persons), rng)


class PairSampler:
    """
    Samples distinct unordered pairs (source != target) from 0..n-1.

    Emitted pairs are tracked in a flag array indexed by pair_index, draws
    are repeated while they hit the diagonal or an already emitted pair. The
    sample is restricted to a quarter of all possible ordered pairs so the
    rejection loop stays short.

    Parameters
    ----------
    n
        size of the population the indices refer to
    size
        number of pairs to emit
    rng
        numpy Generator
    """

    __slots__ = ("n", "size", "_emitted", "_remaining", "_rng")

    def __init__(self, n: int, size: int, rng):
        self.validate(n, size)
        self.n = n
        self.size = size
        self._emitted = np.zeros(n * (n - 1) // 2, dtype=bool)
        self._remaining = size
        self._rng = rng

    @staticmethod
    def validate(n: int, size: int):
        if n <= 2 or size > n * (n - 1) / 4 or size < 0:
            raise SamplingError(
                "Invalid sample size [size > N(N-1)/4] or dataset size <= 2."
            )

    @property
    def remaining(self) -> int:
        return self._remaining

    def __len__(self):
        return self._remaining

    def next(self) -> Optional[Pair]:
        if self._remaining <= 0:
            return None
        while True:
            source = int(self._rng.integers(self.n))
            target = int(self._rng.integers(self.n))
            if source == target:
                continue
            idx = pair_index(source, target)
            if not self._emitted[idx]:
                break
        self._emitted[idx] = True
        self._remaining -= 1
        return Pair(source, target)

    def __iter__(self):
        while self._remaining > 0:
            yield self.next()


class TriangularArray:
    """
    Symmetric n x n matrix with a zero diagonal stored as its packed lower
    triangle. Reading the diagonal returns 0, writing to it does nothing.
    """

    __slots__ = ("n", "data")

    def __init__(self, n: int, fill=0, dtype=np.int64):
        if n < 1:
            raise ValueError(f"Invalid matrix order {n}")
        self.n = n
        self.data = np.full((n - 1) * (n - 2) // 2 + (n - 1), fill, dtype=dtype)

    def _index(self, key) -> int:
        row, col = key
        if not (0 <= row < self.n and 0 <= col < self.n):
            raise IndexError(f"Index ({row}, {col}) out of range for order {self.n}")
        return pair_index(row, col)

    def __getitem__(self, key):
        row, col = key
        if row == col:
            if not 0 <= row < self.n:
                raise IndexError(f"Index ({row}, {col}) out of range for order {self.n}")
            return 0
        return self.data[self._index(key)]

    def __setitem__(self, key, value):
        row, col = key
        if row == col:
            if not 0 <= row < self.n:
                raise IndexError(f"Index ({row}, {col}) out of range for order {self.n}")
            return
        self.data[self._index(key)] = value

    def __len__(self):
        return self.n

    def to_dense(self) -> np.ndarray:
        dense = np.zeros((self.n, self.n), dtype=self.data.dtype)
        rows, cols = np.tril_indices(self.n, k=-1)
        dense[rows, cols] = self.data[rows * (rows - 1) // 2 + cols]
        dense[cols, rows] = dense[rows, cols]
        return dense
