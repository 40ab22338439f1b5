from __future__ import annotations

from typing import Dict, Tuple

DEFAULT_SIZE = 8_388_593  # prime


def has_factor(n: int, lo: int, hi: int) -> bool:
    """True if n has a divisor in [lo, hi)."""
    while lo < hi:
        if lo * lo > n:
            return False
        if n % lo == 0:
            return True
        lo += 1
    return False


def next_prime(n: int) -> int:
    """Smallest prime >= n."""
    n = max(n, 2)
    while has_factor(n, 2, n):
        n += 1
    return n


class TranspositionTable:
    """Fixed-size hash map from position key to a small non-zero value.

    One entry per bucket: a put on an occupied bucket overwrites it. A value
    of 0 means "no data", so 0 must never be stored.
    """

    def __init__(self, size: int = DEFAULT_SIZE) -> None:
        if size < 1:
            raise ValueError("table size must be positive")
        self.size = size
        self.store: Dict[int, Tuple[int, int]] = {}
        self.stats = {"lookups": 0, "hits": 0, "stores": 0, "overwrites": 0}

    def _index(self, key: int) -> int:
        return key % self.size

    def put(self, key: int, value: int) -> None:
        i = self._index(key)
        self.stats["stores"] += 1
        e = self.store.get(i)
        if e is not None and e[0] != key:
            self.stats["overwrites"] += 1
        self.store[i] = (key, value)

    def get(self, key: int) -> int:
        self.stats["lookups"] += 1
        e = self.store.get(self._index(key))
        if e is not None and e[0] == key:
            self.stats["hits"] += 1
            return e[1]
        return 0

    def reset(self) -> None:
        self.store.clear()

    def __len__(self) -> int:
        return len(self.store)
