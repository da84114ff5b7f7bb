"""
Alea pseudo-random number stream used by every generation phase.

Based on Johannes Baagøe's Alea algorithm. A stream seeded with the same
string always yields the same sequence, which is what makes map generation
reproducible from a seed.
"""

from typing import MutableSequence, Optional, Sequence, TypeVar

T = TypeVar("T")


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """
    Deterministic Alea generator with the sampling helpers the generator needs.

    The stream is threaded explicitly through the pipeline; there is no
    module-level instance.
    """

    def __init__(self, seed):
        """Initialize with seed string or number (or an iterable of them)."""
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            data = str(data)
            for char in data:
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def randint(self, low: int, high: int) -> int:
        """Return an integer in [low, high], both ends inclusive."""
        if high < low:
            raise ValueError(f"Empty range: {low}..{high}")
        return low + int(self.random() * (high - low + 1))

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        if probability >= 1:
            return True
        if probability <= 0:
            return False
        return self.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Shuffle a list in place (Fisher-Yates) and return it."""
        for i in range(len(items) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            items[i], items[j] = items[j], items[i]
        return items

    def weighted_choice(
        self, items: Sequence[T], weights: Sequence[float]
    ) -> Optional[T]:
        """
        Pick an item with probability proportional to its weight.

        Args:
            items: Candidates
            weights: Non-negative weight per candidate

        Returns:
            The chosen item, or None when no candidate has positive weight
        """
        total = sum(w for w in weights if w > 0)
        if total <= 0:
            return None

        target = self.random() * total
        running = 0.0
        chosen = None
        for item, weight in zip(items, weights):
            if weight <= 0:
                continue
            running += weight
            chosen = item
            if target < running:
                break
        # Float rounding can leave target == total; the last positive item wins
        return chosen

    def noise_seed(self) -> int:
        """Draw a 31-bit integer seed for a noise generator."""
        return int(self.random() * 0x7FFFFFFF)
