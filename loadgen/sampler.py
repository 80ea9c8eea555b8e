import random
from typing import Generic, Iterable, Tuple, TypeVar

T = TypeVar("T")


class WeightedSampler(Generic[T]):
    """Discrete distribution over items, P(item) = weight / total weight."""

    def __init__(self, pairs: Iterable[Tuple[T, float]], rng: random.Random = None):
        self.pairs = [(item, float(w)) for item, w in pairs]
        if not self.pairs:
            raise ValueError("sampler needs at least one item")
        for item, w in self.pairs:
            if not w > 0:
                raise ValueError(f"weight for {item!r} must be positive, got {w}")
        self.total = sum(w for _, w in self.pairs)
        self.rng = rng or random.Random()

    def __len__(self):
        return len(self.pairs)

    def sample(self) -> T:
        r = self.rng.random() * self.total
        for item, w in self.pairs:
            if r < w:
                return item
            r -= w
        # float rounding can walk off the end
        return self.pairs[0][0]
