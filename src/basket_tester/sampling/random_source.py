from typing import Iterable, Optional, Protocol

import numpy as np

class RandomSource(Protocol):
    def next_uniform(self) -> float:
        """A uniform draw in (0, 1)."""
        ...

    def uniforms(self, n: int) -> np.ndarray:
        ...

class NumpyRandomSource:
    """Uniform stream backed by numpy's default generator."""

    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)

    def next_uniform(self) -> float:
        return float(self.uniforms(1)[0])

    def uniforms(self, n: int) -> np.ndarray:
        # default_rng draws from [0, 1); flip to (0, 1] so log(u) stays finite
        return 1.0 - self.rng.random(n)

class SequenceRandomSource:
    """Replays a fixed list of uniforms, cycling when exhausted. For tests."""

    def __init__(self, values: Iterable[float]):
        self.values = [float(v) for v in values]
        if not self.values:
            raise ValueError("SequenceRandomSource needs at least one value")
        self.pos = 0

    def next_uniform(self) -> float:
        v = self.values[self.pos % len(self.values)]
        self.pos += 1
        return v

    def uniforms(self, n: int) -> np.ndarray:
        return np.array([self.next_uniform() for _ in range(n)])

def spawn_sources(seed: Optional[int], n: int):
    """Independent child streams, one per worker chunk."""
    children = np.random.SeedSequence(seed).spawn(n)
    return [NumpyRandomSource(c) for c in children]

def box_muller(u1, u2):
    """Standard normals from pairs of uniforms (cosine branch only)."""
    u1 = np.maximum(np.asarray(u1, dtype=float), np.finfo(float).tiny)
    u2 = np.asarray(u2, dtype=float)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

def standard_normals(source: RandomSource, n: int) -> np.ndarray:
    if n <= 0:
        return np.zeros(0)
    u = source.uniforms(2 * n)
    return box_muller(u[0::2], u[1::2])
