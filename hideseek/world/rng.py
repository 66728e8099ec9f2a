"""
Per-episode random streams.

Every world draws its scene from a stream split off the single global seed
by (episode counter, world index), so any episode can be regenerated from
those three numbers alone.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class RandKey:
    """Split parameters identifying one episode's stream."""

    a: int
    b: int

    def as_array(self) -> np.ndarray:
        return np.array([self.a, self.b], dtype=np.int32)


class RandomStream:
    """
    Deterministic generator for one world episode.

    Args:
        seed: Global configured seed
        key: (episode, world) split parameters
    """

    def __init__(self, seed: int, key: RandKey):
        self.seed = seed
        self.key = key
        seq = np.random.SeedSequence(entropy=seed, spawn_key=(key.a, key.b))
        self._gen = np.random.Generator(np.random.PCG64(seq))

    def sample_uniform(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._gen.random())

    def sample_i32(self, low: int, high: int) -> int:
        """Uniform integer in [low, high)."""
        return int(self._gen.integers(low, high))

    def sample_inclusive(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]."""
        return self.sample_i32(low, high + 1)
