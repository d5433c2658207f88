# sim/rng.py
from __future__ import annotations

from dataclasses import dataclass
from functools import cache
from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def _crc32_u32(s: str) -> int:
    return _u32(crc32(s.encode("utf-8")))


@dataclass(frozen=True)
class RNGKey:
    """Stream name plus its u32 seeding tag."""

    stream: str
    tag: int

    @classmethod
    def named(cls, stream: str) -> RNGKey:
        return cls(stream=stream, tag=_crc32_u32(stream))


class RNGRegistry:
    """
    Deterministic registry of numpy.random.Generator streams.
    Derivation path: [master_seed, scenario, worker, key.tag]

    Placement draws from the "severity" and "roads" streams.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0, worker: int = 0):
        self.master_seed = _u32(master_seed)
        self.scenario_tag = _crc32_u32(str(scenario))
        self.worker = _u32(worker)

    @cache
    def generator(self, key: RNGKey) -> np.random.Generator:
        """Get (and cache) the PCG64 generator for a key."""
        ss = np.random.SeedSequence(
            entropy=[self.master_seed, self.scenario_tag, self.worker, key.tag]
        )
        return np.random.Generator(np.random.PCG64(ss))

    def stream(self, name: str) -> np.random.Generator:
        return self.generator(RNGKey.named(name))
