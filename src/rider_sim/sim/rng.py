# sim/rng.py
from __future__ import annotations

from functools import cache
from zlib import crc32

import numpy as np


def stream_key(name: str, *ids: str | int) -> tuple[int, ...]:
    """u32 entropy words for a named stream, optionally keyed by rider ids."""
    return tuple(crc32(str(part).encode("utf-8")) for part in (name, *ids))


class RNGRegistry:
    """
    Named numpy generators seeded from [master_seed, scenario, *stream_key].
    A rider's substream depends only on its id, never on spawn order.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0):
        self.master_seed = master_seed & 0xFFFFFFFF
        self.scenario_tag = crc32(str(scenario).encode("utf-8"))

    @cache
    def _generator(self, key: tuple[int, ...]) -> np.random.Generator:
        ss = np.random.SeedSequence([self.master_seed, self.scenario_tag, *key])
        return np.random.Generator(np.random.PCG64(ss))

    def stream(self, name: str) -> np.random.Generator:
        return self._generator(stream_key(name))

    def substream(self, name: str, *ids: str | int) -> np.random.Generator:
        return self._generator(stream_key(name, *ids))
