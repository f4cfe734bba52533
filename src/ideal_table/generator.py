"""Endless stream of cross-group swap candidates."""

import random
from typing import Iterable

from .actions import Position, Swap
from .cache import TableCache
from .exceptions import GeneratorConfigError


class SwapGenerator:
    """Offers every member position once per sweep, paired across groups.

    All positions are flattened and shuffled; candidates are drawn two at a
    time. A second draw landing in the same group as the first is redrawn.
    When the pool cannot supply a partner from another group, a fresh sweep
    is shuffled and drawing continues. Iteration never stops.
    """

    def __init__(self, group_sizes: Iterable[int], rng: random.Random | None = None):
        self.group_sizes = list(group_sizes)
        if len(self.group_sizes) < 2:
            raise GeneratorConfigError(f"Need at least two groups to swap between, got {len(self.group_sizes)}")
        empty = [i for i, size in enumerate(self.group_sizes) if size <= 0]
        if empty:
            raise GeneratorConfigError(f"Groups must be non-empty, empty groups: {empty}")
        self.rng = rng or random.Random()
        self._pool: list[Position] = []
        self.sweeps = 0

    @classmethod
    def for_table(cls, table: TableCache, rng: random.Random | None = None) -> "SwapGenerator":
        return cls(table.group_sizes(), rng)

    def _new_sweep(self) -> None:
        self._pool = [
            Position(gi, mi)
            for gi, size in enumerate(self.group_sizes)
            for mi in range(size)
        ]
        self.rng.shuffle(self._pool)
        self.sweeps += 1

    def _draw_partner(self, first: Position) -> Position | None:
        # Pool is shuffled, so popping from the end is a random draw
        for i in range(len(self._pool) - 1, -1, -1):
            if self._pool[i].group_index != first.group_index:
                return self._pool.pop(i)
        return None

    def __iter__(self) -> "SwapGenerator":
        return self

    def __next__(self) -> Swap:
        while True:
            if not self._pool:
                self._new_sweep()
            first = self._pool.pop()
            second = self._draw_partner(first)
            if second is not None:
                return Swap(first, second)
            # Only same-group positions remain in this sweep
            self._pool.clear()
