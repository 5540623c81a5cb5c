from __future__ import annotations

LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2**32


class SeededGenerator:
    """
    Linear congruential generator yielding floats in [0, 1).

    Identical seeds give identical sequences. A zero seed is replaced by 1.
    """

    def __init__(self, seed: int):
        self._state = int(seed) % LCG_MODULUS or 1

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def __iter__(self):
        return self

    def __next__(self) -> float:
        return self.next()

    def __repr__(self) -> str:
        return f"SeededGenerator(state={self._state})"
