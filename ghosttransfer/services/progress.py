"""Cosmetic upload progress.

The value is not derived from transferred bytes. It creeps forward by a
random step every tick and stops at a cap below 100 until the upload call
resolves.
"""

import random

from ghosttransfer.config import settings


class ProgressSimulator:
    def __init__(
        self,
        rng: random.Random | None = None,
        max_increment: float | None = None,
        cap: float | None = None,
    ):
        self.rng = rng or random.Random()
        self.max_increment = settings.progress_max_increment if max_increment is None else max_increment
        self.cap = settings.progress_cap if cap is None else cap

    def advance(self, current: float | None) -> float:
        value = (current or 0.0) + self.rng.random() * self.max_increment
        return min(value, self.cap)
