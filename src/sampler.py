"""Sample-rate gate backed by a private, lock-protected PRNG."""

import random
import threading
import time


class Sampler:
    def __init__(self, seed: int | None = None):
        if seed is None:
            seed = time.time_ns()
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def accept(self, rate: float) -> bool:
        """Decide whether an update with the given sample rate is emitted.

        Rates at or above 1 always pass and rates at or below 0 never do;
        neither consumes a draw. Anything in between takes one uniform
        draw in [0, 1) and passes when the draw is <= rate.
        """
        if rate >= 1:
            return True
        if rate <= 0:
            return False
        with self._lock:
            draw = self._random.random()
        return draw <= rate
