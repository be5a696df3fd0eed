import dataclasses
import math
import random


@dataclasses.dataclass
class ExponentialBackoff:
    """Delays between attempts to re-establish a watch-stream.

    The delay doubles with each attempt, starting at `base_delay` and never
    exceeding `max_delay`. A random share of up to `jitter` is added so that
    many informers do not reconnect in lockstep. After `max_retries`
    consecutive attempts the backoff is exhausted; None retries forever.
    """

    base_delay: float = 1.0  # 1 Second
    max_delay: float = 30.0  # 30 Seconds
    jitter: float = 0.1
    max_retries: int = 10

    def delay(self, attempt):
        # Cap the exponent, beyond that we are at max_delay anyway.
        backoff = self.base_delay * math.pow(2, min(attempt, 64))
        if backoff > self.max_delay:
            backoff = self.max_delay
        if self.jitter:
            backoff += random.uniform(0, backoff * self.jitter)
        return min(backoff, self.max_delay)

    def exhausted(self, attempt):
        return self.max_retries is not None and attempt >= self.max_retries
