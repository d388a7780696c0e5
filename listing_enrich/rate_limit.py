"""
Pacing between owner lookups, plus per-lookup duration logging
"""
import time
from typing import Callable


def timed(logger, step: str) -> Callable[[str], float]:
    """
    Start a stopwatch for `step`. The returned callback logs
    "TIMING: <step> <seconds>s <extra>" and returns the elapsed seconds.
    """
    started = time.perf_counter()

    def done(extra: str = "") -> float:
        elapsed = time.perf_counter() - started
        if logger:
            logger.info(f"TIMING: {step} {elapsed:.2f}s {extra}".rstrip())
        return elapsed

    return done


class FixedDelayRateLimiter:
    """
    Sleeps a fixed delay on every pause() call.

    The lookup service's rate limit is per-process, so one limiter per run is
    enough; there is no shared state across processes.
    """
    def __init__(self, delay_s: float = 1.0, sleep: Callable[[float], None] = time.sleep):
        if delay_s < 0:
            raise ValueError(f"delay_s must be >= 0, got {delay_s}")
        self.delay_s = float(delay_s)
        self._sleep = sleep
        self.pauses = 0

    def pause(self) -> None:
        if self.delay_s <= 0:
            return
        self._sleep(self.delay_s)
        self.pauses += 1
