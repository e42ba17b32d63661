"""Fixed-rate cycle scheduler that never lets two cycles overlap."""
import logging
import threading
import time
from typing import Callable

from buyback_bot.core.utils import add_jitter


logger = logging.getLogger("buyback_bot.scheduler")


class CycleScheduler:
    """
    Fires a cycle every ``interval_seconds`` measured from the previous fire
    time, not from the previous cycle's end.

    trigger() refuses to start a cycle while another one is still in flight.
    """

    def __init__(
        self,
        interval_seconds: float,
        jitter_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval_seconds = interval_seconds
        self.jitter_seconds = jitter_seconds
        self._sleep = sleep
        self._clock = clock
        self._in_flight = threading.Lock()
        self.fired = 0
        self.refused = 0

    @property
    def is_running(self) -> bool:
        return self._in_flight.locked()

    def trigger(self, cycle: Callable[[], None]) -> bool:
        """Run one cycle unless one is already in flight. Returns True if it ran."""
        if not self._in_flight.acquire(blocking=False):
            self.refused += 1
            logger.warning("⏭️ Previous cycle still running, skipping this trigger")
            return False
        try:
            self.fired += 1
            cycle()
        except Exception as e:
            logger.error(f"❌ Cycle raised: {e}", exc_info=True)
        finally:
            self._in_flight.release()
        return True

    def run(
        self,
        cycle: Callable[[], None],
        keep_running: Callable[[], bool],
        run_immediately: bool = True,
    ) -> None:
        if not run_immediately:
            self._sleep(self.interval_seconds)
        next_fire = self._clock()
        while keep_running():
            self.trigger(cycle)
            if not keep_running():
                break

            next_fire += add_jitter(self.interval_seconds, self.jitter_seconds)
            delay = next_fire - self._clock()
            if delay < 0:
                # Cycle overran the period: start the next one now and re-anchor
                next_fire = self._clock()
                delay = 0.0
            logger.debug(f"💤 Sleeping {delay:.1f}s until next cycle")
            self._sleep(delay)
