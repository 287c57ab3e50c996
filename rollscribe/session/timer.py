"""Single-shot silence timer with generation-based invalidation."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SilenceTimer:
    """Countdown that fires once after a quiet interval.

    Every `reset` or `cancel` bumps the generation, so an expiry that races a
    reset is recognised as stale by `is_current`.
    """

    def __init__(self,
                 timeout_seconds: float,
                 callback: Callable[[int], None],
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        """Initialize silence timer.

        Args:
            timeout_seconds: Quiet interval before the callback fires
            callback: Invoked with the generation of the expired countdown
            timer_factory: Builds the underlying single-shot timer; same
                signature as threading.Timer
        """
        self.timeout_seconds = timeout_seconds
        self.callback = callback
        self.timer_factory = timer_factory
        self.lock = threading.Lock()
        self.generation = 0
        self._timer: Optional[threading.Timer] = None

    @property
    def is_armed(self) -> bool:
        with self.lock:
            return self._timer is not None

    def reset(self) -> int:
        """Restart the countdown, invalidating any earlier one."""
        with self.lock:
            self._cancel_locked()
            self.generation += 1
            generation = self.generation
            timer = self.timer_factory(self.timeout_seconds, self._fire, args=(generation,))
            timer.daemon = True
            timer.name = f"SilenceTimer-{generation}"
            self._timer = timer
        timer.start()
        return generation

    def cancel(self) -> None:
        with self.lock:
            self._cancel_locked()
            self.generation += 1

    def is_current(self, generation: int) -> bool:
        with self.lock:
            return generation == self.generation and self._timer is not None

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        if not self.is_current(generation):
            logger.debug(f"Ignoring stale silence timer generation {generation}")
            return
        logger.debug(f"Silence timer expired after {self.timeout_seconds}s")
        self.callback(generation)
