"""Base class for the long-running reconciliation loops.

A loop runs ``step()`` repeatedly until it is asked to stop or a step
raises. Either way ``run()`` returns a :class:`LoopOutcome` instead of
letting the exception escape, and the supervisor decides what to do next.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class LoopOutcome:
    """How a loop ended."""

    name: str
    """Loop that ended ("push", "pull")"""

    error: Optional[BaseException] = None
    """Exception that ended the loop, None if it was asked to stop"""

    steps: int = 0
    """Number of completed steps"""

    elapsed_time: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


class SyncLoop(ABC):
    """A loop that repeats one reconciliation step until stopped or failed."""

    name = "loop"

    def start(self) -> None:
        """Prepare state before the first step (fresh every run)."""

    @abstractmethod
    def step(self, stop_event: threading.Event) -> Any:
        """Run one iteration.

        Args:
            stop_event: Set when the loop should wind down; long waits
                inside the step should use it to stay interruptible
        """

    def pause(self, stop_event: threading.Event) -> None:
        """Wait between two steps."""

    def run(self, stop_event: threading.Event) -> LoopOutcome:
        """Run until ``stop_event`` is set or a step fails.

        Args:
            stop_event: Event that ends the loop after the current step

        Returns:
            LoopOutcome describing why the loop ended
        """
        start_time = time.time()
        steps = 0
        logger.debug("%s loop started", self.name)
        try:
            self.start()
            while not stop_event.is_set():
                self.step(stop_event)
                steps += 1
                self.pause(stop_event)
        except Exception as e:
            logger.warning("%s loop failed after %d step(s): %s", self.name, steps, e)
            return LoopOutcome(
                name=self.name,
                error=e,
                steps=steps,
                elapsed_time=time.time() - start_time,
            )

        logger.debug("%s loop stopped after %d step(s)", self.name, steps)
        return LoopOutcome(
            name=self.name, steps=steps, elapsed_time=time.time() - start_time
        )
