"""Supervisor that runs the sync loops and restarts them on failure.

A cycle runs the batch pull to completion, then the push and pull loops
side by side until one of them ends. Whatever the reason, the engine backs
off for a fixed delay and starts a fresh cycle with brand-new state. The
eligibility checks keep a repeated reconciliation from transferring
anything twice.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from .. import __version__
from ..output import OutputFormatter
from .batch import BatchInitializer
from .comparator import FileComparator
from .location import PathMapper
from .loop import LoopOutcome, SyncLoop
from .operations import SyncOperations
from .pair import SyncPair
from .pull import PullLoop
from .push import PushLoop
from .remote import RemoteStore

logger = logging.getLogger(__name__)

# How long to wait for the surviving loop to notice the stop request
LOOP_JOIN_TIMEOUT: float = 2.0


class SupervisorState(str, Enum):
    """Lifecycle states of the sync engine."""

    INITIALIZING = "initializing"
    """Batch pull in progress"""

    RUNNING = "running"
    """Push and pull loops active"""

    BACKING_OFF = "backing_off"
    """Waiting before the next cycle"""

    STOPPED = "stopped"
    """Engine asked to stop"""


@dataclass
class CycleResult:
    """Result of one supervisor cycle."""

    transferred: int = 0
    """Files downloaded by the batch pull"""

    outcome: Optional[LoopOutcome] = None
    """How the first loop to end ended (None if the batch pull failed)"""

    error: Optional[BaseException] = None
    """Batch pull failure, if any"""


class SyncEngine:
    """Core sync engine that keeps a sync pair mirrored indefinitely."""

    def __init__(
        self,
        client: RemoteStore,
        pair: SyncPair,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Remote store client (shared by all loops)
            pair: Sync pair to keep mirrored
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.pair = pair
        self.output = output or OutputFormatter()
        self.mapper = PathMapper(pair)
        self.operations = SyncOperations(client, FileComparator(client))
        self.state = SupervisorState.INITIALIZING
        self.cycles = 0

    def _create_batch(self) -> BatchInitializer:
        return BatchInitializer(
            self.client,
            self.operations,
            self.mapper,
            max_workers=self.pair.max_workers,
            jitter=self.pair.batch_jitter,
            page_pause=self.pair.batch_page_pause,
        )

    def _create_loops(self) -> list[SyncLoop]:
        return [
            PushLoop(self.operations, self.mapper, interval=self.pair.push_interval),
            PullLoop(
                self.client,
                self.operations,
                self.mapper,
                longpoll_timeout=self.pair.longpoll_timeout,
            ),
        ]

    def _run_batch(self) -> int:
        batch = self._create_batch()
        if self.output.quiet:
            return batch.run()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task("Pulling remote tree...", total=None)
            transferred = batch.run()
            progress.update(task, description=f"Pulled {transferred} file(s)")
        return transferred

    def run_cycle(self, stop_event: Optional[threading.Event] = None) -> CycleResult:
        """Run one batch pull followed by the concurrent loops.

        Args:
            stop_event: Engine-wide stop request; also ends the loops

        Returns:
            CycleResult describing how the cycle ended
        """
        stop_event = stop_event or threading.Event()
        self.cycles += 1

        self.state = SupervisorState.INITIALIZING
        batch_start = time.time()
        try:
            transferred = self._run_batch()
        except Exception as e:
            logger.exception("Batch pull failed")
            return CycleResult(error=e)
        logger.info(
            "Batch pull transferred %d file(s) in %.2fs",
            transferred,
            time.time() - batch_start,
        )
        if not self.output.quiet:
            self.output.info(f" > Batch...    {transferred}")

        if stop_event.is_set():
            return CycleResult(transferred=transferred)

        self.state = SupervisorState.RUNNING
        if not self.output.quiet:
            self.output.info("Monitoring for changes...")
        outcome = self._run_loops(stop_event)
        return CycleResult(transferred=transferred, outcome=outcome)

    def _run_loops(self, stop_event: threading.Event) -> LoopOutcome:
        """Run push and pull concurrently until the first one ends."""
        cycle_stop = threading.Event()
        outcomes: "queue.Queue[LoopOutcome]" = queue.Queue()

        def run_loop(loop: SyncLoop) -> None:
            outcomes.put(loop.run(cycle_stop))

        threads = []
        for loop in self._create_loops():
            thread = threading.Thread(
                target=run_loop, args=(loop,), name=f"pydropsync-{loop.name}", daemon=True
            )
            thread.start()
            threads.append(thread)

        # Relay an engine-wide stop to this cycle's loops
        while True:
            try:
                outcome = outcomes.get(timeout=0.5)
                break
            except queue.Empty:
                if stop_event.is_set():
                    cycle_stop.set()

        cycle_stop.set()
        for thread in threads:
            thread.join(LOOP_JOIN_TIMEOUT)
            if thread.is_alive():
                # Typically the pull loop blocked in a long poll; it exits
                # on its own once the poll returns
                logger.debug(f"{thread.name} still busy, leaving it behind")

        if outcome.failed:
            logger.error(
                "%s loop failed: %s", outcome.name, outcome.error, exc_info=outcome.error
            )
        else:
            logger.info("%s loop stopped", outcome.name)
        return outcome

    def _display_banner(self) -> None:
        root = self.mapper.root()
        self.output.info("Starting sync...")
        self.output.info(f" > Version...  {__version__}")
        self.output.info(f" > Remote...   {root.remote or '/'}")
        self.output.info(f" > Local...    {root.local}")

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Keep the pair mirrored until ``stop_event`` is set.

        Args:
            stop_event: Set from another thread to stop the engine
        """
        stop_event = stop_event or threading.Event()
        self._display_banner()

        while not stop_event.is_set():
            self.run_cycle(stop_event)
            if stop_event.is_set():
                break

            self.state = SupervisorState.BACKING_OFF
            if not self.output.quiet:
                self.output.print("")
                self.output.warning("Backing off...")
            logger.info("Restarting in %.1fs", self.pair.restart_delay)
            if stop_event.wait(self.pair.restart_delay):
                break
            if not self.output.quiet:
                self.output.info("Restarting...")

        self.state = SupervisorState.STOPPED
