"""Tests for the sync engine supervisor."""

import threading
from unittest.mock import Mock, call, patch

import pytest

from pydropsync import __version__
from pydropsync.api import DropboxClient
from pydropsync.exceptions import DropboxNetworkError
from pydropsync.output import OutputFormatter
from pydropsync.sync import SupervisorState, SyncEngine
from pydropsync.sync.loop import LoopOutcome


def make_loop(name, run):
    loop = Mock()
    loop.name = name
    loop.run.side_effect = run
    return loop


def wait_for_stop(name):
    def run(stop_event):
        stop_event.wait(5)
        return LoopOutcome(name=name)

    return run


class TestSyncEngine:
    """Test SyncEngine functionality."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock Dropbox client."""
        return Mock(spec=DropboxClient)

    @pytest.fixture
    def mock_output(self):
        """Create a mock output formatter."""
        output = Mock(spec=OutputFormatter)
        output.quiet = True  # Suppress output during tests
        return output

    @pytest.fixture
    def engine(self, mock_client, pair, mock_output):
        return SyncEngine(mock_client, pair, mock_output)

    @pytest.fixture
    def patched(self):
        """Patch the batch and loop classes used by the engine."""
        with patch("pydropsync.sync.engine.BatchInitializer") as batch_class, patch(
            "pydropsync.sync.engine.PushLoop"
        ) as push_class, patch("pydropsync.sync.engine.PullLoop") as pull_class:
            batch_class.return_value.run.return_value = 3
            yield batch_class, push_class, pull_class

    def test_create_sync_engine(self, mock_client, pair, mock_output):
        """Test creating a sync engine."""
        engine = SyncEngine(mock_client, pair, mock_output)
        assert engine.client == mock_client
        assert engine.output == mock_output
        assert engine.operations is not None
        assert engine.state == SupervisorState.INITIALIZING
        assert engine.mapper.root().local == pair.local

    def test_batch_uses_pair_settings(self, engine, patched, pair):
        batch_class, push_class, pull_class = patched
        push_class.return_value = make_loop(
            "push", lambda ev: LoopOutcome(name="push", error=OSError("x"))
        )
        pull_class.return_value = make_loop("pull", wait_for_stop("pull"))

        engine.run_cycle()

        batch_class.assert_called_once_with(
            engine.client,
            engine.operations,
            engine.mapper,
            max_workers=pair.max_workers,
            jitter=pair.batch_jitter,
            page_pause=pair.batch_page_pause,
        )
        push_class.assert_called_once_with(
            engine.operations, engine.mapper, interval=pair.push_interval
        )

    def test_first_loop_to_end_ends_the_cycle(self, engine, patched):
        """A failing loop stops its sibling and ends the cycle."""
        _, push_class, pull_class = patched
        error = DropboxNetworkError("offline")
        push_class.return_value = make_loop(
            "push", lambda ev: LoopOutcome(name="push", error=error)
        )
        pull = make_loop("pull", wait_for_stop("pull"))
        pull_class.return_value = pull

        result = engine.run_cycle()

        assert result.transferred == 3
        assert result.outcome.name == "push"
        assert result.outcome.error is error
        assert result.error is None
        assert engine.state == SupervisorState.RUNNING
        cycle_stop = pull.run.call_args.args[0]
        assert cycle_stop.is_set()

    def test_batch_failure_skips_loops(self, engine, patched):
        batch_class, push_class, pull_class = patched
        batch_class.return_value.run.side_effect = DropboxNetworkError("offline")

        result = engine.run_cycle()

        assert isinstance(result.error, DropboxNetworkError)
        assert result.outcome is None
        assert engine.state == SupervisorState.INITIALIZING
        push_class.assert_not_called()
        pull_class.assert_not_called()

    def test_engine_stop_reaches_loops(self, engine, patched):
        _, push_class, pull_class = patched
        push_class.return_value = make_loop("push", wait_for_stop("push"))
        pull_class.return_value = make_loop("pull", wait_for_stop("pull"))
        stop_event = threading.Event()
        timer = threading.Timer(0.2, stop_event.set)
        timer.start()

        try:
            result = engine.run_cycle(stop_event)
        finally:
            timer.cancel()

        assert not result.outcome.failed

    def test_run_forever_restarts_after_failure(self, engine, patched, mock_output):
        """Every ended cycle is followed by a backoff and a fresh cycle."""
        batch_class, _, _ = patched
        stop_event = threading.Event()
        attempts = []

        def failing_batch():
            attempts.append(1)
            if len(attempts) == 2:
                stop_event.set()
            raise DropboxNetworkError("offline")

        batch_class.return_value.run.side_effect = failing_batch

        engine.run_forever(stop_event)

        assert engine.cycles == 2
        assert batch_class.call_count == 2
        assert engine.state == SupervisorState.STOPPED

    def test_run_forever_already_stopped(self, engine, patched, mock_output):
        batch_class, _, _ = patched
        stop_event = threading.Event()
        stop_event.set()

        engine.run_forever(stop_event)

        assert engine.cycles == 0
        batch_class.assert_not_called()
        assert engine.state == SupervisorState.STOPPED

    def test_banner(self, engine, mock_output, pair):
        engine._display_banner()

        mock_output.info.assert_has_calls(
            [
                call("Starting sync..."),
                call(f" > Version...  {__version__}"),
                call(" > Remote...   /Mirror"),
                call(f" > Local...    {pair.local}"),
            ]
        )
