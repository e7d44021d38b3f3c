"""CLI interface for pydropsync."""

import logging
import threading
from pathlib import Path
from typing import Any

import click

from . import __version__
from .api import DropboxClient
from .config import config
from .exceptions import DropboxAPIError, DropboxConfigError
from .output import OutputFormatter
from .sync import SyncEngine, SyncPair
from .utils import (
    DEFAULT_BATCH_WORKERS,
    DEFAULT_LONGPOLL_TIMEOUT,
    DEFAULT_PUSH_INTERVAL,
    DEFAULT_RESTART_DELAY,
)

logger = logging.getLogger(__name__)

# Placeholder token argument meaning "use the configured token"
CONFIGURED_TOKEN = "-"


def configure_logging(verbose: bool) -> None:
    """Configure logging based on the verbose flag."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        # Enable debug logging for pydropsync modules
        logging.getLogger("pydropsync").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)


def resolve_local_root(local_root: str) -> Path:
    """Create the local root if needed and return it as an absolute path.

    Raises:
        DropboxConfigError: If the path exists but is not a directory
    """
    path = Path(local_root).expanduser().resolve()
    if path.exists() and not path.is_dir():
        raise DropboxConfigError(f"Local root is not a directory: {path}")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DropboxConfigError(f"Cannot create local root {path}: {e}") from e
    return path


@click.command()
@click.argument("access_token")
@click.argument("local_root", type=click.Path(file_okay=False))
@click.argument("remote_root")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--push-interval",
    type=click.FloatRange(min=0.0),
    default=DEFAULT_PUSH_INTERVAL,
    show_default=True,
    help="Seconds between two scans of the local tree",
)
@click.option(
    "--restart-delay",
    type=click.FloatRange(min=0.0),
    default=DEFAULT_RESTART_DELAY,
    show_default=True,
    help="Seconds to wait before restarting after a loop ends",
)
@click.option(
    "--longpoll-timeout",
    type=click.IntRange(min=30, max=480),
    default=DEFAULT_LONGPOLL_TIMEOUT,
    show_default=True,
    help="Server-side wait of each change-feed poll in seconds",
)
@click.option(
    "--max-workers",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_BATCH_WORKERS,
    show_default=True,
    help="Number of parallel downloads during the initial pull",
)
@click.option(
    "--save-token",
    is_flag=True,
    help="Store ACCESS_TOKEN in the config file for later runs",
)
@click.version_option(version=__version__, prog_name="pydropsync")
@click.pass_context
def main(
    ctx: Any,
    access_token: str,
    local_root: str,
    remote_root: str,
    quiet: bool,
    verbose: bool,
    push_interval: float,
    restart_delay: float,
    longpoll_timeout: int,
    max_workers: int,
    save_token: bool,
) -> None:
    """Keep LOCAL_ROOT mirrored with the Dropbox folder REMOTE_ROOT.

    Pass "-" as ACCESS_TOKEN to use the DROPBOX_ACCESS_TOKEN environment
    variable or the token stored in the config file. Runs until interrupted.

    Examples:

        pydropsync sl.XXXX ./mirror /Documents

        DROPBOX_ACCESS_TOKEN=sl.XXXX pydropsync - ./mirror /
    """
    out = OutputFormatter(quiet=quiet)
    configure_logging(verbose)

    if access_token == CONFIGURED_TOKEN:
        if save_token:
            raise click.UsageError(
                "--save-token needs an explicit ACCESS_TOKEN, not '-'", ctx=ctx
            )
        if not config.is_configured():
            out.error(
                "No access token configured. "
                f"Set DROPBOX_ACCESS_TOKEN or edit {config.get_config_path()}"
            )
            ctx.exit(1)
        token = config.api_key
    else:
        token = access_token
        if save_token:
            config.save_api_key(token)
            out.success(f"Access token saved to {config.get_config_path()}")

    try:
        pair = SyncPair(
            local=resolve_local_root(local_root),
            remote=remote_root,
            push_interval=push_interval,
            restart_delay=restart_delay,
            longpoll_timeout=longpoll_timeout,
            max_workers=max_workers,
        )
        client = DropboxClient(api_key=token)
    except (ValueError, DropboxConfigError) as e:
        out.error(str(e))
        ctx.exit(1)

    stop_event = threading.Event()
    engine = SyncEngine(client, pair, output=out)
    try:
        engine.run_forever(stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        out.warning("Sync stopped by user")
    except DropboxAPIError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
