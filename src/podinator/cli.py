"""
Command-line interface for podinator.

The chosen subcommand runs on a worker thread while the main thread waits
for it and handles signals. The first SIGINT/SIGTERM asks the worker to stop
between downloads. A second one abandons the worker. Either way the current
state of the store is saved before exiting.
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

from .config import Config
from .database import PodcastStore
from .errors import (
    PodinatorError,
    SerializationError,
    StoreUnavailableError,
)
from .utils import format_podcast

EXIT_INTERRUPTED = 130
MUTATING_COMMANDS = ("add", "download", "episodes")


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with the add/list/download/episodes subcommands."""
    parser = argparse.ArgumentParser(
        prog="podinator",
        description="Keep a local archive of your podcasts",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to a .env file with PODINATOR_* settings",
        default=None,
    )
    parser.add_argument(
        "-d", "--dbpath", help="Path to the database file", default=None
    )
    parser.add_argument(
        "-p",
        "--podpath",
        help="Directory where podcast episodes are stored",
        default=None,
    )
    parser.add_argument(
        "-l",
        "--log-level",
        help="Set log level (DEBUG, INFO, WARNING, ERROR)",
        default=None,
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Add a podcast")
    add_parser.add_argument("url", help="URL of the podcast RSS feed")

    subparsers.add_parser("list", help="List all podcasts")
    subparsers.add_parser(
        "download",
        help="Download all episodes that haven't been downloaded yet",
    )

    episodes_parser = subparsers.add_parser(
        "episodes", help="Manage episodes"
    )
    episodes_sub = episodes_parser.add_subparsers(
        dest="episodes_command", required=True
    )
    episodes_sub.add_parser("clear", help="Delete all episodes")
    return parser


def load_store(db_path: str) -> PodcastStore:
    """Load the store, starting fresh if the file doesn't exist yet."""
    try:
        return PodcastStore.load(db_path)
    except StoreUnavailableError:
        logging.getLogger(__name__).info(
            "No database at %s, starting a new one", db_path
        )
        return PodcastStore()


def run_command(
    args: argparse.Namespace,
    store: PodcastStore,
    config: Config,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Run one subcommand against the store and save if it mutates."""
    if args.command == "add":
        store.add(args.url)
        store.save(config.DB_PATH)
        print(f"Added {args.url}")

    elif args.command == "list":
        if not len(store):
            print("No podcasts yet. Add one with: podinator add <url>")
            return
        for podcast in store:
            print(format_podcast(podcast))

    elif args.command == "download":
        try:
            store.refresh_all(config.PODCAST_PATH, stop_event=stop_event)
        except PodinatorError:
            _save_after_failure(store, config.DB_PATH)
            raise
        store.save(config.DB_PATH)

    elif args.command == "episodes" and args.episodes_command == "clear":
        try:
            store.clear_all_episodes(config.PODCAST_PATH)
        except PodinatorError:
            _save_after_failure(store, config.DB_PATH)
            raise
        store.save(config.DB_PATH)
        print("All episodes cleared")


def format_error_chain(error: BaseException) -> List[str]:
    """`Error:` line followed by one `Caused by:` line per cause."""
    lines = [f"Error: {error}"]
    seen = {id(error)}
    cause = error.__cause__ or error.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"Caused by: {cause}")
        cause = cause.__cause__ or cause.__context__
    return lines


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for podinator."""
    args = build_parser().parse_args(argv)

    try:
        config = Config(
            env_file=args.config,
            db_path=args.dbpath,
            podcast_path=args.podpath,
            log_level=args.log_level,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        store = load_store(config.DB_PATH)
    except SerializationError as e:
        _print_error(e)
        sys.exit(1)
    if args.no_progress:
        store.archiver.show_progress = False

    stop_event = threading.Event()
    outcome: Dict[str, Any] = {}

    def _work() -> None:
        try:
            run_command(args, store, config, stop_event)
        except Exception as e:  # pylint: disable=broad-except
            outcome["error"] = e

    previous_handlers = _install_signal_handlers(stop_event)
    worker = threading.Thread(target=_work, name="podinator-worker")
    worker.daemon = True
    try:
        worker.start()
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        print("\nInterrupted, saving and exiting", file=sys.stderr)
        if args.command in MUTATING_COMMANDS:
            _save_after_failure(store.snapshot(), config.DB_PATH)
        sys.exit(EXIT_INTERRUPTED)
    finally:
        _restore_signal_handlers(previous_handlers)

    if "error" in outcome:
        _print_error(outcome["error"])
        sys.exit(1)
    if stop_event.is_set():
        print("Stopped before finishing", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)


def _install_signal_handlers(
    stop_event: threading.Event,
) -> Dict[int, Any]:
    """First signal requests a stop, the second interrupts the main thread."""

    def _handle(signum: int, _frame: Any) -> None:
        if stop_event.is_set():
            raise KeyboardInterrupt
        print(
            f"\nReceived signal {signal.Signals(signum).name}, "
            "finishing current download (repeat to abort)",
            file=sys.stderr,
        )
        stop_event.set()

    previous: Dict[int, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handle)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _save_after_failure(store: PodcastStore, db_path: str) -> None:
    """Best-effort save so completed downloads stay recorded."""
    try:
        store.save(db_path)
    except PodinatorError as e:
        logging.getLogger(__name__).error(
            "Could not save database to %s: %s", db_path, e
        )


def _print_error(error: BaseException) -> None:
    for line in format_error_chain(error):
        print(line, file=sys.stderr)


if __name__ == "__main__":
    main()
