"""CLI entry point for websync: resolves the project and starts a watch session."""

import argparse
import logging
import sys
from pathlib import Path

from websync import __version__
from websync.console import run_console
from websync.controller import WebSyncController
from websync_core.config import (
    CONFIG_FILE_NAME,
    WebSyncConfig,
    create_default_config,
    find_project_root,
    load_config,
)
from websync_core.notifier import ConsoleNotifier

logger = logging.getLogger(__name__)

BANNER = "WebSync: reloads your local website in the browser every time it changes."


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    for noisy in ("watchdog", "urllib3", "websockets"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="websync",
        description="Watches a web project for changes, runs build steps and reloads browser tabs.",
        epilog="The browser must be started with --remote-debugging-port=9222.\n\n"
        "Examples:\n"
        "  websync                          # Watch the project containing the current directory\n"
        "  websync -d ./Web --domain myapp  # Reload tabs under http://myapp\n"
        "  websync --init                   # Write a default websync.toml and exit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("-c", "--config", help=f"Path to config file (default: {CONFIG_FILE_NAME} in the project)")
    parser.add_argument("-d", "--dir", help="Root directory of the project to monitor")
    parser.add_argument("--domain", help="Browser tabs domain to refresh (default: localhost)")
    parser.add_argument("--idle", type=int, help="Milliseconds between tab refreshes (default: 300)")
    parser.add_argument("--port", type=int, help="Browser remote debugging port (default: 9222)")
    parser.add_argument(
        "--sass",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable instant Sass compilation",
    )
    parser.add_argument(
        "--typescript",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable instant TypeScript compilation",
    )
    parser.add_argument("--init", action="store_true", help=f"Create a default {CONFIG_FILE_NAME} and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> WebSyncConfig:
    """Build the session config from the config file (if any) and CLI overrides.

    Raises:
        FileNotFoundError: If an explicit config file is missing
        ValueError: If the config file is invalid
    """
    if args.dir:
        project_dir = Path(args.dir).resolve()
    else:
        cwd = Path.cwd()
        project_dir = find_project_root(cwd) or cwd

    if args.config:
        config = load_config(Path(args.config).resolve())
    elif (project_dir / CONFIG_FILE_NAME).is_file():
        config = load_config(project_dir / CONFIG_FILE_NAME)
    else:
        config = WebSyncConfig(project_dir=project_dir)

    if args.dir:
        config.project_dir = project_dir
    if args.domain is not None:
        config.domain = args.domain
    if args.idle is not None:
        config.idle_ms = args.idle
    if args.port is not None:
        config.debug_port = args.port
    if args.sass is not None:
        config.sass = args.sass
    if args.typescript is not None:
        config.typescript = args.typescript

    return config


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for websync CLI.

    Handles:
    - Argument parsing
    - Optional creation of websync.toml
    - Starting the watch session and console loop
    - Error handling and exit codes
    """
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.init:
            config_path = Path(args.config or Path(args.dir or ".") / CONFIG_FILE_NAME).resolve()
            if create_default_config(config_path):
                print(f"Created default config at: {config_path}")
            else:
                print(f"Config already exists: {config_path}")
            return

        print(BANNER)
        config = resolve_config(args)
        logger.debug(f"Resolved config: {config}")
        controller = WebSyncController(config, notifier=ConsoleNotifier())
        controller.start()
        try:
            run_console(controller)
        finally:
            controller.stop()

    except KeyboardInterrupt:
        # Gracefully handle Ctrl+C
        sys.exit(130)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
