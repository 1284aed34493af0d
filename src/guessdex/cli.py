from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from rich.logging import RichHandler

from .core.settings import ClientSettings, load_settings

_COMMANDS = ("play", "tui")


def _add_client_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--base-url", type=str, default=None, help="Game server URL (default: $GUESSDEX_BASE_URL)")
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Per-request timeout; 0 disables it (default: $GUESSDEX_TIMEOUT or 15)",
    )
    p.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    p.add_argument("--no-color", action="store_true", help="Disable colored output (default is colored)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guessdex", description="Play the species elimination game against a server")
    parser.add_argument("command", nargs="?", choices=_COMMANDS, default="play", help="Front end to run")
    _add_client_args(parser)
    return parser


def resolve_settings(args: argparse.Namespace) -> ClientSettings:
    """Environment settings with command-line flags taking precedence."""

    settings = load_settings()
    if args.base_url:
        settings = replace(settings, base_url=args.base_url.rstrip("/"))
    if args.timeout is not None:
        settings = replace(settings, timeout=args.timeout if args.timeout > 0 else None)
    return settings


def _configure_logging(level: str, *, no_color: bool) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, markup=False, rich_tracebacks=not no_color)],
    )


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.log_level, no_color=args.no_color)
    settings = resolve_settings(args)

    if args.command == "tui":
        from .ui.textual_app import run_textual

        run_textual(settings)
        return

    from .play import run_play

    run_play(settings, no_color=args.no_color)


if __name__ == "__main__":
    main()
