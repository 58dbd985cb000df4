"""partstore CLI.

Entry point: ``partstore`` console script via ``main()``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="partstore",
        description="In-memory partitioned table with legacy-write fallback",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config TOML. Env: PARTSTORE_CONFIG",
    )
    sub = parser.add_subparsers(dest="command")

    # Lazy-import each command module to avoid pulling in Polars for --help.
    from partstore.cli import apply, capabilities

    capabilities.register(sub)
    apply.register(sub)

    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns exit code (0=ok, 1=user error, 2=data error)."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    from partstore.config import load_settings

    args.settings = load_settings(Path(args.config).expanduser() if args.config else None)
    _configure_logging(args.settings.log_level)

    try:
        return handler(args) or 0
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 1
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1


def cli() -> None:  # pragma: no cover
    """Console-script wrapper that calls ``sys.exit``."""
    sys.exit(main())
