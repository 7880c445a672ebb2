from __future__ import annotations

import argparse
import logging
from pathlib import Path

from kirby.app import run
from kirby.app_config import RunConfig


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="kirby", description="KIRBY app runner")
    parser.add_argument(
        "--smoke",
        action="store_true",
        help="Run briefly offscreen and exit (for quick verification).",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to JSON settings file (default: ~/.kirby/settings.json or $KIRBY_SETTINGS_DIR/settings.json).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Override the character model path from settings.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (DEBUG shows trigger and walk state traces).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    run(RunConfig(smoke=args.smoke, settings_path=args.settings, model=args.model))


if __name__ == "__main__":
    main()
