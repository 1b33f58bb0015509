from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from annomerge.app import merge_dataset_files
from annomerge.config import ConfigurationError, configure_logging, get_merge_config
from annomerge.domain.merge import DanglingReferencePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Merge annotation datasets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge = subparsers.add_parser("merge", help="Merge dataset files into a new file")
    merge.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Dataset files to merge, in merge order",
    )
    merge.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Path of the merged dataset file to create",
    )
    merge.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the output file if it already exists",
    )
    merge.add_argument(
        "--skip-dangling",
        action="store_true",
        help="Drop records with unresolved references instead of aborting",
    )
    merge.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(list(argv))
    if len(args.inputs) < 2:
        parser.error("at least two input datasets are required")
    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        config = get_merge_config()
    except ConfigurationError:
        configure_logging()
        log.exception("Invalid configuration")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else config.log_level)

    policy = (
        DanglingReferencePolicy.SKIP if parsed_args.skip_dangling else config.dangling_references
    )

    try:
        if parsed_args.command == "merge":
            result = merge_dataset_files(
                parsed_args.inputs,
                parsed_args.output,
                policy=policy,
                overwrite=parsed_args.force,
            )
            log.info(
                "Merged %s dataset(s) into %s: %s",
                result.sources,
                parsed_args.output,
                result.statistics.summary(),
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during merge")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
