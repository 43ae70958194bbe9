"""
Treasury Snapshot - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line entry point.

- Loads environment (.env supported via python-dotenv)
- Configures logging
- Runs one snapshot and writes artifacts only on full success
- Exit code 0 on success, 1 on any failure, 130 on interrupt

============================================================
USAGE
============================================================
treasury-snapshot
treasury-snapshot --output-dir public/data --log-format text
python -m treasury_snapshot.cli --dry-run --sequential

============================================================
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from treasury_snapshot import __version__
from treasury_snapshot.config import SnapshotConfig
from treasury_snapshot.exceptions import SnapshotError
from treasury_snapshot.orchestrator import Orchestrator
from treasury_snapshot.writer import ArtifactWriter


logger = logging.getLogger("treasury_snapshot")


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up process-wide logging.

    Args:
        level: Log level name
        log_format: Output format (json or text)

    Returns:
        The package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    # stdout may carry --dry-run documents, so logs go to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logger


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="treasury-snapshot",
        description="Capture treasury balances and recent token transfers on Ethereum and Base",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  ETH_RPC_URL, BASE_RPC_URL, ETHERSCAN_API_KEY   (required)
  TREASURY_ADDRESS, SNAPSHOT_OUTPUT_DIR,
  SNAPSHOT_PAGE_SIZE, SNAPSHOT_REQUEST_TIMEOUT   (optional)

Examples:
  %(prog)s                                # Write data/eth, data/base, data/meta.json
  %(prog)s --dry-run                      # Print documents, write nothing
  %(prog)s --output-dir site/data --sequential
        """,
    )

    run_group = parser.add_argument_group("Run Options")

    run_group.add_argument(
        "--output-dir", "-o",
        type=str,
        metavar="DIR",
        help="Artifact root directory (default: $SNAPSHOT_OUTPUT_DIR or data)",
    )

    run_group.add_argument(
        "--page-size",
        type=int,
        metavar="N",
        help="Recent transfers kept per token (default: $SNAPSHOT_PAGE_SIZE or 25)",
    )

    run_group.add_argument(
        "--sequential",
        action="store_true",
        help="Process chains one after another instead of concurrently",
    )

    run_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the documents to stdout instead of writing files",
    )

    run_group.add_argument(
        "--env-file",
        type=str,
        metavar="PATH",
        help="Load environment variables from this file (default: ./.env if present)",
    )

    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Logging format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> List[str]:
    """Return a list of CLI validation errors."""
    errors = []
    if args.page_size is not None and args.page_size < 1:
        errors.append("--page-size must be at least 1")
    if args.env_file and not Path(args.env_file).is_file():
        errors.append(f"--env-file not found: {args.env_file}")
    return errors


def build_config(args: argparse.Namespace) -> SnapshotConfig:
    """Environment configuration with CLI overrides applied."""
    config = SnapshotConfig.from_env()

    overrides = {}
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.page_size is not None:
        overrides["transfer_page_size"] = args.page_size

    return dataclasses.replace(config, **overrides) if overrides else config


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    try:
        config = build_config(args)
        run = await Orchestrator(config, concurrent=not args.sequential).run()

        writer = ArtifactWriter(config.output_dir)
        if args.dry_run:
            for path, text in writer.render(run, config.chains).items():
                print(f"// {path}")
                print(text, end="")
            return 0

        written = writer.write(run, config.chains)
        logger.info(f"Snapshot {run.generated_at} complete: {len(written)} artifacts")
        return 0

    except SnapshotError as e:
        logger.error(f"Snapshot failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    load_dotenv(args.env_file or find_dotenv(usecwd=True))

    setup_logging(args.log_level, args.log_format)

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
