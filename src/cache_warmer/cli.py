"""Command-line interface for the cache warmer."""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from cache_warmer.config import WarmerConfig
from cache_warmer.coordinator import RunCoordinator
from cache_warmer.exceptions import FatalStartupError
from cache_warmer.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cache Warmer - visit every sitemap URL in a headless browser to populate the page cache"
    )
    parser.add_argument(
        "sites", nargs="*", help="Site roots to warm (override configured sites)"
    )
    parser.add_argument(
        "--config",
        "-c",
        help="JSON configuration file (default: read WARMER_* environment variables)",
    )
    parser.add_argument(
        "--mode",
        choices=["sequential", "pool"],
        help="Execution model inside a batch",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Concurrent pages in pool mode",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="URLs per browser process",
    )
    parser.add_argument(
        "--max-urls",
        type=int,
        help="Maximum URLs per site after prioritization (0 = no limit)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging verbosity",
    )
    parser.add_argument(
        "--log-dir",
        help="Directory for the per-day log file",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit",
    )
    return parser


def load_config(args: argparse.Namespace) -> WarmerConfig:
    """Build the effective configuration from file/env plus CLI overrides.

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    base = WarmerConfig.from_file(args.config) if args.config else WarmerConfig.from_env()

    overrides = {
        "sites": args.sites or None,
        "execution_mode": args.mode,
        "max_concurrency": args.concurrency,
        "batch_size": args.batch_size,
        "max_urls_per_site": args.max_urls,
        "log_level": args.log_level,
        "log_dir": args.log_dir,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return base

    # Re-validate so CLI values get the same checks as file values
    values = base.model_dump()
    values.update(overrides)
    return WarmerConfig(**values)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except (ValidationError, ValueError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.print_config:
        print(json.dumps(config.to_dict(), indent=2, default=str))
        sys.exit(0)

    try:
        setup_logging(level=config.log_level, log_dir=config.log_dir)

        if not config.sites:
            logger.info("No sites configured. Nothing to do.")
            sys.exit(0)

        asyncio.run(RunCoordinator(config).run())
    except FatalStartupError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
