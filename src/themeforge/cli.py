"""
Command line entry point for dataset generation.

Usage:
    themeforge --datasets-dir datasets --cldr-path data/cldr/ja/territories.json

Exit code 0 means every artifact was validated and written; 1 means the
run failed and nothing was written.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import load_config
from .pipeline import GenerationPipeline
from .sources import default_sources

logger = logging.getLogger("themeforge")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Flags left unset fall back to THEMEFORGE_* environment variables.
    """
    parser = argparse.ArgumentParser(
        prog="themeforge",
        description="Generate and validate quiz theme datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full run (fetches REST Countries)
  themeforge

  # Offline run, deriving themes from the canonical file already on disk
  themeforge --skip-remote

  # Write somewhere else and delete themes that are no longer generated
  themeforge --datasets-dir /tmp/datasets --prune
        """,
    )
    parser.add_argument("--datasets-dir", type=Path, help="Output directory (default: datasets)")
    parser.add_argument("--cldr-path", type=Path, help="CLDR ja territories.json")
    parser.add_argument("--fixture-path", type=Path, help="JSON/YAML file with hand-maintained themes")
    parser.add_argument("--timeout", type=float, dest="fetch_timeout", help="REST Countries timeout in seconds")
    parser.add_argument("--min-answers", type=int, help="Minimum answers for derived themes (default: 10)")
    parser.add_argument(
        "--skip-remote",
        action="store_true",
        default=None,
        help="Do not call REST Countries; derive from the canonical artifact on disk",
    )
    parser.add_argument(
        "--prune",
        action="store_true",
        dest="prune_stale",
        default=None,
        help="Delete theme artifacts that are no longer generated",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the generator and return the process exit code."""
    args = parse_args(argv)

    try:
        config = load_config(**vars(args))
    except ValidationError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    sources = default_sources(config)
    logger.debug("Sources: %s", sources)
    pipeline = GenerationPipeline(sources, config)
    report = asyncio.run(pipeline.run())

    print(report.format())
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
