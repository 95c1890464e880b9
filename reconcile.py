#!/usr/bin/env python3
"""
Command-line entry point for reconciling the movie catalog against TMDB.

Reads the catalog from the configured Google Sheet (or a CSV / text export),
prints one diagnostic line per condition and exits non-zero when the run is
aborted by duplicates or a strict TMDB failure.
"""

import argparse
import logging
import os
import sys

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from config import ConfigurationError, load_config_from_env
from metadata_client import TMDbClient
from reconciliation import ReconciliationPipeline, list_unique_titles
from sheet_source import (
    SourceError,
    fetch_sheet_rows,
    get_gsheet_client,
    load_csv_rows,
    load_text_rows,
)
from utils import AMBIGUITY_POLICIES, setup_logging

logger = logging.getLogger("reconcile")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Check a movie catalog for duplicates and verify titles against TMDB."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--csv", metavar="PATH", help="read rows from a CSV export")
    source.add_argument("--text", metavar="PATH", help="read one title per line from a text file")
    parser.add_argument("--list", action="store_true",
                        help="print the sorted unique titles and exit without calling TMDB")
    parser.add_argument("--policy", choices=AMBIGUITY_POLICIES,
                        help="what to do with ambiguous matches")
    parser.add_argument("--workers", type=int, help="concurrent TMDB lookups")
    parser.add_argument("--skip-header", action="store_true", default=None,
                        help="ignore the first row of the sheet")
    parser.add_argument("--fail-fast", action="store_true", default=None,
                        help="stop at the first duplicate instead of listing all")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="abort the whole run if a TMDB lookup fails")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def load_rows(args, config):
    """Read raw rows from whichever source was requested."""
    if args.csv:
        return load_csv_rows(args.csv, skip_header=config.skip_header)
    if args.text:
        return load_text_rows(args.text)
    client = get_gsheet_client(credentials_file=config.credentials_file)
    return fetch_sheet_rows(client, config.sheet_id, config.worksheet,
                            skip_header=config.skip_header)


def main(argv=None, environ=None):
    """
    Run a reconciliation from the command line.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config_from_env(environ).with_overrides(
            ambiguity_policy=args.policy,
            max_workers=args.workers,
            skip_header=args.skip_header,
            stop_at_first_duplicate=args.fail_fast,
            strict_transport=args.strict,
        )
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if args.text:
        # Text exports are a bare title list
        config = config.with_overrides(year_column=-1, identifier_column=-1)

    try:
        rows = load_rows(args, config)
    except SourceError as e:
        logger.error("%s", e)
        return 1

    if args.list:
        for title in list_unique_titles(rows, config.title_column):
            print(title)
        return 0

    try:
        client = TMDbClient.from_config(config)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    report = ReconciliationPipeline(client, config).run(rows)
    for line in report.lines:
        print(line.text)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
