#!/usr/bin/env python3
"""
Listing Owner Enrichment Tool
CLI Entry Point

  python main.py enrich trulia_listings.csv -o trulia_listings_enriched.csv
  python main.py validate "https://www.trulia.com/for_rent/Chicago,IL/" --expected trulia
"""

import argparse
import json
import sys
from dataclasses import replace

from dotenv import load_dotenv

from listing_enrich.config import Settings
from listing_enrich.logging_utils import set_verbose, setup_logger
from listing_enrich.pipeline import InputNotFoundError, run_enrichment, summarize
from listing_enrich.platforms import classify, get_display_name
from listing_enrich.url_validation import validate_and_detect, validate_url_format

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Validate listing URLs and enrich listing CSVs with owner information'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    sub = parser.add_subparsers(dest='command', required=True)

    enrich = sub.add_parser('enrich', help='Enrich a listing CSV with owner name and mailing address')
    enrich.add_argument('input_file', help='Path to input listing CSV file')
    enrich.add_argument(
        '-o', '--output',
        default=None,
        help='Path to output CSV file (default: <input>_enriched.csv)'
    )
    enrich.add_argument('--source', default=None, help='Lookup source literal (default: LOOKUP_SOURCE or trulia)')
    enrich.add_argument('--delay', type=float, default=None, help='Seconds between lookups (default: LOOKUP_DELAY_S or 1)')

    validate = sub.add_parser('validate', help='Detect the platform of a listing URL')
    validate.add_argument('url', help='Listing URL')
    validate.add_argument('--expected', default=None, help='Platform the URL must belong to')
    validate.add_argument('--local', action='store_true', help='Only run the local classifier')

    return parser


def cmd_enrich(args, settings: Settings) -> int:
    if args.source:
        settings = replace(settings, lookup_source=args.source)
    if args.delay is not None:
        if args.delay < 0:
            logger.error("--delay must be >= 0")
            return 2
        settings = replace(settings, lookup_delay_s=args.delay)

    try:
        stats = run_enrichment(args.input_file, args.output, settings=settings)
    except InputNotFoundError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Done: {summarize(stats)}")
    return 0


def cmd_validate(args, settings: Settings) -> int:
    if args.local:
        check = validate_url_format(args.url)
        if not check.is_valid:
            print(json.dumps({"isValid": False, "error": check.error}, indent=2))
            return 1
        result = classify(args.url)
        is_valid = result.platform is not None and (not args.expected or result.platform == args.expected)
        print(json.dumps({
            "platform": result.platform,
            "displayName": get_display_name(result.platform),
            "table": result.table,
            "location": result.location.as_dict(),
            "isValid": is_valid,
        }, indent=2))
        return 0 if is_valid else 1

    result = validate_and_detect(args.url, args.expected, backend_url=settings.backend_url,
                                 timeout=settings.request_timeout_s)
    out = result.to_dict()
    out["displayName"] = get_display_name(result.platform)
    print(json.dumps(out, indent=2))
    return 0 if result.is_valid else 1


def main(argv=None) -> int:
    """Main CLI entry point"""
    load_dotenv()

    args = build_parser().parse_args(argv)
    if args.verbose:
        set_verbose(True)

    settings = Settings.from_env()
    try:
        if args.command == 'enrich':
            return cmd_enrich(args, settings)
        return cmd_validate(args, settings)
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
