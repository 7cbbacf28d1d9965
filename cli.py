# main CLI entry for reviewdelta
import argparse
import logging
import sys

from reviewdelta.logging_config import setup_logging
from reviewdelta.utils.io_utils import dumps_json, save_csv, save_json
from reviewdelta.crawler.google_maps.errors import StructuralValidationError
from reviewdelta.crawler.google_maps.reviews import (
    get_local_place_info,
    get_local_place_reviews,
)
from reviewdelta.crawler.google_maps.schema import dump_harvest, dump_place_summary

logger = logging.getLogger(__name__)

EXIT_VALIDATION_ERROR = 2


def _emit(payload: dict, output: str | None) -> None:
    if output:
        save_json(output, payload)
        logger.info("💾 Saved to %s", output)
    else:
        print(dumps_json(payload))


# ---------- Subcommand handlers ----------

def cmd_reviews(args):
    harvest = get_local_place_reviews(
        args.url,
        navigation_timeout=args.timeout,
        last_cursor=args.last_cursor,
    )
    logger.info("✅ %s new reviews, last cursor: %s",
                len(harvest.reviews), harvest.last_cursor)

    payload = dump_harvest(harvest)
    _emit(payload, args.output)

    if args.csv:
        if not payload["reviews"]:
            logger.info("🔕 No new reviews; nothing to write to %s", args.csv)
        else:
            save_csv(args.csv, payload["reviews"])
            logger.info("💾 Saved CSV to %s", args.csv)


def cmd_info(args):
    summary = get_local_place_info(args.url, navigation_timeout=args.timeout)
    _emit(dump_place_summary(summary), args.output)


# ---------- Main CLI ----------

def build_parser():
    parser = argparse.ArgumentParser(
        description="reviewdelta CLI - incremental Google Maps reviews & rating summary"
    )
    parser.add_argument("-d", "--debug", action="store_true",
                        help="Enable debug logging and save logs to file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # reviews
    p_reviews = subparsers.add_parser(
        "reviews", help="Fetch Google Maps reviews newer than a cursor")
    p_reviews.add_argument("-u", "--url", required=True,
                           help="Google Maps place URL")
    p_reviews.add_argument("-c", "--last-cursor", default=None,
                           help="reviewId returned as lastCursor by a previous run")
    p_reviews.add_argument("-t", "--timeout", type=int, default=None,
                           help="Navigation timeout in milliseconds")
    p_reviews.add_argument("-o", "--output", default=None,
                           help="Write JSON here instead of stdout")
    p_reviews.add_argument("--csv", default=None,
                           help="Also write the new reviews as CSV")
    p_reviews.set_defaults(func=cmd_reviews)

    # info
    p_info = subparsers.add_parser(
        "info", help="Read the place's rating histogram, average and total")
    p_info.add_argument("-u", "--url", required=True,
                        help="Google Maps place URL")
    p_info.add_argument("-t", "--timeout", type=int, default=None,
                        help="Navigation timeout in milliseconds")
    p_info.add_argument("-o", "--output", default=None,
                        help="Write JSON here instead of stdout")
    p_info.set_defaults(func=cmd_info)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(force_debug=args.debug)
    if args.debug:
        logger.setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled via -d flag")

    # Dispatch to the selected subcommand
    try:
        args.func(args)
    except StructuralValidationError as e:
        logger.error("❌ %s", e)
        for issue in e.issues:
            logger.error("   %s: %s", ".".join(str(p) for p in issue.get("loc", ())),
                         issue.get("msg"))
        return EXIT_VALIDATION_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
