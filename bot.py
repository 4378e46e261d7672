#!/usr/bin/env python3
"""
Deliveroo restaurant distance bot
Scrapes restaurant names, resolves them with Google Places and builds an ORS distance matrix
"""

import argparse
import asyncio
import json
import logging
import sys

import httpx

from config import DELIVEROO_BASE_URL, MATRIX, STORE_PATH
from matrix import MatrixTileError, build_labels_and_locations, compute_distance_matrix, save_matrix_csv
from places import filter_dublin_places, format_places, resolve_places
from routing import ORSClient, check_matrix
from scraper import scrape_listing
from store import JsonStore


# Setup logging
def setup_logging(log_file: str = "bot.log"):
    """Configure logging to file and console"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(__name__)


logger = logging.getLogger(__name__)


async def run_scrape(args, store: JsonStore):
    url = args.url or DELIVEROO_BASE_URL
    if not url:
        raise ValueError("No listing URL given (use --url or set DELIVEROO_BASE_URL)")

    names = await scrape_listing(url, headless=args.headless)
    store.upsert(args.names_key, names)
    logger.info(f"Scraped {len(names)} restaurant names")


async def run_resolve(args, store: JsonStore):
    names = store.get(args.names_key)
    if not names:
        raise ValueError(f"No names stored under '{args.names_key}' in {store.path}")

    records = await resolve_places(names)
    store.upsert(args.places_key, format_places(records))


async def run_filter(args, store: JsonStore):
    places = store.get(args.places_key)
    if not places:
        raise ValueError(f"No places stored under '{args.places_key}' in {store.path}")

    store.upsert(args.dublin_key, filter_dublin_places(places, max_distance_km=args.max_distance_km))


async def run_matrix(args, store: JsonStore):
    places = store.get(args.dublin_key)
    if not places:
        raise ValueError(f"No places stored under '{args.dublin_key}' in {store.path}")

    ids, labels, locations = build_labels_and_locations(places)
    async with ORSClient(profile=args.profile) as client:
        distances = await compute_distance_matrix(locations, client, tile=args.tile, pause_ms=args.pause_ms)

    save_matrix_csv(ids, distances, args.output)
    logger.info(f"Matrix built: {len(labels)}x{len(labels)}")


async def run_health(args, store: JsonStore):
    async with ORSClient() as client:
        data = await client.health()
    logger.info(f"ORS Health Check:\n{json.dumps(data, indent=2)}")


async def run_status(args, store: JsonStore):
    async with ORSClient() as client:
        data = await client.status()
    logger.info(f"ORS Status Check:\n{json.dumps(data, indent=2)}")


async def run_check_matrix(args, store: JsonStore):
    async with ORSClient() as client:
        await check_matrix(client, profile=args.profile)


COMMANDS = {
    'scrape': run_scrape,
    'resolve': run_resolve,
    'filter': run_filter,
    'matrix': run_matrix,
    'health': run_health,
    'status': run_status,
    'test-matrix': run_check_matrix,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Deliveroo restaurant distance bot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape names from the listing in DELIVEROO_BASE_URL (headful for debugging)
  python bot.py scrape --headless false

  # Resolve scraped names, keep the Dublin ones, then build the matrix
  python bot.py resolve
  python bot.py filter --max-distance-km 12
  python bot.py matrix --tile 50 --pause-ms 300 --output data/exports/matrix.csv

  # Check the local ORS instance
  python bot.py health
        """
    )
    parser.add_argument('--store', default=STORE_PATH, help=f'Path to the JSON data store (default: {STORE_PATH})')
    parser.add_argument('--log-file', default='bot.log', help='Log file (default: bot.log)')
    parser.add_argument('--names-key', default='response_restaurant_names', help='Store key for scraped names')
    parser.add_argument('--places-key', default='places_data', help='Store key for resolved places')
    parser.add_argument('--dublin-key', default='dublin_places', help='Store key for filtered places')

    subparsers = parser.add_subparsers(dest='command', required=True)

    scrape = subparsers.add_parser('scrape', help='Scrape restaurant names from the listing page')
    scrape.add_argument('--url', help='Listing URL (default: DELIVEROO_BASE_URL)')
    scrape.add_argument('--headless', type=str, default='true', choices=['true', 'false'],
                        help='Run in headless mode (default: true)')

    subparsers.add_parser('resolve', help='Resolve scraped names with Google Places')

    filter_cmd = subparsers.add_parser('filter', help='Keep only places in the Dublin area')
    filter_cmd.add_argument('--max-distance-km', type=float, default=12,
                            help='Radius around Dublin centre (default: 12)')

    matrix = subparsers.add_parser('matrix', help='Compute the distance matrix with ORS')
    matrix.add_argument('--tile', type=int, default=MATRIX['tile'], help=f"Tile size (default: {MATRIX['tile']})")
    matrix.add_argument('--pause-ms', type=int, default=MATRIX['pause_ms'],
                        help=f"Pause between tiles in ms (default: {MATRIX['pause_ms']})")
    matrix.add_argument('--profile', default=MATRIX['profile'], help=f"ORS profile (default: {MATRIX['profile']})")
    matrix.add_argument('--output', default=MATRIX['output'], help=f"CSV path (default: {MATRIX['output']})")

    subparsers.add_parser('health', help='ORS health check')
    subparsers.add_parser('status', help='ORS status check')

    check = subparsers.add_parser('test-matrix', help='Two-point ORS matrix sanity check')
    check.add_argument('--profile', default=MATRIX['profile'], help=f"ORS profile (default: {MATRIX['profile']})")

    return parser


async def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    if args.command == 'scrape':
        args.headless = args.headless.lower() == 'true'

    setup_logging(args.log_file)

    logger.info("=" * 60)
    logger.info(f"Bot started: {args.command}")
    logger.info(f"Store: {args.store}")
    logger.info("=" * 60)

    store = JsonStore(args.store)
    try:
        await COMMANDS[args.command](args, store)
    except (ValueError, MatrixTileError, httpx.HTTPError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    logger.info("=" * 60)
    logger.info(f"{args.command} completed")
    logger.info("=" * 60)
    return 0


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
