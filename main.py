"""
Localbase Command Line
Seed, inspect and clear the local restaurant data store
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from localbase import Settings, create_client
from localbase.models import restaurant_schemas
from localbase.seed import seed

load_dotenv()

logger = logging.getLogger('localbase_cli')


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def print_json(value):
    print(json.dumps(value, ensure_ascii=False, indent=2))


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Local restaurant data store")
    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('seed', help="Insert demo data into empty collections")
    sub.add_parser('collections', help="List stored collections")
    dump = sub.add_parser('dump', help="Print every record of a collection")
    dump.add_argument('collection')
    dump.add_argument('--order', default='id', help="Field to order by")
    sub.add_parser('dashboard', help="Print the sales dashboard aggregate")
    clear = sub.add_parser('clear', help="Remove every record of a collection")
    clear.add_argument('collection')
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.log_level)
    client = create_client(settings, schemas=restaurant_schemas())

    if args.command == 'seed':
        counts = await seed(client)
        print_json(counts)
        return 0

    if args.command == 'collections':
        print_json(client.collections())
        return 0

    if args.command == 'dump':
        response = await client.from_(args.collection).select().order(args.order)
    elif args.command == 'dashboard':
        response = await client.rpc('get_sales_dashboard_data', {})
    else:
        response = await client.from_(args.collection).truncate()

    if not response.ok:
        logger.error(f"{args.command} failed: {response.error.message}")
        return 1
    print_json(response.data)
    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
