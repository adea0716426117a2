#!/usr/bin/env python3
"""
Command-line access to the Manapool API.

Credentials and client settings come from MANAPOOL_* environment variables
(see manapool.config). Results are printed to stdout as JSON.

Usage:
    python -m scripts.manapool_cli account
    python -m scripts.manapool_cli inventory --limit 100 --offset 200
    python -m scripts.manapool_cli inventory --all
    python -m scripts.manapool_cli orders --seller --unfulfilled
    python -m scripts.manapool_cli orders --id ORDER_ID
    python -m scripts.manapool_cli prices sealed
    python -m scripts.manapool_cli webhooks --topic order_created

Exit codes: 0 success, 1 API/network/validation error, 2 bad configuration.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import orjson
import pydantic
from prometheus_client import generate_latest

from manapool import (
    ClientConfig,
    DecodeError,
    ManapoolClient,
    ManapoolError,
    iterate_inventory,
)
from manapool.exporter import MetricsExporter
from manapool.logging_config import setup_logging
from manapool.models import InventoryOptions, OrdersOptions

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def write_json(value: Any, out: TextIO) -> None:
    """Write a result as indented JSON followed by a newline."""
    out.write(orjson.dumps(_to_jsonable(value), option=orjson.OPT_INDENT_2).decode())
    out.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Query the Manapool API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging (requests and responses)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines instead of plain text",
    )
    parser.add_argument(
        "--print-metrics",
        action="store_true",
        help="Print Prometheus client metrics to stderr on exit",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("account", help="Show the seller account")

    inventory = sub.add_parser("inventory", help="List seller inventory")
    inventory.add_argument("--limit", type=int, default=0, help="Page size (default: 500)")
    inventory.add_argument("--offset", type=int, default=0, help="Page offset (default: 0)")
    inventory.add_argument(
        "--all", action="store_true", help="Fetch every page and print all items"
    )
    inventory.add_argument("--sku", type=int, default=None, help="Look up one TCGPlayer SKU")

    orders = sub.add_parser("orders", help="List orders or show one order")
    orders.add_argument("--seller", action="store_true", help="Use seller order routes")
    orders.add_argument("--id", dest="order_id", default=None, help="Show a single order")
    orders.add_argument("--unfulfilled", action="store_true", help="Only unfulfilled orders")
    orders.add_argument("--label", default="", help="Filter by order label")
    orders.add_argument("--limit", type=int, default=0, help="Maximum orders to return")
    orders.add_argument("--offset", type=int, default=0, help="Order offset")

    prices = sub.add_parser("prices", help="Download a market price export")
    prices.add_argument("kind", choices=("singles", "variants", "sealed"))

    webhooks = sub.add_parser("webhooks", help="List registered webhooks")
    webhooks.add_argument("--topic", default="", help="Filter by topic")

    return parser


async def run_command(args: argparse.Namespace, client: ManapoolClient, out: TextIO) -> None:
    """
    Execute the parsed subcommand and print its result.

    Raises:
        ManapoolError: From the underlying client call.
    """
    result: Any
    if args.command == "account":
        result = await client.get_seller_account()
    elif args.command == "inventory":
        if args.sku is not None:
            result = await client.get_inventory_by_sku(args.sku)
        elif args.all:
            result = [item async for item in iterate_inventory(client)]
        else:
            result = await client.get_seller_inventory(
                InventoryOptions(limit=args.limit, offset=args.offset)
            )
    elif args.command == "orders":
        if args.order_id:
            fetch_one = client.get_seller_order if args.seller else client.get_order
            result = await fetch_one(args.order_id)
        else:
            opts = OrdersOptions(
                is_unfulfilled=True if args.unfulfilled else None,
                label=args.label,
                limit=args.limit,
                offset=args.offset,
            )
            fetch_many = client.get_seller_orders if args.seller else client.get_orders
            result = await fetch_many(opts)
    elif args.command == "prices":
        fetchers = {
            "singles": client.get_singles_prices,
            "variants": client.get_variant_prices,
            "sealed": client.get_sealed_prices,
        }
        result = await fetchers[args.kind]()
    elif args.command == "webhooks":
        result = await client.get_webhooks(args.topic)
    else:
        raise ValueError(f"unknown command: {args.command}")

    write_json(result, out)


async def _run(args: argparse.Namespace, config: ClientConfig) -> int:
    async with ManapoolClient(config) as client:
        try:
            await run_command(args, client, sys.stdout)
        except (ManapoolError, DecodeError) as e:
            logger.error("Request failed: %s", e)
            print(f"error: {e}", file=sys.stderr)
            return 1
        finally:
            if args.print_metrics:
                exporter = MetricsExporter()
                exporter.update(client_metrics=client.metrics, limiter=client.limiter)
                sys.stderr.write(generate_latest(exporter.registry).decode())
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json_format=args.json_logs,
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    return asyncio.run(_run(args, config))


if __name__ == "__main__":
    sys.exit(main())
