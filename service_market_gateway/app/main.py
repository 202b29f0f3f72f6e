"""
Command line entry point for the Cryptofolio market data gateway.

Market commands print normalized records as JSON. Portfolio commands manage
the persisted holdings list and value it against current market prices.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from shared.config import ServiceConfig, get_config
from shared.errors import PortfolioError
from shared.logging import clear_context, configure_logging, get_logger, set_request_id

from .market_data import MarketDataGateway, default_history_interval
from .portfolio import Holding, HoldingsStore, PortfolioValuator


logger = get_logger("gateway.cli")


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


async def _markets(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return await gateway.get_market_list(args.page, args.page_size)


async def _coin(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return await gateway.get_coin(args.coin_id)


async def _history(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    interval = args.interval or default_history_interval(args.days)
    return await gateway.get_history(args.coin_id, args.days, interval)


async def _search(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return await gateway.search(args.query)


async def _trending(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return await gateway.get_trending()


async def _global(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return await gateway.get_global_stats()


async def _ping(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    return {"provider": "ok" if await gateway.ping() else "error"}


async def _portfolio_value(gateway: MarketDataGateway, args: argparse.Namespace) -> Any:
    store = HoldingsStore(args.holdings_file)
    valuator = PortfolioValuator(gateway, pages=args.pages, page_size=args.page_size)
    return await valuator.value(store.load())


MARKET_COMMANDS: Dict[str, Callable[[MarketDataGateway, argparse.Namespace], Awaitable[Any]]] = {
    "markets": _markets,
    "coin": _coin,
    "history": _history,
    "search": _search,
    "trending": _trending,
    "global": _global,
    "ping": _ping,
}


async def run_market_command(
    config: ServiceConfig,
    args: argparse.Namespace,
    *,
    gateway: Optional[MarketDataGateway] = None,
) -> Any:
    """Execute a gateway-backed command and return its JSON-ready result."""
    if args.command == "portfolio":
        handler = _portfolio_value
    else:
        handler = MARKET_COMMANDS[args.command]

    owned = gateway is None
    gateway = gateway or MarketDataGateway.from_config(config)
    try:
        return _to_jsonable(await handler(gateway, args))
    finally:
        if owned:
            await gateway.close()


def run_holdings_command(args: argparse.Namespace) -> Any:
    """Execute an offline holdings command (list, add, edit, remove)."""
    store = HoldingsStore(args.holdings_file)

    if args.action == "list":
        return _to_jsonable(store.load())

    if args.action == "add":
        holding = Holding.create(args.symbol, args.amount, args.purchase_price, name=args.name)
        store.add(holding)
        logger.info("Holding added", holding_id=holding.id, symbol=holding.symbol)
        return holding.to_dict()

    if args.action == "edit":
        changes = {
            key: value
            for key, value in (
                ("symbol", args.symbol),
                ("name", args.name),
                ("amount", args.amount),
                ("purchase_price", args.purchase_price),
            )
            if value is not None
        }
        holding = store.get(args.holding_id).with_changes(**changes)
        store.update(holding)
        logger.info("Holding updated", holding_id=holding.id)
        return holding.to_dict()

    store.remove(args.holding_id)
    logger.info("Holding removed", holding_id=args.holding_id)
    return {"removed": args.holding_id}


def build_parser(config: ServiceConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cryptofolio", description="Cryptocurrency market data and portfolio tracker.")
    parser.add_argument("--log-level", default=config.log_level, help="Log level (debug, info, warning, error)")
    parser.add_argument(
        "--holdings-file",
        type=Path,
        default=config.holdings_file,
        help="Path to the JSON file holding the portfolio",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    markets = sub.add_parser("markets", help="List coins by market cap")
    markets.add_argument("--page", type=int, default=1)
    markets.add_argument("--page-size", type=int, default=100)

    coin = sub.add_parser("coin", help="Show a single coin")
    coin.add_argument("coin_id")

    history = sub.add_parser("history", help="Show price history for a coin")
    history.add_argument("coin_id")
    history.add_argument("--days", type=int, default=7)
    history.add_argument("--interval", choices=("hourly", "daily"), default=None,
                         help="Defaults to hourly for one day, daily otherwise")

    search = sub.add_parser("search", help="Search coins by name or symbol")
    search.add_argument("query")

    sub.add_parser("trending", help="Show trending coins")
    sub.add_parser("global", help="Show global market totals")
    sub.add_parser("ping", help="Check that the provider is reachable")

    portfolio = sub.add_parser("portfolio", help="Value the stored holdings at current prices")
    portfolio.add_argument("--pages", type=int, default=1, help="Market pages used to price holdings")
    portfolio.add_argument("--page-size", type=int, default=250)

    holdings = sub.add_parser("holdings", help="Manage stored holdings")
    actions = holdings.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="List stored holdings")

    add = actions.add_parser("add", help="Record a new holding")
    add.add_argument("symbol")
    add.add_argument("amount", type=float)
    add.add_argument("purchase_price", type=float)
    add.add_argument("--name", default=None)

    edit = actions.add_parser("edit", help="Edit a holding")
    edit.add_argument("holding_id")
    edit.add_argument("--symbol", default=None)
    edit.add_argument("--name", default=None)
    edit.add_argument("--amount", type=float, default=None)
    edit.add_argument("--purchase-price", type=float, default=None)

    remove = actions.add_parser("remove", help="Delete a holding")
    remove.add_argument("holding_id")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    config = get_config()
    args = build_parser(config).parse_args(argv)
    configure_logging(config.service_name, args.log_level)
    set_request_id()

    try:
        if args.command == "holdings":
            result = run_holdings_command(args)
        else:
            result = asyncio.run(run_market_command(config, args))
    except KeyboardInterrupt:
        return 130
    except PortfolioError as exc:
        print(exc.to_response().model_dump_json(), file=sys.stderr)
        return 1
    finally:
        clear_context()

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
