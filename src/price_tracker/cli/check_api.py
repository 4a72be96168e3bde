"""CLI to smoke-test the price tracker API routes and individual providers.

Usage:
  price-tracker-check health
  price-tracker-check quotes equity AAPL MSFT
  price-tracker-check quote commodity XAU
  price-tracker-check budgets
  price-tracker-check jobs price-update
  price-tracker-check provider coingecko BTC ETH
"""
import argparse
import asyncio
import json
import sys

import httpx

from price_tracker.config import Settings
from price_tracker.providers import create_default_registry
from price_tracker.providers.core import ProviderError


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_quotes(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/quotes/{args.asset_class}", params={"symbols": ",".join(args.symbols)})
    r.raise_for_status()
    data = r.json()
    failed = sum(1 for row in data if row.get("error"))
    print(f"{len(data) - failed} quote(s), {failed} failed")
    print_json(data)
    return 0


def cmd_quote(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/quotes/{args.asset_class}/{args.symbol}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_budgets(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/providers/budgets")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_jobs(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post(f"/jobs/{args.job}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_provider(args: argparse.Namespace) -> int:
    """Call one provider directly (no server), through its retries but without budgets."""
    registry = create_default_registry(Settings())
    if args.provider_id not in registry.names:
        print(f"Unknown provider '{args.provider_id}'. Available: {', '.join(registry.names)}",
              file=sys.stderr)
        return 2

    async def run() -> dict:
        try:
            return await registry.get(args.provider_id).fetch_batch(args.symbols)
        finally:
            await registry.close()

    results = asyncio.run(run())
    failed = 0
    for symbol, outcome in results.items():
        if isinstance(outcome, ProviderError):
            failed += 1
            print_json({"symbol": symbol, "error": str(outcome), "type": type(outcome).__name__})
        else:
            print_json(outcome.model_dump(mode="json"))
    return 1 if failed else 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Smoke-test price tracker API routes and providers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8001",
        help="API base URL (default: http://localhost:8001)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds (default: 60)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET / health check")

    classes = ["equity", "crypto", "commodity"]
    p = subparsers.add_parser("quotes", help="GET /quotes/{asset_class}?symbols=...")
    p.add_argument("asset_class", choices=classes)
    p.add_argument("symbols", nargs="+", help="Symbols (e.g. AAPL MSFT, BTC ETH, XAU XAG)")
    p = subparsers.add_parser("quote", help="GET /quotes/{asset_class}/{symbol}")
    p.add_argument("asset_class", choices=classes)
    p.add_argument("symbol")

    subparsers.add_parser("budgets", help="GET /providers/budgets")

    p = subparsers.add_parser("jobs", help="POST /jobs/{job}")
    p.add_argument("job", choices=["price-update", "alert-check"])

    # provider (direct call; no server required)
    p = subparsers.add_parser("provider", help="Fetch a batch straight from one provider")
    p.add_argument("provider_id", help="Provider id (e.g. polygon, coingecko, gold_api)")
    p.add_argument("symbols", nargs="+")

    args = parser.parse_args()

    if args.command == "provider":
        try:
            return cmd_provider(args)
        except Exception as e:  # pylint: disable=broad-except
            print(f"Error: {e}", file=sys.stderr)
            return 1

    handlers = {
        "health": cmd_health,
        "quotes": cmd_quotes,
        "quote": cmd_quote,
        "budgets": cmd_budgets,
        "jobs": cmd_jobs,
    }
    try:
        with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=args.timeout) as client:
            return handlers[args.command](client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
