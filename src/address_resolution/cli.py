"""Inspect rankings and auto-link decisions against a JSON data file."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List

from .components import MultipleMatches, SingleMatch
from .engine import AddressResolutionEngine, EngineConfig
from .errors import ConfigurationError
from .log import configure_logging
from .normalize import format_address
from .providers import InMemoryRecordProvider


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Address suggestions and customer auto-linking.")
    parser.add_argument("--data", required=True, help="JSON file with customers, addresses and locations.")
    parser.add_argument("--max", type=int, default=None, help="Maximum number of suggestions.")
    parser.add_argument("--json", action="store_true", help="Print machine readable output.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log INFO (-v) or DEBUG (-vv).")
    sub = parser.add_subparsers(dest="command", required=True)

    suggest = sub.add_parser("suggest", help="Rank addresses for a query.")
    suggest.add_argument("query")
    suggest.add_argument("--customer", default=None, help="Restrict to one customer's address book.")
    suggest.add_argument("--drop", action="store_true", help="Rank for the drop side instead of pickup.")

    customers = sub.add_parser("customers", help="Rank customer names for a query.")
    customers.add_argument("query")

    link = sub.add_parser("link", help="Resolve the customer for a selected location.")
    link.add_argument("location")
    link.add_argument("--customer", default=None, help="Customer currently typed in the paired field.")
    return parser.parse_args(argv)


def _run(args: argparse.Namespace, engine: AddressResolutionEngine) -> Dict[str, Any]:
    if args.command == "suggest":
        suggestions = engine.suggest_addresses(args.query, customer=args.customer, is_pickup=not args.drop)
        return {
            "suggestions": [
                {
                    "customer": s.record.customer_name,
                    "location_name": s.record.location_name,
                    "address": format_address(s.record),
                    "score": round(s.score, 2),
                }
                for s in suggestions
            ]
        }
    if args.command == "customers":
        return {"customers": [{"name": m.name, "score": round(m.score, 2)} for m in engine.suggest_customers(args.query)]}

    result = engine.resolve_location(args.location, typed_customer=args.customer)
    if isinstance(result, SingleMatch):
        return {"result": "single", "customers": [result.customer]}
    if isinstance(result, MultipleMatches):
        return {"result": "multiple", "customers": list(result.customers), "match_count": result.match_count}
    return {"result": "none", "customers": []}


def _print_text(payload: Dict[str, Any]) -> None:
    if "suggestions" in payload:
        for row in payload["suggestions"]:
            label = f"{row['location_name']} - " if row["location_name"] else ""
            owner = f"  [{row['customer']}]" if row["customer"] else ""
            print(f"{row['score']:>7.2f}  {label}{row['address']}{owner}")
    elif "result" in payload:
        print(payload["result"])
        for position, name in enumerate(payload["customers"]):
            marker = "*" if position < payload.get("match_count", len(payload["customers"])) else " "
            print(f"{marker} {name}")
    else:
        for row in payload["customers"]:
            print(f"{row['score']:>7.2f}  {row['name']}")


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging("DEBUG" if args.verbose > 1 else "INFO" if args.verbose else "WARNING")
    if not os.path.isfile(args.data):
        print(f"error: not a file: {args.data}", file=sys.stderr)
        return 2
    try:
        config = EngineConfig.from_env()
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if args.max is not None:
        config.max_suggestions = args.max
        config.max_customer_suggestions = args.max

    provider = InMemoryRecordProvider.from_json(args.data)
    engine = AddressResolutionEngine(provider, config)
    try:
        payload = _run(args, engine)
    finally:
        engine.shutdown()

    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        _print_text(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
