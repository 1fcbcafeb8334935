"""
Command line entry point.

    settlement-engine solve Adi=93257 Bari=-43208 ...
    settlement-engine solve --demo
    settlement-engine solve --file balances.json --json
    settlement-engine serve --port 8000
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .config import get_settings
from .models import SettlementPlan, UnbalancedLedgerError
from .solver import SettlementOrchestrator
from .utils.audit_trail import AuditTrail
from .utils.logging import setup_logging

logger = structlog.get_logger()

# Demo group, balances in cents
DEMO_BALANCES: Dict[str, int] = {
    "Adi": 93257,
    "Bari": -43208,
    "Csaba": -95615,
    "Eszter": -49075,
    "Elena": -50731,
    "Kriszti": -88122,
    "Lili": -34661,
    "MP": -27665,
    "Norbi": 45052,
    "Szigi": -29832,
    "Tibi": 320007,
    "Zsuzsi": -39401,
}


def parse_balance(text: str) -> tuple:
    """Parse a NAME=AMOUNT argument."""
    name, sep, amount = text.rpartition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=AMOUNT, got {text!r}")
    try:
        return name, int(amount)
    except ValueError:
        raise argparse.ArgumentTypeError(f"amount for {name!r} is not an integer: {amount!r}")


def load_balance_file(path: Path) -> Dict[str, int]:
    """Load a JSON object mapping names to integer balances."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of name -> balance")
    for name, balance in data.items():
        if isinstance(balance, bool) or not isinstance(balance, int):
            raise ValueError(f"{path}: balance for {name!r} is not an integer")
    return data


def format_plan(plan: SettlementPlan) -> str:
    """Render every person's events and remaining balance."""
    lines = []
    for person in plan.people:
        events = " ".join(
            f"({plan.people[t.counterparty].name} {t.amount})"
            for t in person.transactions
        )
        prefix = f"{person.name}: {events} " if events else f"{person.name}: "
        lines.append(f"{prefix}remains: {person.balance}")
    lines.append(f"transactions: {plan.transaction_count} ({plan.status.value})")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="settlement-engine",
        description="Minimum-transaction settlement of group balances",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    solve = sub.add_parser("solve", help="Compute a settlement plan")
    solve.add_argument("balances", nargs="*", type=parse_balance, metavar="NAME=AMOUNT",
                       help="Signed balance in cents (positive = is owed money)")
    solve.add_argument("--file", type=Path, help="JSON file with name -> balance")
    solve.add_argument("--demo", action="store_true", help="Use the built-in demo group")
    solve.add_argument("--epsilon", type=int, default=None,
                       help="Balances below this magnitude count as settled")
    solve.add_argument("--time-budget", type=float, default=None,
                       help="Search time budget in seconds")
    solve.add_argument("--no-prune", action="store_true",
                       help="Disable the branch-and-bound cutoff")
    solve.add_argument("--audit-out", type=Path, default=None,
                       help="Write the audit trail to this JSON file")
    solve.add_argument("--json", action="store_true", help="Print the plan as JSON")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def _collect_balances(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Dict[str, int]:
    balances: Dict[str, int] = {}
    sources: List[Iterable[Tuple[str, int]]] = []

    if args.demo:
        sources.append(DEMO_BALANCES.items())
    if args.file is not None:
        try:
            sources.append(load_balance_file(args.file).items())
        except (OSError, ValueError) as e:
            parser.error(str(e))
    # Pairs, not a dict: repeated names must reach the duplicate check
    sources.append(args.balances)

    for source in sources:
        for name, balance in source:
            if name in balances:
                parser.error(f"duplicate person: {name}")
            balances[name] = balance

    if not balances:
        parser.error("no balances given (use NAME=AMOUNT, --file or --demo)")
    return balances


def run_solve(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    balances = _collect_balances(parser, args)
    if args.epsilon is not None and args.epsilon <= 0:
        parser.error("--epsilon must be positive")
    if args.time_budget is not None and args.time_budget <= 0:
        parser.error("--time-budget must be positive")

    orchestrator = SettlementOrchestrator()
    try:
        plan = orchestrator.settle(
            balances,
            epsilon=args.epsilon,
            time_budget_seconds=args.time_budget,
            prune=False if args.no_prune else None,
        )
    except UnbalancedLedgerError as e:
        logger.error("Refusing to settle unbalanced ledger", total=e.total, epsilon=e.epsilon)
        print(str(e), file=sys.stderr)
        return 1

    if args.audit_out is not None:
        AuditTrail(plan.id, plan.audit_log).export(args.audit_out)

    if args.json:
        print(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_plan(plan))

    if not plan.found:
        print("no settlement found", file=sys.stderr)
        return 2
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "settlement_engine.api:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.app_log_level.lower(),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or get_settings().app_log_level)

    if args.command == "serve":
        return run_serve(args)
    return run_solve(parser, args)


if __name__ == "__main__":
    sys.exit(main())
