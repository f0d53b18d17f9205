"""Command line front end for the back office.

Usage:
    mozza-ledger accounts
    mozza-ledger add-account "Main Cash" --type cash --balance 200
    mozza-ledger flow set --sales ID --cards ID --hiking ID --fx ID \\
        --bills ID --cash ID --variance ID
    mozza-ledger shift start --float 200
    mozza-ledger shift update total_sales=1000 cards=300
    mozza-ledger shift close 900
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import Any

import structlog

from mozza_ledger.config import configure_logging
from mozza_ledger.errors import LedgerError
from mozza_ledger.flow import FlowConfiguration
from mozza_ledger.ledger import BackOffice
from mozza_ledger.models import AccountType, Shift, TransactionDraft, utc_now

logger = structlog.get_logger(__name__)

FLOW_FLAGS = {
    "sales": "sales_account",
    "cards": "cards_account",
    "hiking": "hiking_account",
    "fx": "fx_account",
    "bills": "bills_account",
    "cash": "cash_account",
    "variance": "variance_account",
}


def _parse_assignments(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` arguments into shift fields; values may be JSON."""
    fields: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise LedgerError(f"Expected key=value, got {pair!r}")
        try:
            fields[key] = json.loads(raw)
        except ValueError:
            fields[key] = raw
    return fields


def _print_shift(shift: Shift) -> None:
    print(f"Shift {shift.id} [{shift.status.value}] {shift.accounting_date}")
    print(f"  Opening float:  {shift.opening_float:>12,.2f}")
    print(f"  Total sales:    {shift.total_sales:>12,.2f}")
    print(f"  Non-cash:       {shift.total_non_cash:>12,.2f}")
    print(f"  Injections:     {shift.total_injections:>12,.2f}")
    print(f"  Expenses:       {shift.total_expenses:>12,.2f}")
    print(f"  Expected cash:  {shift.expected_cash:>12,.2f}")
    if shift.actual_cash is not None:
        print(f"  Counted cash:   {shift.actual_cash:>12,.2f}")
        print(f"  Difference:     {shift.difference or 0:>12,.2f}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mozza-ledger",
        description="Restaurant back-office ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("accounts", help="List accounts and balances")

    add_account = sub.add_parser("add-account", help="Create an account")
    add_account.add_argument("name")
    add_account.add_argument(
        "--type", choices=[t.value for t in AccountType], default=AccountType.ASSET.value
    )
    add_account.add_argument("--balance", default="0", help="Initial balance")

    transactions = sub.add_parser("transactions", help="List transactions")
    transactions.add_argument("--account", help="Only this account id")
    transactions.add_argument("--shift", help="Only postings from this shift id")

    post = sub.add_parser("post", help="Post a manual transaction")
    post.add_argument("account")
    post.add_argument("amount")
    post.add_argument("--category", default="Operation")
    post.add_argument("--description", default="")
    post.add_argument("--date", help="Business date (defaults to now)")

    sub.add_parser("verify", help="Check balances against transaction history")

    flow = sub.add_parser("flow", help="Shift flow configuration")
    flow_sub = flow.add_subparsers(dest="flow_command", required=True)
    flow_sub.add_parser("show")
    flow_set = flow_sub.add_parser("set")
    for flag in FLOW_FLAGS:
        flow_set.add_argument(f"--{flag}", help=f"Account id for the {flag} role")

    shift = sub.add_parser("shift", help="Till shift lifecycle")
    shift_sub = shift.add_subparsers(dest="shift_command", required=True)
    shift_sub.add_parser("status")
    start = shift_sub.add_parser("start")
    start.add_argument("--float", dest="opening_float", help="Opening float")
    start.add_argument("--date", dest="accounting_date", help="Accounting date")
    start.add_argument(
        "--inject",
        action="append",
        default=[],
        metavar="SOURCE=AMOUNT",
        help="Cash injection at open (repeatable)",
    )
    update = shift_sub.add_parser("update")
    update.add_argument("fields", nargs="+", metavar="FIELD=VALUE")
    close = shift_sub.add_parser("close")
    close.add_argument("actual_cash")

    return parser


async def dispatch(office: BackOffice, args: argparse.Namespace) -> None:
    if args.command == "accounts":
        for account in await office.list_accounts():
            print(f"{account.id}  {account.type.value:<10} {account.balance:>12,.2f}  {account.name}")

    elif args.command == "add-account":
        account = await office.add_account(args.name, args.type, args.balance)
        print(account.id)

    elif args.command == "transactions":
        for t in await office.list_transactions(args.account, args.shift):
            print(f"{t.date[:10]}  {t.amount:>12,.2f}  {t.category:<14} {t.description}")

    elif args.command == "post":
        transaction = await office.post_transaction(
            TransactionDraft(
                amount=args.amount,
                category=args.category,
                description=args.description,
                date=args.date or utc_now(),
                account_id=args.account,
            )
        )
        print(transaction.id)

    elif args.command == "verify":
        mismatches = await office.accounts.verify_balances()
        for account_id, (stored, expected) in mismatches.items():
            print(f"{account_id}: stored {stored}, history {expected}")
        if mismatches:
            raise LedgerError(f"{len(mismatches)} account(s) out of balance")
        print("All balances match their history")

    elif args.command == "flow":
        config = await office.get_flow_configuration()
        if args.flow_command == "set":
            changes = {
                role: getattr(args, flag)
                for flag, role in FLOW_FLAGS.items()
                if getattr(args, flag) is not None
            }
            config = await office.save_flow_configuration(replace(config, **changes))
        for role in FlowConfiguration.roles():
            print(f"{role:<18} {getattr(config, role) or '-'}")
        if not config.is_complete():
            print("Incomplete: " + ", ".join(config.missing_roles()))

    elif args.command == "shift":
        if args.shift_command == "status":
            current = await office.active_shift()
            if current is None:
                print("No open shift")
            else:
                _print_shift(current)
        elif args.shift_command == "start":
            injections = []
            for item in args.inject:
                source, _, amount = item.rpartition("=")
                injections.append({"source": source, "amount": amount})
            _print_shift(
                await office.start_shift(args.opening_float, injections, args.accounting_date)
            )
        elif args.shift_command == "update":
            _print_shift(await office.update_active_shift(_parse_assignments(args.fields)))
        elif args.shift_command == "close":
            result = await office.close_shift(args.actual_cash)
            _print_shift(result.shift)
            print(f"  Postings:       {len(result.transactions):>12}")


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        async with BackOffice.from_settings() as office:
            await dispatch(office, args)
    except LedgerError as e:
        logger.debug("command_failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
