import csv
import logging
import sys
from decimal import Decimal, Inexact
from typing import Iterable, List, TextIO

from account_engine import AccountEngine
from models import LEDGER_CONTEXT, LEDGER_PRECISION, Account

logger = logging.getLogger(__name__)

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


def format_decimal(value: Decimal) -> str:
    """
    Format decimal in plain notation, removing trailing zeros.

    Raises ValueError for values that have no plain form within
    LEDGER_PRECISION digits, such as 9E+999999 or NaN.
    """
    if not value.is_finite():
        raise ValueError(f"cannot format non-finite amount {value}")
    try:
        normalized = value.normalize(LEDGER_CONTEXT)
    except Inexact:
        raise ValueError(f"amount {value} has more than {LEDGER_PRECISION} significant digits")
    if normalized.adjusted() >= LEDGER_PRECISION or -normalized.as_tuple().exponent > LEDGER_PRECISION:
        raise ValueError(f"amount {value} has more than {LEDGER_PRECISION} digits in plain notation")
    return f"{normalized:f}"


def format_account(account: Account) -> List[str]:
    return [
        str(account.client_id),
        format_decimal(account.available),
        format_decimal(account.held),
        format_decimal(account.total),
        str(account.locked).lower(),
    ]


def write_accounts(accounts: Iterable[Account], stream: TextIO) -> None:
    """Write one CSV row per account. Accounts that fail to format are skipped."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for account in sorted(accounts, key=lambda a: a.client_id):
        try:
            row = format_account(account)
        except ValueError as e:
            logger.warning(f"Skipping client {account.client_id}: {e}")
            continue
        writer.writerow(row)


def main():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(sys.argv) != 2:
        print("Usage: payments-engine <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = AccountEngine()
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        logger.error(f"Could not read {filepath}: {e}")
        sys.exit(1)

    write_accounts(accounts, sys.stdout)


if __name__ == "__main__":
    main()
