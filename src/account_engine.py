import csv
import dataclasses
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from client_account import ClientAccount
from models import (
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    Account,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


class AccountEngine:
    """
    Applies transactions, in order, to per-client accounts.
    Each engine owns its own client map, so separate runs never share state.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self.stats = ProcessingStats()

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def apply(self, transaction: Transaction) -> None:
        """Apply one transaction. Rejected transactions are silently dropped."""
        client = self.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT | TransactionType.WITHDRAWAL:
                result = client.process_transaction(transaction)
            case TransactionType.DISPUTE:
                result = client.dispute_transaction(transaction.transaction_id)
            case TransactionType.RESOLVE:
                result = client.resolve_transaction(transaction.transaction_id)
            case TransactionType.CHARGEBACK:
                result = client.chargeback_transaction(transaction.transaction_id)

        self.stats.record(result)

    def apply_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.apply(transaction)

    def snapshot(self) -> List[Account]:
        """Return a copy of every account seen so far."""
        return [dataclasses.replace(client.account) for client in self._accounts.values()]

    def process_file(self, filepath: str) -> List[Account]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")

        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            reader = csv.DictReader(f)
            for row in reader:
                transaction = self._parse_csv_row(row)
                if transaction is None:
                    self.stats.record_malformed()
                    continue
                self.apply(transaction)

        logger.info(f"Finished processing {filepath}: {self.stats}")
        return self.snapshot()

    def _parse_csv_row(self, row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
        """Parse CSV row into Transaction. Returns None for rows that don't fit."""
        try:
            return parse_row(row)
        except (KeyError, ValueError, InvalidOperation) as e:
            logger.debug(f"Dropping row {row}: {e!r}")
            return None


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Turn a ``csv.DictReader`` row into a Transaction.

    Raises KeyError, ValueError or InvalidOperation when the row does not
    describe a valid transaction.
    """
    if None in row:
        raise ValueError("row has more fields than the header")
    normalized = {k.strip(): (v or "").strip() for k, v in row.items()}

    transaction_type = TransactionType(normalized["type"])
    client_id = int(normalized["client"])
    transaction_id = int(normalized["tx"])

    if not 0 <= client_id <= MAX_CLIENT_ID:
        raise ValueError(f"client id {client_id} out of range")
    if not 0 <= transaction_id <= MAX_TRANSACTION_ID:
        raise ValueError(f"transaction id {transaction_id} out of range")

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        amount = Decimal(amount_str)
        if not amount.is_finite():
            raise ValueError(f"amount {amount_str} is not a finite number")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )
