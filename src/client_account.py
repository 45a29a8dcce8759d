import logging
from decimal import Decimal, Inexact
from typing import Dict, Optional

from models import Account, HistoryEntry, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class ClientAccount:
    """
    A single client's balances plus the deposits that may still be disputed.
    Every transition checks all of its guards before touching any field,
    so a rejected transaction leaves the account exactly as it was.
    """

    def __init__(self, client_id: int):
        self.account = Account(client_id=client_id)
        self.history: Dict[int, HistoryEntry] = {}

    @property
    def client_id(self) -> int:
        return self.account.client_id

    def get_transaction(self, transaction_id: int) -> Optional[HistoryEntry]:
        """Retrieve a recorded deposit by ID."""
        return self.history.get(transaction_id)

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a deposit or withdrawal.

        Ignored when the account is locked, when the transaction ID already
        belongs to a recorded deposit, or when the amount is negative.
        A missing amount counts as zero. Withdrawals need strictly more
        available funds than the amount and are never recorded in history.
        """
        transaction_id = transaction.transaction_id

        if self.account.locked:
            logger.debug(f"{transaction}: account {self.client_id} is locked")
            return ProcessingResult.IGNORED

        if transaction_id in self.history:
            logger.debug(f"{transaction}: transaction id already used by a deposit")
            return ProcessingResult.IGNORED

        amount = transaction.amount if transaction.amount is not None else Decimal("0")
        if amount < 0:
            logger.debug(f"{transaction}: negative amount")
            return ProcessingResult.IGNORED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                try:
                    self.account.credit(amount)
                except Inexact:
                    logger.debug(f"{transaction}: balance cannot hold the result exactly")
                    return ProcessingResult.IGNORED
                self.history[transaction_id] = HistoryEntry(amount=amount)
                return ProcessingResult.SUCCESS
            case TransactionType.WITHDRAWAL if self.account.available > amount:
                try:
                    self.account.debit(amount)
                except Inexact:
                    logger.debug(f"{transaction}: balance cannot hold the result exactly")
                    return ProcessingResult.IGNORED
                return ProcessingResult.SUCCESS
            case TransactionType.WITHDRAWAL:
                logger.debug(f"{transaction}: insufficient funds ({self.account.available} available)")
                return ProcessingResult.IGNORED
            case _:
                return ProcessingResult.IGNORED

    def dispute_transaction(self, transaction_id: int) -> ProcessingResult:
        # Disputes are accepted on locked accounts too.
        entry = self.history.get(transaction_id)

        if entry is None:
            logger.debug(f"Dispute for tx {transaction_id}: no deposit with this id for client {self.client_id}")
            return ProcessingResult.IGNORED

        if entry.in_dispute:
            logger.debug(f"Dispute for tx {transaction_id}: transaction already disputed")
            return ProcessingResult.IGNORED

        try:
            self.account.hold(entry.amount)
        except Inexact:
            logger.debug(f"Dispute for tx {transaction_id}: balance cannot hold the result exactly")
            return ProcessingResult.IGNORED
        entry.in_dispute = True
        return ProcessingResult.SUCCESS

    def resolve_transaction(self, transaction_id: int) -> ProcessingResult:
        if self.account.locked:
            logger.debug(f"Resolve for tx {transaction_id}: account {self.client_id} is locked")
            return ProcessingResult.IGNORED

        entry = self.history.get(transaction_id)
        if entry is None or not entry.in_dispute:
            logger.debug(f"Resolve for tx {transaction_id}: transaction not under dispute")
            return ProcessingResult.IGNORED

        try:
            self.account.release_hold(entry.amount)
        except Inexact:
            logger.debug(f"Resolve for tx {transaction_id}: balance cannot hold the result exactly")
            return ProcessingResult.IGNORED
        entry.in_dispute = False
        return ProcessingResult.SUCCESS

    def chargeback_transaction(self, transaction_id: int) -> ProcessingResult:
        """
        Reverse a disputed deposit and lock the account.

        The entry stays flagged as disputed afterwards; further chargebacks
        are stopped by the lock instead.
        """
        if self.account.locked:
            logger.debug(f"Chargeback for tx {transaction_id}: account {self.client_id} is locked")
            return ProcessingResult.IGNORED

        entry = self.history.get(transaction_id)
        if entry is None or not entry.in_dispute:
            logger.debug(f"Chargeback for tx {transaction_id}: transaction not under dispute")
            return ProcessingResult.IGNORED

        try:
            self.account.remove_held(entry.amount)
        except Inexact:
            logger.debug(f"Chargeback for tx {transaction_id}: balance cannot hold the result exactly")
            return ProcessingResult.IGNORED
        self.account.locked = True
        return ProcessingResult.SUCCESS
