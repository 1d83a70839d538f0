"""
Token ledger collaborator.

The engine needs exactly one thing from the ledger: credit(account, amount).
Balances, transfers and burns belong to whatever ledger is plugged in.
"""
from typing import Dict, List
import threading
import logging
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Account(BaseModel):
    address: str
    balance: int = 0


class Ledger:
    def credit(self, account: str, amount: int) -> None:
        raise NotImplementedError


class InMemoryLedger(Ledger):
    """Dict-backed ledger used by the devnet node and tests."""

    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.Lock()

    def credit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit negative amount {amount}")
        with self._lock:
            acc = self._accounts.get(account) or Account(address=account)
            acc.balance += amount
            self._accounts[account] = acc
        logger.debug(f"Credited {amount} to {account}")

    def get_account(self, address: str) -> Account:
        acc = self._accounts.get(address)
        return acc.model_copy() if acc else Account(address=address)

    def balance_of(self, address: str) -> int:
        return self.get_account(address).balance

    def total_supply(self) -> int:
        return sum(acc.balance for acc in self._accounts.values())

    def accounts(self) -> List[Account]:
        return [acc.model_copy() for acc in self._accounts.values()]
