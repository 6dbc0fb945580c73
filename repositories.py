from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional
import asyncio
import uuid
from models import Account, Transaction


class LedgerStore(ABC):
    @abstractmethod
    async def get_or_create_account(self, user_id: int) -> Account:
        """Get the account for a user, creating it with the initial balance if missing."""
        pass

    @abstractmethod
    async def record_transaction(self, transaction: Transaction) -> None:
        """Store a transaction under its own id."""
        pass

    @abstractmethod
    async def get_account(self, user_id: int) -> Optional[Account]:
        """Get account by user id. Returns None if account doesn't exist."""
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get stored transaction by id."""
        pass

    @abstractmethod
    async def get_accounts_count(self) -> int:
        """Get total number of accounts."""
        pass

    @abstractmethod
    async def get_transactions_count(self) -> int:
        """Get total number of stored transactions."""
        pass

    @abstractmethod
    def get_lock(self) -> asyncio.Lock:
        """Get the lock that serializes payment processing."""
        pass


class InMemoryLedgerStore(LedgerStore):
    def __init__(self, initial_balance: float = 1000000.0):
        self.initial_balance = initial_balance
        self.accounts: Dict[int, Account] = {}
        self.transactions: Dict[str, Transaction] = {}
        self.lock = asyncio.Lock()

    async def get_or_create_account(self, user_id: int) -> Account:
        account = self.accounts.get(user_id)
        if account is None:
            account = Account(id=str(uuid.uuid4()), user_id=user_id, balance=self.initial_balance)
            self.accounts[user_id] = account
        return account

    async def record_transaction(self, transaction: Transaction) -> None:
        self.transactions[transaction.id] = transaction

    async def get_account(self, user_id: int) -> Optional[Account]:
        return self.accounts.get(user_id)

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.transactions.get(transaction_id)

    async def get_accounts_count(self) -> int:
        return len(self.accounts)

    async def get_transactions_count(self) -> int:
        return len(self.transactions)

    def get_lock(self) -> asyncio.Lock:
        return self.lock

    def seed(self, balances: Mapping[int, float]) -> None:
        """Install pre-existing accounts (user_id -> balance) before serving requests."""
        for user_id, balance in balances.items():
            self.accounts[user_id] = Account(id=str(uuid.uuid4()), user_id=user_id, balance=balance)
