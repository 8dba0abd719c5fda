import threading
from datetime import datetime
from decimal import Decimal
from functools import wraps
from zoneinfo import ZoneInfo

from loguru import logger
from tinydb import Query, TinyDB

from app.models.schemas import AuditLogEntry, Transaction, TransactionType, User


class LedgerStoreError(Exception):
    """The ledger store could not complete an operation."""


def _store_operation(func):
    """Serialize access to the store and surface storage errors as LedgerStoreError."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return func(self, *args, **kwargs)
            except LedgerStoreError:
                raise
            except (OSError, ValueError, KeyError) as e:
                logger.error("Ledger store failure in {}: {}", func.__name__, e)
                raise LedgerStoreError(f"{func.__name__} failed: {e}") from e

    return wrapper


class LedgerRepository:
    def __init__(self, db_path: str = "finance_ledger.json", timezone: str = "UTC"):
        self.db = TinyDB(db_path)
        self.users = self.db.table("users")
        self.transactions = self.db.table("transactions")
        self.logs = self.db.table("logs")
        self.tz = ZoneInfo(timezone)
        self._lock = threading.RLock()

    def now(self) -> datetime:
        return datetime.now(self.tz)

    # Users

    @_store_operation
    def get_user(self, user_id: str) -> User:
        U = Query()
        doc = self.users.get(U.id == user_id)
        if doc is None:
            user = User(id=user_id)
            data = user.model_dump(mode="json")
            data["last_applied_tx"] = 0
            self.users.insert(data)
            logger.info("Created user {}", user_id)
            return user
        return User(**doc)

    @_store_operation
    def all_users(self) -> list[User]:
        return [User(**doc) for doc in self.users.all()]

    @_store_operation
    def find_user(self, user_id: str) -> User | None:
        U = Query()
        doc = self.users.get(U.id == user_id)
        if doc is None:
            return None
        return User(**doc)

    @_store_operation
    def get_balance(self, user_id: str) -> Decimal:
        return self.get_user(user_id).balance

    @_store_operation
    def set_balance(self, user_id: str, amount: Decimal) -> User:
        """Override the balance. The transaction log is left untouched."""
        self.get_user(user_id)
        self._update_user(user_id, balance=str(amount))
        return self.get_user(user_id)

    @_store_operation
    def set_spending_limit(self, user_id: str, amount: Decimal | None) -> User:
        self.get_user(user_id)
        self._update_user(
            user_id, spending_limit=str(amount) if amount is not None else None
        )
        return self.get_user(user_id)

    @_store_operation
    def set_reminder_mode(self, user_id: str, enabled: bool) -> User:
        self.get_user(user_id)
        self._update_user(user_id, reminder_mode=enabled)
        return self.get_user(user_id)

    @_store_operation
    def add_category(self, user_id: str, name: str) -> bool:
        """Add a category unless one with the same name (ignoring case) exists."""
        user = self.get_user(user_id)
        if any(cat.lower() == name.lower() for cat in user.categories):
            return False
        self._update_user(user_id, categories=[*user.categories, name])
        return True

    def _update_user(self, user_id: str, **fields) -> None:
        U = Query()
        self.users.update(fields, U.id == user_id)

    # Transactions

    @_store_operation
    def add_transaction(
        self,
        user_id: str,
        type: TransactionType,
        amount: Decimal,
        category: str,
        description: str,
        date: datetime | None = None,
        fixed_expense_id: str | None = None,
    ) -> Transaction:
        """Record a transaction and move the user's balance with it.

        The row is written as pending first; the balance and the
        ``last_applied_tx`` marker are then written together, and the pending
        flag is cleared last. ``recover_pending`` finishes whatever a crash
        left in between.
        """
        self.get_user(user_id)
        transaction = Transaction(
            user_id=user_id,
            date=date or self.now(),
            type=type,
            amount=amount,
            category=category,
            description=description,
            fixed_expense_id=fixed_expense_id,
        )
        data = transaction.model_dump(mode="json")
        data.pop("id", None)
        data["pending"] = True
        doc_id = self.transactions.insert(data)

        self._apply_to_balance(user_id, doc_id, transaction.signed_amount)
        self.transactions.update({"pending": False}, doc_ids=[doc_id])

        transaction.id = doc_id
        return transaction

    def _apply_to_balance(self, user_id: str, doc_id: int, delta: Decimal) -> None:
        U = Query()
        doc = self.users.get(U.id == user_id)
        balance = Decimal(doc["balance"]) + delta
        self.users.update(
            {"balance": str(balance), "last_applied_tx": doc_id}, U.id == user_id
        )

    @_store_operation
    def recover_pending(self) -> int:
        """Finish transactions interrupted between insert and balance update."""
        Tx = Query()
        U = Query()
        pending = sorted(self.transactions.search(Tx.pending == True), key=lambda d: d.doc_id)  # noqa: E712
        recovered = 0
        for doc in pending:
            user_doc = self.users.get(U.id == doc["user_id"])
            if user_doc is None:
                self.get_user(doc["user_id"])
                user_doc = self.users.get(U.id == doc["user_id"])
            if user_doc.get("last_applied_tx", 0) < doc.doc_id:
                transaction = Transaction(id=doc.doc_id, **doc)
                self._apply_to_balance(doc["user_id"], doc.doc_id, transaction.signed_amount)
                recovered += 1
            self.transactions.update({"pending": False}, doc_ids=[doc.doc_id])
        if pending:
            logger.warning(
                "Recovered {} pending transactions ({} balance corrections)",
                len(pending),
                recovered,
            )
        return recovered

    @_store_operation
    def get_transactions(self, user_id: str) -> list[Transaction]:
        Tx = Query()
        docs = self.transactions.search(Tx.user_id == user_id)
        return [Transaction(id=doc.doc_id, **doc) for doc in docs]

    @_store_operation
    def last_transactions(self, user_id: str, limit: int = 10) -> list[Transaction]:
        transactions = self.get_transactions(user_id)
        transactions.sort(key=lambda tx: (tx.date, tx.id), reverse=True)
        return transactions[:limit]

    @_store_operation
    def transactions_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Transaction]:
        """Transactions with ``start <= date < end``."""
        return [
            tx for tx in self.get_transactions(user_id) if start <= tx.date < end
        ]

    @_store_operation
    def expense_total_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> Decimal:
        return sum(
            (
                tx.amount
                for tx in self.transactions_between(user_id, start, end)
                if tx.type == "expense"
            ),
            Decimal("0"),
        )

    @_store_operation
    def delete_all_transactions(self, user_id: str) -> int:
        """Remove every transaction of the user and reset the balance to zero."""
        Tx = Query()
        removed = self.transactions.remove(Tx.user_id == user_id)
        self.get_user(user_id)
        # Row ids restart at 1 once the table is empty, so the marker must too.
        self._update_user(user_id, balance="0", last_applied_tx=0)
        logger.info("Deleted {} transactions for {}", len(removed), user_id)
        return len(removed)

    # Audit log

    @_store_operation
    def append_log(self, user_id: str, message: str, response: str) -> AuditLogEntry:
        entry = AuditLogEntry(
            user_id=user_id, timestamp=self.now(), message=message, response=response
        )
        self.logs.insert(entry.model_dump(mode="json"))
        return entry

    @_store_operation
    def get_logs(self, user_id: str) -> list[AuditLogEntry]:
        L = Query()
        return [AuditLogEntry(**doc) for doc in self.logs.search(L.user_id == user_id)]
