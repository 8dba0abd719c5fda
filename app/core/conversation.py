import asyncio
from contextlib import asynccontextmanager
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from app.core import messages
from app.core.executor import CommandExecutor, Sender
from app.core.messages import money
from app.core.resolver import CommandResolver
from app.db.repository import LedgerRepository, LedgerStoreError
from app.llm.classifier import IntentClassifier
from app.models.schemas import (
    AwaitingCategoryApproval,
    AwaitingClarification,
    AwaitingDeleteConfirmation,
    CategorySuggestion,
    PendingInteraction,
    TransactionType,
)


@dataclass(eq=False)
class _Pending:
    interaction: PendingInteraction
    timer: asyncio.Task | None = field(default=None, repr=False)


class ConversationManager:
    """Per-user conversation state on top of the classify/resolve/execute pipeline.

    A user with a pending interaction has every message routed to it; nothing
    is reclassified until the interaction is answered or times out. Each
    pending interaction owns a single timer task. Resolving the interaction
    cancels that task, and a timer that fires late finds a different (or no)
    entry under the user's lock and does nothing.
    """

    def __init__(
        self,
        repo: LedgerRepository,
        classifier: IntentClassifier,
        resolver: CommandResolver,
        executor: CommandExecutor,
        send: Sender,
        timeout: float = 60.0,
    ):
        self.repo = repo
        self.classifier = classifier
        self.resolver = resolver
        self.executor = executor
        self.timeout = timeout
        self._send = send
        self._pending: dict[str, _Pending] = {}
        # Locks live only while a user has a handler, a timer or a pending interaction.
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._lock_users: dict[str, int] = defaultdict(int)

    @property
    def sender(self) -> Sender:
        return self._send

    def set_sender(self, send: Sender) -> None:
        self._send = send

    def pending_for(self, user_id: str) -> PendingInteraction | None:
        entry = self._pending.get(user_id)
        return entry.interaction if entry else None

    @asynccontextmanager
    async def _user_lock(self, user_id: str):
        """Hold the user's lock, dropping it afterwards if nobody else needs it."""
        self._lock_users[user_id] += 1
        try:
            async with self._locks[user_id]:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                if user_id not in self._pending:
                    self._locks.pop(user_id, None)

    async def handle(self, user_id: str, text: str) -> str | None:
        """Handle one inbound message and return the reply to send back."""
        text = text.strip()
        if not text:
            return None

        async with self._user_lock(user_id):
            logger.info("Message from {}: {}", user_id, text)
            try:
                self.repo.get_user(user_id)
                entry = self._pending.get(user_id)
                if entry is not None:
                    reply = await self._continue(user_id, entry.interaction, text)
                else:
                    reply = await self._start(user_id, text)
            except LedgerStoreError as e:
                logger.error("Store unavailable while handling {}: {}", user_id, e)
                reply = messages.STORE_UNAVAILABLE
            self._audit(user_id, text, reply)
        logger.info("Reply to {}: {}", user_id, reply)
        return reply

    async def _start(self, user_id: str, text: str) -> str:
        classification = await self.classifier.classify(text)
        if not classification.available:
            return messages.MODEL_UNAVAILABLE

        command = self.resolver.resolve(classification)
        if command is None or command.name == "unknown":
            if text.lower() in messages.GREETINGS:
                return messages.GREETING
            return messages.NOT_UNDERSTOOD

        if command.name == "clarify":
            self._open(
                user_id,
                AwaitingClarification(
                    description=command.description, amount=command.amount
                ),
            )
            return messages.ASK_CLARIFICATION
        if command.name == "delete_all":
            self._open(user_id, AwaitingDeleteConfirmation())
            return messages.ASK_DELETE_CONFIRMATION
        if command.name in ("add_expense", "add_income"):
            transaction_type = "expense" if command.name == "add_expense" else "income"
            return await self._categorize(
                user_id, transaction_type, command.description, command.amount, "direct"
            )
        return self.executor.execute(user_id, command)

    async def _continue(
        self, user_id: str, interaction: PendingInteraction, text: str
    ) -> str:
        answer = text.lower()

        if isinstance(interaction, AwaitingClarification):
            if answer not in (messages.INCOME_ANSWER, messages.EXPENSE_ANSWER):
                # Timer keeps running from the original question.
                return messages.REPEAT_CLARIFICATION
            self._close(user_id)
            transaction_type = "income" if answer == messages.INCOME_ANSWER else "expense"
            return await self._categorize(
                user_id,
                transaction_type,
                interaction.description,
                interaction.amount,
                "clarification",
            )

        if isinstance(interaction, AwaitingDeleteConfirmation):
            self._close(user_id)
            if answer == messages.YES:
                return self.executor.delete_all(user_id)
            return messages.ACTION_CANCELLED

        if isinstance(interaction, AwaitingCategoryApproval):
            self._close(user_id)
            if answer != messages.YES:
                if interaction.origin == "clarification":
                    return messages.CATEGORY_DECLINED
                return messages.CATEGORY_DECLINED_DISCARDED.format(
                    amount=money(interaction.amount), description=interaction.description
                )
            self.repo.add_category(user_id, interaction.suggested_category)
            return self.executor.add_transaction(
                user_id,
                interaction.transaction_type,
                interaction.amount,
                interaction.suggested_category,
                interaction.description,
            )

        raise TypeError(f"Unhandled pending interaction: {interaction!r}")

    async def _categorize(
        self,
        user_id: str,
        transaction_type: TransactionType,
        description: str,
        amount: Decimal,
        origin: str,
    ) -> str:
        """Pick a category for a new transaction, asking the user about new ones."""
        categories = self.repo.get_user(user_id).categories
        category = await self.classifier.resolve_category(description, categories)
        if category is None:
            return messages.MODEL_UNAVAILABLE

        if isinstance(category, CategorySuggestion):
            self._open(
                user_id,
                AwaitingCategoryApproval(
                    description=description,
                    amount=amount,
                    transaction_type=transaction_type,
                    suggested_category=category.name,
                    origin=origin,
                ),
            )
            return messages.SUGGEST_CATEGORY.format(
                description=description, category=category.name
            )

        return self.executor.add_transaction(
            user_id, transaction_type, amount, category, description
        )

    # Pending state

    def _open(self, user_id: str, interaction: PendingInteraction) -> None:
        self._close(user_id)
        entry = _Pending(interaction)
        entry.timer = asyncio.create_task(self._expire(user_id, entry))
        self._pending[user_id] = entry
        logger.info("{} is now awaiting {}", user_id, interaction.kind)

    def _close(self, user_id: str) -> None:
        entry = self._pending.pop(user_id, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()

    async def _expire(self, user_id: str, entry: _Pending) -> None:
        await asyncio.sleep(self.timeout)
        async with self._user_lock(user_id):
            if self._pending.get(user_id) is not entry:
                return
            del self._pending[user_id]
            notice = self._timeout_notice(entry.interaction)
            logger.info("{} timed out awaiting {}", user_id, entry.interaction.kind)
            try:
                await self._send(user_id, notice)
            except Exception as e:
                logger.error("Could not deliver timeout notice to {}: {}", user_id, e)

    @staticmethod
    def _timeout_notice(interaction: PendingInteraction) -> str:
        if isinstance(interaction, AwaitingClarification):
            return messages.CLARIFICATION_TIMEOUT.format(
                amount=money(interaction.amount), description=interaction.description
            )
        if isinstance(interaction, AwaitingCategoryApproval):
            return messages.CATEGORY_TIMEOUT
        return messages.ACTION_CANCELLED_TIMEOUT

    async def shutdown(self) -> None:
        """Cancel every outstanding timer without notifying users."""
        entries = list(self._pending.values())
        self._pending.clear()
        for user_id in list(self._locks):
            if user_id not in self._lock_users:
                del self._locks[user_id]
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()
        await asyncio.gather(
            *(e.timer for e in entries if e.timer is not None), return_exceptions=True
        )

    def _audit(self, user_id: str, text: str, reply: str) -> None:
        try:
            self.repo.append_log(user_id, text, reply)
        except LedgerStoreError as e:
            logger.error("Audit log append failed for {}: {}", user_id, e)
