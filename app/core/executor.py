from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from loguru import logger

from app.core import messages
from app.core.messages import money
from app.db.repository import LedgerRepository
from app.models.schemas import Command, TransactionType

Sender = Callable[[str, str], Awaitable[None]]


def month_bounds(year: int, month: int, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Start of the month and start of the next one, in ``tz``."""
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return start, end


def previous_month(today: date) -> tuple[int, int]:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


class CommandExecutor:
    def __init__(self, repo: LedgerRepository, recent_limit: int = 10):
        self.repo = repo
        self.recent_limit = recent_limit

    def execute(self, user_id: str, command: Command) -> str:
        """Run a resolved command and render its reply."""
        name = command.name
        logger.info("Executing {} for {}", name, user_id)

        if name in ("add_expense", "add_income"):
            if command.category is None:
                raise ValueError(f"{name} needs a category before it can run")
            transaction_type = "expense" if name == "add_expense" else "income"
            return self.add_transaction(
                user_id,
                transaction_type,
                command.amount,
                command.category,
                command.description,
            )
        if name == "set_balance":
            self.repo.set_balance(user_id, command.amount)
            return messages.BALANCE_SET.format(amount=money(command.amount))
        if name == "set_limit":
            self.repo.set_spending_limit(user_id, command.amount)
            return messages.LIMIT_SET.format(amount=money(command.amount))
        if name == "report":
            today = self.repo.now()
            return self.monthly_report(user_id, today.year, today.month)
        if name == "help":
            return messages.HELP_MESSAGE
        if name == "show_balance":
            balance = self.repo.get_balance(user_id)
            return messages.SHOW_BALANCE.format(balance=money(balance))
        if name == "list_transactions":
            return self.list_transactions(user_id)
        if name == "delete_all":
            return self.delete_all(user_id)
        if name == "add_category":
            if self.repo.add_category(user_id, command.category):
                return messages.CATEGORY_ADDED.format(name=command.category)
            return messages.CATEGORY_EXISTS
        if name == "list_categories":
            categories = self.repo.get_user(user_id).categories
            if not categories:
                return messages.NO_CATEGORIES
            return messages.CATEGORIES.format(names=", ".join(categories))
        if name == "activate_reminder":
            self.repo.set_reminder_mode(user_id, True)
            return messages.REMINDER_ON
        if name == "deactivate_reminder":
            self.repo.set_reminder_mode(user_id, False)
            return messages.REMINDER_OFF
        return messages.NOT_UNDERSTOOD

    def add_transaction(
        self,
        user_id: str,
        transaction_type: TransactionType,
        amount: Decimal,
        category: str,
        description: str,
    ) -> str:
        transaction = self.repo.add_transaction(
            user_id, transaction_type, amount, category, description
        )
        fields = dict(
            amount=money(amount),
            category=category,
            description=description,
            id=transaction.id,
        )
        if transaction_type == "income":
            return messages.INCOME_ADDED.format(**fields)

        lines = [messages.EXPENSE_ADDED.format(**fields)]
        user = self.repo.get_user(user_id)
        if user.spending_limit is not None:
            now = self.repo.now()
            start, end = month_bounds(now.year, now.month, self.repo.tz)
            spent = self.repo.expense_total_between(user_id, start, end)
            if spent > user.spending_limit:
                lines.append(messages.OVER_LIMIT)
            else:
                lines.append(
                    messages.LIMIT_HEADROOM.format(
                        remaining=money(user.spending_limit - spent)
                    )
                )
        if user.reminder_mode:
            reminder = messages.REMINDER_BALANCE.format(balance=money(user.balance))
            if user.balance < 0:
                reminder += messages.NEGATIVE_BALANCE.format(deficit=money(-user.balance))
            lines.append(reminder)
        return "\n".join(lines)

    def delete_all(self, user_id: str) -> str:
        self.repo.delete_all_transactions(user_id)
        return messages.DELETED_ALL

    def list_transactions(self, user_id: str) -> str:
        transactions = self.repo.last_transactions(user_id, self.recent_limit)
        if not transactions:
            return messages.NO_TRANSACTIONS
        lines = [messages.LAST_TRANSACTIONS.format(count=len(transactions))]
        for tx in transactions:
            lines.append(
                messages.TRANSACTION_LINE.format(
                    date=tx.date.astimezone(self.repo.tz).strftime("%d/%m/%Y %H:%M"),
                    kind="Gasto" if tx.type == "expense" else "Receita",
                    amount=money(tx.amount),
                    category=tx.category,
                    description=tx.description,
                    id=tx.id,
                )
            )
        return "\n".join(lines)

    def monthly_report(self, user_id: str, year: int, month: int) -> str:
        """Per-category income and expense for one calendar month."""
        start, end = month_bounds(year, month, self.repo.tz)
        transactions = self.repo.transactions_between(user_id, start, end)

        by_category: dict[str, dict[str, Decimal]] = defaultdict(
            lambda: {"income": Decimal("0"), "expense": Decimal("0")}
        )
        for tx in transactions:
            by_category[tx.category][tx.type] += tx.amount
        total_income = sum((c["income"] for c in by_category.values()), Decimal("0"))
        total_expense = sum((c["expense"] for c in by_category.values()), Decimal("0"))

        lines = [
            f"📊 Relatório de {messages.MONTH_NAMES[month - 1]} {year}",
            f"💰 Receitas: {money(total_income)}",
            f"💸 Despesas: {money(total_expense)}",
            f"📈 Saldo: {money(total_income - total_expense)}",
            "",
            "Por categoria:",
        ]
        if not by_category:
            lines.append("- nenhuma transação no período")
        for category, totals in sorted(by_category.items()):
            lines.append(
                f"- {category}: 💰 {money(totals['income'])} | 💸 {money(totals['expense'])}"
            )
        return "\n".join(lines)

    async def send_monthly_reports(
        self, send: Sender, today: date | None = None
    ) -> tuple[int, int]:
        """Push last month's report to every known user. Returns (sent, failed)."""
        today = today or self.repo.now().date()
        year, month = previous_month(today)
        sent = failed = 0
        for user in self.repo.all_users():
            try:
                report = self.monthly_report(user.id, year, month)
                await send(user.id, messages.MONTHLY_SUMMARY.format(report=report))
                sent += 1
            except Exception as e:
                logger.error("Monthly report for {} failed: {}", user.id, e)
                failed += 1
        logger.info("Monthly reports for {}-{:02d}: {} sent, {} failed", year, month, sent, failed)
        return sent, failed
