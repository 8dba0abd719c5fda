from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

TransactionType = Literal["income", "expense"]


class User(BaseModel):
    id: str
    balance: Decimal = Decimal("0")
    spending_limit: Decimal | None = None
    categories: list[str] = []
    reminder_mode: bool = False


class Transaction(BaseModel):
    id: int | None = None
    user_id: str
    date: datetime
    type: TransactionType
    amount: Decimal
    category: str
    description: str
    fixed_expense_id: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == "income" else -self.amount


class AuditLogEntry(BaseModel):
    user_id: str
    timestamp: datetime
    message: str
    response: str


class Intent(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    SET_BALANCE = "set_balance"
    SET_LIMIT = "set_limit"
    REPORT = "report"
    HELP = "help"
    SHOW_BALANCE = "show_balance"
    LIST_TRANSACTIONS = "list_transactions"
    DELETE_ALL = "delete_all"
    ADD_CATEGORY = "add_category"
    LIST_CATEGORIES = "list_categories"
    ENABLE_REMINDER = "enable_reminder"
    DISABLE_REMINDER = "disable_reminder"
    UNCERTAIN = "uncertain"


class Classification(BaseModel):
    intent: Intent = Intent.UNCERTAIN
    description: str | None = None
    amount: Decimal | None = None
    category_name: str | None = None
    # False when the language model could not be reached
    available: bool = True


class CategorySuggestion(BaseModel):
    name: str


CommandName = Literal[
    "add_expense",
    "add_income",
    "set_balance",
    "set_limit",
    "report",
    "help",
    "show_balance",
    "list_transactions",
    "delete_all",
    "add_category",
    "list_categories",
    "activate_reminder",
    "deactivate_reminder",
    "clarify",
    "unknown",
]


class Command(BaseModel):
    name: CommandName
    description: str | None = None
    amount: Decimal | None = None
    category: str | None = None


# Pending interactions, at most one per user


class AwaitingClarification(BaseModel):
    kind: Literal["clarification"] = "clarification"
    description: str
    amount: Decimal


class AwaitingDeleteConfirmation(BaseModel):
    kind: Literal["delete_confirmation"] = "delete_confirmation"


class AwaitingCategoryApproval(BaseModel):
    """An add-transaction waiting for the user to accept a new category.

    Accepting stores ``suggested_category`` and then adds the transaction;
    ``origin`` records which flow opened the approval.
    """

    kind: Literal["category_approval"] = "category_approval"
    description: str
    amount: Decimal
    transaction_type: TransactionType
    suggested_category: str
    origin: Literal["direct", "clarification"] = "direct"


PendingInteraction = Annotated[
    Union[AwaitingClarification, AwaitingDeleteConfirmation, AwaitingCategoryApproval],
    Field(discriminator="kind"),
]


# HTTP API


class InboundMessageRequest(BaseModel):
    user_id: str
    text: str


class InboundMessageResponse(BaseModel):
    reply: str | None = None


class ReportResponse(BaseModel):
    user_id: str
    report: str


class MonthlyDispatchResponse(BaseModel):
    sent: int
    failed: int
