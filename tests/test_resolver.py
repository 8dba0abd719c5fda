from decimal import Decimal

import pytest

from app.models.schemas import Classification, Intent


def classification(intent, description=None, amount=None, name=None):
    return Classification(
        intent=intent,
        description=description,
        amount=Decimal(amount) if amount is not None else None,
        category_name=name,
    )


def test_expense_resolves_without_category(resolver):
    command = resolver.resolve(classification(Intent.EXPENSE, "camisa", "20"))

    assert command.name == "add_expense"
    assert command.description == "camisa"
    assert command.amount == Decimal("20")
    assert command.category is None


def test_income_resolves(resolver):
    command = resolver.resolve(classification(Intent.INCOME, "salário", "1850"))

    assert command.name == "add_income"


@pytest.mark.parametrize(
    "description, amount",
    [(None, "20"), ("camisa", None), ("", "20"), ("camisa", "0"), ("camisa", "-5")],
)
def test_expense_with_missing_slot_yields_nothing(resolver, description, amount):
    assert resolver.resolve(classification(Intent.EXPENSE, description, amount)) is None


@pytest.mark.parametrize("amount", ["50", "0.01", "100000"])
@pytest.mark.parametrize("intent", [Intent.EXPENSE, Intent.INCOME])
def test_ambiguous_description_always_clarifies(resolver, intent, amount):
    command = resolver.resolve(classification(intent, "Transferência pro João", amount))

    assert command.name == "clarify"
    assert command.amount == Decimal(amount)
    assert command.description == "Transferência pro João"


def test_set_balance_accepts_zero_and_negative(resolver):
    assert resolver.resolve(classification(Intent.SET_BALANCE, amount="0")).amount == 0
    assert resolver.resolve(classification(Intent.SET_BALANCE, amount="-10")).name == "set_balance"
    assert resolver.resolve(classification(Intent.SET_BALANCE)) is None


def test_set_limit_requires_positive_amount(resolver):
    assert resolver.resolve(classification(Intent.SET_LIMIT, amount="500")).name == "set_limit"
    assert resolver.resolve(classification(Intent.SET_LIMIT, amount="0")) is None
    assert resolver.resolve(classification(Intent.SET_LIMIT)) is None


def test_add_category_requires_name(resolver):
    command = resolver.resolve(classification(Intent.ADD_CATEGORY, name="transporte"))

    assert command.name == "add_category"
    assert command.category == "transporte"
    assert resolver.resolve(classification(Intent.ADD_CATEGORY)) is None


@pytest.mark.parametrize(
    "intent, name",
    [
        (Intent.REPORT, "report"),
        (Intent.HELP, "help"),
        (Intent.SHOW_BALANCE, "show_balance"),
        (Intent.LIST_TRANSACTIONS, "list_transactions"),
        (Intent.DELETE_ALL, "delete_all"),
        (Intent.LIST_CATEGORIES, "list_categories"),
        (Intent.ENABLE_REMINDER, "activate_reminder"),
        (Intent.DISABLE_REMINDER, "deactivate_reminder"),
        (Intent.UNCERTAIN, "unknown"),
    ],
)
def test_slotless_intents(resolver, intent, name):
    assert resolver.resolve(classification(intent)).name == name


async def test_same_text_resolves_to_same_command(classifier, resolver, llm):
    from tests.conftest import intent_answer

    llm.intents["mercado 35,90"] = intent_answer("adicionar uma despesa", "mercado", "35,90")

    first = resolver.resolve(await classifier.classify("mercado 35,90"))
    second = resolver.resolve(await classifier.classify("mercado 35,90"))

    assert first == second
    assert first.name == "add_expense"
    assert first.amount == Decimal("35.90")
