from decimal import Decimal

from app.llm.classifier import parse_amount, parse_classification
from app.models.schemas import CategorySuggestion, Intent
from tests.conftest import intent_answer


def test_parse_classification_reads_all_keys():
    raw = intent_answer("adicionar uma despesa", "camisa", "20")

    result = parse_classification(raw)

    assert result.intent == Intent.EXPENSE
    assert result.description == "camisa"
    assert result.amount == Decimal("20")
    assert result.category_name is None
    assert result.available


def test_parse_classification_tolerates_markup_and_brackets():
    raw = "**intenção:** [adicionar uma categoria]\n- nome: [transporte]\nvalor: [valor]"

    result = parse_classification(raw)

    assert result.intent == Intent.ADD_CATEGORY
    assert result.category_name == "transporte"
    assert result.amount is None


def test_missing_intent_line_is_uncertain():
    result = parse_classification("descrição: camisa\nvalor: 20")

    assert result.intent == Intent.UNCERTAIN


def test_unknown_intent_label_is_uncertain():
    assert parse_classification("intenção: pedir pizza").intent == Intent.UNCERTAIN
    assert parse_classification("intenção: incerto").intent == Intent.UNCERTAIN


def test_malformed_amount_does_not_raise():
    result = parse_classification(intent_answer("adicionar uma despesa", "camisa", "vinte"))

    assert result.intent == Intent.EXPENSE
    assert result.amount is None


def test_parse_amount_formats():
    assert parse_amount("20") == Decimal("20")
    assert parse_amount("1850.50") == Decimal("1850.50")
    assert parse_amount("R$ 1.850,50") == Decimal("1850.50")
    assert parse_amount("12,5") == Decimal("12.5")
    assert parse_amount("1.000.000") == Decimal("1000000")
    assert parse_amount("-300") == Decimal("-300")
    assert parse_amount("abc") is None
    assert parse_amount("") is None
    assert parse_amount(None) is None


async def test_classify_makes_one_model_call(classifier, llm):
    llm.intents["salário 1850"] = intent_answer("adicionar uma receita", "salário", "1850")

    result = await classifier.classify("salário 1850")

    assert result.intent == Intent.INCOME
    assert result.amount == Decimal("1850")
    assert len(llm.prompts) == 1


async def test_classify_degrades_when_model_fails(classifier, llm):
    llm.fail = True

    result = await classifier.classify("camisa 20")

    assert result.available is False
    assert result.intent == Intent.UNCERTAIN


async def test_resolve_category_matches_known_category_ignoring_case(classifier, llm):
    llm.categories["camisa"] = "VESTUÁRIO"

    category = await classifier.resolve_category("camisa", ["Vestuário", "Mercado"])

    assert category == "Vestuário"


async def test_resolve_category_wraps_new_suggestion(classifier, llm):
    llm.categories["camisa"] = "Sugestão: Roupas."

    category = await classifier.resolve_category("camisa", [])

    assert category == CategorySuggestion(name="roupas")
    assert "nenhuma" in llm.prompts[-1]


async def test_resolve_category_returns_none_when_model_fails(classifier, llm):
    llm.fail = True

    assert await classifier.resolve_category("camisa", ["roupas"]) is None
