import re
from decimal import Decimal, InvalidOperation

from loguru import logger

from app.llm.client import LanguageModel
from app.llm.prompts import (
    AMOUNT_KEY,
    DESCRIPTION_KEY,
    INTENT_KEY,
    INTENT_LABELS,
    NAME_KEY,
    build_category_prompt,
    build_intent_prompt,
)
from app.models.schemas import CategorySuggestion, Classification, Intent

_KNOWN_KEYS = (INTENT_KEY, DESCRIPTION_KEY, AMOUNT_KEY, NAME_KEY)
_LABEL_TO_INTENT = {label: intent for intent, (label, _) in INTENT_LABELS.items()}
_PLACEHOLDERS = {"", "-", "n/a", "nenhum", "nenhuma", "null", "none", "vazio"}
_SUGGESTION_PREFIX = re.compile(r"^(sugestão|sugestao|categoria)\s*:\s*", re.IGNORECASE)
_NUMBER = re.compile(r"-?\d+(\.\d+)?")


def _clean_value(value: str) -> str | None:
    cleaned = value.strip().strip("*").strip().strip("[]").strip().strip("\"'").strip()
    if cleaned.lower() in _PLACEHOLDERS:
        return None
    return cleaned


def parse_amount(value: str | None) -> Decimal | None:
    """Parse '20', '1850.50', 'R$ 1.850,50' and friends. Anything else is None."""
    if value is None:
        return None
    text = value.lower().replace("r$", "").replace("reais", "").replace(" ", "")
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    elif text.count(".") > 1:
        text = text.replace(".", "")
    if not _NUMBER.fullmatch(text):
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_classification(raw: str) -> Classification:
    """Read the ``key: value`` lines of a classification answer."""
    fields: dict[str, str | None] = {}
    for line in raw.splitlines():
        key, sep, value = line.strip().lstrip("-•* ").partition(":")
        if not sep:
            continue
        key = key.strip().strip("*").strip().lower()
        if key in _KNOWN_KEYS and key not in fields:
            fields[key] = _clean_value(value)

    if INTENT_KEY not in fields:
        return Classification(intent=Intent.UNCERTAIN)

    label = (fields[INTENT_KEY] or "").lower()
    intent = _LABEL_TO_INTENT.get(label, Intent.UNCERTAIN)
    return Classification(
        intent=intent,
        description=fields.get(DESCRIPTION_KEY),
        amount=parse_amount(fields.get(AMOUNT_KEY)),
        category_name=fields.get(NAME_KEY),
    )


def _clean_category(raw: str) -> str:
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    if not lines:
        return ""
    name = _SUGGESTION_PREFIX.sub("", lines[0].strip("*").strip())
    return name.strip().strip("\"'*").rstrip(".!").strip().lower()


class IntentClassifier:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def classify(self, text: str) -> Classification:
        raw = await self.llm.complete(build_intent_prompt(text))
        if raw is None:
            return Classification(intent=Intent.UNCERTAIN, available=False)
        classification = parse_classification(raw)
        logger.info(
            "Classified {!r} as {} (description={!r}, amount={})",
            text,
            classification.intent.value,
            classification.description,
            classification.amount,
        )
        return classification

    async def resolve_category(
        self, description: str, categories: list[str]
    ) -> str | CategorySuggestion | None:
        """Pick one of ``categories`` for the item, or wrap the model's new suggestion.

        Returns the stored spelling of a known category when the answer matches
        one ignoring case, and None when the model is unavailable or silent.
        """
        raw = await self.llm.complete(build_category_prompt(description, categories))
        if raw is None:
            return None
        name = _clean_category(raw)
        if not name:
            logger.warning("Empty category answer for {!r}", description)
            return None
        for category in categories:
            if category.lower() == name:
                return category
        return CategorySuggestion(name=name)
