from app.models.schemas import Classification, Command, Intent

# Intents that resolve to a command without any slot.
_DIRECT_COMMANDS = {
    Intent.REPORT: "report",
    Intent.HELP: "help",
    Intent.SHOW_BALANCE: "show_balance",
    Intent.LIST_TRANSACTIONS: "list_transactions",
    Intent.DELETE_ALL: "delete_all",
    Intent.LIST_CATEGORIES: "list_categories",
    Intent.ENABLE_REMINDER: "activate_reminder",
    Intent.DISABLE_REMINDER: "deactivate_reminder",
}


class CommandResolver:
    """Maps a classification onto an executable command.

    ``resolve`` returns None when a required slot is missing; callers treat
    that the same as ``unknown``. Expense and income commands come back
    without a category, which is chosen afterwards with the user.
    """

    def __init__(self, ambiguous_terms: list[str]):
        self.ambiguous_terms = [term.lower() for term in ambiguous_terms]

    def is_ambiguous(self, description: str) -> bool:
        lowered = description.lower()
        return any(term in lowered for term in self.ambiguous_terms)

    def resolve(self, classification: Classification) -> Command | None:
        intent = classification.intent
        amount = classification.amount

        if intent in (Intent.EXPENSE, Intent.INCOME):
            description = classification.description
            if not description or amount is None or amount <= 0:
                return None
            if self.is_ambiguous(description):
                return Command(name="clarify", description=description, amount=amount)
            name = "add_expense" if intent == Intent.EXPENSE else "add_income"
            return Command(name=name, description=description, amount=amount)

        if intent == Intent.SET_BALANCE:
            if amount is None:
                return None
            return Command(name="set_balance", amount=amount)

        if intent == Intent.SET_LIMIT:
            if amount is None or amount <= 0:
                return None
            return Command(name="set_limit", amount=amount)

        if intent == Intent.ADD_CATEGORY:
            if not classification.category_name:
                return None
            return Command(name="add_category", category=classification.category_name)

        if intent in _DIRECT_COMMANDS:
            return Command(name=_DIRECT_COMMANDS[intent])

        return Command(name="unknown")
