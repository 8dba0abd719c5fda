import os
import tempfile

# Keep the module-level wiring in app.deps away from the working directory.
os.environ.setdefault("DB_PATH", os.path.join(tempfile.mkdtemp(), "ledger.json"))
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "")
os.environ.setdefault("OPENROUTER_API_KEY", "test")

import pytest

from app.core.conversation import ConversationManager
from app.core.executor import CommandExecutor
from app.core.resolver import CommandResolver
from app.db.repository import LedgerRepository
from app.llm.classifier import IntentClassifier

TIMEOUT = 0.05


def intent_answer(label, description=None, amount=None, name=None):
    """Build a model answer in the key: value format the classifier reads."""
    return "\n".join(
        [
            f"intenção: {label}",
            f"descrição: {description or ''}",
            f"valor: {amount or ''}",
            f"nome: {name or ''}",
        ]
    )


class StubLanguageModel:
    """Scripted stand-in for LanguageModel keyed on the user's message."""

    def __init__(self):
        self.intents: dict[str, str] = {}
        self.categories: dict[str, str] = {}
        self.prompts: list[str] = []
        self.fail = False

    async def complete(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        if self.fail:
            return None
        if prompt.startswith("Categorize"):
            for description, answer in self.categories.items():
                if f"'{description}'" in prompt:
                    return answer
            return "outros"
        for message, answer in self.intents.items():
            if f'mensagem em português: "{message}"' in prompt:
                return answer
        return "intenção: incerto"


class Outbox:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def __call__(self, user_id: str, text: str) -> None:
        self.sent.append((user_id, text))


@pytest.fixture
def repo(tmp_path):
    repository = LedgerRepository(str(tmp_path / "ledger.json"), timezone="America/Sao_Paulo")
    yield repository
    repository.db.close()


@pytest.fixture
def llm():
    return StubLanguageModel()


@pytest.fixture
def classifier(llm):
    return IntentClassifier(llm)


@pytest.fixture
def resolver():
    return CommandResolver(["transferência", "transferencia"])


@pytest.fixture
def executor(repo):
    return CommandExecutor(repo, recent_limit=10)


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def conversation(repo, classifier, resolver, executor, outbox):
    return ConversationManager(
        repo, classifier, resolver, executor, send=outbox, timeout=TIMEOUT
    )
