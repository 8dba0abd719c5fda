from loguru import logger

from app.config import get_settings
from app.core.conversation import ConversationManager
from app.core.executor import CommandExecutor
from app.core.resolver import CommandResolver
from app.db.repository import LedgerRepository
from app.llm.classifier import IntentClassifier
from app.llm.client import LanguageModel

settings = get_settings()


async def log_only_send(user_id: str, text: str) -> None:
    """Sender used until a messaging transport is attached."""
    logger.warning("No transport attached, dropping message to {}: {}", user_id, text)


repo = LedgerRepository(settings.db_path, timezone=settings.timezone)
llm = LanguageModel(
    api_key=settings.openrouter_api_key,
    model=settings.llm_model,
    base_url=settings.llm_base_url,
    timeout=settings.llm_timeout_seconds,
)
classifier = IntentClassifier(llm)
resolver = CommandResolver(settings.ambiguous_terms)
executor = CommandExecutor(repo, recent_limit=settings.recent_transactions_limit)
conversation = ConversationManager(
    repo,
    classifier,
    resolver,
    executor,
    send=log_only_send,
    timeout=settings.pending_timeout_seconds,
)
