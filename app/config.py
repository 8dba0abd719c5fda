from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openrouter_api_key: str = ""
    telegram_bot_token: str = ""
    db_path: str = "finance_ledger.json"
    llm_model: str = "google/gemini-2.0-flash-exp"
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_timeout_seconds: float = 20.0
    timezone: str = "America/Sao_Paulo"
    pending_timeout_seconds: float = 60.0
    recent_transactions_limit: int = 10
    ambiguous_terms: list[str] = ["transferência", "transferencia"]
    monthly_report_hour: int = 9


@lru_cache
def get_settings() -> Settings:
    return Settings()
