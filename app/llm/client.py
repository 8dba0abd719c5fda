from loguru import logger
from openai import AsyncOpenAI

from app.llm.prompts import SYSTEM_PROMPT


class LanguageModel:
    """Thin async wrapper around an OpenAI-compatible chat endpoint.

    ``complete`` never raises: any SDK error or timeout is logged and turned
    into ``None`` so callers can degrade to a fixed reply.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 20.0,
    ):
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=1,
        )
        self.model = model

    async def complete(self, prompt: str) -> str | None:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.1,
            )
            raw = (response.choices[0].message.content or "").strip()
            logger.debug("LLM raw response: {}", raw)
            return raw
        except Exception as e:
            logger.error("LLM request failed: {}", e)
            return None
