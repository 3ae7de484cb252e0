import logging
from typing import TypedDict
from openai import AsyncOpenAI
from app.core.config import Settings, get_settings
from app.core.exceptions import GenerationError

logger = logging.getLogger(__name__)


class LLMMessage(TypedDict):
    role: str
    content: str


def _normalize_base_url(base_url: str | None) -> str:
    base_url = (base_url or "https://api.openai.com/v1").rstrip("/")
    if not base_url.endswith("/v1") and "/v1/" not in base_url:
        base_url = f"{base_url}/v1"
    return base_url


class CompletionClient:
    """Process-wide chat completion client for an OpenAI-compatible provider.

    Created once at startup and closed on shutdown. Every failure surfaces as
    GenerationError; nothing is retried.
    """

    def __init__(self, settings: Settings | None = None, client: AsyncOpenAI | None = None):
        self.settings = settings or get_settings()
        self.client = client or AsyncOpenAI(
            api_key=self.settings.openai_api_key or "missing-api-key",
            base_url=_normalize_base_url(self.settings.openai_base_url),
            timeout=self.settings.llm_timeout_seconds,
            max_retries=0,
        )

    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        model = model or self.settings.llm_model
        try:
            completion = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self.settings.llm_temperature if temperature is None else temperature,
                max_tokens=self.settings.llm_max_tokens if max_tokens is None else max_tokens,
            )
        except Exception as e:
            logger.error("LLM request failed model=%s: %s", model, e)
            raise GenerationError(f"LLM generation failed: {e}") from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def close(self) -> None:
        await self.client.close()
