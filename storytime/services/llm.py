"""LLM service for OpenRouter chat completions."""

import logging

import httpx

from storytime.config import get_settings

logger = logging.getLogger(__name__)


class LLMConfigurationError(RuntimeError):
    """Raised when the LLM service is used without an API key."""


class LLMService:
    """Service for interacting with an OpenAI-compatible chat completion API."""

    def __init__(self, model: str | None = None) -> None:
        self.settings = get_settings()
        self.base_url = self.settings.openrouter_base_url.rstrip("/")
        self.api_key = self.settings.openrouter_api_key
        self.model = model or self.settings.llm_model
        self.timeout = self.settings.llm_timeout_seconds

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "StoryTime AI",
        }

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.8,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a response from the LLM.

        Raises ``LLMConfigurationError`` when no API key is configured and
        ``httpx.HTTPError`` for transport or HTTP status failures. Returns an
        empty string when the upstream reply carries no message text.
        """
        if not self.api_key:
            raise LLMConfigurationError("OpenRouter API key not configured")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                    "stream": False,
                },
            )
            response.raise_for_status()
            data = response.json()

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def health_check(self) -> bool:
        """Check if the upstream API is reachable with the configured key."""
        if not self.api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self.base_url}/models", headers=self._headers())
                response.raise_for_status()
                return True
        except httpx.HTTPError:
            return False


def get_llm_service() -> LLMService:
    """Get an LLM service instance."""
    return LLMService()
