import logging

import httpx

from ai.providers.base import AIProvider
from services.errors import UpstreamError

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = "Respond with a single valid JSON object and nothing else."


class AnthropicProvider(AIProvider):
    """Anthropic / Claude AI provider."""

    BASE_URL = "https://api.anthropic.com/v1/messages"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str, model: str | None = None, **kwargs):
        super().__init__(api_key, model, **kwargs)
        self._headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

    async def chat(
        self,
        messages: list[dict],
        system: str = "",
        json_mode: bool = False,
        max_tokens: int = 4096,
    ) -> dict:
        # The Messages API has no response_format switch; ask through the system prompt.
        if json_mode:
            system = f"{system}\n\n{JSON_ONLY_INSTRUCTION}".strip()

        model = self.get_model()
        payload: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            payload["system"] = system

        try:
            async with self._client() as client:
                resp = await client.post(self.BASE_URL, headers=self._headers, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Anthropic request failed: %s", exc)
            raise UpstreamError(f"Anthropic request failed: {exc}") from exc

        if resp.status_code != 200:
            raise UpstreamError(f"Anthropic API error: {resp.text}")
        data = resp.json()

        content = ""
        for block in data.get("content", []):
            if block.get("type") == "text":
                content += block["text"]

        usage = data.get("usage", {})
        return {
            "content": content,
            "tokens_in": usage.get("input_tokens", 0),
            "tokens_out": usage.get("output_tokens", 0),
            "model": data.get("model", model),
        }
