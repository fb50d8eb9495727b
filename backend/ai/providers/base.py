from abc import ABC, abstractmethod

import httpx


class AIProvider(ABC):
    """Abstract base class for all AI providers."""

    DEFAULT_MODEL: str = ""

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        timeout_seconds: float = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self._model = model
        self._timeout = timeout_seconds
        self._transport = transport

    @property
    def name(self) -> str:
        return type(self).__name__

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    @abstractmethod
    async def chat(
        self,
        messages: list[dict],
        system: str = "",
        json_mode: bool = False,
        max_tokens: int = 4096,
    ) -> dict:
        """Send a chat request to the provider.

        Args:
            messages: List of message dicts with role and content.
            system: Optional system prompt.
            json_mode: Ask the model to answer with a single JSON object.
            max_tokens: Upper bound on completion tokens.

        Returns:
            dict with content, tokens_in, tokens_out, model.

        Raises:
            UpstreamError if the provider rejects the request or is unreachable.
        """
        ...

    def get_model(self) -> str:
        """Return the configured model identifier, or the provider default."""
        return self._model or self.DEFAULT_MODEL
