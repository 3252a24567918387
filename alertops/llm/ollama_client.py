"""
Ollama LLM client for alertops.

Thin async wrapper over the two Ollama endpoints the parser needs: the
model catalogue (/api/tags, doubling as a health check) and non-streaming
chat completion (/api/chat). Every call is bounded by a timeout enforced
through cancellation.
"""

import logging
from typing import Optional

import httpx

from alertops.config import get_config
from alertops.utils.error_handling import (
    BackendTimeoutError,
    ModelBackendError,
    is_overload,
    with_timeout,
)

logger = logging.getLogger(__name__)


def normalize_model_name(model: str) -> str:
    """Default a bare model name to its ':latest' tag."""
    return model if ":" in model else f"{model}:latest"


class OllamaClient:
    """Client for interacting with Ollama."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Ollama URL; defaults to OLLAMA_URL / OLLAMA_HOST.
            model: Preferred model; defaults to OLLAMA_MODEL.
            transport: Optional httpx transport (tests use MockTransport).
        """
        settings = get_config().ollama
        resolved = base_url or settings.base_url
        if not resolved.startswith("http"):
            resolved = f"http://{resolved}"
        self.base_url = resolved.rstrip("/")
        self.model = normalize_model_name(model or settings.model)
        self.health_timeout = settings.health_timeout
        self.chat_timeout = settings.chat_timeout
        self.temperature = settings.temperature
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport)

    async def list_models(self) -> list[str]:
        """
        Fetch the model catalogue; this is also the health check.

        Returns:
            Names of locally available models.

        Raises:
            BackendTimeoutError: No answer within the health timeout.
            ModelBackendError: Connection failure, non-2xx status or a body
                that is not a model catalogue.
        """
        async def _fetch() -> httpx.Response:
            async with self._client(self.health_timeout) as client:
                return await client.get("/api/tags")

        try:
            response = await with_timeout(_fetch(), self.health_timeout, "Ollama health check")
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"Ollama health check timed out: {e}") from e
        except httpx.RequestError as e:
            raise ModelBackendError(str(e) or type(e).__name__, category="network") from e

        if response.status_code >= 400:
            raise ModelBackendError(
                f"Ollama returned {response.status_code} for /api/tags",
                category="http",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModelBackendError(f"Ollama returned a non-JSON catalogue: {e}", category="validation") from e

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list) or not all(isinstance(m, dict) for m in models):
            raise ModelBackendError(
                f"Unexpected /api/tags catalogue shape: {response.text[:200]}",
                category="validation",
            )
        return [m["name"] for m in models if isinstance(m.get("name"), str) and m["name"]]

    async def chat(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
    ) -> str:
        """
        Run one non-streaming chat completion.

        Args:
            model: Model to query.
            messages: Chat messages ({role, content}).
            temperature: Sampling temperature (defaults to config).

        Returns:
            Assistant message content.

        Raises:
            BackendTimeoutError: No answer within the chat timeout.
            ModelBackendError: Transport error, non-2xx, non-object body or
                empty content.
        """
        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": self.temperature if temperature is None else temperature,
            },
        }

        async def _post() -> httpx.Response:
            async with self._client(self.chat_timeout) as client:
                return await client.post("/api/chat", json=payload)

        try:
            response = await with_timeout(_post(), self.chat_timeout, f"Request to {model}")
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"Request to {model} timed out: {e}") from e
        except httpx.RequestError as e:
            raise ModelBackendError(
                f"Transport error calling {model}: {str(e) or type(e).__name__}",
                category="overload" if is_overload(None, str(e)) else "network",
            ) from e

        if response.status_code >= 400:
            detail = self._error_detail(response)
            category = "overload" if is_overload(response.status_code, detail) else "http"
            raise ModelBackendError(
                f"Ollama API error: {response.status_code} - {detail}",
                category=category,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ModelBackendError(f"Ollama returned a non-JSON body: {e}", category="validation") from e

        if not isinstance(data, dict):
            raise ModelBackendError(
                f"Ollama returned a {type(data).__name__} instead of a chat object",
                category="validation",
            )

        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        content = content or data.get("response") or ""
        if not isinstance(content, str) or not content.strip():
            raise ModelBackendError("Empty response from Ollama", category="validation")
        return content

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        text = response.text
        try:
            body = response.json()
        except ValueError:
            return text[:200]
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])[:200]
        return text[:200]
