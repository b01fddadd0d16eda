"""OpenRouter-compatible completion service.

Handles all communication with an OpenAI-compatible chat completions
endpoint (OpenRouter by default). The rest of the application only
uses `complete()`, a single blocking prompt → text call.

Requests carry an explicit timeout and are never retried; any failure
surfaces immediately as a CompletionError.

Usage:
    from app.services.llm_service import LLMService

    service = LLMService(api_key="...", model="openai/gpt-3.5-turbo")
    text = service.complete("Summarize photosynthesis", system_prompt="You are ...")
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from app.utils.exceptions import CompletionError, CompletionRateLimitError, CompletionTimeoutError

logger = structlog.get_logger(__name__)


@dataclass
class LLMResponse:
    """Structured response from the completion endpoint."""
    content: str | None = None
    model: str = ""
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str = ""


class LLMService:
    """Client for an OpenAI-compatible chat completions API.

    Args:
        api_key: OpenRouter API key.
        model: Default model identifier when a call does not name one.
        base_url: API base URL.
        timeout: HTTP request timeout in seconds.
        temperature: Default sampling temperature.
        max_tokens: Default max tokens per completion.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-3.5-turbo",
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: int = 60,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens

        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout, connect=10),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": "https://educator-assistant.local",
                "X-Title": "Educator Assistant Chat",
            },
            follow_redirects=True,
        )

    @property
    def default_model(self) -> str:
        return self._model

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # ── Core API ──────────────────────────────────────────────────────

    def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system_prompt: str | None = None,
    ) -> str:
        """Send one prompt and return the generated text.

        Args:
            prompt: Full user prompt text.
            model: Model override (defaults to the service's model).
            system_prompt: Optional system persona.

        Returns:
            The completion text.

        Raises:
            CompletionError: On backend failure or an empty completion.
        """
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.chat_completion(messages, model=model)
        if not response.content or not response.content.strip():
            raise CompletionError(message="Completion backend returned an empty response")
        return response.content

    def chat_completion(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Args:
            messages: Conversation messages in OpenAI format.
            model: Model override.
            temperature: Sampling temperature (0.0–2.0).
            max_tokens: Maximum tokens in the response.

        Returns:
            Parsed LLMResponse.
        """
        payload: dict[str, Any] = {
            "model": model or self._model,
            "messages": messages,
            "temperature": self._temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self._max_tokens,
        }
        return self._send_request(payload)

    # ── Request Handling ──────────────────────────────────────────────

    def _send_request(self, payload: dict[str, Any]) -> LLMResponse:
        """POST the payload once and parse the result."""
        logger.info(
            "llm_request",
            model=payload["model"],
            messages_count=len(payload.get("messages", [])),
        )

        start = time.monotonic()
        try:
            response = self._client.post("/chat/completions", json=payload)
        except httpx.TimeoutException as e:
            logger.warning("llm_timeout", model=payload["model"], error=str(e))
            raise CompletionTimeoutError(timeout=self._timeout) from e
        except httpx.HTTPError as e:
            logger.error("llm_transport_error", model=payload["model"], error=str(e))
            raise CompletionError(message=f"Completion backend unreachable: {e}") from e
        duration_ms = round((time.monotonic() - start) * 1000)

        if response.status_code == 429:
            retry_after = float(response.headers.get("Retry-After", 5))
            logger.warning("llm_rate_limited", retry_after=retry_after)
            raise CompletionRateLimitError(retry_after=retry_after)

        if response.status_code >= 400:
            error_body = response.text
            logger.error("llm_error", status=response.status_code, body=error_body[:500])
            raise CompletionError(
                message=f"Completion API error: {response.status_code}: {error_body[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(message="Completion backend returned invalid JSON") from e

        result = self._parse_response(data, payload["model"])

        logger.info(
            "llm_response",
            model=result.model,
            has_content=bool(result.content),
            finish_reason=result.finish_reason,
            duration_ms=duration_ms,
            usage=result.usage,
        )
        return result

    # ── Response Parsing ──────────────────────────────────────────────

    @staticmethod
    def _parse_response(data: dict[str, Any], requested_model: str) -> LLMResponse:
        """Parse the raw JSON response into an LLMResponse."""
        choices = data.get("choices", [])
        if not choices:
            raise CompletionError(message="Completion backend returned no choices in response")

        choice = choices[0]
        message = choice.get("message", {})

        usage = data.get("usage", {})
        usage_info = {
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        }

        return LLMResponse(
            content=message.get("content"),
            model=data.get("model", requested_model),
            usage=usage_info,
            finish_reason=choice.get("finish_reason", ""),
        )
