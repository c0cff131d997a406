import base64
import json
from typing import Any

import aiohttp
from aiohttp import ContentTypeError

from src.config.logger_config import logger
from src.config.settings import DEFAULT_ANTHROPIC_BASE_URL
from src.importing.application.contracts import ModelResponse, ModelServiceError, RateLimitError


def image_block(media_type: str, data: bytes) -> dict[str, Any]:
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type,
            "data": base64.b64encode(data).decode("ascii"),
        },
    }


def text_block(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


class AnthropicMessagesClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_ANTHROPIC_BASE_URL,
        api_version: str = "2023-06-01",
        request_timeout_seconds: float = 600,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.request_timeout_seconds = request_timeout_seconds

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/v1/messages"

    async def create_message(
        self,
        session: aiohttp.ClientSession,
        *,
        model: str,
        max_tokens: int,
        content: list[dict[str, Any]] | str,
    ) -> ModelResponse:
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
        }
        timeout = aiohttp.ClientTimeout(total=self.request_timeout_seconds, connect=10)
        async with session.post(self.messages_url, json=payload, headers=headers, timeout=timeout) as resp:
            if resp.status == 429:
                body = await resp.text()
                message = self._error_message(body) or "too many requests"
                logger.warning("Anthropic rate limit (HTTP 429): {}", message)
                raise RateLimitError(f"rate_limit_error: {message}")

            if resp.status >= 400:
                body = await resp.text()
                message = self._error_message(body) or body[:200]
                logger.error("Anthropic request failed with HTTP {}: {}", resp.status, message)
                raise ModelServiceError(
                    f"Anthropic request failed with HTTP {resp.status}: {message}",
                    status=resp.status,
                )

            try:
                data = await resp.json()
            except (ContentTypeError, json.JSONDecodeError, ValueError) as exc:
                raise ModelServiceError(
                    f"Anthropic response was not valid JSON: {exc}",
                    status=resp.status,
                ) from exc

        if not isinstance(data, dict):
            raise ModelServiceError("Anthropic response payload was not an object", status=resp.status)
        return ModelResponse.from_payload(data)

    @staticmethod
    def _error_message(body: str) -> str | None:
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return None
        if not isinstance(parsed, dict):
            return None
        error_payload = parsed.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return None
