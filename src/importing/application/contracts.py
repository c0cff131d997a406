from dataclasses import dataclass, field
from typing import Any, Union


class ModelServiceError(RuntimeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimitError(ModelServiceError):
    def __init__(self, message: str = "rate_limit_error: too many requests", status: int = 429) -> None:
        super().__init__(message, status=status)


class RetryExhaustedError(RuntimeError):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Rate limit retries exhausted after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ImageBlock:
    media_type: str | None
    type: str = "image"


@dataclass(frozen=True)
class UnknownBlock:
    type: str
    raw: dict[str, Any] = field(default_factory=dict)


ContentBlock = Union[TextBlock, ImageBlock, UnknownBlock]


@dataclass(frozen=True)
class ModelUsage:
    input_tokens: int | None = None
    output_tokens: int | None = None


@dataclass(frozen=True)
class ModelResponse:
    content: tuple[ContentBlock, ...]
    stop_reason: str | None = None
    usage: ModelUsage = field(default_factory=ModelUsage)
    model: str | None = None

    def first_text(self) -> str:
        for block in self.content:
            if isinstance(block, TextBlock):
                return block.text
        return ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ModelResponse":
        blocks: list[ContentBlock] = []
        for item in payload.get("content") or []:
            if not isinstance(item, dict):
                continue
            block_type = str(item.get("type") or "")
            if block_type == "text" and isinstance(item.get("text"), str):
                blocks.append(TextBlock(text=item["text"]))
            elif block_type == "image":
                source = item.get("source") or {}
                blocks.append(ImageBlock(media_type=source.get("media_type")))
            else:
                blocks.append(UnknownBlock(type=block_type, raw=item))

        usage = payload.get("usage") or {}
        return cls(
            content=tuple(blocks),
            stop_reason=payload.get("stop_reason"),
            usage=ModelUsage(
                input_tokens=usage.get("input_tokens"),
                output_tokens=usage.get("output_tokens"),
            ),
            model=payload.get("model"),
        )
