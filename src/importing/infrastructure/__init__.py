"""Infrastructure adapters for importing."""

from src.importing.infrastructure.anthropic_client import AnthropicMessagesClient, image_block, text_block
from src.importing.infrastructure.diagnostic_sink import (
    FileDiagnosticSink,
    GuardedDiagnosticSink,
    NullDiagnosticSink,
)
from src.importing.infrastructure.pdf_text import extract_pdf_text

__all__ = [
    "AnthropicMessagesClient",
    "extract_pdf_text",
    "FileDiagnosticSink",
    "GuardedDiagnosticSink",
    "image_block",
    "NullDiagnosticSink",
    "text_block",
]
