from datetime import datetime, timezone
from pathlib import Path

from src.config.logger_config import logger
from src.importing.application.ports import DiagnosticSinkPort


class FileDiagnosticSink:
    """Append-only, timestamped import log for operators."""

    def __init__(self, file_path: str | Path, echo: bool = True) -> None:
        self.file_path = Path(file_path)
        self.echo = echo

    def record(self, message: str) -> None:
        if self.echo:
            logger.info("[import] {}", message)
        line = f"[{datetime.now(timezone.utc).isoformat()}] {message}\n"
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.file_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        except Exception as exc:
            logger.warning("Failed to write import log line to {}: {}", str(self.file_path), exc)


class NullDiagnosticSink:
    def record(self, message: str) -> None:
        return None


class GuardedDiagnosticSink:
    """Wraps any sink so that its failures never reach the caller."""

    def __init__(self, inner: DiagnosticSinkPort) -> None:
        self.inner = inner

    def record(self, message: str) -> None:
        try:
            self.inner.record(message)
        except Exception as exc:
            logger.warning("Diagnostic sink failed, line dropped: {}", exc)
