import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class AppSettings:
    anthropic_api_key: str | None
    anthropic_model: str = DEFAULT_MODEL
    anthropic_base_url: str = DEFAULT_ANTHROPIC_BASE_URL
    anthropic_max_tokens: int = 8192
    notes_dir: Path = Path("notes")
    log_dir: Path = Path("logs")
    ingest_api_key: str | None = None
    import_concurrency: int = 3
    import_max_retries: int = 3
    import_retry_base_delay_seconds: float = 15.0
    host: str = "127.0.0.1"
    port: int = 3000

    @property
    def import_log_path(self) -> Path:
        return self.log_dir / "import.log"

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            anthropic_api_key=(os.getenv("ANTHROPIC_API_KEY") or "").strip() or None,
            anthropic_model=(os.getenv("ANTHROPIC_MODEL") or DEFAULT_MODEL).strip(),
            anthropic_base_url=(os.getenv("ANTHROPIC_BASE_URL") or DEFAULT_ANTHROPIC_BASE_URL).strip(),
            anthropic_max_tokens=_env_int("ANTHROPIC_MAX_TOKENS", 8192),
            notes_dir=Path(os.getenv("NOTES_DIR") or "notes"),
            log_dir=Path(os.getenv("LOG_DIR") or "logs"),
            ingest_api_key=(os.getenv("INGEST_API_KEY") or "").strip() or None,
            import_concurrency=_env_int("IMPORT_CONCURRENCY", 3, minimum=1),
            import_max_retries=_env_int("IMPORT_MAX_RETRIES", 3, minimum=0),
            import_retry_base_delay_seconds=_env_float("IMPORT_RETRY_BASE_DELAY_SECONDS", 15.0),
            host=(os.getenv("HOST") or "127.0.0.1").strip(),
            port=_env_int("PORT", 3000),
        )
