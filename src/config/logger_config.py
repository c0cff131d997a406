import os
import sys
from pathlib import Path

from loguru import logger

log_dir = Path(os.getenv("LOG_DIR", "logs"))
log_file = log_dir / "mdnotes_{time}.log"

logger.remove()
logger.add(sys.stderr, level=os.getenv("LOG_CONSOLE_LEVEL", "INFO"))
logger.add(
    log_file,
    rotation="256 MB",  # split files at 256MB
    retention="10 days",
    compression="zip",
    encoding="utf-8",
    level=os.getenv("LOG_LEVEL", "DEBUG"),
    enqueue=True,
)
