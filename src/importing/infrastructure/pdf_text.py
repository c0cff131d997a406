import io

from pypdf import PdfReader

from src.config.logger_config import logger


def extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    chunks: list[str] = []
    for page_number, page in enumerate(reader.pages, start=1):
        try:
            chunks.append(page.extract_text() or "")
        except Exception as exc:
            logger.warning("Failed to extract text from PDF page {}: {}", page_number, exc)
    return "\n".join(chunks)
