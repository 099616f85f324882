"""OCR/AI extraction of execution records from trade confirmation images."""

from splitpay.adapters.extraction.batch import extract_files, image_mime_type
from splitpay.adapters.extraction.gemini import (
    DEFAULT_PROMPT,
    TradeConfirmationExtractor,
    parse_extraction_response,
)

__all__ = [
    "DEFAULT_PROMPT",
    "TradeConfirmationExtractor",
    "extract_files",
    "image_mime_type",
    "parse_extraction_response",
]
