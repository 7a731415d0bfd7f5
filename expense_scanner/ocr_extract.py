"""Receipt OCR helpers.

Receipt images are run through a local Tesseract engine and the recognised
text is turned into a ``ScannedReceipt``: a best-effort guess at the total,
merchant, date and purchased items that the client uses to pre-fill the
expense form.

The text extractor never raises.  Missing signals degrade to empty defaults so
the user can always finish the form by hand.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from .field_extractors import (
    extract_amount,
    extract_date,
    extract_items,
    extract_merchant,
    split_lines,
)
from .field_extractors.merchant import select_merchant_line

LOGGER = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"


class OCRServiceError(RuntimeError):
    """Raised when the OCR engine fails."""


class OCRDecodeError(RuntimeError):
    """Raised when the uploaded file cannot be read as an image."""


@dataclass
class ScannedReceipt:
    amount: Optional[str] = None
    merchant: str = ""
    date: Optional[str] = None
    items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_receipt_text(text: Optional[str]) -> ScannedReceipt:
    """Convert raw OCR ``text`` into a ``ScannedReceipt``."""

    raw_text = text or ""
    lines = split_lines(raw_text)
    merchant_line = select_merchant_line(lines)
    return ScannedReceipt(
        amount=extract_amount(raw_text),
        merchant=extract_merchant(lines),
        date=extract_date(raw_text),
        items=extract_items(lines, merchant_line),
    )


def extract_text(binary: bytes, language: str = DEFAULT_LANGUAGE) -> str:
    image = _image_from_bytes(binary)
    try:
        return pytesseract.image_to_string(image, lang=language or DEFAULT_LANGUAGE)
    except pytesseract.TesseractNotFoundError as exc:
        raise OCRServiceError("tesseract_not_found") from exc
    except pytesseract.TesseractError as exc:
        raise OCRServiceError(f"tesseract_error:{exc}") from exc


def scan_receipt(binary: bytes, language: str = DEFAULT_LANGUAGE) -> ScannedReceipt:
    """OCR ``binary`` and extract receipt fields.

    An OCR failure feeds an empty string to the extractor, which yields the
    all-default record instead of an error.
    """

    try:
        raw_text = extract_text(binary, language=language)
    except (OCRServiceError, OCRDecodeError) as exc:
        LOGGER.warning(
            "ocr_failed_using_empty_text: %s",
            exc,
            exc_info=LOGGER.isEnabledFor(logging.DEBUG),
        )
        raw_text = ""
    return parse_receipt_text(raw_text)


def _image_from_bytes(binary: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(binary))
        image.load()
    except UnidentifiedImageError as exc:
        raise OCRDecodeError("unsupported_image_format") from exc
    except OSError as exc:
        raise OCRDecodeError("image_open_failed") from exc
    return image.convert("RGB")


__all__ = [
    "OCRDecodeError",
    "OCRServiceError",
    "ScannedReceipt",
    "extract_text",
    "parse_receipt_text",
    "scan_receipt",
]
