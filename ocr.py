"""
    OCR providers turning receipt images into raw text
"""

import io
import logging
from abc import ABC, abstractmethod
from typing import Optional

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

import config

logger = logging.getLogger(__name__)


class OCRError(RuntimeError):
    """Raised when text cannot be recognised in an image."""


class OCRProvider(ABC):
    """Base OCR provider interface"""

    @abstractmethod
    def extract_text(self, image_data: bytes) -> str:
        """Extract raw text from image"""
        pass


class TesseractOCRProvider(OCRProvider):
    """Local Tesseract OCR, no network calls"""

    def __init__(self, tesseract_cmd: Optional[str] = None, lang: str = "eng"):
        self.lang = lang
        cmd = tesseract_cmd or config.TESSERACT_CMD
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd

    def extract_text(self, image_data: bytes) -> str:
        try:
            image = Image.open(io.BytesIO(image_data))
            image = ImageOps.exif_transpose(image).convert("L")
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Could not open receipt image: {e}")
            raise OCRError("Image could not be read") from e

        try:
            text = pytesseract.image_to_string(image, lang=self.lang)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            logger.error(f"Tesseract failed: {e}")
            raise OCRError("Text recognition failed") from e

        logger.info(f"OCR recognised {len(text)} characters")
        return text or ""
