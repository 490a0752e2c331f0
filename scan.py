"""
scan.py
-------
Receipt scanning flow: store the captured image, recognise its text,
extract total/date/store, and once the user has confirmed (or edited)
the fields, book the receipt and its expense transaction.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, MutableMapping, Optional, Tuple

from sqlalchemy.orm import Session

from app_lock import AppLock
from config import RECEIPT_CATEGORY
from ledger import adjust_goal_saved, add_receipt, add_transaction
from ocr import OCRError, OCRProvider
from receipt_extractor import ExtractedReceipt, extract_from_receipt_text
from storage import StorageError, delete_receipt_image, save_receipt_image

logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = "Could not process receipt. Please try again."


class ScanError(RuntimeError):
    """Raised when a captured receipt cannot be stored or read."""


@dataclass
class ScanResult:
    image_ref: str
    receipt: ExtractedReceipt
    raw_text: str


class ReceiptScanner:
    def __init__(self, ocr: OCRProvider, app_lock: Optional[AppLock] = None):
        self.ocr = ocr
        self.app_lock = app_lock

    @contextmanager
    def session(self) -> Iterator["ReceiptScanner"]:
        """Keep auto-lock suspended while the scan screen is open."""
        if self.app_lock is None:
            yield self
            return
        with self.app_lock.suspend_auto_lock():
            yield self

    def scan(self, image_data: bytes) -> ScanResult:
        """Store the image, then read it. A stored image is removed again if OCR fails."""
        file_name = f"receipt_{int(time.time() * 1000)}.jpg"
        try:
            image_ref = save_receipt_image(file_name, image_data)
        except StorageError as e:
            logger.error(f"Scan of {file_name} failed: {e}")
            raise ScanError(SCAN_FAILED_MESSAGE) from e

        try:
            raw_text = self.ocr.extract_text(image_data)
        except OCRError as e:
            logger.error(f"Scan of {file_name} failed: {e}")
            delete_receipt_image(image_ref)
            raise ScanError(SCAN_FAILED_MESSAGE) from e

        receipt = extract_from_receipt_text(raw_text)
        logger.info(f"Scanned {image_ref}: {receipt.store} {receipt.total:.2f} on {receipt.date}")
        return ScanResult(image_ref=image_ref, receipt=receipt, raw_text=raw_text)


def capture_keys(state: MutableMapping) -> Tuple[str, str]:
    """Widget keys for the camera and upload inputs of the current capture."""
    nonce = state.setdefault("scan_nonce", 0)
    return f"receipt_camera_{nonce}", f"receipt_upload_{nonce}"


def reset_capture(state: MutableMapping):
    """Forget the current scan and hand out fresh capture widgets.

    Bumping the nonce drops the old widgets, and with them the captured image,
    so the same photo is not scanned again on the next rerun.
    """
    state.pop("scan_result", None)
    state.pop("scan_digest", None)
    state["scan_nonce"] = state.get("scan_nonce", 0) + 1


def save_scanned_receipt(
    db: Session,
    result: ScanResult,
    receipt: Optional[ExtractedReceipt] = None,
    category: str = RECEIPT_CATEGORY,
) -> int:
    """Persist a confirmed scan as a receipt plus a linked expense.

    ``receipt`` carries the fields as edited by the user; defaults to the
    extracted ones. The goal's savings go down by the receipt total.
    """
    confirmed = receipt or result.receipt
    try:
        receipt_id = add_receipt(
            db,
            image_uri=result.image_ref,
            amount=confirmed.total,
            date=confirmed.date,
            store=confirmed.store,
            extracted_text=result.raw_text or None,
            commit=False,
        )
        if confirmed.total > 0:
            add_transaction(
                db,
                "expense",
                confirmed.total,
                confirmed.date,
                category=category,
                receipt_id=receipt_id,
                note=f"From receipt: {confirmed.store}",
                commit=False,
            )
            adjust_goal_saved(db, -confirmed.total)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return receipt_id
