"""ReceiptSheet services."""

from .receipt_parser import ReceiptParser, parse_receipt
from .sheets import SheetsClient, SheetsError
from .vision import VisionClient, VisionError

__all__ = [
    "ReceiptParser",
    "SheetsClient",
    "SheetsError",
    "VisionClient",
    "VisionError",
    "parse_receipt",
]
