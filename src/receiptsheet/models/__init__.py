"""ReceiptSheet models package."""

from .receipt import (
    SHEET_COLUMNS,
    AppendResult,
    LineItem,
    OCRResult,
    ParseReceiptRequest,
    ParseReceiptResponse,
    ProcessReceiptResponse,
    ReceiptRecord,
    SaveReceiptResponse,
    SheetConnectionResponse,
    TextAnnotation,
)

__all__ = [
    "SHEET_COLUMNS",
    "AppendResult",
    "LineItem",
    "OCRResult",
    "ParseReceiptRequest",
    "ParseReceiptResponse",
    "ProcessReceiptResponse",
    "ReceiptRecord",
    "SaveReceiptResponse",
    "SheetConnectionResponse",
    "TextAnnotation",
]
