"""Receipt API routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from receiptsheet.core.dependencies import (
    ReceiptParserDep,
    SettingsDep,
    SheetsClientDep,
    VisionClientDep,
)
from receiptsheet.models import (
    ParseReceiptRequest,
    ParseReceiptResponse,
    ProcessReceiptResponse,
    ReceiptRecord,
    SaveReceiptResponse,
    SheetConnectionResponse,
)
from receiptsheet.services.sheets import SheetsError
from receiptsheet.services.vision import NoTextDetectedError, VisionError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["receipts"])


@router.post("/parse-receipt")
async def parse_receipt_text(
    request: ParseReceiptRequest,
    parser: ReceiptParserDep,
) -> ParseReceiptResponse:
    """Parse already-recognised receipt text into a record."""
    return ParseReceiptResponse(
        receipt=parser.parse(request.text, today=request.today),
        line_items=parser.line_items(request.text),
    )


@router.post("/process-receipt")
async def process_receipt(
    vision: VisionClientDep,
    parser: ReceiptParserDep,
    settings: SettingsDep,
    image: Annotated[UploadFile | None, File()] = None,
) -> ProcessReceiptResponse:
    """Run OCR on an uploaded receipt image and parse the recognised text."""
    if image is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No image file provided",
        )

    content = await image.read()
    if len(content) > settings.max_upload_size:
        max_mb = settings.max_upload_size / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"Image too large. Max: {max_mb:.0f}MB",
        )

    try:
        ocr = await vision.detect_text(content)
    except NoTextDetectedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except VisionError as e:
        logger.error("Error processing receipt %s: %s", image.filename, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process receipt: {e}",
        ) from e

    return ProcessReceiptResponse(
        text=ocr.text,
        annotations=ocr.annotations,
        receipt=parser.parse(ocr.text),
        line_items=parser.line_items(ocr.text),
    )


@router.post("/save-to-sheets")
async def save_to_sheets(
    record: ReceiptRecord,
    sheets: SheetsClientDep,
) -> SaveReceiptResponse:
    """Append a (possibly user-edited) receipt record to the spreadsheet."""
    try:
        result = await sheets.append_record(record)
    except SheetsError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save to Google Sheets: {e}",
        ) from e

    return SaveReceiptResponse(
        message="Receipt data saved to Google Sheets",
        updated_range=result.updated_range,
        updated_rows=result.updated_rows,
    )


@router.get("/save-to-sheets")
async def check_sheet_connection(sheets: SheetsClientDep) -> SheetConnectionResponse:
    """Verify the spreadsheet is reachable and return its header row."""
    try:
        headers = await sheets.get_headers()
    except SheetsError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to connect to Google Sheets: {e}",
        ) from e

    return SheetConnectionResponse(
        message="Connected to Google Sheets",
        headers=headers,
    )
