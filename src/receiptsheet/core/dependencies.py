"""Dependency injection for FastAPI."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from receiptsheet.core.config import Settings, get_settings
from receiptsheet.services.receipt_parser import ReceiptParser
from receiptsheet.services.sheets import SheetsClient
from receiptsheet.services.vision import VisionClient

UNAUTHORIZED_DETAIL = "Unauthorized. Please sign in with Google."

_bearer_scheme = HTTPBearer(auto_error=False)

# The parser is stateless, so one instance serves every request
_receipt_parser = ReceiptParser()


def get_receipt_parser() -> ReceiptParser:
    """Get the shared receipt parser."""
    return _receipt_parser


def get_access_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)
    ],
) -> str:
    """Extract the caller's Google access token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED_DETAIL,
        )
    return credentials.credentials


async def get_vision_client(
    settings: Annotated[Settings, Depends(get_settings)],
    access_token: Annotated[str, Depends(get_access_token)],
) -> AsyncGenerator[VisionClient, None]:
    """Create a Vision client for the current request's token."""
    client = VisionClient(
        access_token=access_token,
        api_url=settings.vision_api_url,
        timeout=settings.http_timeout,
    )
    try:
        yield client
    finally:
        await client.close()


async def get_sheets_client(
    settings: Annotated[Settings, Depends(get_settings)],
    access_token: Annotated[str, Depends(get_access_token)],
) -> AsyncGenerator[SheetsClient, None]:
    """Create a Sheets client for the current request's token."""
    if not settings.google_sheet_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="GOOGLE_SHEET_ID environment variable is not set",
        )
    client = SheetsClient(
        access_token=access_token,
        spreadsheet_id=settings.google_sheet_id,
        sheet_name=settings.google_sheet_name,
        base_url=settings.sheets_api_base_url,
        timeout=settings.http_timeout,
    )
    try:
        yield client
    finally:
        await client.close()


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ReceiptParserDep = Annotated[ReceiptParser, Depends(get_receipt_parser)]
VisionClientDep = Annotated[VisionClient, Depends(get_vision_client)]
SheetsClientDep = Annotated[SheetsClient, Depends(get_sheets_client)]
