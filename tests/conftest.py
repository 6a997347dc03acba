"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from receiptsheet.core.config import Settings, get_settings
from receiptsheet.main import create_app
from receiptsheet.services.receipt_parser import ReceiptParser
from receiptsheet.services.sheets import SheetsClient
from receiptsheet.services.vision import VisionClient

if TYPE_CHECKING:
    from collections.abc import Generator

    from fastapi import FastAPI

FIXED_TODAY = date(2024, 3, 1)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        google_sheet_id="test_sheet_id",
        google_sheet_name="Receipts",
        google_access_token="test_access_token",
        debug=True,
    )


@pytest.fixture
def parser() -> ReceiptParser:
    """Parser whose fallback date is pinned."""
    return ReceiptParser(clock=lambda: FIXED_TODAY)


@pytest.fixture
def sample_receipt_text() -> str:
    """OCR text of a typical grocery receipt."""
    return (
        "FRESH MARKET\n"
        "   \n"
        "42 Harbor Rd\n"
        "03/14/2024 10:22\n"
        "Apples 3.49\n"
        "Bread $2.99\n"
        "Milk 4.25\n"
        "Subtotal 10.73\n"
        "Tax 0.86\n"
        "TOTAL $11.59\n"
        "VISA ****1234\n"
    )


@pytest.fixture
def mock_vision_client() -> Mock:
    """Create a mock Vision client."""
    mock = Mock(spec=VisionClient)
    mock.detect_text = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_sheets_client() -> Mock:
    """Create a mock Sheets client."""
    mock = Mock(spec=SheetsClient)
    mock.append_record = AsyncMock()
    mock.get_headers = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Create test FastAPI app."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: test_settings
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client
