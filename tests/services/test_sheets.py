"""Tests for the Google Sheets client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from receiptsheet.models import ReceiptRecord
from receiptsheet.services.sheets import (
    SheetNotConfiguredError,
    SheetsClient,
    SheetsError,
)


@pytest.fixture
def sample_record() -> ReceiptRecord:
    """Create a user-edited receipt record."""
    return ReceiptRecord(
        date="2024-01-15",
        vendor="ACME STORE",
        category="Office Supplies",
        description="Printer paper",
        amount="9.99",
        paymentMethod="Visa",
        receipt="ACME STORE\nTotal $9.99",
    )


@pytest.fixture
def sheets_client() -> SheetsClient:
    """Create a client for a test spreadsheet."""
    return SheetsClient(
        access_token="token123",
        spreadsheet_id="sheet_abc",
        sheet_name="Receipts",
    )


def _response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestSheetsClient:
    """Tests for SheetsClient."""

    def test_init(self, sheets_client: SheetsClient) -> None:
        """Client targets the spreadsheet with a bearer token."""
        assert sheets_client.headers["Authorization"] == "Bearer token123"
        assert str(sheets_client._client.base_url).endswith("/spreadsheets/sheet_abc/")
        assert sheets_client.data_range == "Receipts!A:G"
        assert sheets_client.header_range == "Receipts!A1:G1"

    def test_init_requires_spreadsheet_id(self) -> None:
        """A missing spreadsheet ID is a configuration error."""
        with pytest.raises(SheetNotConfiguredError, match="GOOGLE_SHEET_ID"):
            SheetsClient(access_token="token123", spreadsheet_id="")

    def test_init_requires_token(self) -> None:
        """A token is mandatory."""
        with pytest.raises(ValueError, match="access_token is required"):
            SheetsClient(access_token="", spreadsheet_id="sheet_abc")

    @pytest.mark.asyncio
    async def test_append_record(
        self, sheets_client: SheetsClient, sample_record: ReceiptRecord
    ) -> None:
        """The record is appended as one row in column order."""
        payload = {
            "updates": {"updatedRange": "Receipts!A5:G5", "updatedRows": 1},
        }
        with patch.object(sheets_client._client, "request") as mock_request:
            mock_request.return_value = _response(payload)
            result = await sheets_client.append_record(sample_record)

        assert result.updated_range == "Receipts!A5:G5"
        assert result.updated_rows == 1

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "values/Receipts%21A%3AG:append"
        assert kwargs["params"] == {"valueInputOption": "USER_ENTERED"}
        assert kwargs["json"] == {
            "values": [
                [
                    "2024-01-15",
                    "ACME STORE",
                    "Office Supplies",
                    "Printer paper",
                    "9.99",
                    "Visa",
                    "ACME STORE\nTotal $9.99",
                ]
            ]
        }

    @pytest.mark.asyncio
    async def test_append_record_http_error(
        self, sheets_client: SheetsClient, sample_record: ReceiptRecord
    ) -> None:
        """HTTP errors are wrapped in SheetsError."""
        error_response = MagicMock()
        error_response.status_code = 404
        error_response.text = "Requested entity was not found."
        error_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "404 Not Found",
            request=MagicMock(),
            response=error_response,
        )
        with patch.object(sheets_client._client, "request") as mock_request:
            mock_request.return_value = error_response
            with pytest.raises(SheetsError, match="Requested entity was not found"):
                await sheets_client.append_record(sample_record)

    @pytest.mark.asyncio
    async def test_get_headers(self, sheets_client: SheetsClient) -> None:
        """The first row of the header range is returned."""
        payload = {
            "range": "Receipts!A1:G1",
            "values": [["Date", "Vendor", "Category", "Description", "Amount"]],
        }
        with patch.object(sheets_client._client, "request") as mock_request:
            mock_request.return_value = _response(payload)
            headers = await sheets_client.get_headers()

        assert headers == ["Date", "Vendor", "Category", "Description", "Amount"]
        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "values/Receipts%21A1%3AG1"

    @pytest.mark.asyncio
    async def test_get_headers_empty_sheet(self, sheets_client: SheetsClient) -> None:
        """A blank sheet has no headers."""
        with patch.object(sheets_client._client, "request") as mock_request:
            mock_request.return_value = _response({"range": "Receipts!A1:G1"})
            assert await sheets_client.get_headers() == []

    @pytest.mark.asyncio
    async def test_transport_error(self, sheets_client: SheetsClient) -> None:
        """Connection failures are wrapped in SheetsError."""
        with patch.object(sheets_client._client, "request") as mock_request:
            mock_request.side_effect = httpx.ConnectTimeout("timed out")
            with pytest.raises(SheetsError, match="Request failed"):
                await sheets_client.get_headers()
