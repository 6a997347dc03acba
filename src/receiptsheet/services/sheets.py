"""Google Sheets client used to append receipt rows."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from receiptsheet.models.receipt import AppendResult

if TYPE_CHECKING:
    from receiptsheet.models.receipt import ReceiptRecord

logger = logging.getLogger(__name__)

DEFAULT_SHEETS_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class SheetsError(Exception):
    """Base exception for spreadsheet operations."""


class SheetNotConfiguredError(SheetsError):
    """No spreadsheet ID has been configured."""


class SheetsClient:
    """HTTP client for one worksheet of a Google spreadsheet."""

    def __init__(
        self,
        access_token: str,
        spreadsheet_id: str,
        sheet_name: str = "Sheet1",
        base_url: str = DEFAULT_SHEETS_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize Sheets client.

        Args:
            access_token: Google OAuth2 access token of the signed-in user
            spreadsheet_id: Target spreadsheet ID
            sheet_name: Worksheet (tab) name
            base_url: Sheets API spreadsheets base URL
            timeout: Request timeout in seconds
        """
        if not spreadsheet_id:
            msg = "GOOGLE_SHEET_ID environment variable is not set"
            raise SheetNotConfiguredError(msg)
        if not access_token:
            msg = "access_token is required"
            raise ValueError(msg)

        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=f"{base_url}/{spreadsheet_id}",
            headers=self.headers,
            timeout=timeout,
        )

    async def __aenter__(self) -> SheetsClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    @property
    def data_range(self) -> str:
        """Columns A through G of the worksheet."""
        return f"{self.sheet_name}!A:G"

    @property
    def header_range(self) -> str:
        """The header row of the worksheet."""
        return f"{self.sheet_name}!A1:G1"

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request to the Sheets API.

        Raises:
            SheetsError: If request fails
        """
        try:
            response = await self._client.request(
                method=method,
                url=endpoint,
                json=json,
                params=params,
            )
            response.raise_for_status()
            result: dict[str, Any] = response.json()
            return result
        except httpx.HTTPStatusError as e:
            logger.error(
                "Sheets API error: %s - %s",
                e.response.status_code,
                e.response.text,
            )
            raise SheetsError(f"API error: {e.response.text}") from e
        except httpx.HTTPError as e:
            logger.error("Sheets API request failed: %s", e)
            raise SheetsError(f"Request failed: {e}") from e

    async def append_record(self, record: ReceiptRecord) -> AppendResult:
        """Append ``record`` as one row below the existing data."""
        data = await self._request(
            "POST",
            f"values/{quote(self.data_range)}:append",
            json={"values": [record.to_row()]},
            params={"valueInputOption": "USER_ENTERED"},
        )
        updates = data.get("updates", {})
        result = AppendResult(
            updated_range=updates.get("updatedRange", ""),
            updated_rows=updates.get("updatedRows", 0),
        )
        logger.info(
            "Appended receipt for %s to %s",
            record.vendor or "unknown vendor",
            result.updated_range,
        )
        return result

    async def get_headers(self) -> list[str]:
        """Return the worksheet's header row (empty if the sheet is blank)."""
        data = await self._request("GET", f"values/{quote(self.header_range)}")
        values: list[list[str]] = data.get("values") or [[]]
        return values[0]
