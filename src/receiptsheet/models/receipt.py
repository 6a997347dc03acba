"""Models for parsed receipts and the OCR / spreadsheet collaborators."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Spreadsheet column order, A through G
SHEET_COLUMNS: tuple[str, ...] = (
    "date",
    "vendor",
    "category",
    "description",
    "amount",
    "paymentMethod",
    "receipt",
)


def format_money(value: Decimal) -> str:
    """Render a decimal with exactly two fraction digits."""
    return format(value, ".2f")


class LineItem(BaseModel):
    """Individual priced line read from a receipt."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., description="Item description")
    price: str = Field(..., description="Price with two fraction digits")


class ReceiptRecord(BaseModel):
    """One spreadsheet row's worth of receipt data.

    ``category``, ``description`` and ``payment_method`` are left blank by the
    parser for the user to fill in before the row is saved.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str = Field(default="", description="ISO date, or the raw date text")
    vendor: str = Field(default="", description="Merchant/vendor name")
    category: str = Field(default="", description="Expense category")
    description: str = Field(default="", description="Free-form description")
    amount: str = Field(default="", description="Total with two fraction digits")
    payment_method: str = Field(
        default="",
        alias="paymentMethod",
        description="Payment method used",
    )
    receipt: str = Field(default="", description="Full OCR text of the receipt")

    @field_validator(
        "date",
        "vendor",
        "category",
        "description",
        "payment_method",
        "receipt",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:  # noqa: ANN401
        """Treat missing values as blank cells."""
        return "" if v is None else v

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> str:  # noqa: ANN401
        """Normalise amounts to two fraction digits; blank stays blank."""
        if v is None:
            return ""
        if isinstance(v, int | float):
            v = str(v)
        if isinstance(v, Decimal):
            value = v
        elif isinstance(v, str):
            cleaned = v.strip().replace("$", "").replace(",", "")
            if not cleaned:
                return ""
            try:
                value = Decimal(cleaned)
            except InvalidOperation as e:
                msg = f"Invalid amount: {v!r}"
                raise ValueError(msg) from e
        else:
            msg = f"Invalid type for amount: {type(v)}"
            raise ValueError(msg)  # noqa: TRY004

        if not value.is_finite() or value < 0:
            msg = f"Amount must be a non-negative number: {v!r}"
            raise ValueError(msg)
        return format_money(value)

    def to_row(self) -> list[str]:
        """Return the seven cell values in ``SHEET_COLUMNS`` order."""
        data = self.model_dump(by_alias=True)
        return [data[column] for column in SHEET_COLUMNS]


class TextAnnotation(BaseModel):
    """A single text annotation returned by the OCR service."""

    description: str = Field(default="", description="Recognised text")
    bounding_poly: dict[str, Any] | None = Field(
        default=None,
        alias="boundingPoly",
        description="Bounding polygon of the text",
    )

    model_config = ConfigDict(populate_by_name=True)


class OCRResult(BaseModel):
    """Text recognised in a receipt image."""

    text: str = Field(..., description="Full recognised text")
    annotations: list[TextAnnotation] = Field(
        default_factory=list,
        description="Every annotation, the first one being the full text",
    )


class AppendResult(BaseModel):
    """Outcome of appending a row to the spreadsheet."""

    updated_range: str = Field(default="", description="A1 range written")
    updated_rows: int = Field(default=0, description="Number of rows written")


class ParseReceiptRequest(BaseModel):
    """Request body for parsing already-recognised text."""

    text: str = Field(default="", description="OCR text of the receipt")
    today: dt.date | None = Field(
        default=None,
        description="Date to use when the text carries none (defaults to today)",
    )


class ParseReceiptResponse(BaseModel):
    """Parsed receipt record plus its line items."""

    success: bool = True
    receipt: ReceiptRecord
    line_items: list[LineItem] = Field(default_factory=list)


class ProcessReceiptResponse(ParseReceiptResponse):
    """Response for an uploaded receipt image."""

    text: str = Field(..., description="Full recognised text")
    annotations: list[TextAnnotation] = Field(default_factory=list)


class SaveReceiptResponse(BaseModel):
    """Response after saving a record to the spreadsheet."""

    success: bool = True
    message: str
    updated_range: str = ""
    updated_rows: int = 0


class SheetConnectionResponse(BaseModel):
    """Response for the spreadsheet connection check."""

    success: bool = True
    message: str
    headers: list[str] = Field(default_factory=list)
