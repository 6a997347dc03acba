"""ReceiptSheet CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

from receiptsheet import __version__
from receiptsheet.core.config import get_settings
from receiptsheet.core.logging_config import LoggingConfig, setup_logging
from receiptsheet.models import LineItem, ReceiptRecord
from receiptsheet.services.receipt_parser import ReceiptParser
from receiptsheet.services.sheets import SheetsClient, SheetsError
from receiptsheet.services.vision import VisionClient, VisionError

logger = logging.getLogger(__name__)

# Supported image formats for OCR
SUPPORTED_FORMATS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tif", ".tiff"}
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB


class CLIError(Exception):
    """Base exception for CLI errors."""


class FileValidationError(CLIError):
    """File validation error."""


class APIError(CLIError):
    """API communication error."""


def parse_date_arg(value: str) -> date:
    """argparse type for ``--today``."""
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"invalid date {value!r} (expected YYYY-MM-DD)"
        raise argparse.ArgumentTypeError(msg) from e


class ReceiptSheetCLI:
    """Main CLI application class."""

    def __init__(self) -> None:
        """Initialize the CLI application."""
        self.settings = get_settings()
        self.parser = ReceiptParser()

    def read_text(self, source: str) -> str:
        """Read receipt text from a file path, or stdin for ``-``."""
        if source == "-":
            return sys.stdin.read()

        file_path = Path(source)
        if not file_path.exists():
            raise FileValidationError(f"File not found: {file_path}")
        if not file_path.is_file():
            raise FileValidationError(f"Not a file: {file_path}")
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FileValidationError(f"Not a UTF-8 text file: {file_path}") from e

    def validate_image(self, file_path: Path) -> None:
        """Validate an image file before sending it for OCR."""
        if not file_path.exists():
            raise FileValidationError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise FileValidationError(f"Not a file: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise FileValidationError(
                f"Unsupported file format '{suffix}'. Supported: {supported}"
            )

        file_size = file_path.stat().st_size
        if file_size > MAX_IMAGE_SIZE:
            size_mb = file_size / (1024 * 1024)
            raise FileValidationError(f"File too large ({size_mb:.1f}MB). Max: 10MB")

    def build_result(
        self,
        record: ReceiptRecord,
        line_items: list[LineItem] | None = None,
    ) -> dict[str, Any]:
        """Assemble the output structure for a parsed receipt."""
        result: dict[str, Any] = {"receipt": record.model_dump(by_alias=True)}
        if line_items is not None:
            result["line_items"] = [item.model_dump() for item in line_items]
        return result

    def format_output(self, result: dict[str, Any], output_format: str) -> str:
        """Format the output based on the requested format."""
        if output_format == "json":
            return json.dumps(result, indent=2, default=str)

        receipt = result.get("receipt", {})
        lines = [
            "\n=== Receipt Data ===",
            f"Date: {receipt.get('date', '')}",
            f"Vendor: {receipt.get('vendor') or 'Unknown'}",
            f"Amount: {receipt.get('amount') or 'Not found'}",
        ]

        line_items = result.get("line_items")
        if line_items:
            lines.append("\n=== Line Items ===")
            lines.extend(
                f"  • {item['description']}: ${item['price']}" for item in line_items
            )

        if result.get("message"):
            lines.extend(["\n=== Result ===", result["message"]])

        return "\n".join(lines)

    def parse_command(self, args: argparse.Namespace) -> int:
        """Handle the parse command."""
        try:
            text = self.read_text(args.source)
        except FileValidationError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            return 2

        record = self.parser.parse(text, today=args.today)
        line_items = self.parser.line_items(text) if args.items else None
        print(self.format_output(self.build_result(record, line_items), args.output))  # noqa: T201
        return 0

    async def _scan(self, file_path: Path, *, save: bool) -> dict[str, Any]:
        """OCR an image, parse it and optionally append the row."""
        token = self.settings.google_access_token
        if not token:
            msg = (
                "No access token configured. Set GOOGLE_ACCESS_TOKEN to a Google "
                "OAuth2 token with Vision and Sheets scopes."
            )
            raise APIError(msg)

        async with VisionClient(
            access_token=token,
            api_url=self.settings.vision_api_url,
            timeout=self.settings.http_timeout,
        ) as vision:
            try:
                ocr = await vision.detect_text(file_path.read_bytes())
            except VisionError as e:
                raise APIError(str(e)) from e

        record = self.parser.parse(ocr.text)
        result = self.build_result(record, self.parser.line_items(ocr.text))

        if save:
            try:
                async with SheetsClient(
                    access_token=token,
                    spreadsheet_id=self.settings.google_sheet_id,
                    sheet_name=self.settings.google_sheet_name,
                    base_url=self.settings.sheets_api_base_url,
                    timeout=self.settings.http_timeout,
                ) as sheets:
                    appended = await sheets.append_record(record)
            except SheetsError as e:
                raise APIError(str(e)) from e
            result["message"] = f"Saved to {appended.updated_range}"

        return result

    async def scan_command(self, args: argparse.Namespace) -> int:
        """Handle the scan command."""
        file_path = Path(args.image)
        try:
            self.validate_image(file_path)
            result = await self._scan(file_path, save=args.save)
        except FileValidationError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            return 2
        except APIError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            return 3

        print(self.format_output(result, args.output))  # noqa: T201
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="receiptsheet",
        description="ReceiptSheet CLI - Parse receipts into spreadsheet rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  receiptsheet parse receipt.txt
  ocr-tool receipt.png | receiptsheet parse - --output json
  receiptsheet parse receipt.txt --today 2024-01-15 --items
  receiptsheet scan receipt.jpg --save

Environment:
  GOOGLE_ACCESS_TOKEN  OAuth2 token used by 'scan'
  GOOGLE_SHEET_ID      Spreadsheet rows are appended to with --save
  GOOGLE_SHEET_NAME    Worksheet name (default: Sheet1)
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"receiptsheet {__version__}",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.required = True

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse receipt text",
        description="Parse OCR text of a receipt into date, vendor and amount",
    )
    parse_parser.add_argument(
        "source",
        type=str,
        help="Path to a text file, or '-' to read stdin",
    )
    parse_parser.add_argument(
        "--today",
        type=parse_date_arg,
        default=None,
        help="Date to use when the text has none (default: today)",
    )
    parse_parser.add_argument(
        "--items",
        action="store_true",
        help="Also list priced line items",
    )
    parse_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="OCR and parse a receipt image",
        description="Send an image to Google Vision, parse the text, optionally save",
    )
    scan_parser.add_argument(
        "image",
        type=str,
        help="Path to the receipt image file",
    )
    scan_parser.add_argument(
        "--save",
        action="store_true",
        help="Append the parsed row to the configured Google Sheet",
    )
    scan_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    return parser


async def async_main(argv: list[str] | None = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(
        LoggingConfig(
            log_level="DEBUG" if args.verbose else settings.log_level,
            log_format=settings.log_format,
        )
    )

    cli = ReceiptSheetCLI()

    if args.command == "parse":
        return cli.parse_command(args)
    if args.command == "scan":
        return await cli.scan_command(args)
    parser.error(f"Unknown command: {args.command}")
    return 2


def main() -> None:
    """Main entry point for the CLI."""
    try:
        sys.exit(asyncio.run(async_main()))
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user", file=sys.stderr)  # noqa: T201
        sys.exit(130)
    except Exception as e:
        logger.exception("Fatal error in main")
        print(f"\nFatal error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)


if __name__ == "__main__":
    main()
