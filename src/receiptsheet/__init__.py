"""ReceiptSheet: turn receipt photos into spreadsheet rows."""

__version__ = "0.1.0"
