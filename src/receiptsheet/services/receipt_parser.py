"""Heuristic parser turning raw OCR text into a receipt record.

The parser is pure: it does no I/O and keeps no state between calls, so a
single instance can be shared freely. Every extractor has a fallback, which
makes ``ReceiptParser.parse`` total over all strings, including ``""``.

Date and amount detection are ordered rule lists evaluated first-match-wins;
the order of ``DATE_RULES``, ``TOTAL_KEYWORDS`` and ``AMOUNT_STRATEGIES`` is the
tie-break and is relied on by callers.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from receiptsheet.models.receipt import LineItem, ReceiptRecord, format_money

logger = logging.getLogger(__name__)

# Plain-magnitude guesses at or above this are treated as OCR misreads
MAX_FALLBACK_AMOUNT = Decimal(100000)

# Only the first few lines are considered when looking for the vendor
VENDOR_SCAN_LINES = 5
MIN_VENDOR_LENGTH = 3

_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def split_lines(text: str) -> list[str]:
    """Split text into trimmed, non-empty lines, preserving order."""
    return [line.strip() for line in text.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _expand_year(year: str) -> int | None:
    """Expand a 2 or 4 digit year (00-49 -> 20xx, 50-99 -> 19xx)."""
    if len(year) == 4:  # noqa: PLR2004
        return int(year)
    if len(year) == 2:  # noqa: PLR2004
        short = int(year)
        return 2000 + short if short < 50 else 1900 + short  # noqa: PLR2004
    return None


def _calendar_date(year: int | None, month: int, day: int) -> date | None:
    if year is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _month_first(match: re.Match[str]) -> date | None:
    return _calendar_date(
        _expand_year(match["year"]), int(match["first"]), int(match["second"])
    )


def _day_first(match: re.Match[str]) -> date | None:
    return _calendar_date(
        _expand_year(match["year"]), int(match["second"]), int(match["first"])
    )


def _month_name(match: re.Match[str]) -> date | None:
    month = _MONTHS[match["month"][:3].lower()]
    return _calendar_date(int(match["year"]), month, int(match["day"]))


def _year_first(match: re.Match[str]) -> date | None:
    return _calendar_date(
        int(match["year"]), int(match["month"]), int(match["day"])
    )


@dataclass(frozen=True)
class DateRule:
    """A date pattern and how to read a calendar date out of its match."""

    name: str
    pattern: re.Pattern[str]
    to_date: Callable[[re.Match[str]], date | None]

    def extract(self, text: str) -> str | None:
        """Return the normalised first match in ``text``, or None."""
        match = self.pattern.search(text)
        if match is None:
            return None
        parsed = self.to_date(match)
        return parsed.isoformat() if parsed else match.group(0)


# Numeric patterns are fenced with digit look-arounds so that, for example,
# "2024-01-15" is not read as "24-01-15" by the month-first rule.
DATE_RULES: tuple[DateRule, ...] = (
    DateRule(
        "month_day_year",
        re.compile(
            r"(?<!\d)(?P<first>\d{1,2})[/-](?P<second>\d{1,2})[/-]"
            r"(?P<year>\d{2,4})(?!\d)"
        ),
        _month_first,
    ),
    # Shadowed by month_day_year, which matches every string this one does.
    DateRule(
        "day_month_year",
        re.compile(
            r"(?<!\d)(?P<first>\d{1,2})[/-](?P<second>\d{1,2})[/-]"
            r"(?P<year>\d{4})(?!\d)"
        ),
        _day_first,
    ),
    DateRule(
        "month_name",
        re.compile(
            r"\b(?P<month>(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"
            r"[a-z]*)\.?[ \t]+(?P<day>\d{1,2}),?[ \t]+(?P<year>\d{4})(?!\d)",
            re.IGNORECASE | re.ASCII,
        ),
        _month_name,
    ),
    DateRule(
        "year_month_day",
        re.compile(
            r"(?<!\d)(?P<year>\d{4})[/-](?P<month>\d{1,2})[/-]"
            r"(?P<day>\d{1,2})(?!\d)"
        ),
        _year_first,
    ),
)


def normalize_date(value: str) -> str:
    """Return ``value`` as ``YYYY-MM-DD`` if it is a valid date, else unchanged.

    The first rule whose pattern matches the whole value decides, exactly as
    in ``extract_date``. Idempotent: an ISO date comes back as-is.
    """
    candidate = value.strip()
    for rule in DATE_RULES:
        match = rule.pattern.fullmatch(candidate)
        if match is not None:
            parsed = rule.to_date(match)
            return parsed.isoformat() if parsed else value
    return value


def extract_date(text: str, today: date) -> str:
    """Find the first date in ``text`` by rule priority.

    Falls back to ``today`` when no rule matches anywhere. A match that is not
    a real calendar date (``13/45/2024``) is returned verbatim.
    """
    for rule in DATE_RULES:
        found = rule.extract(text)
        if found is not None:
            logger.debug("Date matched rule %s: %s", rule.name, found)
            return found
    logger.debug("No date found, defaulting to %s", today.isoformat())
    return today.isoformat()


# ---------------------------------------------------------------------------
# Vendor
# ---------------------------------------------------------------------------

_NUMERIC_LINE = re.compile(r"^\d+[\d\s/\-:]*$")
_LETTER = re.compile(r"[^\W\d_]")


def _looks_like_vendor(line: str) -> bool:
    if _NUMERIC_LINE.match(line):
        return False
    if not _LETTER.search(line):
        return False
    return len(line) >= MIN_VENDOR_LENGTH


def extract_vendor(lines: list[str]) -> str:
    """Pick the first name-like line among the top of the receipt."""
    for line in lines[:VENDOR_SCAN_LINES]:
        if _looks_like_vendor(line):
            return line
    return lines[0] if lines else ""


# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------

# Checked per line in this order; the first line with any keyword wins.
TOTAL_KEYWORDS: tuple[str, ...] = (
    "total",
    "amount due",
    "balance",
    "grand total",
    "amount",
    "sum",
)

AMOUNT_PATTERN = re.compile(r"\$?\s*(\d+[,\d]*\.?\d{0,2})")


def _parse_amount(raw: str) -> Decimal:
    return Decimal(re.sub(r"[,\s]", "", raw))


def _first_amount(line: str) -> Decimal | None:
    match = AMOUNT_PATTERN.search(line)
    return _parse_amount(match.group(1)) if match else None


def _matched_keyword(line: str) -> str | None:
    lowered = line.lower()
    for keyword in TOTAL_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def keyword_amount(lines: list[str]) -> Decimal | None:
    """Amount on the first line that carries a total-like keyword and a number."""
    for line in lines:
        keyword = _matched_keyword(line)
        if keyword is None:
            continue
        amount = _first_amount(line)
        if amount is not None:
            logger.debug("Amount %s taken from %r (keyword %r)", amount, line, keyword)
            return amount
    return None


def largest_amount(lines: list[str]) -> Decimal | None:
    """Largest plausible amount anywhere, ignoring values >= the sanity bound."""
    best = Decimal(0)
    for line in lines:
        amount = _first_amount(line)
        if amount is not None and best < amount < MAX_FALLBACK_AMOUNT:
            best = amount
    return best if best > 0 else None


AMOUNT_STRATEGIES: tuple[Callable[[list[str]], Decimal | None], ...] = (
    keyword_amount,
    largest_amount,
)


def extract_amount(lines: list[str]) -> str:
    """Return the receipt total with two fraction digits, or ``""``."""
    for strategy in AMOUNT_STRATEGIES:
        amount = strategy(lines)
        if amount is not None:
            return format_money(amount)
    return ""


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

LINE_ITEM_PATTERN = re.compile(
    r"^(?P<description>.+?)\s+\$?\s*(?P<price>\d[\d,]*\.\d{2})$"
)
_SUMMARY_LINE = re.compile(r"total|subtotal|tax|amount", re.IGNORECASE)


def extract_line_items(text: str) -> list[LineItem]:
    """Lines shaped like ``<description> <price>``, minus totals and tax."""
    items = []
    for line in split_lines(text):
        match = LINE_ITEM_PATTERN.match(line)
        if match is None:
            continue
        description = match["description"].strip()
        if _SUMMARY_LINE.search(description):
            continue
        items.append(
            LineItem(
                description=description,
                price=format_money(_parse_amount(match["price"])),
            )
        )
    return items


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class ReceiptParser:
    """Build a ``ReceiptRecord`` from OCR text.

    ``clock`` supplies the fallback date used when the text contains none;
    pass ``today=`` to ``parse`` to pin it for a single call.
    """

    def __init__(self, clock: Callable[[], date] = date.today) -> None:
        """Initialize the parser with the clock used for the fallback date."""
        self.clock = clock

    def parse(self, text: str, *, today: date | None = None) -> ReceiptRecord:
        """Parse ``text`` into a record; never raises for string input."""
        lines = split_lines(text)
        logger.debug("Parsing receipt text with %d non-empty lines", len(lines))

        return ReceiptRecord(
            date=extract_date(text, today or self.clock()),
            vendor=extract_vendor(lines),
            category="",
            description="",
            amount=extract_amount(lines),
            payment_method="",
            receipt=text,
        )

    def line_items(self, text: str) -> list[LineItem]:
        """Extract priced line items from ``text``."""
        return extract_line_items(text)


def parse_receipt(text: str, today: date | None = None) -> ReceiptRecord:
    """Parse ``text`` with a default parser."""
    return ReceiptParser().parse(text, today=today)
