"""Amount, date and text normalization shared by the extractors.

Dates are always interpreted day-first when given as three numeric groups
(``D-M-Y``); this is a deliberate locale assumption (day-month-year exports and
notifications) and is not re-ordered even when the day is <= 12. The only
exception is an ISO-like ``Y-M-D`` value, detected by a first group above 999.
"""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal, InvalidOperation

# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    # Replace internal newlines with spaces, collapse whitespace, and strip.
    cleaned = re.sub(r"\s+", " ", value.replace("\r", " ").replace("\n", " ")).strip()
    return cleaned if cleaned != "" else None


_WORD_RE = re.compile(r"\w\S*")


def title_case(value: str) -> str:
    """Upper-case the first character of each word and lower-case the rest.

    Unlike :meth:`str.title`, characters after punctuation inside a word are
    left lower-case (``"swiggy@upi"`` -> ``"Swiggy@upi"``).
    """

    return _WORD_RE.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_CURRENCY_PREFIX_RE = re.compile(r"^(?:₹|rs\.?|inr)\s*", re.IGNORECASE)


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a decimal magnitude, ignoring thousands separators.

    Strips surrounding whitespace, a leading currency marker (``₹``, ``Rs.``,
    ``INR``) and commas. Returns ``None`` for missing, blank, unparsable or
    non-finite input; sign is preserved.
    """

    if raw is None:
        return None
    s = _CURRENCY_PREFIX_RE.sub("", raw.strip()).replace(",", "").strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return d


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def date_from_parts(first: int, second: int, third: int) -> dt.date | None:
    """Build a date from three numeric groups, day-first unless ISO-like.

    - ``first > 999`` is read as ``Y-M-D``.
    - Otherwise ``D-M-Y``; a year below 100 is expanded by adding 2000.
    - Returns ``None`` when the result is not a real calendar date.
    """

    if first > 999:
        year, month, day = first, second, third
    else:
        day, month, year = first, second, third
        if year < 100:
            year += 2000
    try:
        return dt.date(year, month, day)
    except ValueError:
        return None


_NUMERIC_DATE_RE = re.compile(
    r"^(\d{4}|\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{1,2})(?:[\sT].*)?$"
)

# Month-name forms seen in statement exports, tried after the numeric form.
_NAMED_MONTH_FORMATS: tuple[str, ...] = (
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%d %b %y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def parse_statement_date(raw: str | None) -> dt.date | None:
    """Normalize a statement date cell to a :class:`datetime.date`.

    Accepts ``D-M-Y``, ``D/M/Y``, ``D.M.Y`` (2- or 4-digit year), ISO-like
    ``Y-M-D``, an optional trailing time component, and a handful of
    month-name forms (``01 May 2024``, ``01-May-24``, ``May 1, 2024``).
    Returns ``None`` when the value cannot be resolved to a real date.
    """

    if raw is None:
        return None
    s = raw.strip().strip("'\"").strip()
    if not s:
        return None

    m = _NUMERIC_DATE_RE.match(s)
    if m:
        return date_from_parts(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    for fmt in _NAMED_MONTH_FORMATS:
        try:
            return dt.datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


__all__ = [
    "clean_text",
    "date_from_parts",
    "parse_amount",
    "parse_statement_date",
    "title_case",
]
