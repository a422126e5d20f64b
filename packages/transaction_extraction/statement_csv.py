"""Bank statement (comma-delimited export) to transaction drafts.

Real-world exports often prepend account metadata above the column header, so
the header row is discovered heuristically within the first lines of the file
and columns are mapped to semantic fields through synonym sets.

Contract
--------
- The header is the first line within ``HEADER_SCAN_LIMIT`` lines that has a
  date-like cell AND a debit-like or credit-like cell. A cell matches a
  synonym when the synonym, optionally pluralised, appears in the lower-cased
  cell between non-letters (underscores count as spaces): ``"Withdrawal Amt."``
  and ``"Deposits"`` match while ``"Address"`` does not match ``dr``.
- Every following physical line is one CSV row (double-quoted values may hold
  commas). An unbalanced quote only affects its own line. Short rows, rows
  with no non-zero debit/credit, and rows with an unresolvable date are
  skipped.

Failure mode
------------
If no header is found, :class:`~transaction_extraction.models.FormatError` is
raised naming the required columns. That is the only hard error.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from os import PathLike
from pathlib import Path

from .categories import CategoryRules, default_rules
from .logging_setup import get_logger
from .models import FormatError, TransactionDraft
from .normalizers import clean_text, parse_amount, parse_statement_date

_logger = get_logger("transaction_extraction.statement_csv")

HEADER_SCAN_LIMIT: int = 20

DATE_TERMS: tuple[str, ...] = ("date", "txn date", "transaction date", "value date")
DESCRIPTION_TERMS: tuple[str, ...] = (
    "description",
    "narration",
    "particulars",
    "remarks",
    "details",
)
DEBIT_TERMS: tuple[str, ...] = ("debit", "withdrawal", "dr", "debit amount")
CREDIT_TERMS: tuple[str, ...] = ("credit", "deposit", "cr", "credit amount")

_FALLBACK_DESCRIPTION = "Bank Transaction"

# Payment-rail prefixes banks prepend to narrations ("UPI/SWIGGY/...").
_RAIL_PREFIX_RE = re.compile(r"\b(?:UPI|NEFT|IMPS|RTGS)/", re.IGNORECASE)
_QUOTES_RE = re.compile(r"[\"']")

_ZERO = Decimal(0)


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Resolved column positions for one statement header.

    ``description``, ``debit`` and ``credit`` may be ``None``; at least one of
    ``debit`` / ``credit`` is always set for a discovered header.
    """

    header_line: int
    width: int
    date: int
    description: int | None
    debit: int | None
    credit: int | None


# ---------------------------------------------------------------------------
# Header discovery
# ---------------------------------------------------------------------------


def _term_patterns(terms: Sequence[str]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(rf"(?<![a-z]){re.escape(t)}s?(?![a-z])") for t in terms)


_DATE_PATTERNS = _term_patterns(DATE_TERMS)
_DESCRIPTION_PATTERNS = _term_patterns(DESCRIPTION_TERMS)
_DEBIT_PATTERNS = _term_patterns(DEBIT_TERMS)
_CREDIT_PATTERNS = _term_patterns(CREDIT_TERMS)


def _cell_matches(cell: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    return any(p.search(cell) for p in patterns)


def _find_column(
    cells: Sequence[str],
    patterns: Sequence[re.Pattern[str]],
    *,
    exclude: int | None = None,
) -> int | None:
    for idx, cell in enumerate(cells):
        if idx != exclude and _cell_matches(cell, patterns):
            return idx
    return None


def _parse_row(line: str) -> list[str]:
    # csv handles quoted commas and doubled quotes; an unclosed quote runs to end of line.
    row = next(csv.reader([line], skipinitialspace=True), [])
    return [cell.strip() for cell in row]


def _header_cells(line: str) -> list[str]:
    return [cell.lower().replace("_", " ") for cell in _parse_row(line)]


def locate_header(lines: Sequence[str]) -> ColumnMap:
    """Return the column map for the first header-like line.

    Raises :class:`FormatError` when none of the first ``HEADER_SCAN_LIMIT``
    lines names a date column plus a debit or credit column.
    """

    for idx, line in enumerate(lines[:HEADER_SCAN_LIMIT]):
        cells = _header_cells(line)
        date_idx = _find_column(cells, _DATE_PATTERNS)
        if date_idx is None:
            continue
        debit_idx = _find_column(cells, _DEBIT_PATTERNS)
        credit_idx = _find_column(cells, _CREDIT_PATTERNS, exclude=debit_idx)
        if debit_idx is None and credit_idx is None:
            continue
        return ColumnMap(
            header_line=idx,
            width=len(cells),
            date=date_idx,
            description=_find_column(cells, _DESCRIPTION_PATTERNS),
            debit=debit_idx,
            credit=credit_idx,
        )

    raise FormatError(
        "Could not detect valid bank statement headers within the first "
        f"{HEADER_SCAN_LIMIT} lines. The CSV must have a Date column and at least "
        "one of Debit or Credit (a Description/Narration column is recommended)."
    )


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def clean_description(raw: str | None) -> str:
    """Strip quotes and rail prefixes; fall back to ``"Bank Transaction"``."""

    if raw is None:
        return _FALLBACK_DESCRIPTION
    s = _RAIL_PREFIX_RE.sub("", _QUOTES_RE.sub("", raw))
    return clean_text(s) or _FALLBACK_DESCRIPTION


def _cell(row: Sequence[str], idx: int | None) -> str | None:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _row_to_draft(
    row: Sequence[str], columns: ColumnMap, *, rules: CategoryRules
) -> tuple[TransactionDraft | None, str | None]:
    if len(row) < columns.width:
        return None, "short_row"

    debit = parse_amount(_cell(row, columns.debit)) or _ZERO
    credit = parse_amount(_cell(row, columns.credit)) or _ZERO
    if debit == _ZERO and credit == _ZERO:
        return None, "zero_amount"

    if debit > _ZERO:
        amount, direction = debit, "expense"
    else:
        amount, direction = credit, "income"
    if amount <= _ZERO:
        return None, "non_positive_amount"

    date = parse_statement_date(_cell(row, columns.date))
    if date is None:
        return None, "bad_date"

    description = clean_description(_cell(row, columns.description))
    draft = TransactionDraft(
        amount=amount,
        direction=direction,
        category=rules.infer(description),
        date=date,
        description=description,
    )
    return draft, None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_from_table(
    raw_text: str, *, rules: CategoryRules | None = None
) -> list[TransactionDraft]:
    """Extract drafts from the decoded text of a comma-delimited statement.

    Parameters
    ----------
    raw_text:
        Full file content. Metadata lines above the header are tolerated.
    rules:
        Category rule set; defaults to the packaged rules.

    Returns
    -------
    list[TransactionDraft]
        One draft per valid data row, in row order.

    Raises
    ------
    FormatError
        When no header row can be located.
    """

    resolved_rules = rules or default_rules()
    lines = raw_text.lstrip("\ufeff").splitlines()
    columns = locate_header(lines)
    _logger.info(
        "statement_csv:header_found line=%d date=%d description=%s debit=%s credit=%s",
        columns.header_line,
        columns.date,
        columns.description,
        columns.debit,
        columns.credit,
    )

    drafts: list[TransactionDraft] = []
    skipped = 0
    first_row = columns.header_line + 1
    for line_no, line in enumerate(lines[first_row:], start=first_row + 1):
        # One row per physical line; an open quote never spills into the next line.
        row = _parse_row(line)
        if not any(row):
            continue
        draft, reason = _row_to_draft(row, columns, rules=resolved_rules)
        if draft is None:
            skipped += 1
            _logger.debug("statement_csv:row_skipped line=%d reason=%s", line_no, reason)
            continue
        drafts.append(draft)

    _logger.info("statement_csv:summary drafts=%d skipped=%d", len(drafts), skipped)
    return drafts


def extract_from_table_path(
    path: str | PathLike[str], *, rules: CategoryRules | None = None
) -> list[TransactionDraft]:
    """Read ``path`` as UTF-8 (BOM tolerated) and delegate to :func:`extract_from_table`."""

    text = Path(path).read_text(encoding="utf-8-sig")
    return extract_from_table(text, rules=rules)


__all__ = [
    "CREDIT_TERMS",
    "ColumnMap",
    "DATE_TERMS",
    "DEBIT_TERMS",
    "DESCRIPTION_TERMS",
    "HEADER_SCAN_LIMIT",
    "clean_description",
    "extract_from_table",
    "extract_from_table_path",
    "locate_header",
]
