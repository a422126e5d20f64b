"""Deterministic transaction extraction from freeform text.

Public API:
    - :func:`extract_from_text`

Input is one blob of pasted notifications or notes (possibly many messages
joined by newlines or sentence breaks). Each candidate line is classified as
income, expense or non-transaction; amount, date and counterparty are pulled
out with regular expressions and the category is resolved through the shared
rule set. Lines that cannot be resolved are skipped, never raised.
"""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from .categories import CategoryRules, default_rules
from .logging_setup import get_logger
from .models import Direction, TransactionDraft
from .normalizers import date_from_parts, title_case

_logger = get_logger("transaction_extraction.text_extract")

# ---- Tunables (private) ------------------------------------------------------

_MIN_LINE_LENGTH: int = 10
_MIN_COUNTERPARTY_LENGTH: int = 3
_UNKNOWN_DESCRIPTION = "Unknown Transaction"

# ---- Patterns ----------------------------------------------------------------

_NEWLINE_RE = re.compile(r"\r?\n|\r")
_SENTENCE_END_RE = re.compile(r"[.!?]+\s+")

# Tokens that end with a period without ending a sentence ("Rs. 500").
_ABBREVIATIONS: frozenset[str] = frozenset(
    {"rs", "inr", "no", "a/c", "ac", "acct", "ref", "txn", "avl", "bal", "amt", "mr", "mrs", "ms"}
)

_CREDIT_RE = re.compile(r"\b(?:credited|received|deposited|added)\b", re.IGNORECASE)
_DEBIT_RE = re.compile(r"\b(?:debited|spent|paid|sent|withdrawn)\b", re.IGNORECASE)
_EXPENSE_PHRASE_RE = re.compile(r"\b(?:(?:paid|sent|payment)\s+to|purchase\s+at)\b", re.IGNORECASE)
_INCOME_PHRASE_RE = re.compile(r"\b(?:received|refund)\s+from\b", re.IGNORECASE)

_AMOUNT_RE = re.compile(r"(?:\b(?:rs|inr)|₹)\s*\.?\s*(\d[\d,]*(?:\.\d{1,2})?)", re.IGNORECASE)
_DATE_RE = re.compile(r"\b(\d{1,2})[-/](\d{1,2})[-/](\d{4}|\d{2})\b")

_COUNTERPARTY_RE = re.compile(
    r"\b(?:at|to|from)\s+([a-z0-9][a-z0-9\s&\-.']*?)"
    r"(?=\s+(?:on|using|via|ref|txn)\b|\.(?:\s|$)|\s*[,;:(]|\s*$)",
    re.IGNORECASE,
)
_VPA_RE = re.compile(r"\b(?:vpa|upi)[\s:]+(?:id[\s:]+)?([a-z0-9.@_\-]+)", re.IGNORECASE)

# Counterparty captures that name the account holder rather than a merchant.
_SELF_REFERENCES: frozenset[str] = frozenset({"your", "you", "my", "self", "account", "acct", "ac"})

# Words that follow "upi" without naming a payee ("UPI ref 1234").
_VPA_STOPWORDS: frozenset[str] = frozenset(
    {"ref", "txn", "id", "no", "on", "via", "using", "to", "from", "at", "transaction", "payment"}
)


class _LineResult(NamedTuple):
    draft: TransactionDraft | None
    skip_reason: str | None


# ---- Internal helpers --------------------------------------------------------


def _split_candidates(blob: str) -> list[str]:
    """Split ``blob`` on newlines and sentence terminators.

    A terminator that directly follows an abbreviation token (``Rs.``,
    ``A/c.``) does not end the sentence.
    """

    pieces: list[str] = []
    for raw_line in _NEWLINE_RE.split(blob):
        start = 0
        for m in _SENTENCE_END_RE.finditer(raw_line):
            head = raw_line[start : m.start()].split()
            last_word = head[-1].lower().lstrip("(:") if head else ""
            if last_word in _ABBREVIATIONS:
                continue
            pieces.append(raw_line[start : m.start()])
            start = m.end()
        pieces.append(raw_line[start:])
    return [p.strip() for p in pieces]


def _detect_direction(line: str) -> Direction | None:
    if _CREDIT_RE.search(line):
        return "income"
    if _DEBIT_RE.search(line):
        return "expense"
    if _EXPENSE_PHRASE_RE.search(line):
        return "expense"
    if _INCOME_PHRASE_RE.search(line):
        return "income"
    return None


def _extract_amount(line: str) -> Decimal | None:
    m = _AMOUNT_RE.search(line)
    if not m:
        return None
    try:
        return Decimal(m.group(1).replace(",", ""))
    except InvalidOperation:  # pragma: no cover - the pattern only admits digits
        return None


def _extract_date(line: str, *, today: dt.date) -> dt.date:
    m = _DATE_RE.search(line)
    if not m:
        return today
    resolved = date_from_parts(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    return resolved or today


def _extract_description(line: str, *, rules: CategoryRules) -> str:
    for m in _COUNTERPARTY_RE.finditer(line):
        candidate = m.group(1).strip().rstrip(".").strip()
        if len(candidate) < _MIN_COUNTERPARTY_LENGTH:
            continue
        if candidate.split()[0].lower() in _SELF_REFERENCES:
            continue
        return candidate

    for m in _VPA_RE.finditer(line):
        handle = m.group(1).rstrip(".")
        if len(handle) < _MIN_COUNTERPARTY_LENGTH or handle.lower() in _VPA_STOPWORDS:
            continue
        return handle

    merchant = rules.find_merchant(line)
    if merchant:
        return merchant
    return _UNKNOWN_DESCRIPTION


def _parse_line(line: str, *, today: dt.date, rules: CategoryRules) -> _LineResult:
    direction = _detect_direction(line)
    if direction is None:
        return _LineResult(None, "no_direction")

    amount = _extract_amount(line)
    if amount is None:
        return _LineResult(None, "no_amount")
    if amount <= 0:
        return _LineResult(None, "zero_amount")

    description = _extract_description(line, rules=rules)
    draft = TransactionDraft(
        amount=amount,
        direction=direction,
        category=rules.infer(description),
        date=_extract_date(line, today=today),
        description=title_case(description),
    )
    return _LineResult(draft, None)


# ---- Public API --------------------------------------------------------------


def extract_from_text(
    blob: str,
    today: dt.date | None = None,
    *,
    rules: CategoryRules | None = None,
) -> list[TransactionDraft]:
    """Extract transaction drafts from freeform notification text.

    Parameters
    ----------
    blob:
        Raw pasted text; may contain many messages.
    today:
        Date used for lines without a resolvable date. Defaults to the current
        local date; pass it explicitly for reproducible output.
    rules:
        Category rule set; defaults to the packaged rules.

    Returns
    -------
    list[TransactionDraft]
        One draft per qualifying line, in input order. Repeated messages yield
        repeated drafts. An empty list means nothing qualified.
    """

    resolved_rules = rules or default_rules()
    resolved_today = today or dt.date.today()

    drafts: list[TransactionDraft] = []
    candidates = _split_candidates(blob)
    for pos, line in enumerate(candidates):
        if len(line) < _MIN_LINE_LENGTH:
            continue
        result = _parse_line(line, today=resolved_today, rules=resolved_rules)
        if result.draft is None:
            _logger.debug("text_extract:line_skipped pos=%d reason=%s", pos, result.skip_reason)
            continue
        drafts.append(result.draft)

    _logger.info("text_extract:summary lines=%d drafts=%d", len(candidates), len(drafts))
    return drafts


__all__ = ["extract_from_text"]
