"""Category inference table shared by every extraction path.

The table is immutable configuration data: an ordered tuple of
``CategoryRule`` entries (first match wins) plus the merchant keyword list the
text extractor falls back on when no counterparty phrase is present. The
packaged default lives in ``data/category_rules.v1.json``; callers may load an
alternative file with :func:`load_rules` and pass it to either extractor.

Exports
-------
- ``infer_category(text, rules=None)``: total, case-insensitive lookup that
  returns a :class:`~transaction_extraction.models.Category`.
- ``default_rules()`` / ``load_rules(path)`` / ``rules_from_mapping(data)``.
- ``CategoryRule``, ``MerchantKeyword``, ``CategoryRules``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cache
from importlib import resources
from os import PathLike
from pathlib import Path
from typing import Any

from .models import DEFAULT_CATEGORY, Category

_DEFAULT_RULES_RESOURCE = "category_rules.v1.json"


@dataclass(frozen=True, slots=True)
class CategoryRule:
    """Map any of ``keywords`` (lower-case substrings) to ``category``."""

    category: Category
    keywords: tuple[str, ...]

    def matches(self, lowered: str) -> bool:
        return any(k in lowered for k in self.keywords)


@dataclass(frozen=True, slots=True)
class MerchantKeyword:
    """A brand keyword and the label to use as the transaction description."""

    keyword: str
    label: str


@dataclass(frozen=True, slots=True)
class CategoryRules:
    """Ordered category rules plus merchant keyword fallbacks."""

    rules: tuple[CategoryRule, ...]
    merchants: tuple[MerchantKeyword, ...] = ()

    def infer(self, text: str | None) -> Category:
        if not text:
            return DEFAULT_CATEGORY
        lowered = text.lower()
        for rule in self.rules:
            if rule.matches(lowered):
                return rule.category
        return DEFAULT_CATEGORY

    def find_merchant(self, text: str) -> str | None:
        """Return the label of the first merchant keyword found in ``text``."""

        lowered = text.lower()
        for m in self.merchants:
            if m.keyword in lowered:
                return m.label
        return None


# ---------------------------
# Loading / validation
# ---------------------------


def _normalize_keyword(raw: Any, *, where: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Invalid category rules: blank or non-string keyword in {where}")
    return raw.lower()


def _parse_category(raw: Any, *, where: str) -> Category:
    try:
        return Category(raw)
    except ValueError:
        allowed = ", ".join(c.value for c in Category)
        raise ValueError(
            f"Invalid category rules: unknown category {raw!r} in {where} (allowed: {allowed})"
        ) from None


def rules_from_mapping(data: Mapping[str, Any]) -> CategoryRules:
    """Build a :class:`CategoryRules` from the decoded JSON document shape.

    Expected shape::

        {"rules": [{"category": "...", "keywords": ["..."]}, ...],
         "merchants": [{"keyword": "...", "label": "..."}, ...]}

    Rule order is preserved. Raises ``ValueError`` on any malformed entry.
    """

    if not isinstance(data, Mapping):
        raise ValueError("Invalid category rules: expected a JSON object at top level")
    raw_rules = data.get("rules")
    if not isinstance(raw_rules, Sequence) or isinstance(raw_rules, str) or not raw_rules:
        raise ValueError("Invalid category rules: 'rules' must be a non-empty list")

    rules: list[CategoryRule] = []
    for pos, entry in enumerate(raw_rules):
        where = f"rules[{pos}]"
        if not isinstance(entry, Mapping):
            raise ValueError(f"Invalid category rules: {where} must be an object")
        category = _parse_category(entry.get("category"), where=where)
        keywords = entry.get("keywords")
        if not isinstance(keywords, Sequence) or isinstance(keywords, str) or not keywords:
            raise ValueError(f"Invalid category rules: {where}.keywords must be a non-empty list")
        rules.append(
            CategoryRule(
                category=category,
                keywords=tuple(_normalize_keyword(k, where=where) for k in keywords),
            )
        )

    merchants: list[MerchantKeyword] = []
    raw_merchants = data.get("merchants") or []
    if not isinstance(raw_merchants, Sequence) or isinstance(raw_merchants, str):
        raise ValueError("Invalid category rules: 'merchants' must be a list")
    for pos, entry in enumerate(raw_merchants):
        where = f"merchants[{pos}]"
        if not isinstance(entry, Mapping):
            raise ValueError(f"Invalid category rules: {where} must be an object")
        label = entry.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValueError(f"Invalid category rules: {where}.label must be a non-empty string")
        merchants.append(
            MerchantKeyword(
                keyword=_normalize_keyword(entry.get("keyword"), where=where),
                label=label.strip(),
            )
        )

    return CategoryRules(rules=tuple(rules), merchants=tuple(merchants))


def load_rules(path: str | PathLike[str]) -> CategoryRules:
    """Load and validate a rules JSON file from ``path``."""

    p = Path(path)
    with p.open(encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid category rules: {p} is not valid JSON: {e}") from e
    return rules_from_mapping(data)


@cache
def default_rules() -> CategoryRules:
    """Return the packaged rule set (loaded once per process)."""

    text = (
        resources.files("transaction_extraction")
        .joinpath("data", _DEFAULT_RULES_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return rules_from_mapping(json.loads(text))


def infer_category(text: str | None, rules: CategoryRules | None = None) -> Category:
    """Return the first matching category for ``text``, or ``Other``.

    Matching is a case-insensitive substring test against each rule's
    keywords, in rule order. Never raises for any string input.
    """

    return (rules or default_rules()).infer(text)


__all__ = [
    "CategoryRule",
    "CategoryRules",
    "MerchantKeyword",
    "default_rules",
    "infer_category",
    "load_rules",
    "rules_from_mapping",
]
