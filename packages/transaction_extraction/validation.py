"""Draft validation gate shared by every producer of transaction drafts.

Remote (model-produced) payloads pass through :func:`parse_remote_drafts`
before the orchestrator accepts them; tests run local extractor output through
:func:`validate_draft` to check the same invariants.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from .models import TransactionDraft

# ---------------------------------------------------------------------------
# Single item
# ---------------------------------------------------------------------------


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "item"
    return f"{loc}: {first.get('msg', 'invalid value')}"


def validate_draft(item: Mapping[str, Any] | TransactionDraft) -> TransactionDraft:
    """Return a :class:`TransactionDraft` for ``item`` or raise ``ValueError``.

    Accepts an already-built draft (re-validated field by field) or a mapping
    with exactly the keys ``amount``, ``direction``, ``category``, ``date`` and
    ``description``. Unknown keys are rejected.
    """

    if isinstance(item, TransactionDraft):
        item = item.model_dump()
    if not isinstance(item, Mapping):
        raise ValueError("Invalid draft: each transaction must be an object")
    try:
        return TransactionDraft.model_validate(dict(item))
    except ValidationError as e:
        raise ValueError(f"Invalid draft: {_first_error(e)}") from e


# ---------------------------------------------------------------------------
# Remote payloads
# ---------------------------------------------------------------------------


def _items_from_body(body: Any) -> Sequence[Any]:
    if isinstance(body, Mapping):
        items = body.get("transactions")
        if not isinstance(items, list):
            raise ValueError("Invalid response: missing or non-list 'transactions'")
        return items
    if isinstance(body, list):
        return body
    raise ValueError("Invalid response: expected a JSON object or array at top level")


def parse_remote_drafts(body: Any) -> list[TransactionDraft]:
    """Validate a decoded remote payload into drafts, all or nothing.

    ``body`` is either ``{"transactions": [...]}`` (the strict response schema)
    or a bare list of items. Any invalid item rejects the whole payload with a
    ``ValueError`` naming its position; an empty list is returned as-is and
    left to the caller to interpret.
    """

    drafts: list[TransactionDraft] = []
    for pos, item in enumerate(_items_from_body(body)):
        try:
            drafts.append(validate_draft(item))
        except ValueError as e:
            raise ValueError(f"Invalid response: transactions[{pos}]: {e}") from e
    return drafts


__all__ = ["parse_remote_drafts", "validate_draft"]
