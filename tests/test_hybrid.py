from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

import pytest

import transaction_extraction.hybrid as hybrid_mod
import transaction_extraction.remote as remote_mod
from transaction_extraction.hybrid import ExtractionOutcome, HybridExtractor
from transaction_extraction.models import Category
from transaction_extraction.text_extract import extract_from_text
from tests.helpers.openai_stub import OpenAIStub, transactions_payload

TODAY = dt.date(2024, 6, 15)
BLOB = "HDFC: Rs 500 debited for Zomato on 12-04-2024.\nCredited Rs 50000 Salary."

_REMOTE_ITEM: dict[str, Any] = {
    "amount": 499.5,
    "category": "Food & Dining",
    "direction": "expense",
    "date": "2024-04-12",
    "description": "Zomato order #1234",
}


class _FakeRemote:
    """Records calls and replays a fixed payload (or raises)."""

    def __init__(self, result: Any = None, *, error: BaseException | None = None) -> None:
        self._result = result
        self._error = error
        self.calls: list[dict[str, Any]] = []

    def extract(self, blob: str, *, today: dt.date, timeout: float | None) -> Any:
        self.calls.append({"blob": blob, "today": today, "timeout": timeout})
        if self._error is not None:
            raise self._error
        return self._result


def test_valid_remote_payload_is_returned_directly() -> None:
    remote = _FakeRemote(transactions_payload(_REMOTE_ITEM))

    outcome = HybridExtractor(remote).extract_with_outcome(BLOB, today=TODAY, timeout=3.0)

    assert outcome.source == "remote"
    assert outcome.fallback_reason is None
    assert [(d.amount, d.description) for d in outcome.drafts] == [
        (Decimal("499.5"), "Zomato order #1234")
    ]
    assert remote.calls == [{"blob": BLOB, "today": TODAY, "timeout": 3.0}]


def test_bare_list_payload_is_accepted() -> None:
    drafts = HybridExtractor(_FakeRemote([_REMOTE_ITEM])).extract(BLOB, today=TODAY)

    assert [d.category for d in drafts] == [Category.FOOD]


def test_no_remote_uses_local_extractor() -> None:
    outcome = HybridExtractor(None).extract_with_outcome(BLOB, today=TODAY)

    assert outcome == ExtractionOutcome(
        drafts=extract_from_text(BLOB, TODAY), source="local", fallback_reason="unavailable"
    )


@pytest.mark.parametrize(
    ("remote", "reason"),
    [
        (_FakeRemote(error=TimeoutError("slow")), "error:TimeoutError"),
        (_FakeRemote(error=RuntimeError("401 unauthorized")), "error:RuntimeError"),
        (_FakeRemote(error=ValueError("not json")), "error:ValueError"),
        (_FakeRemote({"transactions": []}), "empty"),
        (_FakeRemote([]), "empty"),
        (_FakeRemote({"results": []}), "malformed"),
        (_FakeRemote("text"), "malformed"),
        (_FakeRemote(None), "malformed"),
    ],
)
def test_remote_failures_fall_back_to_local(remote: _FakeRemote, reason: str) -> None:
    outcome = HybridExtractor(remote).extract_with_outcome(BLOB, today=TODAY)

    assert outcome.source == "local"
    assert outcome.fallback_reason == reason
    assert outcome.drafts == extract_from_text(BLOB, TODAY)
    assert len(remote.calls) == 1  # no retries


def test_partially_invalid_payload_is_rejected_whole() -> None:
    bad = dict(_REMOTE_ITEM, category="Snacks")
    remote = _FakeRemote(transactions_payload(_REMOTE_ITEM, bad))

    outcome = HybridExtractor(remote).extract_with_outcome(BLOB, today=TODAY)

    assert outcome.fallback_reason == "malformed"
    assert outcome.drafts == extract_from_text(BLOB, TODAY)
    assert all(d.description != "Zomato order #1234" for d in outcome.drafts)


def test_fallback_on_text_with_nothing_to_find_is_empty() -> None:
    remote = _FakeRemote(error=TimeoutError("slow"))

    assert HybridExtractor(remote).extract("hello there, nothing here", today=TODAY) == []


def test_from_env_without_credentials_is_local_only() -> None:
    assert HybridExtractor.from_env().has_remote is False


def test_from_env_with_credentials_builds_openai_remote(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    stub = OpenAIStub(lambda text: transactions_payload(_REMOTE_ITEM))
    monkeypatch.setattr(remote_mod, "OpenAI", stub.factory)

    extractor = HybridExtractor.from_env()
    outcome = extractor.extract_with_outcome(BLOB, today=TODAY)

    assert extractor.has_remote is True
    assert outcome.source == "remote"
    assert len(stub.calls) == 1


def test_module_level_extract_without_credentials_matches_local() -> None:
    assert hybrid_mod.extract(BLOB, today=TODAY) == extract_from_text(BLOB, TODAY)


def test_injected_rules_reach_the_local_fallback() -> None:
    from transaction_extraction.categories import rules_from_mapping

    rules = rules_from_mapping(
        {
            "rules": [{"category": "Education", "keywords": ["zomato"]}],
            "merchants": [{"keyword": "zomato", "label": "Zomato"}],
        }
    )
    drafts = HybridExtractor(None, rules=rules).extract(BLOB, today=TODAY)

    assert drafts[0].category is Category.EDUCATION
