"""Hybrid extraction: remote semantic extraction with a deterministic fallback.

Public API:
    - :class:`HybridExtractor`
    - :class:`ExtractionOutcome`
    - :func:`extract`

The pipeline has two states and one validation gate:

``Attempt-Remote``
    Only when a remote extractor is configured. The decoded payload is
    validated all-or-nothing by
    :func:`~transaction_extraction.validation.parse_remote_drafts`; a
    non-empty valid result is returned as-is.

``Fallback-Local``
    :func:`~transaction_extraction.text_extract.extract_from_text` on the same
    blob and reference date. Reached on no remote, any remote exception, a
    malformed payload, or an empty payload.

This is the only place remote failures are absorbed; nothing here raises to
the caller for content or transport problems.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Literal, NamedTuple

from .categories import CategoryRules
from .logging_setup import get_logger
from .models import TransactionDraft
from .remote import OpenAIRemoteExtractor, RemoteExtractor, RemoteSettings
from .text_extract import extract_from_text
from .validation import parse_remote_drafts

_logger = get_logger("transaction_extraction.hybrid")

Source = Literal["remote", "local"]


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    """Drafts plus where they came from.

    ``fallback_reason`` is ``None`` when the remote result was accepted, else
    one of ``"unavailable"``, ``"error:<ExceptionClass>"``, ``"malformed"`` or
    ``"empty"``.
    """

    drafts: list[TransactionDraft]
    source: Source
    fallback_reason: str | None = None


class _RemoteAttempt(NamedTuple):
    drafts: list[TransactionDraft] | None
    fallback_reason: str | None


class HybridExtractor:
    """Remote-first extractor that degrades to local parsing on any failure."""

    def __init__(
        self,
        remote: RemoteExtractor | None = None,
        *,
        rules: CategoryRules | None = None,
    ) -> None:
        self._remote = remote
        self._rules = rules

    @classmethod
    def from_env(cls, *, rules: CategoryRules | None = None) -> HybridExtractor:
        """Build with the OpenAI remote when ``OPENAI_API_KEY`` is set, else local only."""

        settings = RemoteSettings.from_env()
        remote = OpenAIRemoteExtractor(settings) if settings is not None else None
        return cls(remote, rules=rules)

    @property
    def has_remote(self) -> bool:
        return self._remote is not None

    def _attempt_remote(
        self, blob: str, *, today: dt.date, timeout: float | None
    ) -> _RemoteAttempt:
        if self._remote is None:
            return _RemoteAttempt(None, "unavailable")

        try:
            payload: Any = self._remote.extract(blob, today=today, timeout=timeout)
        except Exception as e:  # noqa: BLE001 - every remote failure falls back
            _logger.warning("hybrid:remote_failed error=%s", e.__class__.__name__)
            return _RemoteAttempt(None, f"error:{e.__class__.__name__}")

        try:
            drafts = parse_remote_drafts(payload)
        except ValueError as e:
            _logger.warning("hybrid:remote_malformed detail=%s", e)
            return _RemoteAttempt(None, "malformed")

        if not drafts:
            _logger.info("hybrid:remote_empty")
            return _RemoteAttempt(None, "empty")
        return _RemoteAttempt(drafts, None)

    def extract_with_outcome(
        self,
        blob: str,
        *,
        today: dt.date | None = None,
        timeout: float | None = None,
    ) -> ExtractionOutcome:
        """Run the pipeline and report which path produced the drafts."""

        resolved_today = today or dt.date.today()
        attempt = self._attempt_remote(blob, today=resolved_today, timeout=timeout)
        if attempt.drafts is not None:
            _logger.info("hybrid:done source=remote drafts=%d", len(attempt.drafts))
            return ExtractionOutcome(drafts=attempt.drafts, source="remote")

        drafts = extract_from_text(blob, resolved_today, rules=self._rules)
        _logger.info(
            "hybrid:done source=local drafts=%d reason=%s", len(drafts), attempt.fallback_reason
        )
        return ExtractionOutcome(
            drafts=drafts, source="local", fallback_reason=attempt.fallback_reason
        )

    def extract(
        self,
        blob: str,
        *,
        today: dt.date | None = None,
        timeout: float | None = None,
    ) -> list[TransactionDraft]:
        """Return drafts for ``blob``; never raises for remote problems."""

        return self.extract_with_outcome(blob, today=today, timeout=timeout).drafts


def extract(
    blob: str,
    *,
    today: dt.date | None = None,
    timeout: float | None = None,
) -> list[TransactionDraft]:
    """Extract drafts using the environment-configured :class:`HybridExtractor`."""

    return HybridExtractor.from_env().extract(blob, today=today, timeout=timeout)


__all__ = ["ExtractionOutcome", "HybridExtractor", "extract"]
