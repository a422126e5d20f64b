"""Remote semantic extraction over the OpenAI Responses API.

Public API:
    - :class:`RemoteExtractor` (protocol the orchestrator depends on)
    - :class:`RemoteSettings`
    - :class:`OpenAIRemoteExtractor`

The client is a single non-streaming request with a strict JSON schema and no
retries; a timeout or transport error propagates to the caller, which decides
whether to fall back. No side effects occur at import time (no client
creation, no environment reads).
"""

from __future__ import annotations

import datetime as dt
import json
import math
import os
import time
from dataclasses import dataclass
from typing import Any, Protocol

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam

from . import prompting
from .logging_setup import get_logger

_logger = get_logger("transaction_extraction.remote")

# ---- Configuration -----------------------------------------------------------

DEFAULT_MODEL: str = "gpt-5"
DEFAULT_TIMEOUT_SEC: float = 20.0

_API_KEY_ENV = "OPENAI_API_KEY"
_MODEL_ENV = "TXN_REMOTE_MODEL"
_TIMEOUT_ENV = "TXN_REMOTE_TIMEOUT"


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_SEC
    try:
        value = float(raw)
    except ValueError:
        _logger.warning("remote:invalid_timeout value=%r default=%s", raw, DEFAULT_TIMEOUT_SEC)
        return DEFAULT_TIMEOUT_SEC
    if not math.isfinite(value) or value <= 0:
        _logger.warning("remote:invalid_timeout value=%r default=%s", raw, DEFAULT_TIMEOUT_SEC)
        return DEFAULT_TIMEOUT_SEC
    return value


@dataclass(frozen=True, slots=True)
class RemoteSettings:
    """Credentials and tunables for :class:`OpenAIRemoteExtractor`."""

    api_key: str
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT_SEC

    @classmethod
    def from_env(cls) -> RemoteSettings | None:
        """Read settings from the environment.

        Returns ``None`` when ``OPENAI_API_KEY`` is unset or blank, which the
        orchestrator treats as "remote unavailable" rather than an error.
        """

        api_key = (os.getenv(_API_KEY_ENV) or "").strip()
        if not api_key:
            return None
        model = (os.getenv(_MODEL_ENV) or "").strip() or DEFAULT_MODEL
        return cls(api_key=api_key, model=model, timeout=_parse_timeout(os.getenv(_TIMEOUT_ENV)))


# ---- Protocol ----------------------------------------------------------------


class RemoteExtractor(Protocol):
    """Anything that turns raw text into a decoded JSON payload of drafts."""

    def extract(self, blob: str, *, today: dt.date, timeout: float | None) -> Any: ...


# ---- Internal helpers --------------------------------------------------------


def _extract_response_json(resp: Any) -> Any:
    """Decode the JSON body from an OpenAI Responses SDK result.

    - Prefer ``resp.output_text``; fall back to ``resp.output[0].content[0].text``.
    - Raise ``ValueError`` if text cannot be located or if JSON decoding fails.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content and len(content) > 0:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    # Some SDKs expose text as an object with a ``value`` string.
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except Exception:  # noqa: BLE001 - tolerate SDK shape differences
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON per the requested schema") from e


# ---- Client ------------------------------------------------------------------


class OpenAIRemoteExtractor:
    """Schema-constrained extraction through ``client.responses.create``."""

    def __init__(self, settings: RemoteSettings) -> None:
        self._settings = settings
        self._client: OpenAI | None = None

    @property
    def settings(self) -> RemoteSettings:
        return self._settings

    def _create_client(self) -> OpenAI:
        # Retries are disabled; the orchestrator falls back on the first failure.
        return OpenAI(
            api_key=self._settings.api_key,
            max_retries=0,
            timeout=self._settings.timeout,
        )

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def extract(self, blob: str, *, today: dt.date, timeout: float | None = None) -> Any:
        """Send ``blob`` to the model and return the decoded JSON payload.

        Raises whatever the SDK raises (timeouts, auth, transport) and
        ``ValueError`` when the response body is missing or not JSON.
        """

        effective_timeout = timeout if timeout is not None else self._settings.timeout
        text_cfg: ResponseTextConfigParam = {"format": prompting.build_response_format()}

        _logger.info(
            "remote:request model=%s chars=%d timeout=%.1f",
            self._settings.model,
            len(blob),
            effective_timeout,
        )
        t0 = time.perf_counter()
        resp = self._get_client().responses.create(
            model=self._settings.model,
            instructions=prompting.build_system_instructions(),
            input=prompting.build_user_content(blob, today=today),
            text=text_cfg,
            timeout=effective_timeout,
        )
        decoded = _extract_response_json(resp)
        _logger.info("remote:done latency_ms=%.2f", (time.perf_counter() - t0) * 1000.0)
        return decoded


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_TIMEOUT_SEC",
    "OpenAIRemoteExtractor",
    "RemoteExtractor",
    "RemoteSettings",
]
