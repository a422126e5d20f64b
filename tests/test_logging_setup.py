from __future__ import annotations

import logging

import pytest

from transaction_extraction import logging_setup


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, logging.INFO),
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        ("chatty", logging.INFO),
    ],
)
def test_level_from_env(monkeypatch: pytest.MonkeyPatch, raw: str | None, expected: int) -> None:
    if raw is not None:
        monkeypatch.setenv("TRANSACTION_EXTRACTION_LOG_LEVEL", raw)

    assert logging_setup.level_from_env() == expected


def test_configure_logging_attaches_one_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger("transaction_extraction")
    saved = (list(root.handlers), root.level, root.propagate)
    monkeypatch.setattr(logging_setup, "_configured", False)
    monkeypatch.setenv("TRANSACTION_EXTRACTION_LOG_LEVEL", "DEBUG")
    root.handlers = [logging.NullHandler()]
    try:
        logging_setup.configure_logging()
        logging_setup.configure_logging()

        assert [type(h) for h in root.handlers] == [logging.StreamHandler]
        assert root.level == logging.DEBUG
        assert root.propagate is False
    finally:
        root.handlers, root.propagate = saved[0], saved[2]
        root.setLevel(saved[1])
