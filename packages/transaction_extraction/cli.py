# ruff: noqa: I001
"""CLI for the ``transaction_extraction`` package.

This module exposes callable command handlers (``cmd_scan_text`` and
``cmd_import_statement``) and a Typer-based console interface. Environment
variables (notably ``OPENAI_API_KEY`` and ``DATABASE_URL``) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to command logic.
Business logic lives in the extractor modules; handlers only parse options,
print results and map failures to exit codes.

Output
------
One tab-separated line per draft on stdout::

    <date>\t<direction>\t<amount>\t<category>\t<description>

or a JSON array with ``--json``. Diagnostics go to stderr.
"""

from __future__ import annotations

import datetime as dt
import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .categories import CategoryRules, load_rules
from .logging_setup import configure_logging, get_logger
from .models import FormatError, TransactionDraft

_logger = get_logger("transaction_extraction.cli")

_RULES_ENV = "TXN_CATEGORY_RULES"
_NO_RESULTS_MESSAGE = "No transactions detected; try different input."


# ---- Small module-level helpers used by CLI commands -------------------------


def _rules_from_env() -> CategoryRules | None:
    """Load the rule file named by ``TXN_CATEGORY_RULES`` (``None`` when unset).

    Raises ``ValueError`` for malformed files and ``OSError`` when unreadable.
    """

    path = (os.getenv(_RULES_ENV) or "").strip()
    if not path:
        return None
    return load_rules(path)


def _parse_today(raw: str | None) -> dt.date | None:
    if raw is None or not raw.strip():
        return None
    try:
        return dt.date.fromisoformat(raw.strip())
    except ValueError as e:
        raise ValueError(f"--today must be YYYY-MM-DD, got {raw!r}") from e


def _format_line(draft: TransactionDraft) -> str:
    return "\t".join(
        (
            draft.date.isoformat(),
            draft.direction,
            format(draft.amount, "f"),
            draft.category.value,
            draft.description,
        )
    )


def _emit(drafts: Sequence[TransactionDraft], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([d.to_json_dict() for d in drafts], ensure_ascii=False, indent=2))
        return
    for d in drafts:
        print(_format_line(d))


def _persist(
    drafts: Sequence[TransactionDraft],
    *,
    source: str,
    database_url: str | None,
    user_id: str | None,
) -> list[str]:
    # Local imports keep CLI startup fast and the DB stack optional at import time
    from db.client import create_schema, session_scope

    from .persistence import save_drafts

    create_schema(database_url=database_url)
    with session_scope(database_url=database_url) as session:
        return save_drafts(session, drafts, source=source, user_id=user_id)


def _read_text_input(text: str | None, file: Path | None) -> str:
    if text is not None and file is not None:
        raise ValueError("pass either --text or --file, not both")
    if text is not None:
        return text
    if file is not None:
        return file.read_text(encoding="utf-8")
    return sys.stdin.read()


# ---- Command handlers --------------------------------------------------------


def cmd_scan_text(
    *,
    text: str | None = None,
    file: Path | None = None,
    local_only: bool = False,
    today: str | None = None,
    as_json: bool = False,
    persist: bool = False,
    database_url: str | None = None,
    user_id: str | None = None,
) -> int:
    """Extract drafts from freeform text and print them to stdout.

    Behavior
    --------
    - Reads the blob from ``text``, ``file`` or stdin.
    - Runs the hybrid extractor (remote when ``OPENAI_API_KEY`` is set and
      ``local_only`` is false, local parsing otherwise).
    - Zero drafts is not an error: a hint is written to stderr and ``0`` is
      returned.
    - With ``persist`` the drafts are stored with source ``remote`` or ``sms``.

    Errors are written to stderr and a non-zero status is returned.
    """

    from .hybrid import HybridExtractor

    try:
        blob = _read_text_input(text, file)
        ref_date = _parse_today(today)
        rules = _rules_from_env()
    except FileNotFoundError:
        print(f"Error: File not found: {file}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if local_only:
        extractor = HybridExtractor(None, rules=rules)
    else:
        extractor = HybridExtractor.from_env(rules=rules)
    outcome = extractor.extract_with_outcome(blob, today=ref_date)
    _logger.info(
        "cli:scan_text source=%s drafts=%d reason=%s",
        outcome.source,
        len(outcome.drafts),
        outcome.fallback_reason,
    )

    if not outcome.drafts:
        print(_NO_RESULTS_MESSAGE, file=sys.stderr)
        return 0

    _emit(outcome.drafts, as_json=as_json)

    if persist:
        source = "remote" if outcome.source == "remote" else "sms"
        try:
            ids = _persist(
                outcome.drafts, source=source, database_url=database_url, user_id=user_id
            )
        except Exception as e:
            print(f"Error: failed to persist transactions: {e}", file=sys.stderr)
            return 1
        print(f"Saved {len(ids)} transaction(s).", file=sys.stderr)
    return 0


def cmd_import_statement(
    csv_path: str | Path,
    *,
    as_json: bool = False,
    persist: bool = False,
    database_url: str | None = None,
    user_id: str | None = None,
) -> int:
    """Extract drafts from a bank statement export and print them to stdout.

    Header-discovery failures (``FormatError``) and unreadable files are
    reported on stderr with exit status ``1``. Persisted rows use source
    ``statement``.
    """

    from .statement_csv import extract_from_table_path

    try:
        rules = _rules_from_env()
        drafts = extract_from_table_path(csv_path, rules=rules)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except UnicodeDecodeError:
        print(f"Error: {csv_path} is not UTF-8 encoded text", file=sys.stderr)
        return 1
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not drafts:
        print(_NO_RESULTS_MESSAGE, file=sys.stderr)
        return 0

    _emit(drafts, as_json=as_json)

    if persist:
        try:
            ids = _persist(
                drafts, source="statement", database_url=database_url, user_id=user_id
            )
        except Exception as e:
            print(f"Error: failed to persist transactions: {e}", file=sys.stderr)
            return 1
        print(f"Saved {len(ids)} transaction(s).", file=sys.stderr)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract transactions from bank SMS/notification text or statement CSV exports. "
        "Loads OPENAI_API_KEY and DATABASE_URL from a local .env before running."
    ),
)


# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect this when used as a default value below.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to a bank statement CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler reports nice errors
)


def _exit_on_failure(code: int) -> None:
    if code != 0:
        raise typer.Exit(code)


@app.command("scan-text")
def scan_text_cmd(
    text: str | None = typer.Option(
        None, "--text", help="Text to scan (defaults to stdin when neither --text nor --file)."
    ),
    file: Path | None = typer.Option(
        None, "--file", help="Read the text to scan from this file.", dir_okay=False
    ),
    *,
    local_only: bool = typer.Option(
        False, "--local-only", help="Skip the remote extractor even when configured."
    ),
    today: str | None = typer.Option(
        None, "--today", help="Reference date YYYY-MM-DD for messages without a date."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print drafts as a JSON array."),
    persist: bool = typer.Option(False, help="Persist the drafts to the database."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    user_id: str | None = typer.Option(None, help="Owner id stored with persisted rows."),
) -> None:
    """Extract transactions from SMS/notification text or notes."""

    _exit_on_failure(
        cmd_scan_text(
            text=text,
            file=file,
            local_only=local_only,
            today=today,
            as_json=as_json,
            persist=persist,
            database_url=database_url,
            user_id=user_id,
        )
    )


@app.command("import-statement")
def import_statement_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    as_json: bool = typer.Option(False, "--json", help="Print drafts as a JSON array."),
    persist: bool = typer.Option(False, help="Persist the drafts to the database."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    user_id: str | None = typer.Option(None, help="Owner id stored with persisted rows."),
) -> None:
    """Extract transactions from a bank statement CSV export."""

    _exit_on_failure(
        cmd_import_statement(
            csv_path,
            as_json=as_json,
            persist=persist,
            database_url=database_url,
            user_id=user_id,
        )
    )


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    # Running as a module: `python -m transaction_extraction.cli`
    app()
