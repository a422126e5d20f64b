"""Prompt construction for remote transaction extraction.

This module builds:
- The system instructions for the extraction task.
- The user content: the reference date, the allowed categories and the raw
  text delimited by ``BEGIN_TEXT`` / ``END_TEXT`` markers.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

import datetime as dt

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .models import DIRECTIONS, Category

RESPONSE_SCHEMA_NAME = "transaction_drafts"


def build_system_instructions() -> str:
    """Return concise system instructions for transaction extraction."""

    return (
        "You are an agent that extracts financial transactions from bank SMS, app "
        "notifications and personal notes. Emit one record per real transaction; ignore "
        "balance alerts, OTPs and promotional text. Amounts are positive magnitudes. Never "
        "invent categories. Output JSON only that conforms to the specified schema."
    )


def build_user_content(blob: str, *, today: dt.date) -> str:
    """Build user content embedding the reference date, categories and text.

    - ``today`` resolves relative or missing dates ("yesterday", no date).
    - Numeric dates in the text are day-first (``DD-MM-YYYY``).
    """

    categories = "\n".join(f"  - {c.value}" for c in Category)
    return (
        f"Today's date is {today.isoformat()}.\n"
        "Extract every transaction in the text below. For each one return:\n"
        "- amount: positive number without currency symbols or separators\n"
        "- direction: 'income' for money received, 'expense' for money spent\n"
        "- category: exactly one of the categories listed below\n"
        "- date: YYYY-MM-DD; numeric dates in the text are day-first; use today's "
        "date when none is given\n"
        "- description: the merchant, payee or payer, short and human readable\n"
        "\nCategories:\n"
        f"{categories}\n"
        "\nBEGIN_TEXT\n"
        f"{blob}\n"
        "END_TEXT\n"
    )


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format object.

    Schema shape:
    {
      "type": "json_schema",
      "name": "transaction_drafts",
      "schema": {
        "type": "object",
        "properties": {
          "transactions": {
            "type": "array",
            "items": {
              "type": "object",
              "properties": {
                "amount": {"type": "number"},
                "category": {"type": "string", "enum": [...]},
                "direction": {"type": "string", "enum": ["income", "expense"]},
                "date": {"type": "string"},
                "description": {"type": "string"}
              },
              "required": [...all five...],
              "additionalProperties": false
            }
          }
        },
        "required": ["transactions"],
        "additionalProperties": false
      },
      "strict": true
    }
    """

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": RESPONSE_SCHEMA_NAME,
        "schema": {
            "type": "object",
            "properties": {
                "transactions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "amount": {"type": "number"},
                            "category": {
                                "type": "string",
                                "enum": [c.value for c in Category],
                            },
                            "direction": {"type": "string", "enum": list(DIRECTIONS)},
                            "date": {
                                "type": "string",
                                "description": "ISO 8601 calendar date (YYYY-MM-DD)",
                            },
                            "description": {"type": "string"},
                        },
                        "required": ["amount", "category", "direction", "date", "description"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["transactions"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "RESPONSE_SCHEMA_NAME",
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
]
