from __future__ import annotations

import datetime as dt

from transaction_extraction import prompting
from transaction_extraction.models import Category


def test_response_format_is_strict_and_enumerates_categories() -> None:
    fmt = prompting.build_response_format()

    assert fmt["type"] == "json_schema"
    assert fmt["name"] == prompting.RESPONSE_SCHEMA_NAME
    assert fmt["strict"] is True

    root = fmt["schema"]
    assert root["required"] == ["transactions"]
    assert root["additionalProperties"] is False

    item = root["properties"]["transactions"]["items"]
    assert set(item["required"]) == set(item["properties"]) == {
        "amount",
        "category",
        "direction",
        "date",
        "description",
    }
    assert item["additionalProperties"] is False
    assert item["properties"]["category"]["enum"] == [c.value for c in Category]
    assert item["properties"]["direction"]["enum"] == ["income", "expense"]


def test_user_content_embeds_date_categories_and_delimited_text() -> None:
    blob = "Rs 500 debited for Zomato on 12-04-2024."
    content = prompting.build_user_content(blob, today=dt.date(2024, 5, 1))

    assert "2024-05-01" in content
    assert f"BEGIN_TEXT\n{blob}\nEND_TEXT" in content
    for c in Category:
        assert c.value in content


def test_system_instructions_are_non_empty() -> None:
    assert "JSON" in prompting.build_system_instructions()
