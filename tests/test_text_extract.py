from __future__ import annotations

import datetime as dt
from decimal import Decimal

from transaction_extraction.categories import rules_from_mapping
from transaction_extraction.models import Category
from transaction_extraction.text_extract import extract_from_text
from transaction_extraction.validation import validate_draft

TODAY = dt.date(2024, 6, 15)


def test_debit_sms_with_date_and_merchant_keyword() -> None:
    drafts = extract_from_text("HDFC: Rs 500 debited for Zomato on 12-04-2024.", TODAY)

    assert len(drafts) == 1
    d = drafts[0]
    assert d.amount == Decimal("500")
    assert d.direction == "expense"
    assert d.category is Category.FOOD
    assert d.date == dt.date(2024, 4, 12)
    assert d.description == "Zomato"


def test_credit_without_date_defaults_to_today() -> None:
    drafts = extract_from_text("Credited Rs 50000 Salary.", TODAY)

    assert len(drafts) == 1
    d = drafts[0]
    assert d.amount == Decimal("50000")
    assert d.direction == "income"
    assert d.category is Category.SALARY
    assert d.date == TODAY
    assert d.description == "Salary"


def test_currency_abbreviation_does_not_split_the_message() -> None:
    drafts = extract_from_text("Rs. 500 debited from A/c XX1234 to Swiggy on 05-03-2024.", TODAY)

    assert [(d.amount, d.description, d.category) for d in drafts] == [
        (Decimal("500"), "Swiggy", Category.FOOD)
    ]
    assert drafts[0].date == dt.date(2024, 3, 5)


def test_thousands_separators_fraction_and_two_digit_year() -> None:
    drafts = extract_from_text("INR 1,23,456.50 spent at big bazaar on 3/1/24", TODAY)

    assert len(drafts) == 1
    assert drafts[0].amount == Decimal("123456.50")
    assert drafts[0].date == dt.date(2024, 1, 3)
    assert drafts[0].description == "Big Bazaar"


def test_rupee_symbol_and_counterparty_phrase() -> None:
    drafts = extract_from_text("₹450 paid to UBER on 10/06/2024", TODAY)

    assert len(drafts) == 1
    assert drafts[0].amount == Decimal("450")
    assert drafts[0].description == "Uber"
    assert drafts[0].category is Category.TRANSPORT


def test_income_counterparty_from_phrase() -> None:
    drafts = extract_from_text("Rs 1,200 credited to your A/c XX12 from rahul sharma.", TODAY)

    assert len(drafts) == 1
    assert drafts[0].direction == "income"
    assert drafts[0].amount == Decimal("1200")
    assert drafts[0].description == "Rahul Sharma"
    assert drafts[0].category is Category.OTHER


def test_refund_received_from_is_income() -> None:
    drafts = extract_from_text("Refund of Rs 799 received from Amazon.", TODAY)

    assert len(drafts) == 1
    assert drafts[0].direction == "income"
    assert drafts[0].description == "Amazon"
    assert drafts[0].category is Category.SHOPPING


def test_credit_keyword_checked_before_debit_keyword() -> None:
    drafts = extract_from_text("Rs 1000 debited earlier has been credited back", TODAY)

    assert [d.direction for d in drafts] == ["income"]


def test_self_reference_is_skipped_and_falls_back_to_unknown() -> None:
    drafts = extract_from_text("INR 2,000 sent to your account via UPI ref 1234", TODAY)

    assert len(drafts) == 1
    assert drafts[0].description == "Unknown Transaction"
    assert drafts[0].category is Category.OTHER


def test_vpa_used_when_no_counterparty_phrase() -> None:
    drafts = extract_from_text("Rs 250 debited, VPA: merchant99@okaxis ref 12345", TODAY)

    assert len(drafts) == 1
    assert drafts[0].description == "Merchant99@okaxis"


def test_upi_handle_without_at_sign_is_used() -> None:
    drafts = extract_from_text("Rs 300 debited via UPI merchant123 ref 9", TODAY)

    assert len(drafts) == 1
    assert drafts[0].description == "Merchant123"
    assert drafts[0].category is Category.OTHER


def test_upi_followed_by_connector_word_is_not_a_payee() -> None:
    drafts = extract_from_text("Rs 300 debited via UPI ref 998877 on 01/06/2024", TODAY)

    assert len(drafts) == 1
    assert drafts[0].description == "Unknown Transaction"


def test_impossible_date_defaults_to_today() -> None:
    drafts = extract_from_text("Rs 100 debited for Zomato on 31-02-2024", TODAY)

    assert len(drafts) == 1
    assert drafts[0].date == TODAY


def test_non_transaction_short_and_zero_lines_are_dropped() -> None:
    blob = "\n".join(
        [
            "Your OTP is 123456. Do not share it with anyone.",
            "Rs 5 paid",  # shorter than the minimum line length
            "Rs 0 debited for test purchase",
            "Balance alert: please update your KYC",
            "Payment debited without any amount",
        ]
    )
    assert extract_from_text(blob, TODAY) == []


def test_empty_input_yields_empty_list() -> None:
    assert extract_from_text("", TODAY) == []
    assert extract_from_text("   \n\n  ", TODAY) == []


def test_multiple_messages_keep_order_and_duplicates() -> None:
    blob = (
        "Rs 120 paid to Starbucks on 01-05-2024\n"
        "Rs 120 paid to Starbucks on 01-05-2024\n"
        "Salary of Rs 90,000 credited on 30-04-2024. Rs 300 spent at Blinkit on 02-05-2024."
    )
    drafts = extract_from_text(blob, TODAY)

    assert [(d.description, d.direction) for d in drafts] == [
        ("Starbucks", "expense"),
        ("Starbucks", "expense"),
        ("Salary", "income"),
        ("Blinkit", "expense"),
    ]
    assert drafts[3].category is Category.GROCERIES


def test_output_is_deterministic_for_same_input_and_today() -> None:
    blob = "Rs 120 paid to Starbucks on 01-05-2024\nCredited Rs 50000 Salary."
    assert extract_from_text(blob, TODAY) == extract_from_text(blob, TODAY)


def test_every_draft_passes_the_shared_validator() -> None:
    blob = (
        "HDFC: Rs 500 debited for Zomato on 12-04-2024.\n"
        "Credited Rs 50000 Salary.\n"
        "INR 1,23,456.50 spent at big bazaar on 3/1/24\n"
        "INR 2,000 sent to your account via UPI ref 1234"
    )
    drafts = extract_from_text(blob, TODAY)

    assert len(drafts) == 4
    for d in drafts:
        assert validate_draft(d) == d
        assert d.amount > 0


def test_injected_rules_drive_category_and_merchant_fallback() -> None:
    rules = rules_from_mapping(
        {
            "rules": [{"category": "Education", "keywords": ["acme"]}],
            "merchants": [{"keyword": "acme", "label": "Acme Tutors"}],
        }
    )
    drafts = extract_from_text("Rs 900 debited for ACME fees", TODAY, rules=rules)

    assert len(drafts) == 1
    assert drafts[0].description == "Acme Tutors"
    assert drafts[0].category is Category.EDUCATION
