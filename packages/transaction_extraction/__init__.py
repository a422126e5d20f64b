"""Public interface for the ``transaction_extraction`` package.

This module exposes the extraction entry points and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .categories import CategoryRules, default_rules, infer_category, load_rules
from .hybrid import ExtractionOutcome, HybridExtractor, extract
from .models import Category, Direction, FormatError, TransactionDraft
from .statement_csv import extract_from_table, extract_from_table_path
from .text_extract import extract_from_text
from .validation import parse_remote_drafts, validate_draft

__all__ = [
    # Extraction
    "extract",
    "extract_from_table",
    "extract_from_table_path",
    "extract_from_text",
    "infer_category",
    "HybridExtractor",
    "ExtractionOutcome",
    # Rules
    "CategoryRules",
    "default_rules",
    "load_rules",
    # Validation
    "parse_remote_drafts",
    "validate_draft",
    # Models / types
    "Category",
    "Direction",
    "FormatError",
    "TransactionDraft",
]
