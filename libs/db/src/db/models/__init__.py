"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger model used by ``transaction_extraction``.
"""

from .ledger import Base, LedgerTransaction

__all__ = [
    "Base",
    "LedgerTransaction",
]
