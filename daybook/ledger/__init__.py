"""Ledger package: persisted transactions and the spending commentary."""

from daybook.ledger.commentary import (
    FALLBACK_COMMENT,
    NO_SPENDING_COMMENT,
    CommentaryState,
    CommentaryTrigger,
)
from daybook.ledger.store import DEFAULT_LEDGER_KEY, LedgerStore

__all__ = [
    "DEFAULT_LEDGER_KEY",
    "FALLBACK_COMMENT",
    "NO_SPENDING_COMMENT",
    "CommentaryState",
    "CommentaryTrigger",
    "LedgerStore",
]
