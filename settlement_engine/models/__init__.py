"""Data models for the debt settlement engine."""

from .enums import (
    SignClass,
    SettlementStatus,
    AuditAction,
)
from .ledger import (
    Person,
    Transaction,
    UnbalancedLedgerError,
    sign_class,
    people_from_balances,
    attempt_transfer,
    revert_transfer,
    is_fully_settled,
    transaction_count,
    total_balance,
    check_balanced,
    snapshot,
)
from .settlement import (
    Transfer,
    SearchStats,
    AuditEntry,
    SettlementPlan,
)

__all__ = [
    # Enums
    "SignClass",
    "SettlementStatus",
    "AuditAction",
    # Ledger
    "Person",
    "Transaction",
    "UnbalancedLedgerError",
    "sign_class",
    "people_from_balances",
    "attempt_transfer",
    "revert_transfer",
    "is_fully_settled",
    "transaction_count",
    "total_balance",
    "check_balanced",
    "snapshot",
    # Results
    "Transfer",
    "SearchStats",
    "AuditEntry",
    "SettlementPlan",
]
