"""Settlement result models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import AuditAction, SettlementStatus
from .ledger import Person, transaction_count


@dataclass
class Transfer:
    """A single payment from a debtor to a creditor."""
    payer: str
    payee: str
    amount: int


@dataclass
class SearchStats:
    """Counters collected during one search run."""
    nodes_explored: int = 0
    pruned_branches: int = 0
    improvements: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    timed_out: bool = False


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    # Action
    action: AuditAction = AuditAction.SEARCH_STARTED

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    # Outcome
    success: bool = True
    error_message: Optional[str] = None


@dataclass
class SettlementPlan:
    """
    Complete result of a settlement run.

    When nothing was found, people holds the untouched initial balances and
    transaction_count is 0; use `found` rather than the event lists to tell
    this apart from an already settled group.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    status: SettlementStatus = SettlementStatus.NOT_FOUND

    people: List[Person] = field(default_factory=list)
    transaction_count: int = 0
    epsilon: int = 0

    stats: SearchStats = field(default_factory=SearchStats)
    audit_log: List[AuditEntry] = field(default_factory=list)
    audit_summary: Dict[str, Any] = field(default_factory=dict)

    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def found(self) -> bool:
        return self.status != SettlementStatus.NOT_FOUND

    @property
    def transfers(self) -> List[Transfer]:
        """Payments in person order, each listed once on the payer's side."""
        if not self.found:
            return []
        return [
            Transfer(
                payer=person.name,
                payee=self.people[t.counterparty].name,
                amount=t.amount,
            )
            for person in self.people
            for t in person.transactions
            if t.amount > 0
        ]

    def is_consistent(self) -> bool:
        """Check that the stored count matches the event lists."""
        return transaction_count(self.people) == self.transaction_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "status": self.status.value,
            "found": self.found,
            "transaction_count": self.transaction_count,
            "epsilon": self.epsilon,
            "transfers": [
                {"payer": t.payer, "payee": t.payee, "amount": t.amount}
                for t in self.transfers
            ],
            "people": [
                {
                    "name": p.name,
                    "remaining": p.balance,
                    "transactions": [
                        {
                            "counterparty": self.people[t.counterparty].name,
                            "amount": t.amount,
                        }
                        for t in p.transactions
                    ],
                }
                for p in self.people
            ],
            "stats": {
                "nodes_explored": self.stats.nodes_explored,
                "pruned_branches": self.stats.pruned_branches,
                "improvements": list(self.stats.improvements),
                "elapsed_seconds": round(self.stats.elapsed_seconds, 4),
                "timed_out": self.stats.timed_out,
            },
            "audit": self.audit_summary,
        }
