"""
Ledger model for the debt settlement engine.

A ledger is a plain list of Person entries. The list index is the stable
identity of a person: settlement events reference their counterparty by
index into the same list, never by object.

All amounts are INTEGERS in the smallest currency unit (cents).
"""

import copy
from dataclasses import dataclass, field
from typing import List, Mapping

from .enums import SignClass


class UnbalancedLedgerError(ValueError):
    """Raised when the balances of a group do not sum to (almost) zero."""

    def __init__(self, total: int, epsilon: int):
        self.total = total
        self.epsilon = epsilon
        super().__init__(f"sum of money is not 0: {total}")


@dataclass
class Transaction:
    """
    A settlement event seen from one party's point of view.

    Positive amount: this party paid the counterparty (balance went up).
    Negative amount: this party was paid by the counterparty (balance went down).
    """
    counterparty: int
    amount: int


@dataclass
class Person:
    """A balance entry with its settlement history."""
    name: str
    balance: int
    transactions: List[Transaction] = field(default_factory=list)

    def is_settled(self, epsilon: int) -> bool:
        return abs(self.balance) < epsilon


def sign_class(balance: int, epsilon: int) -> SignClass:
    """Classify a balance, treating magnitudes below epsilon as zero."""
    if abs(balance) < epsilon:
        return SignClass.ZERO
    return SignClass.NEGATIVE if balance < 0 else SignClass.POSITIVE


def people_from_balances(balances: Mapping[str, int]) -> List[Person]:
    """Build ledger entries in mapping order."""
    people = []
    for name, balance in balances.items():
        if isinstance(balance, bool) or not isinstance(balance, int):
            raise TypeError(
                f"Balance for {name!r} must be an integer amount, got {type(balance).__name__}"
            )
        people.append(Person(name=str(name), balance=balance))
    return people


def attempt_transfer(people: List[Person], i: int, j: int, epsilon: int) -> bool:
    """
    Try to settle as much as possible between entries i and j.

    Returns False without touching the ledger when the pair cannot transact:
    same person, either side already effectively zero, or both on the same
    side (two debtors or two creditors).
    """
    p1 = people[i]
    p2 = people[j]

    if i == j or p1.name == p2.name:
        return False

    s1 = sign_class(p1.balance, epsilon)
    s2 = sign_class(p2.balance, epsilon)
    if s1 == SignClass.ZERO or s2 == SignClass.ZERO:
        return False
    if s1 == s2:
        return False

    debtor_idx, creditor_idx = (i, j) if p1.balance < p2.balance else (j, i)
    debtor = people[debtor_idx]
    creditor = people[creditor_idx]

    amount = min(-debtor.balance, creditor.balance)

    debtor.balance += amount
    debtor.transactions.append(Transaction(counterparty=creditor_idx, amount=amount))

    creditor.balance -= amount
    creditor.transactions.append(Transaction(counterparty=debtor_idx, amount=-amount))
    return True


def revert_transfer(people: List[Person], i: int, j: int) -> None:
    """
    Undo the most recent successful attempt_transfer(people, i, j).

    Restores both balances and pops the two events appended by the transfer.
    """
    p1 = people[i]
    p2 = people[j]

    if not p1.transactions or not p2.transactions:
        raise ValueError(f"No transfer between {i} and {j} to revert")

    last1 = p1.transactions[-1]
    last2 = p2.transactions[-1]
    if last1.counterparty != j or last2.counterparty != i or last1.amount != -last2.amount:
        raise ValueError(f"Last events of {i} and {j} are not a matching transfer")

    p1.transactions.pop()
    p1.balance -= last1.amount
    p2.transactions.pop()
    p2.balance -= last2.amount


def is_fully_settled(people: List[Person], epsilon: int) -> bool:
    return all(p.is_settled(epsilon) for p in people)


def transaction_count(people: List[Person]) -> int:
    """Number of transfers; every transfer is recorded once on each party."""
    return sum(len(p.transactions) for p in people) // 2


def total_balance(people: List[Person]) -> int:
    return sum(p.balance for p in people)


def check_balanced(people: List[Person], epsilon: int) -> None:
    """Refuse a ledger whose balances do not sum to within epsilon of zero."""
    total = total_balance(people)
    if abs(total) >= epsilon:
        raise UnbalancedLedgerError(total, epsilon)


def snapshot(people: List[Person]) -> List[Person]:
    """Independent copy of a ledger state, histories included."""
    return copy.deepcopy(people)
