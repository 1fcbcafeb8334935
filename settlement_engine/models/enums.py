"""Enumerations for the debt settlement engine."""

from enum import Enum


class SignClass(str, Enum):
    """
    Sign of a balance once epsilon is taken into account.

    ZERO covers every balance whose magnitude is below epsilon.
    """
    NEGATIVE = "negative"  # Owes money
    ZERO = "zero"          # Effectively settled
    POSITIVE = "positive"  # Is owed money


class SettlementStatus(str, Enum):
    """
    Outcome of a settlement search.

    OPTIMAL: Search tree exhausted before the deadline
    BEST_EFFORT: Deadline reached, best plan found so far returned
    NOT_FOUND: No complete settlement was reachable
    """
    OPTIMAL = "optimal"
    BEST_EFFORT = "best_effort"
    NOT_FOUND = "not_found"


class AuditAction(str, Enum):
    """Type of audit action."""
    SEARCH_STARTED = "search_started"
    PRECONDITION_FAILED = "precondition_failed"
    SOLUTION_IMPROVED = "solution_improved"
    DEADLINE_REACHED = "deadline_reached"
    NO_SOLUTION = "no_solution"
    SEARCH_COMPLETED = "search_completed"
