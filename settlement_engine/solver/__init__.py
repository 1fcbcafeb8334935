"""Settlement search components."""

from .search import SearchContext, BranchAndBoundSolver
from .orchestrator import SettlementOrchestrator

__all__ = [
    "SearchContext",
    "BranchAndBoundSolver",
    "SettlementOrchestrator",
]
