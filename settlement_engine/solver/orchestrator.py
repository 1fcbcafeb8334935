"""
Settlement Orchestrator - Main pipeline coordinator.

Runs a settlement request end to end:
1. Ledger construction from the balance table
2. Conservation check (sum of balances within epsilon of zero)
3. Branch-and-bound search
4. Plan assembly and audit trail
"""

from typing import Callable, List, Mapping, Optional
import time

import structlog

from ..config import Settings, get_settings
from ..models import (
    AuditAction,
    Person,
    SearchStats,
    SettlementPlan,
    SettlementStatus,
    UnbalancedLedgerError,
    check_balanced,
    people_from_balances,
    total_balance,
)
from ..utils.audit_trail import AuditTrail
from .search import BranchAndBoundSolver, SearchContext

logger = structlog.get_logger()


class SettlementOrchestrator:
    """
    Main orchestrator for a settlement run.

    Parameters not given to settle() fall back to the application settings.
    The clock is handed to every solver, so the time budget can be driven
    by a fake clock.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.clock = clock

    def settle(
        self,
        balances: Mapping[str, int],
        epsilon: Optional[int] = None,
        time_budget_seconds: Optional[float] = None,
        prune: Optional[bool] = None,
    ) -> SettlementPlan:
        """
        Compute a minimum-transaction settlement plan.

        Args:
            balances: Person name -> signed balance in cents
            epsilon: Magnitude below which a balance counts as settled
            time_budget_seconds: Wall-clock budget for the search
            prune: Whether to apply the branch-and-bound cutoff

        Returns:
            SettlementPlan with final balances, per-person events and audit trail

        Raises:
            UnbalancedLedgerError: balances do not sum to within epsilon of zero
        """
        if epsilon is None:
            epsilon = self.settings.epsilon_cents
        if time_budget_seconds is None:
            time_budget_seconds = self.settings.time_budget_seconds
        if prune is None:
            prune = self.settings.pruning_enabled

        plan = SettlementPlan(epsilon=epsilon)
        trail = AuditTrail(plan_id=plan.id)

        people = people_from_balances(balances)

        try:
            check_balanced(people, epsilon)
        except UnbalancedLedgerError as e:
            trail.record(
                AuditAction.PRECONDITION_FAILED,
                "Balances do not sum to zero",
                success=False,
                error_message=str(e),
                total=e.total,
                epsilon=e.epsilon,
            )
            raise

        trail.record(
            AuditAction.SEARCH_STARTED,
            f"Settling {len(people)} balances",
            people=len(people),
            total=total_balance(people),
            epsilon=epsilon,
            time_budget_seconds=time_budget_seconds,
            prune=prune,
        )

        solver = BranchAndBoundSolver(
            epsilon=epsilon,
            time_budget_seconds=time_budget_seconds,
            prune=prune,
            clock=self.clock,
        )
        ctx = solver.solve(people)

        self._fill_plan(plan, ctx, people)
        self._audit_outcome(trail, plan)

        plan.audit_log = list(trail.entries)
        plan.audit_summary = trail.summary()
        return plan

    def _fill_plan(
        self,
        plan: SettlementPlan,
        ctx: SearchContext,
        initial_people: List[Person],
    ) -> None:
        """Copy the search outcome into the plan."""
        plan.stats = SearchStats(
            nodes_explored=ctx.nodes_explored,
            pruned_branches=ctx.pruned_branches,
            improvements=list(ctx.improvements),
            elapsed_seconds=ctx.elapsed_seconds,
            timed_out=ctx.timed_out,
        )

        if not ctx.found:
            plan.status = SettlementStatus.NOT_FOUND
            plan.people = initial_people
            plan.transaction_count = 0
            return

        plan.status = SettlementStatus.BEST_EFFORT if ctx.timed_out else SettlementStatus.OPTIMAL
        plan.people = ctx.best_solution
        plan.transaction_count = ctx.best_count

    def _audit_outcome(self, trail: AuditTrail, plan: SettlementPlan) -> None:
        for count in plan.stats.improvements:
            trail.record(
                AuditAction.SOLUTION_IMPROVED,
                f"Found solution with {count} transactions",
                transaction_count=count,
            )

        if plan.stats.timed_out:
            trail.record(
                AuditAction.DEADLINE_REACHED,
                "Time budget exhausted, returning best solution so far",
                elapsed_seconds=round(plan.stats.elapsed_seconds, 4),
            )

        if not plan.found:
            trail.record(
                AuditAction.NO_SOLUTION,
                "No complete settlement found",
                success=False,
                nodes_explored=plan.stats.nodes_explored,
            )

        trail.record(
            AuditAction.SEARCH_COMPLETED,
            "Settlement search completed",
            status=plan.status.value,
            transaction_count=plan.transaction_count,
            nodes_explored=plan.stats.nodes_explored,
            pruned_branches=plan.stats.pruned_branches,
        )
