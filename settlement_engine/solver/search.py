"""
Branch-and-bound settlement search.

Explores sequences of pairwise transfers depth first and keeps the complete
settlement with the fewest transactions. Every successful transfer zeroes at
least one party, so a branch is at most len(people) - 1 transfers deep.

Search state lives in a SearchContext owned by a single solve() call, so
solvers can be reused and tested in isolation.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import time

import structlog

from ..models import (
    Person,
    attempt_transfer,
    revert_transfer,
    is_fully_settled,
    snapshot,
)

logger = structlog.get_logger()


@dataclass
class SearchContext:
    """Mutable state shared by every frame of one search run."""
    epsilon: int
    started_at: float
    deadline: Optional[float] = None

    # Best complete solution; always replaced together with best_count
    best_solution: Optional[List[Person]] = None
    best_count: int = 0

    # Counts of each adopted solution, in adoption order
    improvements: List[int] = field(default_factory=list)

    nodes_explored: int = 0
    pruned_branches: int = 0
    timed_out: bool = False
    elapsed_seconds: float = 0.0

    @property
    def found(self) -> bool:
        return self.best_solution is not None

    def offer(self, people: List[Person], count: int) -> bool:
        """Adopt a complete solution if it is strictly cheaper than the best one."""
        if self.found and count >= self.best_count:
            return False

        self.best_solution = snapshot(people)
        self.best_count = count
        self.improvements.append(count)
        logger.info("Found solution with transaction count", transaction_count=count)
        return True


class BranchAndBoundSolver:
    """
    Depth-first branch-and-bound over pairwise transfers.

    Pairs (i, j) with i < j are tried in ascending order at every level and
    only strictly cheaper solutions replace the best one, so the first
    minimal solution found is the one returned.

    The deadline is cooperative: each call checks it before doing any work
    and, once a solution exists, returns immediately.
    """

    def __init__(
        self,
        epsilon: int,
        time_budget_seconds: Optional[float] = None,
        prune: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        if time_budget_seconds is not None and time_budget_seconds <= 0:
            raise ValueError(f"time budget must be positive, got {time_budget_seconds}")

        self.epsilon = epsilon
        self.time_budget_seconds = time_budget_seconds
        self.prune = prune
        self.clock = clock

    def solve(self, people: List[Person]) -> SearchContext:
        """
        Search for the cheapest complete settlement of `people`.

        The input list is used as scratch space but is back in its original
        state when this returns. The best solution is a separate copy.
        """
        started_at = self.clock()
        deadline = None
        if self.time_budget_seconds is not None:
            deadline = started_at + self.time_budget_seconds

        ctx = SearchContext(
            epsilon=self.epsilon,
            started_at=started_at,
            deadline=deadline,
        )

        logger.info(
            "Starting settlement search",
            people=len(people),
            epsilon=self.epsilon,
            time_budget_seconds=self.time_budget_seconds,
            prune=self.prune,
        )

        self._search(ctx, people, 0)

        ctx.elapsed_seconds = self.clock() - started_at

        logger.info(
            "Settlement search finished",
            found=ctx.found,
            transaction_count=ctx.best_count if ctx.found else None,
            nodes_explored=ctx.nodes_explored,
            pruned_branches=ctx.pruned_branches,
            timed_out=ctx.timed_out,
            elapsed_seconds=round(ctx.elapsed_seconds, 4),
        )
        return ctx

    def _search(self, ctx: SearchContext, people: List[Person], depth: int) -> None:
        ctx.nodes_explored += 1

        if is_fully_settled(people, ctx.epsilon):
            ctx.offer(people, depth)
            return

        if ctx.found and self._deadline_passed(ctx):
            if not ctx.timed_out:
                logger.warning(
                    "Search deadline reached, keeping best solution",
                    transaction_count=ctx.best_count,
                )
            ctx.timed_out = True
            return

        n = len(people)
        for i in range(n):
            for j in range(i + 1, n):
                # One more transfer can never beat a best that is already this cheap
                if self.prune and ctx.found and ctx.best_count <= depth + 1:
                    ctx.pruned_branches += 1
                    return

                if not attempt_transfer(people, i, j, ctx.epsilon):
                    continue

                try:
                    self._search(ctx, people, depth + 1)
                finally:
                    revert_transfer(people, i, j)

                if ctx.timed_out:
                    return

    def _deadline_passed(self, ctx: SearchContext) -> bool:
        if ctx.deadline is None:
            return False
        return self.clock() > ctx.deadline
