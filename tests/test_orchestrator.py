"""
Tests for the settlement orchestrator and audit trail.
"""

import json

import pytest

from settlement_engine.config import Settings, get_settings
from settlement_engine.models import (
    AuditAction,
    SettlementStatus,
    Transfer,
    UnbalancedLedgerError,
)
from settlement_engine.solver import SettlementOrchestrator
from settlement_engine.utils import AuditTrail


@pytest.fixture
def orchestrator():
    return SettlementOrchestrator(Settings(epsilon_cents=1, time_budget_seconds=30))


def actions(plan):
    return [e.action for e in plan.audit_log]


class TestSettlementOrchestrator:
    """End-to-end settlement runs."""

    def test_optimal_plan(self, orchestrator, triangle_balances):
        plan = orchestrator.settle(triangle_balances)

        assert plan.status == SettlementStatus.OPTIMAL
        assert plan.found
        assert plan.transaction_count == 2
        assert plan.epsilon == 1
        assert plan.is_consistent()
        assert [p.balance for p in plan.people] == [0, 0, 0]
        assert plan.transfers == [
            Transfer(payer="B", payee="A", amount=40),
            Transfer(payer="C", payee="A", amount=60),
        ]

    def test_two_creditors(self, orchestrator, two_creditors_balances):
        plan = orchestrator.settle(two_creditors_balances)

        assert plan.transaction_count == 2
        assert plan.transfers == [
            Transfer(payer="C", payee="A", amount=50),
            Transfer(payer="C", payee="B", amount=50),
        ]

    def test_already_settled(self, orchestrator):
        plan = orchestrator.settle({"A": 0, "B": 0})

        assert plan.found
        assert plan.status == SettlementStatus.OPTIMAL
        assert plan.transaction_count == 0
        assert plan.transfers == []
        assert [p.name for p in plan.people] == ["A", "B"]

    def test_not_found_is_distinct_from_settled(self):
        orchestrator = SettlementOrchestrator(Settings(epsilon_cents=2000))
        plan = orchestrator.settle({"A": 3000, "B": -1500, "C": -1500})

        assert not plan.found
        assert plan.status == SettlementStatus.NOT_FOUND
        assert plan.transaction_count == 0
        assert [p.balance for p in plan.people] == [3000, -1500, -1500]
        assert AuditAction.NO_SOLUTION in actions(plan)

    def test_precondition_failure(self):
        orchestrator = SettlementOrchestrator(Settings(epsilon_cents=2000))

        with pytest.raises(UnbalancedLedgerError) as exc_info:
            orchestrator.settle({"A": 10, "B": -5, "C": 50000})

        assert exc_info.value.total == 50005

    def test_small_imbalance_accepted(self):
        orchestrator = SettlementOrchestrator(Settings(epsilon_cents=2000))
        plan = orchestrator.settle({"A": 10000, "B": -9995})

        assert plan.found
        assert plan.transaction_count == 1

    def test_arguments_override_settings(self, orchestrator):
        plan = orchestrator.settle({"A": 10000, "B": -9000, "C": -500}, epsilon=2000)

        assert plan.epsilon == 2000
        assert plan.transaction_count == 1

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("EPSILON_CENTS", "500")
        monkeypatch.setenv("PRUNING_ENABLED", "false")
        get_settings.cache_clear()

        plan = SettlementOrchestrator().settle({"A": 30, "B": 10, "C": -20, "D": -20})

        assert plan.epsilon == 500
        # Everything is below epsilon already
        assert plan.transaction_count == 0

    def test_pruning_toggle_same_count(self, orchestrator):
        balances = {"A": 30, "B": 10, "C": -20, "D": -20}

        pruned = orchestrator.settle(balances, prune=True)
        exhaustive = orchestrator.settle(balances, prune=False)

        assert pruned.transaction_count == exhaustive.transaction_count == 3
        assert exhaustive.stats.pruned_branches == 0

    def test_deadline_gives_best_effort(self, demo_balances, step_clock):
        orchestrator = SettlementOrchestrator(
            Settings(epsilon_cents=2000, time_budget_seconds=1.0),
            clock=step_clock(0.001),
        )
        plan = orchestrator.settle(demo_balances)

        assert plan.status == SettlementStatus.BEST_EFFORT
        assert plan.found
        assert plan.stats.timed_out
        assert plan.is_consistent()
        assert all(abs(p.balance) < 2000 for p in plan.people)
        assert AuditAction.DEADLINE_REACHED in actions(plan)
        assert actions(plan)[-1] == AuditAction.SEARCH_COMPLETED
        assert plan.audit_summary["action_counts"]["deadline_reached"] == 1

    def test_audit_trail(self, orchestrator):
        plan = orchestrator.settle({"A": 70, "B": 30, "C": -30, "D": -70})

        assert actions(plan)[0] == AuditAction.SEARCH_STARTED
        assert actions(plan)[-1] == AuditAction.SEARCH_COMPLETED
        improved = [e for e in plan.audit_log if e.action == AuditAction.SOLUTION_IMPROVED]
        assert [e.details["transaction_count"] for e in improved] == plan.stats.improvements
        assert plan.stats.improvements[-1] == plan.transaction_count == 2

    def test_to_dict(self, orchestrator, triangle_balances):
        data = orchestrator.settle(triangle_balances).to_dict()

        assert data["status"] == "optimal"
        assert data["found"] is True
        assert data["transaction_count"] == 2
        assert data["transfers"][0] == {"payer": "B", "payee": "A", "amount": 40}
        assert data["people"][0]["transactions"] == [
            {"counterparty": "B", "amount": -40},
            {"counterparty": "C", "amount": -60},
        ]
        json.dumps(data)


class TestAuditTrail:
    """Audit summary carried by the plan and the JSON export."""

    def test_plan_carries_summary(self, orchestrator, triangle_balances):
        plan = orchestrator.settle(triangle_balances)

        summary = plan.audit_summary
        assert summary["total_entries"] == len(plan.audit_log)
        assert summary["failures"] == []
        assert summary["action_counts"]["search_started"] == 1
        assert summary["action_counts"]["search_completed"] == 1
        assert plan.to_dict()["audit"] == summary

    def test_failures_listed(self):
        orchestrator = SettlementOrchestrator(Settings(epsilon_cents=2000))
        plan = orchestrator.settle({"A": 3000, "B": -1500, "C": -1500})

        trail = AuditTrail(plan.id, plan.audit_log)

        assert [e.action for e in trail.failures()] == [AuditAction.NO_SOLUTION]
        assert plan.audit_summary["failures"] == ["No complete settlement found"]
        assert plan.audit_summary["action_counts"]["no_solution"] == 1

    def test_record_returns_entry(self):
        trail = AuditTrail("plan-1")

        entry = trail.record(
            AuditAction.PRECONDITION_FAILED,
            "Balances do not sum to zero",
            success=False,
            error_message="sum of money is not 0: 50",
            total=50,
        )

        assert trail.entries == [entry]
        assert entry.details == {"total": 50}
        assert trail.summary()["failures"] == ["sum of money is not 0: 50"]

    def test_export_default_path(self, orchestrator, triangle_balances, tmp_path):
        plan = orchestrator.settle(triangle_balances)

        path = AuditTrail(plan.id, plan.audit_log).export()
        assert path == tmp_path / "reports" / f"audit_{plan.id}.json"

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["plan_id"] == plan.id
        assert data["summary"] == plan.audit_summary
        assert [e["action"] for e in data["entries"]] == [a.value for a in actions(plan)]

    def test_export_explicit_path(self, orchestrator, triangle_balances, tmp_path):
        plan = orchestrator.settle(triangle_balances)
        target = tmp_path / "nested" / "trail.json"

        path = AuditTrail(plan.id, plan.audit_log).export(target)

        assert path == target
        assert json.loads(target.read_text(encoding="utf-8"))["summary"]["total_entries"] == len(plan.audit_log)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
