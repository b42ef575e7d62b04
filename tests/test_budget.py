"""Tests for the budget tracker."""

import threading

from career_orchestrator.pipeline.budget import BudgetTracker


class TestBudgetTracker:
    def test_reserve_within_budget(self):
        budget = BudgetTracker(1000)
        assert budget.reserve(600) is True
        assert budget.used == 600
        assert budget.remaining == 400

    def test_reserve_over_budget_does_not_mutate(self):
        budget = BudgetTracker(1000)
        budget.reserve(600)
        assert budget.reserve(401) is False
        assert budget.used == 600

    def test_reserve_exactly_fills(self):
        budget = BudgetTracker(1000)
        assert budget.reserve(1000) is True
        assert budget.remaining == 0

    def test_settle_to_actual(self):
        budget = BudgetTracker(5000)
        budget.reserve(3000)
        budget.settle(3000, 1200)
        assert budget.used == 1200

    def test_release(self):
        budget = BudgetTracker(5000)
        budget.reserve(800)
        budget.release(800)
        assert budget.used == 0

    def test_first_stop_reason_wins(self):
        budget = BudgetTracker(1000)
        assert budget.stopped is False
        budget.stop("first")
        budget.stop("second")
        assert budget.stopped is True
        assert budget.stopped_reason == "first"

    def test_to_info(self):
        budget = BudgetTracker(2000)
        budget.reserve(500)
        budget.stop("out of tokens")
        info = budget.to_info()
        assert info.token_used_estimate == 500
        assert info.token_budget_total == 2000
        assert info.stopped_reason == "out of tokens"

    def test_concurrent_reservations_never_overspend(self):
        budget = BudgetTracker(10_000)
        granted = []

        def worker():
            for _ in range(100):
                if budget.reserve(7):
                    granted.append(7)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert budget.used == sum(granted)
        assert budget.used <= 10_000
