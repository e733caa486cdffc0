# tests/unit/test_portfolio_manager.py
"""
Unit tests for PortfolioManager
"""
from decimal import Decimal

import pytest

from analysis.token_scorer import OpportunityScore
from core.portfolio_manager import RISK_PRESETS, Candidate, PortfolioManager
from utils.constants import PORTFOLIO_KEY_RISKS, AllocationCategory, RiskTolerance


def candidate(address: str, safety: float, opportunity: float) -> Candidate:
    score = OpportunityScore(
        token_address=address,
        safety_score=safety,
        novelty_factor=0.6,
        market_factor=0.2,
        risk_adjusted_score=0.5,
        social_score=0.3,
        meme_score=0.2,
        opportunity_score=opportunity,
    )
    return Candidate(address=address, name=address.title(), symbol=address.upper(), score=score)


@pytest.mark.unit
class TestPortfolioManager:
    """Test cases for portfolio allocation"""

    @pytest.fixture
    def manager(self):
        return PortfolioManager()

    @pytest.fixture
    def candidates(self):
        return [
            candidate("alpha", safety=90, opportunity=0.9),
            candidate("beta", safety=85, opportunity=0.8),
            candidate("gamma", safety=75, opportunity=0.7),
            candidate("delta", safety=55, opportunity=0.65),
            candidate("epsilon", safety=45, opportunity=0.6),
            candidate("zeta", safety=20, opportunity=0.95),
            candidate("eta", safety=10, opportunity=0.5),
        ]

    def test_bucketing_by_safety(self, manager, candidates):
        buckets = manager.bucket(candidates, RISK_PRESETS[RiskTolerance.AGGRESSIVE])
        # aggressive: min safety 40, new floor 28, capacities 2/2/1
        assert [c.address for c in buckets[AllocationCategory.ESTABLISHED]] == ["alpha", "beta"]
        assert buckets[AllocationCategory.NEW] == []
        assert [c.address for c in buckets[AllocationCategory.SPECULATIVE]] == ["zeta"]

    def test_bucket_capacity_minimum_one(self, manager):
        preset = RISK_PRESETS[RiskTolerance.CONSERVATIVE]
        assert manager.bucket_capacity(preset, AllocationCategory.SPECULATIVE) == 1
        assert manager.bucket_capacity(RISK_PRESETS[RiskTolerance.VERY_AGGRESSIVE], AllocationCategory.NEW) == 4

    def test_conservative_never_speculates(self, manager, candidates):
        plan = manager.allocate(candidates, RiskTolerance.CONSERVATIVE, 1000)
        categories = {a.category for a in plan.allocations}
        assert AllocationCategory.SPECULATIVE not in categories
        assert [(a.candidate.address, a.amount) for a in plan.allocations] == [
            ("alpha", Decimal("800.00")),
            ("delta", Decimal("200.00")),
        ]

    def test_linear_position_decay(self, manager, candidates):
        plan = manager.allocate(candidates, RiskTolerance.MODERATE, 1000)
        established = [a for a in plan.allocations if a.category == AllocationCategory.ESTABLISHED]
        assert [a.amount for a in established] == [Decimal("300.00"), Decimal("225.00")]

    def test_amounts_truncate_to_cents(self, manager):
        tokens = [candidate(f"new{i}", safety=25, opportunity=1 - i / 10) for i in range(3)]
        plan = manager.allocate(tokens, RiskTolerance.VERY_AGGRESSIVE, 100)
        new = [a.amount for a in plan.allocations if a.category == AllocationCategory.NEW]
        assert new == [Decimal("16.66"), Decimal("13.88"), Decimal("11.11")]

    def test_existing_holdings_are_excluded_after_truncation(self, manager, candidates):
        plan = manager.allocate(candidates, RiskTolerance.MODERATE, 1000, existing_addresses=["alpha"])
        established = [a.candidate.address for a in plan.allocations if a.category == AllocationCategory.ESTABLISHED]
        assert established == ["beta"]

    @pytest.mark.parametrize("tolerance", list(RiskTolerance))
    @pytest.mark.parametrize("investment", [1, 99.99, 1000, 12345.67])
    def test_total_never_exceeds_investment(self, manager, candidates, tolerance, investment):
        plan = manager.allocate(candidates, tolerance, investment)
        assert plan.total_allocated <= Decimal(str(investment))
        assert all(a.amount >= 0 for a in plan.allocations)

    def test_no_candidates(self, manager):
        plan = manager.allocate([], RiskTolerance.MODERATE, 1000)
        assert plan.to_dict() == {
            "recommendations": [],
            "categories": {"established": 60, "new": 30, "speculative": 10},
            "total_allocated": 0.0,
        }

    def test_allocation_dict(self, manager, candidates):
        plan = manager.allocate(candidates, RiskTolerance.CONSERVATIVE, 1000)
        first = plan.to_dict()["recommendations"][0]
        assert first["token_address"] == "alpha"
        assert first["amount"] == 800.0
        assert first["percentage"] == "80.0%"
        assert first["category"] == "established"
        assert first["opportunity_score"] == 0.9

    def test_strategy_text(self, manager):
        strategy = manager.strategy(RiskTolerance.AGGRESSIVE)
        assert set(strategy) == {"overall_strategy", "entry_strategy", "exit_strategy", "time_horizon", "key_risks"}
        assert strategy["key_risks"] == PORTFOLIO_KEY_RISKS
