"""
Portfolio Manager - risk-tolerance driven memecoin allocation

Candidates are split into established, new and speculative buckets by
safety score, each bucket receives a fixed share of the investment, and
positions inside a bucket get linearly decaying weights by rank.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from analysis.token_scorer import OpportunityScore
from utils.constants import PORTFOLIO_KEY_RISKS, AllocationCategory, RiskTolerance
from utils.helpers import floor_cents, format_percentage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskPreset:
    """Bucket ratios and safety floor for one risk tolerance"""
    max_tokens: int
    estab_ratio: Decimal
    new_ratio: Decimal
    spec_ratio: Decimal
    min_safety_score: float


RISK_PRESETS: Dict[RiskTolerance, RiskPreset] = {
    RiskTolerance.CONSERVATIVE: RiskPreset(3, Decimal("0.8"), Decimal("0.2"), Decimal("0"), 70),
    RiskTolerance.MODERATE: RiskPreset(5, Decimal("0.6"), Decimal("0.3"), Decimal("0.1"), 60),
    RiskTolerance.AGGRESSIVE: RiskPreset(7, Decimal("0.4"), Decimal("0.4"), Decimal("0.2"), 40),
    RiskTolerance.VERY_AGGRESSIVE: RiskPreset(10, Decimal("0.2"), Decimal("0.5"), Decimal("0.3"), 30),
}

# Share of max_tokens each bucket may hold
BUCKET_SHARES = {
    AllocationCategory.ESTABLISHED: 0.4,
    AllocationCategory.NEW: 0.4,
    AllocationCategory.SPECULATIVE: 0.2,
}

# Fraction of min_safety_score separating new from speculative
NEW_TOKEN_SAFETY_FRACTION = 0.7

# Weight of the last position relative to the first inside a bucket
POSITION_DECAY = Decimal("0.5")

REASONINGS = {
    AllocationCategory.ESTABLISHED: "Lower risk established memecoin with good market metrics",
    AllocationCategory.NEW: "Moderate risk newer memecoin showing promising signals",
    AllocationCategory.SPECULATIVE: "Higher risk speculative memecoin with potential for significant returns",
}

STRATEGIES: Dict[RiskTolerance, Dict[str, str]] = {
    RiskTolerance.CONSERVATIVE: {
        "overall_strategy": "Focus on established memecoins with proven market presence and higher safety scores. Minimize exposure to newer, unproven tokens.",
        "entry_strategy": "Dollar-cost average into positions over 1-2 weeks rather than buying all at once.",
        "exit_strategy": "Set conservative profit targets of 20-50% and use stop losses at 15-20% below entry.",
        "time_horizon": "Medium-term: Hold positions for 1-3 months, reassessing based on continued performance.",
    },
    RiskTolerance.MODERATE: {
        "overall_strategy": "Balanced approach with majority in established memecoins but allowing for moderate exposure to newer tokens with strong signals.",
        "entry_strategy": "Enter positions in 2-3 tranches, with larger allocations to safer tokens first.",
        "exit_strategy": "Set profit targets of 50-100% for established tokens and 100-200% for newer ones. Use trailing stops of 20-25%.",
        "time_horizon": "Mixed: Hold established positions for 1-3 months, newer tokens for 2-6 weeks depending on momentum.",
    },
    RiskTolerance.AGGRESSIVE: {
        "overall_strategy": "Growth-focused approach with significant allocation to newer tokens showing strong social signals and meme correlation. Still maintain some safer positions as anchors.",
        "entry_strategy": "More aggressive entry with 60-70% of position at once for tokens with strong momentum.",
        "exit_strategy": "Set tiered profit-taking at 100%, 200%, and 300%+. Use looser stops of 30-35% or based on key support levels.",
        "time_horizon": "Shorter-term: Actively monitor positions daily, with average hold times of 2-4 weeks for most positions.",
    },
    RiskTolerance.VERY_AGGRESSIVE: {
        "overall_strategy": "Maximum growth potential with heavy focus on emerging tokens with strong meme correlation and social signals. Minimal allocation to established tokens.",
        "entry_strategy": "Rapid entry on tokens showing momentum, with focus on catching early moves in trending meme themes.",
        "exit_strategy": "Set partial profit-taking at 100%, but let winners run with trailing stops. Quickly cut losses on tokens that don't gain traction.",
        "time_horizon": "Very short-term: Actively trade positions with average hold times of 1-2 weeks, rotating into new opportunities quickly.",
    },
}


@dataclass
class Candidate:
    """A scored token eligible for allocation"""
    address: str
    name: str
    symbol: str
    score: OpportunityScore

    @property
    def safety_score(self) -> float:
        return self.score.safety_score

    @property
    def opportunity_score(self) -> float:
        return self.score.opportunity_score


@dataclass
class Allocation:
    """One recommended position"""
    candidate: Candidate
    amount: Decimal
    category: AllocationCategory
    reasoning: str

    def to_dict(self, investment_size: Decimal) -> Dict[str, Any]:
        return {
            "token_address": self.candidate.address,
            "name": self.candidate.name,
            "symbol": self.candidate.symbol,
            "amount": float(self.amount),
            "percentage": format_percentage(float(self.amount), float(investment_size)),
            "category": self.category.value,
            "reasoning": self.reasoning,
            "opportunity_score": round(self.candidate.opportunity_score, 2),
            "safety_score": self.candidate.safety_score,
        }


@dataclass
class PortfolioPlan:
    """Allocations plus the preset they were built from"""
    risk_tolerance: RiskTolerance
    investment_size: Decimal
    preset: RiskPreset
    allocations: List[Allocation] = field(default_factory=list)

    @property
    def total_allocated(self) -> Decimal:
        return sum((a.amount for a in self.allocations), Decimal("0"))

    def categories(self) -> Dict[str, int]:
        return {
            AllocationCategory.ESTABLISHED.value: int(round(self.preset.estab_ratio * 100)),
            AllocationCategory.NEW.value: int(round(self.preset.new_ratio * 100)),
            AllocationCategory.SPECULATIVE.value: int(round(self.preset.spec_ratio * 100)),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendations": [a.to_dict(self.investment_size) for a in self.allocations],
            "categories": self.categories(),
            "total_allocated": float(self.total_allocated),
        }


class PortfolioManager:
    """Builds a bucketed allocation and strategy text for a risk tolerance"""

    def __init__(self, presets: Optional[Dict[RiskTolerance, RiskPreset]] = None):
        self.presets = presets or RISK_PRESETS

    def bucket(self, candidates: Iterable[Candidate], preset: RiskPreset) -> Dict[AllocationCategory, List[Candidate]]:
        """Split by safety score, rank by opportunity, truncate to bucket capacity"""
        ranked = sorted(candidates, key=lambda c: c.opportunity_score, reverse=True)
        floor = preset.min_safety_score
        new_floor = floor * NEW_TOKEN_SAFETY_FRACTION

        members = {
            AllocationCategory.ESTABLISHED: [c for c in ranked if c.safety_score >= floor],
            AllocationCategory.NEW: [c for c in ranked if new_floor <= c.safety_score < floor],
            AllocationCategory.SPECULATIVE: [c for c in ranked if c.safety_score < new_floor],
        }
        return {
            category: tokens[:self.bucket_capacity(preset, category)]
            for category, tokens in members.items()
        }

    @staticmethod
    def bucket_capacity(preset: RiskPreset, category: AllocationCategory) -> int:
        return max(1, int(preset.max_tokens * BUCKET_SHARES[category]))

    @staticmethod
    def distribute(budget: Decimal, tokens: List[Candidate], category: AllocationCategory) -> List[Allocation]:
        """Linearly decaying weights by rank; amounts truncated to cents"""
        size = len(tokens)
        if size == 0 or budget <= 0:
            return []
        allocations = []
        for index, token in enumerate(tokens):
            weight = 1 - (Decimal(index) / Decimal(size)) * POSITION_DECAY
            amount = floor_cents(budget * weight / Decimal(size))
            allocations.append(Allocation(
                candidate=token,
                amount=amount,
                category=category,
                reasoning=REASONINGS[category],
            ))
        return allocations

    def allocate(
        self,
        candidates: Iterable[Candidate],
        risk_tolerance: RiskTolerance,
        investment_size,
        existing_addresses: Iterable[str] = (),
    ) -> PortfolioPlan:
        preset = self.presets[risk_tolerance]
        investment = Decimal(str(investment_size))
        excluded = set(existing_addresses)

        buckets = {
            category: [c for c in tokens if c.address not in excluded]
            for category, tokens in self.bucket(candidates, preset).items()
        }

        estab_budget = investment * preset.estab_ratio
        new_budget = investment * preset.new_ratio
        # Speculative gets whatever the first two buckets were not assigned
        spec_budget = investment - estab_budget - new_budget
        if preset.spec_ratio == 0:
            buckets[AllocationCategory.SPECULATIVE] = []

        plan = PortfolioPlan(risk_tolerance=risk_tolerance, investment_size=investment, preset=preset)
        plan.allocations.extend(self.distribute(estab_budget, buckets[AllocationCategory.ESTABLISHED], AllocationCategory.ESTABLISHED))
        plan.allocations.extend(self.distribute(new_budget, buckets[AllocationCategory.NEW], AllocationCategory.NEW))
        plan.allocations.extend(self.distribute(spec_budget, buckets[AllocationCategory.SPECULATIVE], AllocationCategory.SPECULATIVE))

        logger.info(
            f"Allocated {plan.total_allocated} of {investment} across {len(plan.allocations)} "
            f"positions ({risk_tolerance.value})"
        )
        return plan

    @staticmethod
    def strategy(risk_tolerance: RiskTolerance) -> Dict[str, Any]:
        text = dict(STRATEGIES[risk_tolerance])
        text["key_risks"] = list(PORTFOLIO_KEY_RISKS)
        return text
