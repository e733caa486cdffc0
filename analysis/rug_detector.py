# analysis/rug_detector.py

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from analysis import normalizers
from analysis.models import TokenFacts, Unavailable
from utils.constants import (
    RISK_DISCLAIMER,
    RISK_TIER_THRESHOLDS,
    SCAM_NAME_PATTERNS,
    TIER_RECOMMENDATIONS,
    RiskTier,
)
from utils.helpers import round_half_up

logger = logging.getLogger(__name__)

COMPILED_SCAM_PATTERNS = [re.compile(p, re.IGNORECASE) for p in SCAM_NAME_PATTERNS]

SCAM_WARNING = "This token has some similarities to previously identified scam tokens."
UNAVAILABLE_WARNING = "Unable to analyze token safety"


def risk_tier(score: float) -> RiskTier:
    """Map a 0-100 safety score onto its risk tier"""
    for threshold, tier in RISK_TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return RiskTier.EXTREME


def combined_safety(contract_score: float, scam_score: float) -> float:
    """70% contract safety, 30% dissimilarity to known scams, clamped to 0-100"""
    combined = contract_score * 0.7 + (100 - scam_score) * 0.3
    return min(100.0, max(0.0, combined))


def combined_safety_score(contract_score: float, scam_score: float) -> int:
    """Combined safety as reported and stored; tiers use the unrounded value"""
    return int(round_half_up(combined_safety(contract_score, scam_score)))


@dataclass
class SafetyAssessment:
    """Contract safety score with one warning per deduction"""
    score: float
    warnings: List[str]
    facts: TokenFacts
    available: bool = True

    def details(self) -> Dict[str, Any]:
        return {
            "mint_authority_active": self.facts.mint_authority_present,
            "freeze_authority_active": self.facts.freeze_authority_present,
            "top_holder_percentage": self.facts.top_holder_percentage,
            "holder_count": self.facts.holder_count,
            "supply": self.facts.supply,
            "has_liquidity": self.facts.has_liquidity,
        }


@dataclass
class ScamSimilarity:
    """Similarity to known scam patterns, 33 points per matched pattern"""
    score: int
    patterns: Dict[str, bool] = field(default_factory=dict)


@dataclass
class RugpullReport:
    """Combined safety verdict for a rugpull scan"""
    safety_score: int
    risk_tier: RiskTier
    assessment: SafetyAssessment
    scam: ScamSimilarity
    warnings: List[str]
    recommendations: List[str]

    @property
    def contract_score(self) -> int:
        """Authority component as persisted alongside the overall score"""
        return 50 if self.assessment.facts.mint_authority_present else 90

    @property
    def holder_distribution_score(self) -> float:
        return 100 - self.assessment.facts.top_holder_percentage

    @property
    def liquidity_score(self) -> int:
        return 80 if self.assessment.facts.has_liquidity else 20


class RugDetector:
    """
    Rug pull risk scoring for SPL tokens.
    Combines authority flags, holder distribution, liquidity and
    scam-pattern similarity into a bounded score and a risk tier.
    """

    SCAM_PATTERN_POINTS = 33

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}

        # Deductions from a perfect 100
        self.deductions = {
            'mint_authority': 20,
            'freeze_authority': 10,
            'no_liquidity': 30,
        }

        self.thresholds = {
            'suspicious_top_holder': 80,
            'suspicious_holder_count': 50,
            'small_holder_base': 50,
            'scam_warning': 30,
            'scam_recommendation': 50,
        }

    def assess_contract(self, address: str, facts: Union[TokenFacts, Unavailable]) -> SafetyAssessment:
        """Contract safety score from on-chain facts; worst case when unavailable"""
        if isinstance(facts, Unavailable):
            logger.warning(f"Safety facts unavailable ({facts.source}): {facts.reason}")
            return SafetyAssessment(
                score=0,
                warnings=[UNAVAILABLE_WARNING],
                facts=TokenFacts.pessimistic(address),
                available=False,
            )

        score = 100.0
        warnings = []

        if facts.mint_authority_present:
            score -= self.deductions['mint_authority']
            warnings.append("The token has an active mint authority, which means more tokens can be created.")

        if facts.freeze_authority_present:
            score -= self.deductions['freeze_authority']
            warnings.append("The token has an active freeze authority, which allows freezing token accounts.")

        concentration = normalizers.holder_concentration_penalty(facts.top_holder_percentage)
        if concentration > 0:
            score -= concentration
            warnings.append(
                f"The top holder owns {facts.top_holder_percentage:.2f}% of the supply, "
                f"creating concentration risk."
            )

        thin_base = normalizers.holder_count_penalty(facts.holder_count)
        if thin_base > 0:
            score -= thin_base
            warnings.append(f"The token has only {facts.holder_count} holders, indicating low distribution.")

        if not facts.has_liquidity:
            score -= self.deductions['no_liquidity']
            warnings.append("The token has no detectable liquidity on major DEXs, making it difficult to trade.")

        return SafetyAssessment(score=max(0.0, min(100.0, score)), warnings=warnings, facts=facts)

    def scam_similarity(self, facts: TokenFacts) -> ScamSimilarity:
        """Count matches against three heuristic scam patterns"""
        name_hit = any(
            pattern.search(text)
            for pattern in COMPILED_SCAM_PATTERNS
            for text in (facts.name or "", facts.symbol or "")
        )
        patterns = {
            'high_mint_authority': facts.mint_authority_present and facts.freeze_authority_present,
            'suspicious_holder_pattern': (
                facts.top_holder_percentage > self.thresholds['suspicious_top_holder']
                and facts.holder_count < self.thresholds['suspicious_holder_count']
            ),
            'known_scam_name': name_hit,
        }
        score = sum(self.SCAM_PATTERN_POINTS for hit in patterns.values() if hit)
        return ScamSimilarity(score=score, patterns=patterns)

    def scan(self, address: str, facts: Union[TokenFacts, Unavailable]) -> RugpullReport:
        """Full rugpull scan: combined score, tier, warnings and recommendations"""
        assessment = self.assess_contract(address, facts)

        if not assessment.available:
            scam = ScamSimilarity(score=0, patterns={})
            return RugpullReport(
                safety_score=0,
                risk_tier=RiskTier.EXTREME,
                assessment=assessment,
                scam=scam,
                warnings=list(assessment.warnings),
                recommendations=self._recommendations(RiskTier.EXTREME, assessment.facts, scam),
            )

        scam = self.scam_similarity(assessment.facts)
        combined = combined_safety(assessment.score, scam.score)
        tier = risk_tier(combined)

        warnings = list(assessment.warnings)
        if scam.score > self.thresholds['scam_warning']:
            warnings.append(SCAM_WARNING)

        return RugpullReport(
            safety_score=combined_safety_score(assessment.score, scam.score),
            risk_tier=tier,
            assessment=assessment,
            scam=scam,
            warnings=warnings,
            recommendations=self._recommendations(tier, assessment.facts, scam),
        )

    def _recommendations(self, tier: RiskTier, facts: TokenFacts, scam: ScamSimilarity) -> List[str]:
        recommendations = [TIER_RECOMMENDATIONS[tier]]

        if facts.mint_authority_present:
            recommendations.append(
                "The token has an active mint authority, meaning more tokens can be created at any time. "
                "This could lead to value dilution."
            )

        if facts.top_holder_percentage > 50:
            recommendations.append(
                f"A single holder owns {facts.top_holder_percentage:.2f}% of the supply, "
                f"creating high concentration risk and potential for price manipulation."
            )

        if not facts.has_liquidity:
            recommendations.append(
                "The token lacks significant liquidity on major DEXs, which could make it difficult to exit positions."
            )

        if scam.score > self.thresholds['scam_recommendation']:
            recommendations.append(
                "This token has significant similarities to tokens previously identified as scams or rugpulls."
            )

        if facts.holder_count < self.thresholds['small_holder_base']:
            recommendations.append(
                "The token has a small holder base, which often indicates a new or less established project."
            )

        recommendations.append(RISK_DISCLAIMER)
        return recommendations
