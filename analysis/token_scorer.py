# analysis/token_scorer.py

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from analysis import normalizers
from analysis.models import MarketMetrics, SocialAggregate

logger = logging.getLogger(__name__)


@dataclass
class ScoringWeights:
    """Weights for the opportunity composite and its sub-scores"""
    # opportunity
    risk_adjusted: float = 0.4
    social: float = 0.3
    meme: float = 0.3
    # risk-adjusted
    safety: float = 0.5
    novelty: float = 0.25
    market: float = 0.25
    # market
    price_change: float = 0.4
    volume: float = 0.3
    liquidity: float = 0.3
    # social
    mentions: float = 0.4
    engagement: float = 0.3
    sentiment: float = 0.3


@dataclass
class OpportunityScore:
    """Opportunity composite with its sub-scores"""
    token_address: str
    safety_score: float
    novelty_factor: float
    market_factor: float
    risk_adjusted_score: float
    social_score: float
    meme_score: float
    opportunity_score: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "safety_score": self.safety_score,
            "novelty_factor": self.novelty_factor,
            "market_factor": round(self.market_factor, 4),
            "risk_adjusted_score": round(self.risk_adjusted_score, 4),
            "social_score": round(self.social_score, 4),
            "meme_score": round(self.meme_score, 4),
            "opportunity_score": round(self.opportunity_score, 4),
        }


class TokenScorer:
    """Ranks portfolio candidates by safety, traction and meme relevance"""

    # Weak priors used when a token has no history at all
    DEFAULT_SOCIAL_SCORE = 0.3
    DEFAULT_MEME_SCORE = 0.2
    CORRELATION_COUNT_STEP = 0.05
    CORRELATION_COUNT_CAP = 0.3

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def market_factor(self, market: MarketMetrics) -> float:
        w = self.weights
        return (
            normalizers.market_price_change_factor(market.price_change_24h) * w.price_change
            + normalizers.market_volume_factor(market.volume_24h) * w.volume
            + normalizers.liquidity_factor(market.liquidity) * w.liquidity
        )

    def risk_adjusted_score(self, safety_score: float, novelty: float, market: float) -> float:
        w = self.weights
        return safety_score / 100 * w.safety + novelty * w.novelty + market * w.market

    def social_score(self, social: Optional[SocialAggregate]) -> float:
        if social is None or social.mentions <= 0:
            return self.DEFAULT_SOCIAL_SCORE
        w = self.weights
        return (
            normalizers.mentions_factor(social.mentions) * w.mentions
            + normalizers.engagement_factor(social.engagement) * w.engagement
            + normalizers.sentiment_share(social.avg_sentiment) * w.sentiment
        )

    def meme_score(self, correlations: Sequence[float]) -> float:
        if not correlations:
            return self.DEFAULT_MEME_SCORE
        average = float(np.mean(correlations))
        bonus = min(self.CORRELATION_COUNT_CAP, len(correlations) * self.CORRELATION_COUNT_STEP)
        return min(1.0, average + bonus)

    def score(
        self,
        token_address: str,
        safety_score: float,
        age_days: Optional[float],
        market: MarketMetrics,
        social: Optional[SocialAggregate],
        correlations: Sequence[float],
    ) -> OpportunityScore:
        novelty = normalizers.novelty_factor(age_days)
        market_value = self.market_factor(market)
        risk_adjusted = self.risk_adjusted_score(safety_score, novelty, market_value)
        social_value = self.social_score(social)
        meme_value = self.meme_score(correlations)

        w = self.weights
        opportunity = risk_adjusted * w.risk_adjusted + social_value * w.social + meme_value * w.meme

        return OpportunityScore(
            token_address=token_address,
            safety_score=safety_score,
            novelty_factor=novelty,
            market_factor=market_value,
            risk_adjusted_score=risk_adjusted,
            social_score=social_value,
            meme_score=meme_value,
            opportunity_score=opportunity,
        )
