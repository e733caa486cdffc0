# analysis/hype_scorer.py

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from analysis import normalizers
from analysis.models import MarketMetrics, SocialSnapshot
from utils.constants import (
    PLATFORM_ENGAGEMENT_MULTIPLIERS,
    PLATFORM_SENTIMENT_WEIGHTS,
    SocialPlatform,
)
from utils.helpers import round_half_up

logger = logging.getLogger(__name__)

HYPE_BASE = 20
HYPE_MAX = 100


@dataclass
class HypeScore:
    """Hype score with every intermediate factor kept for reporting"""
    score: int
    total_engagement: int
    average_sentiment: float
    factors: Dict[str, float] = field(default_factory=dict)

    def rounded_factors(self) -> Dict[str, float]:
        return {name: round(value, 2) for name, value in self.factors.items()}


def total_engagement(social: SocialSnapshot) -> int:
    """Twitter engagement plus per-mention credit for reddit and telegram"""
    total = max(0, social.twitter.engagement)
    total += max(0, social.reddit.count) * PLATFORM_ENGAGEMENT_MULTIPLIERS[SocialPlatform.REDDIT]
    total += max(0, social.telegram.count) * PLATFORM_ENGAGEMENT_MULTIPLIERS[SocialPlatform.TELEGRAM]
    return total


def weighted_sentiment(social: SocialSnapshot) -> float:
    """Platform-weighted sentiment over platforms that actually had posts"""
    weighted_sum = 0.0
    weight_total = 0.0
    for signal in social.platforms():
        if signal.count > 0:
            weight = PLATFORM_SENTIMENT_WEIGHTS[signal.platform]
            weighted_sum += signal.sentiment * weight
            weight_total += weight
    if weight_total == 0:
        return 0.0
    return weighted_sum / weight_total


class HypeScorer:
    """
    Combines token age, market momentum and social buzz into a 0-100 score.
    Stateless; one instance can serve concurrent calls.
    """

    def score(
        self,
        age_days: Optional[float],
        social: SocialSnapshot,
        market: MarketMetrics,
    ) -> HypeScore:
        engagement = total_engagement(social)
        sentiment = weighted_sentiment(social)

        factors = {
            "age_factor": normalizers.age_factor(age_days),
            "volume_factor": normalizers.hype_volume_factor(market.volume_24h),
            "price_change_factor": normalizers.hype_price_change_factor(market.price_change_24h),
            "social_factor": normalizers.social_engagement_factor(engagement),
            "sentiment_factor": normalizers.sentiment_factor(sentiment),
        }

        product = float(HYPE_BASE)
        for value in factors.values():
            product *= value
        score = round_half_up(min(float(HYPE_MAX), product))

        logger.debug(f"Hype score {score} from factors {factors}")
        return HypeScore(
            score=int(score),
            total_engagement=engagement,
            average_sentiment=sentiment,
            factors=factors,
        )
