# analysis/normalizers.py
"""
Metric normalizers

Each function maps one raw metric onto a bounded factor. None, NaN and
non-numeric input fall back to a neutral value and negatives to zero where a
log is taken, so nothing here raises or returns an unbounded result.

Hype scoring and portfolio scoring use different curves for age and volume,
but both treat an unknown age as the oldest:

    hype       age_factor, hype_volume_factor, hype_price_change_factor,
               social_engagement_factor, sentiment_factor
    portfolio  novelty_factor, market_volume_factor, market_price_change_factor,
               liquidity_factor, mentions_factor, engagement_factor,
               sentiment_share
"""

import math
from typing import Optional

from utils.helpers import safe_float

# Discrete novelty tiers: (exclusive upper bound in days, factor)
NOVELTY_TIERS = [
    (1, 1.0),
    (7, 0.8),
    (30, 0.6),
    (90, 0.4),
]
NOVELTY_FLOOR = 0.2


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _log10p(value) -> float:
    """log10(x + 1) with x floored at zero"""
    return math.log10(max(0.0, safe_float(value)) + 1)


# ============= Hype curves =============

def age_factor(age_days: Optional[float]) -> float:
    """Newer tokens score higher; 1.5 at launch down to 0.5 from 45 days.

    Unknown age counts as the oldest, the same convention novelty_factor uses.
    """
    age = max(0.0, safe_float(age_days, default=float("inf")))
    return _clamp(2 - age / 30, 0.5, 1.5)


def hype_volume_factor(volume_24h) -> float:
    return _clamp(_log10p(volume_24h) / 4, 0.2, 2.0)


def hype_price_change_factor(price_change_24h) -> float:
    return _clamp((safe_float(price_change_24h) + 100) / 100, 0.5, 2.0)


def social_engagement_factor(engagement) -> float:
    return _clamp(_log10p(engagement) / 2, 0.2, 2.0)


def sentiment_factor(sentiment) -> float:
    """Maps sentiment -1..1 onto 0.5..1.5"""
    return _clamp(safe_float(sentiment), -1.0, 1.0) * 0.5 + 1


# ============= Portfolio curves =============

def novelty_factor(age_days: Optional[float]) -> float:
    """Five-step novelty bucket; unknown age lands in the oldest tier"""
    if age_days is None:
        return NOVELTY_FLOOR
    age = safe_float(age_days, default=float("inf"))
    for upper, factor in NOVELTY_TIERS:
        if age < upper:
            return factor
    return NOVELTY_FLOOR


def market_price_change_factor(price_change_24h) -> float:
    change = safe_float(price_change_24h)
    if change > 0:
        return min(1.0, change / 100) + 0.5
    return max(0.0, 0.5 - abs(change) / 100)


def market_volume_factor(volume_24h) -> float:
    return min(1.0, _log10p(volume_24h) / 6)


def liquidity_factor(liquidity) -> float:
    return min(1.0, _log10p(liquidity) / 6)


def mentions_factor(mentions) -> float:
    return min(1.0, _log10p(mentions) / 3)


def engagement_factor(engagement) -> float:
    return min(1.0, _log10p(engagement) / 4)


def sentiment_share(avg_sentiment: Optional[float]) -> float:
    """Maps sentiment -1..1 onto 0..1; unknown sentiment is 0.5"""
    if avg_sentiment is None:
        return 0.5
    value = safe_float(avg_sentiment, default=None)
    if value is None:
        return 0.5
    return (_clamp(value, -1.0, 1.0) + 1) / 2


# ============= Safety curves =============

def holder_concentration_penalty(top_holder_percentage) -> float:
    """Deduction for a dominant holder above 50%, capped at 40"""
    top = _clamp(safe_float(top_holder_percentage), 0.0, 100.0)
    if top > 50:
        return min(40.0, top - 50)
    return 0.0


def holder_count_penalty(holder_count) -> float:
    """Deduction for a thin holder base below 100, capped at 20"""
    holders = max(0.0, safe_float(holder_count))
    if holders < 100:
        return min(20.0, (100 - holders) / 5)
    return 0.0
