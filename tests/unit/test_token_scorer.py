# tests/unit/test_token_scorer.py
"""
Unit tests for TokenScorer
"""
import pytest

from analysis.models import MarketMetrics, SocialAggregate
from analysis.token_scorer import ScoringWeights, TokenScorer


@pytest.mark.unit
class TestTokenScorer:
    """Test cases for opportunity scoring"""

    @pytest.fixture
    def scorer(self):
        return TokenScorer()

    def test_default_weights(self):
        weights = ScoringWeights()
        assert weights.risk_adjusted + weights.social + weights.meme == pytest.approx(1.0)
        assert weights.safety + weights.novelty + weights.market == pytest.approx(1.0)

    def test_market_factor(self, scorer):
        market = MarketMetrics(price_change_24h=50, volume_24h=999999, liquidity=999)
        assert scorer.market_factor(market) == pytest.approx(1.0 * 0.4 + 1.0 * 0.3 + 0.5 * 0.3)

    def test_social_defaults_without_history(self, scorer):
        assert scorer.social_score(None) == 0.3
        assert scorer.social_score(SocialAggregate()) == 0.3

    def test_social_score(self, scorer):
        social = SocialAggregate(mentions=999, engagement=99, avg_sentiment=1.0)
        assert scorer.social_score(social) == pytest.approx(0.4 + 0.15 + 0.3)

    def test_meme_score(self, scorer):
        assert scorer.meme_score([]) == 0.2
        assert scorer.meme_score([0.5, 0.3]) == pytest.approx(0.5)
        assert scorer.meme_score([0.9] * 10) == 1.0

    def test_opportunity_with_no_data(self, scorer):
        result = scorer.score(
            token_address="token",
            safety_score=80,
            age_days=0.5,
            market=MarketMetrics.zero(),
            social=None,
            correlations=[],
        )
        assert result.novelty_factor == 1.0
        assert result.market_factor == pytest.approx(0.2)
        assert result.risk_adjusted_score == pytest.approx(0.7)
        assert result.opportunity_score == pytest.approx(0.7 * 0.4 + 0.3 * 0.3 + 0.2 * 0.3)

    def test_safer_token_ranks_higher(self, scorer):
        common = dict(age_days=3, market=MarketMetrics.zero(), social=None, correlations=[])
        safe = scorer.score(token_address="a", safety_score=90, **common)
        risky = scorer.score(token_address="b", safety_score=30, **common)
        assert safe.opportunity_score > risky.opportunity_score

    def test_to_dict_rounds(self, scorer):
        result = scorer.score("token", 55, None, MarketMetrics.zero(), None, [0.333333])
        data = result.to_dict()
        assert data["novelty_factor"] == 0.2
        assert data["meme_score"] == round(0.333333 + 0.05, 4)
