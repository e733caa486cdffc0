# tests/unit/test_meme_correlator.py
"""
Unit tests for MemeCorrelator
"""
import pytest

from analysis.meme_correlator import MemeCorrelator, generate_token_themes, jaccard, tokenize
from analysis.models import TrendingMeme
from utils.helpers import utc_now


def memes(*names):
    now = utc_now()
    return [TrendingMeme(name=name, source="test", observed_at=now) for name in names]


@pytest.mark.unit
class TestMemeCorrelator:
    """Test cases for meme correlation"""

    @pytest.fixture
    def correlator(self):
        return MemeCorrelator()

    def test_tokenize(self):
        assert tokenize("Pepe-the Frog!!") == {"pepe", "the", "frog"}
        assert tokenize("") == set()

    def test_jaccard_is_symmetric(self):
        left, right = tokenize("dog wif hat"), tokenize("hat of the dog")
        assert jaccard(left, right) == jaccard(right, left) == pytest.approx(2 / 5)

    def test_symbol_bonus(self, correlator):
        score = correlator.correlation("Pepe Coin", "PEPE", "Pepe the Frog")
        assert score == pytest.approx(0.25 + 0.3)

    def test_exact_match_is_clamped(self, correlator):
        assert correlator.correlation("Doge", "DOGE", "Doge") == 1.0

    def test_empty_symbol_gets_no_bonus(self, correlator):
        assert correlator.correlation("Quantum", "", "Distracted Boyfriend") == 0.0

    def test_unrelated_token_has_no_correlations(self, correlator):
        feed = memes(
            "Distracted Boyfriend", "Woman Yelling at Cat", "Drake Hotline Bling",
            "Galaxy Brain", "Surprised Pikachu", "This Is Fine", "Stonks",
            "Doge", "Pepe the Frog", "Wojak",
        )
        assert correlator.correlate("Quantum Ledger", "QLX", feed) == []

    def test_correlate_orders_strongest_first(self, correlator):
        feed = memes("Hat Stacking", "Dog Wif Hat", "Pepe the Frog")
        entries = correlator.correlate("Dog Wif Hat", "WIF", feed)
        assert [e.meme_name for e in entries] == ["Dog Wif Hat", "Hat Stacking"]
        assert entries[0].correlation_score == 1.0

    def test_ties_keep_feed_order(self, correlator):
        feed = memes("Moon Dog", "Moon Cat")
        entries = correlator.correlate("Moon", "", feed)
        assert [e.meme_name for e in entries] == ["Moon Dog", "Moon Cat"]

    def test_thresholds(self, correlator):
        feed = memes("Dog Wif Hat", "Hat Stacking", "Dog Days Of Summer Fun")
        entries = correlator.correlate("Dog Wif Hat", "", feed)
        persisted = correlator.persistable(entries)
        strong = correlator.strong_matches(entries)
        assert all(e.correlation_score >= 0.3 for e in persisted)
        assert [e.meme_name for e in strong] == ["Dog Wif Hat"]

    def test_missing_meme_opportunities(self, correlator):
        feed = memes("Pepe the Frog", "Dog Wif Hat", "A", "B", "C", "D", "E")
        missing = correlator.missing_meme_opportunities(feed, {"pepe the frog", "B"})
        names = [m["meme_name"] for m in missing]
        assert names == ["Dog Wif Hat", "A", "C", "D", "E"]
        assert missing[0]["potential_token_themes"] == generate_token_themes("Dog Wif Hat")

    def test_generate_token_themes(self):
        assert generate_token_themes("Pepe the Frog") == [
            "Pepe the Frog Coin",
            "Pepe the Frog Token",
            "PTF",
            "PEPE Coin",
        ]
        assert generate_token_themes("Doge") == ["Doge Coin", "Doge Token", "DOGE Coin"]
