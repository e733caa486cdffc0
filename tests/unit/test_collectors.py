# tests/unit/test_collectors.py
"""
Unit tests for the data collectors
"""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from analysis.models import MarketMetrics, PlatformSignal, TokenFacts, Unavailable, WhaleMovement
from analysis.rug_detector import RugDetector
from data.collectors.chain_data import SolanaChainClient
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.meme_feed import MemeFeed
from data.collectors.social_data import SocialDataCollector, calculate_sentiment
from data.collectors.token_discovery import TokenDiscovery, find_initialized_mints, is_memetoken
from data.collectors.whale_tracker import WhaleTracker, balance_changes
from tests.fixtures.mock_data import MockDataGenerator
from utils.constants import FALLBACK_MEMES, RiskTier, SocialPlatform
from utils.errors import UpstreamUnavailable
from utils.helpers import from_unix, utc_now

MINT = "WhaleMint11111111111111111111111111111111111"


@pytest.mark.unit
class TestSentiment:
    """Keyword sentiment"""

    @pytest.mark.parametrize("text,expected", [
        ("moon gem", 1.0),
        ("scam rug", -1.0),
        ("hello world", 0.0),
        ("to the moon or a dump", 0.0),
        ("", 0.0),
    ])
    def test_calculate_sentiment(self, text, expected):
        assert calculate_sentiment(text) == expected

    def test_sentiment_is_case_insensitive(self):
        assert calculate_sentiment("MOON") == 1.0


@pytest.mark.unit
class TestSocialDataCollector:
    """Per-platform collection"""

    async def test_twitter_without_token_is_unavailable(self):
        collector = SocialDataCollector({})
        result = await collector.collect_twitter("WIF", "Dog Wif Hat")
        assert isinstance(result, Unavailable)
        assert result.source == "twitter"

    def test_snapshot_substitutes_empty_signals(self):
        twitter = PlatformSignal(platform=SocialPlatform.TWITTER, count=3, sentiment=0.5, engagement=10)
        snapshot = SocialDataCollector.to_snapshot({
            SocialPlatform.TWITTER: twitter,
            SocialPlatform.REDDIT: Unavailable(source="reddit", reason="HTTP 503"),
        })
        assert snapshot.twitter is twitter
        assert snapshot.reddit.count == 0
        assert snapshot.telegram.count == 0


@pytest.mark.unit
class TestMemetokenHeuristic:
    """is_memetoken"""

    @pytest.mark.parametrize("name,symbol,supply,expected", [
        ("Doge Killer", "DK", 10, True),
        ("Serious Finance", "SRS", 5e6, True),
        ("Serious Finance", "srs", 5e6, False),
        ("Utility Token", "util", 5e6, True),
        ("Serious Finance", "SRS", 100, False),
        (None, None, 5e9, False),
    ])
    def test_is_memetoken(self, name, symbol, supply, expected):
        assert is_memetoken(name, symbol, supply) is expected


@pytest.mark.unit
class TestTokenDiscovery:
    """Mint detection and discovery scans"""

    def test_outer_instruction(self):
        tx = MockDataGenerator.generate_mint_transaction("MintA")
        assert find_initialized_mints(tx) == ["MintA"]

    def test_inner_instruction(self):
        tx = MockDataGenerator.generate_mint_transaction("MintB", inner=True)
        assert find_initialized_mints(tx) == ["MintB"]

    def test_failed_transaction_is_ignored(self):
        tx = MockDataGenerator.generate_mint_transaction("MintA")
        tx["meta"]["err"] = {"InstructionError": [0, "Custom"]}
        assert find_initialized_mints(tx) == []
        assert find_initialized_mints(None) == []

    @pytest.fixture
    def chain(self):
        transactions = {
            "s1": MockDataGenerator.generate_mint_transaction("MintA"),
            "s2": MockDataGenerator.generate_mint_transaction("MintB", inner=True),
        }
        metadata = {
            "MintA": {"name": "Pepe Classic", "symbol": "PEPEC"},
            "MintB": {"name": "Serious Finance", "symbol": "srs"},
        }
        chain = AsyncMock()
        chain.get_signatures.return_value = [{"signature": "s1"}, {"signature": "s2"}]
        chain.get_transaction.side_effect = lambda signature: transactions[signature]
        chain.get_mint_info.return_value = {
            "decimals": 6,
            "supply": str(10 ** 15),
            "mintAuthority": None,
            "freezeAuthority": None,
        }
        chain.get_token_metadata.side_effect = lambda mint: metadata[mint]
        return chain

    async def test_scan_finds_memecoins(self, chain):
        result = await TokenDiscovery(chain).scan(limit=2)

        assert result.scanned_transactions == 2
        assert [t.address for t in result.new_memecoins] == ["MintA"]
        token = result.new_memecoins[0]
        assert token.supply == 1e9
        assert token.mint_authority_present is False
        assert token.created_at == from_unix(1_700_000_000)

    async def test_scan_skips_known_mints(self, chain):
        result = await TokenDiscovery(chain).scan(limit=2, known_addresses={"MintA"})

        assert result.new_memecoins == []
        described = [call.args[0] for call in chain.get_mint_info.await_args_list]
        assert described == ["MintB"]


@pytest.mark.unit
class TestWhaleTracker:
    """Whale movement detection"""

    def test_balance_changes(self):
        tx = MockDataGenerator.generate_balance_transaction(MINT, [
            {"owner": "whale1", "pre": 0, "post": 5000},
            {"owner": "small", "pre": 100, "post": 90},
        ])
        changes = balance_changes(tx, MINT)
        assert changes[0] == {"owner": "whale1", "token_account": "account-0", "delta": 5000}
        assert changes[1]["delta"] == -10

    def test_balance_changes_ignore_other_mints(self):
        tx = MockDataGenerator.generate_balance_transaction("OtherMint", [
            {"owner": "whale1", "pre": 0, "post": 5000},
        ])
        assert balance_changes(tx, MINT) == []

    @pytest.fixture
    def chain(self):
        def signatures(address, limit=None):
            if address == MINT:
                return [{"signature": "sig1"}]
            return [{"signature": f"w{i}"} for i in range(6)]

        chain = AsyncMock()
        chain.get_signatures.side_effect = signatures
        chain.get_balance_sol.side_effect = lambda wallet: 20.0 if wallet == "whale1" else 5.0
        chain.get_transaction.return_value = MockDataGenerator.generate_balance_transaction(MINT, [
            {"owner": "whale1", "pre": 0, "post": 5000},
            {"owner": "minnow", "pre": 9000, "post": 2000},
            {"owner": "whale1", "pre": 100, "post": 90},
        ])
        return chain

    async def test_track_whale_movements(self, chain):
        tracker = WhaleTracker(chain)
        token = {"address": MINT, "name": "Dog Wif Hat", "symbol": "WIF"}

        movements = await tracker.track_whale_movements(token, min_amount=1000)

        assert len(movements) == 1
        movement = movements[0]
        assert movement.wallet_address == "whale1"
        assert movement.direction == "buy"
        assert movement.amount == 5000
        assert movement.transaction_signature == "sig1"
        assert movement.token_symbol == "WIF"

    async def test_whale_status_is_cached(self, chain):
        tracker = WhaleTracker(chain)
        assert await tracker.is_whale("whale1") is True
        assert await tracker.is_whale("whale1") is True
        assert chain.get_balance_sol.await_count == 1

    def test_most_recent(self):
        now = utc_now()

        def movement(signature, block_time):
            return WhaleMovement(
                token_address=MINT,
                wallet_address="whale1",
                amount=1000,
                direction="sell",
                transaction_signature=signature,
                block_time=block_time,
            )

        movements = [
            movement("old", now - timedelta(hours=2)),
            movement("unknown", None),
            movement("new", now),
        ]
        ordered = WhaleTracker.most_recent(movements, limit=2)
        assert [m.transaction_signature for m in ordered] == ["new", "old"]


@pytest.mark.unit
class TestSolanaChainClient:
    """Token facts assembly"""

    @pytest.fixture
    def client(self):
        client = SolanaChainClient({})
        client.get_mint_info = AsyncMock(return_value={
            "decimals": 6,
            "supply": "1000000000000000",
            "mintAuthority": None,
            "freezeAuthority": None,
        })
        client.get_holder_distribution = AsyncMock(return_value=(500, 10.0))
        return client

    async def test_jupiter_outage_keeps_chain_facts(self, client):
        client._get_json = AsyncMock(side_effect=UpstreamUnavailable("jupiter HTTP 503"))

        facts = await client.get_token_facts(MINT)

        assert isinstance(facts, TokenFacts)
        assert facts.has_liquidity is False
        assert facts.symbol == "UNKNOWN"
        assert facts.holder_count == 500

        report = RugDetector().scan(MINT, facts)
        assert report.assessment.score == 70
        assert report.safety_score == 79
        assert report.risk_tier == RiskTier.MEDIUM

    async def test_priced_token_has_liquidity(self, client):
        client._get_json = AsyncMock(return_value={MINT: {"usdPrice": 0.42}})
        client.get_token_metadata = AsyncMock(return_value={"name": "Whale Coin", "symbol": "WHALE"})

        facts = await client.get_token_facts(MINT)

        assert facts.has_liquidity is True
        assert facts.name == "Whale Coin"
        assert facts.supply == 1_000_000_000.0

    async def test_mint_lookup_failure_is_unavailable(self, client):
        client.get_mint_info = AsyncMock(side_effect=UpstreamUnavailable(f"Mint account {MINT} not found"))

        facts = await client.get_token_facts(MINT)

        assert isinstance(facts, Unavailable)
        assert facts.source == "chain"

    async def test_holder_lookup_failure_is_unavailable(self, client):
        client.get_holder_distribution = AsyncMock(side_effect=UpstreamUnavailable("getProgramAccounts timed out"))
        client._get_json = AsyncMock(return_value={})

        assert isinstance(await client.get_token_facts(MINT), Unavailable)


@pytest.mark.unit
class TestDexScreenerCollector:
    """Market snapshot selection"""

    @pytest.fixture
    def collector(self):
        return DexScreenerCollector({})

    async def test_deepest_solana_pair_is_used(self, collector):
        pairs = MockDataGenerator.generate_dexscreener_pairs(MINT)["pairs"]
        collector._fetch_pairs = AsyncMock(return_value=[p for p in pairs if p["chainId"] == "solana"])

        metrics = await collector.get_market_metrics(MINT)

        assert metrics == MarketMetrics(
            price=0.0012,
            volume_24h=250000,
            liquidity=900000,
            market_cap=1200000,
            price_change_24h=42.5,
        )

    async def test_metrics_are_cached(self, collector):
        pairs = MockDataGenerator.generate_dexscreener_pairs(MINT)["pairs"][:2]
        collector._fetch_pairs = AsyncMock(return_value=pairs)

        await collector.get_market_metrics(MINT)
        await collector.get_market_metrics(MINT)
        assert collector._fetch_pairs.await_count == 1

    async def test_no_pairs_is_unavailable(self, collector):
        collector._fetch_pairs = AsyncMock(return_value=[])
        result = await collector.get_market_metrics(MINT)
        assert isinstance(result, Unavailable)
        assert result.source == "market"

    async def test_upstream_failure_is_unavailable(self, collector):
        collector._fetch_pairs = AsyncMock(side_effect=UpstreamUnavailable("HTTP 502"))
        result = await collector.get_market_metrics(MINT)
        assert isinstance(result, Unavailable)
        assert collector.stats["failed_requests"] == 1


@pytest.mark.unit
class TestMemeFeed:
    """Trending meme listing"""

    async def test_fallback_when_all_sources_fail(self):
        feed = MemeFeed({})
        feed._fetch_knowyourmeme = AsyncMock(side_effect=UpstreamUnavailable("HTTP 503"))
        feed._fetch_reddit = AsyncMock(side_effect=UpstreamUnavailable("HTTP 429"))

        memes = await feed.get_trending_memes()
        assert [m.name for m in memes] == [m["name"] for m in FALLBACK_MEMES]

    async def test_sources_are_merged_without_duplicates(self):
        feed = MemeFeed({})
        kym = MemeFeed.fallback_memes()[:2]
        reddit = MemeFeed.fallback_memes()[1:3]
        feed._fetch_knowyourmeme = AsyncMock(return_value=kym)
        feed._fetch_reddit = AsyncMock(return_value=reddit)

        memes = await feed.get_trending_memes()
        assert [m.name for m in memes] == [m["name"] for m in FALLBACK_MEMES[:3]]

    async def test_listing_is_cached(self):
        feed = MemeFeed({})
        feed._fetch_knowyourmeme = AsyncMock(return_value=MemeFeed.fallback_memes()[:1])
        feed._fetch_reddit = AsyncMock(return_value=[])

        await feed.get_trending_memes()
        await feed.get_trending_memes()
        assert feed._fetch_knowyourmeme.await_count == 1
