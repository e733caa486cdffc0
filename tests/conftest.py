# tests/conftest.py
"""
Global pytest configuration and fixtures
"""
import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from analysis.models import MarketMetrics, PlatformSignal, TrendingMeme
from core.engine import ObservatoryEngine
from data.collectors.social_data import SocialDataCollector
from data.storage.database import DatabaseManager
from tests.fixtures.mock_data import MockDataGenerator
from utils.constants import SocialPlatform
from utils.helpers import utc_now

# Test configuration
TEST_CONFIG = {
    "database": {
        "path": ":memory:",
        "echo_sql": False,
    },
}


@pytest.fixture
async def db_manager(tmp_path):
    """Database manager backed by a temporary SQLite file"""
    manager = DatabaseManager({"path": str(tmp_path / "observatory_test.db")})
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest.fixture
async def memory_db():
    """In-memory database manager"""
    manager = DatabaseManager(TEST_CONFIG["database"])
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest.fixture
def token_facts():
    """Healthy token facts created two days ago"""
    return MockDataGenerator.generate_token_facts(
        address="WifMint1111111111111111111111111111111111111",
        created_at=utc_now() - timedelta(days=2),
    )


@pytest.fixture
def market_metrics():
    return MarketMetrics(
        price=0.0012,
        volume_24h=250000,
        liquidity=900000,
        market_cap=1200000,
        price_change_24h=42.5,
    )


@pytest.fixture
def social_results():
    """Collector output with twitter and reddit data and telegram quiet"""
    return {
        SocialPlatform.TWITTER: PlatformSignal(
            platform=SocialPlatform.TWITTER,
            count=20,
            sentiment=0.5,
            engagement=400,
            samples=[{"id": str(i), "text": f"WIF to the moon {i}"} for i in range(5)],
        ),
        SocialPlatform.REDDIT: PlatformSignal(
            platform=SocialPlatform.REDDIT,
            count=4,
            sentiment=0.25,
            engagement=120,
            samples=[{"title": f"WIF post {i}", "upvotes": 30, "sentiment": 0.25} for i in range(4)],
        ),
        SocialPlatform.TELEGRAM: PlatformSignal.empty(SocialPlatform.TELEGRAM),
    }


@pytest.fixture
def trending_memes():
    now = utc_now()
    return [
        TrendingMeme(name="Dog Wif Hat", source="knowyourmeme", observed_at=now),
        TrendingMeme(name="Pepe the Frog", source="knowyourmeme", observed_at=now),
        TrendingMeme(name="Hat Stacking", source="reddit", observed_at=now),
        TrendingMeme(name="Distracted Boyfriend", source="reddit", observed_at=now),
    ]


@pytest.fixture
def mock_chain(token_facts):
    """Chain client returning healthy facts"""
    chain = AsyncMock()
    chain.get_token_facts.return_value = token_facts
    chain.get_creation_time.return_value = token_facts.created_at
    return chain


@pytest.fixture
def mock_market(market_metrics):
    market = AsyncMock()
    market.get_market_metrics.return_value = market_metrics
    return market


@pytest.fixture
def mock_social(social_results):
    social = Mock()
    social.collect_social_snapshot = AsyncMock(return_value=social_results)
    social.to_snapshot = SocialDataCollector.to_snapshot
    return social


@pytest.fixture
def mock_meme_feed(trending_memes):
    feed = AsyncMock()
    feed.get_trending_memes.return_value = trending_memes
    return feed


@pytest.fixture
def engine(memory_db, mock_chain, mock_market, mock_social, mock_meme_feed):
    """Engine over a real in-memory store and mocked providers"""
    return ObservatoryEngine(
        db=memory_db,
        chain=mock_chain,
        market=mock_market,
        social=mock_social,
        meme_feed=mock_meme_feed,
        discovery=AsyncMock(),
        whales=AsyncMock(),
    )
