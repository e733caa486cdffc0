# tests/unit/test_database.py
"""
Unit tests for DatabaseManager
"""
from datetime import timedelta

import pytest

from analysis.models import CorrelationEntry, PlatformSignal, WhaleMovement
from data.storage.database import DatabaseManager
from tests.fixtures.mock_data import MockDataGenerator
from utils.constants import SocialPlatform
from utils.errors import DatabaseError
from utils.helpers import utc_now


@pytest.mark.unit
class TestDatabaseManager:
    """Persistence round trips against SQLite"""

    async def test_not_connected(self):
        manager = DatabaseManager({"path": ":memory:"})
        with pytest.raises(DatabaseError):
            await manager.get_token("anything")

    async def test_upsert_keeps_first_creation_date(self, db_manager):
        created = utc_now() - timedelta(days=3)
        token = MockDataGenerator.generate_token_facts(created_at=created)
        await db_manager.upsert_token(token)
        await db_manager.upsert_token(MockDataGenerator.generate_token_facts(
            address=token.address, name="Renamed", created_at=utc_now(),
        ))

        stored = await db_manager.get_token(token.address)
        assert stored["name"] == "Renamed"
        assert stored["creation_date"] == created

    async def test_non_memecoins_are_hidden(self, db_manager):
        token = MockDataGenerator.generate_token_facts()
        await db_manager.upsert_token(token, is_memecoin=False)

        assert await db_manager.get_token(token.address) is None
        assert await db_manager.get_token(token.address, memecoins_only=False) is not None
        assert await db_manager.get_memecoin_addresses() == set()

    async def test_recent_memecoins_newest_first(self, db_manager):
        now = utc_now()
        tokens = [
            MockDataGenerator.generate_token_facts(created_at=now - timedelta(days=days))
            for days in (10, 1, 40)
        ]
        for token in tokens:
            await db_manager.upsert_token(token)

        recent = await db_manager.get_recent_memecoins(limit=10)
        assert [t["address"] for t in recent] == [tokens[1].address, tokens[0].address, tokens[2].address]

        windowed = await db_manager.get_recent_memecoins(limit=10, since=now - timedelta(days=30))
        assert len(windowed) == 2

    async def test_social_aggregate(self, db_manager):
        token = MockDataGenerator.generate_token_facts()
        await db_manager.upsert_token(token)
        for count, sentiment in ((10, 0.5), (30, -0.1)):
            await db_manager.save_social_signal(token.address, PlatformSignal(
                platform=SocialPlatform.TWITTER, count=count, sentiment=sentiment, engagement=count * 10,
            ))

        aggregate = await db_manager.get_social_aggregate(token.address, days=7)
        assert aggregate.mentions == 40
        assert aggregate.engagement == 400
        assert aggregate.avg_sentiment == pytest.approx(0.2)

    async def test_social_aggregate_without_history(self, db_manager):
        aggregate = await db_manager.get_social_aggregate("nothing")
        assert aggregate.mentions == 0
        assert aggregate.avg_sentiment is None

    async def test_correlations(self, db_manager):
        token = MockDataGenerator.generate_token_facts()
        await db_manager.upsert_token(token)
        saved = await db_manager.save_meme_correlations(token.address, [
            CorrelationEntry(meme_name="Hat Stacking", correlation_score=0.4, source="reddit"),
            CorrelationEntry(meme_name="Dog Wif Hat", correlation_score=1.0, source="knowyourmeme"),
        ])

        assert saved == 2
        top = await db_manager.get_top_correlations(token.address, limit=1)
        assert top == [{"meme_name": "Dog Wif Hat", "correlation_score": 1.0}]
        assert await db_manager.get_correlated_meme_names() == {"Dog Wif Hat", "Hat Stacking"}
        assert await db_manager.save_meme_correlations(token.address, []) == 0

    async def test_latest_safety_score(self, db_manager):
        token = MockDataGenerator.generate_token_facts()
        await db_manager.upsert_token(token)
        assert await db_manager.get_latest_safety_score(token.address) is None

        for overall in (40, 85):
            await db_manager.save_safety_score(
                token.address,
                contract_score=overall,
                rugpull_risk_score=0,
                holder_distribution_score=100,
                liquidity_score=100,
                overall_safety_score=overall,
            )
        assert await db_manager.get_latest_safety_score(token.address) == 85

    async def test_statistics(self, db_manager):
        token = MockDataGenerator.generate_token_facts()
        await db_manager.upsert_token(token)
        await db_manager.save_whale_movements([
            WhaleMovement(
                token_address=token.address,
                wallet_address="whale1",
                amount=5000,
                direction="buy",
                transaction_signature="sig1",
            ),
        ])

        stats = await db_manager.get_statistics()
        assert stats["tokens"] == 1
        assert stats["whale_movements"] == 1
        assert stats["safety_scores"] == 0
