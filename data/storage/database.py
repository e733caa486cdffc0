# data/storage/database.py

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from analysis.models import (
    CorrelationEntry, MarketMetrics, PlatformSignal, SocialAggregate, TokenFacts, WhaleMovement
)
from data.storage.models import (
    Base, MemeCorrelationRecord, SafetyScoreRecord, SocialSignal, Token, TokenMetric, WhaleMovementRecord
)
from utils.errors import DatabaseError
from utils.helpers import utc_now

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    SQLite store for discovered tokens and every score the engine produces.
    Blocking SQLAlchemy work runs on worker threads so the event loop stays free.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.path = config.get('path', './data/memecoin_observatory.db')
        self.echo = config.get('echo_sql', False)
        self.engine = None
        self._session_factory: Optional[sessionmaker] = None
        self.is_connected = False

    async def connect(self) -> None:
        """Create the engine and any missing tables."""
        try:
            await asyncio.to_thread(self._connect_sync)
            self.is_connected = True
            logger.info(f"Connected to SQLite database at {self.path}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to database: {e}")
            raise DatabaseError(f"Failed to connect to database: {e}") from e

    def _connect_sync(self) -> None:
        if self.path == ':memory:':
            # One shared connection, otherwise every thread sees an empty database
            self.engine = create_engine(
                'sqlite://',
                echo=self.echo,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool,
            )
        else:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                f'sqlite:///{self.path}',
                echo=self.echo,
                connect_args={'check_same_thread': False},
            )
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    async def disconnect(self) -> None:
        """Dispose of the connection pool."""
        if self.engine is not None:
            await asyncio.to_thread(self.engine.dispose)
            self.is_connected = False
            logger.info("Disconnected from database")

    @contextmanager
    def session(self):
        if self._session_factory is None:
            raise DatabaseError("Database is not connected")
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database operation failed: {e}")
            raise DatabaseError(str(e)) from e
        finally:
            session.close()

    async def _run(self, func_, *args):
        return await asyncio.to_thread(func_, *args)

    # ============= Tokens =============

    async def upsert_token(self, facts: TokenFacts, is_memecoin: bool = True) -> None:
        def _upsert():
            with self.session() as session:
                token = session.get(Token, facts.address) or Token(address=facts.address)
                token.name = facts.name
                token.symbol = facts.symbol
                token.supply = facts.supply
                token.decimals = facts.decimals
                token.mint_authority = facts.mint_authority
                token.freeze_authority = facts.freeze_authority
                token.holder_count = facts.holder_count
                token.creation_date = token.creation_date or facts.created_at or utc_now()
                token.is_memecoin = is_memecoin
                session.add(token)
        await self._run(_upsert)

    async def get_token(self, address: str, memecoins_only: bool = True) -> Optional[Dict[str, Any]]:
        def _get():
            with self.session() as session:
                token = session.get(Token, address)
                if token is None or (memecoins_only and not token.is_memecoin):
                    return None
                return token.to_dict()
        return await self._run(_get)

    async def get_recent_memecoins(self, limit: int = 100, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Most recently created memecoins first."""
        def _get():
            with self.session() as session:
                stmt = select(Token).where(Token.is_memecoin.is_(True))
                if since is not None:
                    stmt = stmt.where(Token.creation_date > since)
                stmt = stmt.order_by(Token.creation_date.desc()).limit(limit)
                return [token.to_dict() for token in session.scalars(stmt)]
        return await self._run(_get)

    async def get_memecoin_addresses(self) -> Set[str]:
        def _get():
            with self.session() as session:
                stmt = select(Token.address).where(Token.is_memecoin.is_(True))
                return set(session.scalars(stmt))
        return await self._run(_get)

    # ============= Market & social =============

    async def save_token_metrics(self, address: str, metrics: MarketMetrics) -> None:
        def _save():
            with self.session() as session:
                session.add(TokenMetric(
                    token_address=address,
                    price=metrics.price,
                    volume_24h=metrics.volume_24h,
                    liquidity=metrics.liquidity,
                    market_cap=metrics.market_cap,
                    price_change_24h=metrics.price_change_24h,
                ))
        await self._run(_save)

    async def save_social_signal(self, address: str, signal: PlatformSignal) -> None:
        def _save():
            with self.session() as session:
                session.add(SocialSignal(
                    token_address=address,
                    platform=signal.platform.value,
                    mentions=signal.count,
                    sentiment_score=signal.sentiment,
                    engagement_score=signal.engagement,
                ))
        await self._run(_save)

    async def get_social_aggregate(self, address: str, days: int = 7) -> SocialAggregate:
        """Summed mentions and engagement with average sentiment over a window."""
        since = utc_now() - timedelta(days=days)

        def _get():
            with self.session() as session:
                stmt = select(
                    func.avg(SocialSignal.sentiment_score),
                    func.sum(SocialSignal.mentions),
                    func.sum(SocialSignal.engagement_score),
                ).where(
                    SocialSignal.token_address == address,
                    SocialSignal.timestamp > since,
                )
                avg_sentiment, mentions, engagement = session.execute(stmt).one()
                return SocialAggregate(
                    mentions=int(mentions or 0),
                    engagement=int(engagement or 0),
                    avg_sentiment=float(avg_sentiment) if avg_sentiment is not None else None,
                )
        return await self._run(_get)

    # ============= Meme correlations =============

    async def save_meme_correlations(self, address: str, entries: Iterable[CorrelationEntry]) -> int:
        rows = [
            MemeCorrelationRecord(
                token_address=address,
                meme_name=entry.meme_name,
                correlation_score=entry.correlation_score,
            )
            for entry in entries
        ]
        if not rows:
            return 0

        def _save():
            with self.session() as session:
                session.add_all(rows)
            return len(rows)
        return await self._run(_save)

    async def get_top_correlations(self, address: str, limit: int = 5) -> List[Dict[str, Any]]:
        def _get():
            with self.session() as session:
                stmt = (
                    select(MemeCorrelationRecord.meme_name, MemeCorrelationRecord.correlation_score)
                    .where(MemeCorrelationRecord.token_address == address)
                    .order_by(MemeCorrelationRecord.correlation_score.desc())
                    .limit(limit)
                )
                return [
                    {'meme_name': name, 'correlation_score': score}
                    for name, score in session.execute(stmt)
                ]
        return await self._run(_get)

    async def get_correlated_meme_names(self) -> Set[str]:
        def _get():
            with self.session() as session:
                stmt = select(MemeCorrelationRecord.meme_name).distinct()
                return set(session.scalars(stmt))
        return await self._run(_get)

    # ============= Safety =============

    async def save_safety_score(
        self,
        address: str,
        contract_score: float,
        rugpull_risk_score: float,
        holder_distribution_score: float,
        liquidity_score: float,
        overall_safety_score: float,
    ) -> None:
        def _save():
            with self.session() as session:
                session.add(SafetyScoreRecord(
                    token_address=address,
                    contract_score=contract_score,
                    rugpull_risk_score=rugpull_risk_score,
                    holder_distribution_score=holder_distribution_score,
                    liquidity_score=liquidity_score,
                    overall_safety_score=overall_safety_score,
                ))
        await self._run(_save)

    async def get_latest_safety_score(self, address: str) -> Optional[float]:
        def _get():
            with self.session() as session:
                stmt = (
                    select(SafetyScoreRecord.overall_safety_score)
                    .where(SafetyScoreRecord.token_address == address)
                    .order_by(SafetyScoreRecord.timestamp.desc(), SafetyScoreRecord.id.desc())
                    .limit(1)
                )
                return session.scalars(stmt).first()
        return await self._run(_get)

    # ============= Whales =============

    async def save_whale_movements(self, movements: Iterable[WhaleMovement]) -> int:
        rows = [
            WhaleMovementRecord(
                token_address=movement.token_address,
                wallet_address=movement.wallet_address,
                transaction_signature=movement.transaction_signature,
                amount=movement.amount,
                direction=movement.direction,
            )
            for movement in movements
        ]
        if not rows:
            return 0

        def _save():
            with self.session() as session:
                session.add_all(rows)
            return len(rows)
        return await self._run(_save)

    # ============= Maintenance =============

    async def get_statistics(self) -> Dict[str, int]:
        """Row counts per table."""
        tables = {
            'tokens': Token,
            'token_metrics': TokenMetric,
            'social_signals': SocialSignal,
            'whale_movements': WhaleMovementRecord,
            'meme_correlations': MemeCorrelationRecord,
            'safety_scores': SafetyScoreRecord,
        }

        def _get():
            with self.session() as session:
                return {
                    name: session.scalar(select(func.count()).select_from(model))
                    for name, model in tables.items()
                }
        return await self._run(_get)
