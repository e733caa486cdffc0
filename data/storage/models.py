# data/storage/models.py

from typing import Any, Dict

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Float, ForeignKey, Index
)
from sqlalchemy.orm import declarative_base

from utils.helpers import utc_now

Base = declarative_base()


class Token(Base):
    """Registered SPL token."""
    __tablename__ = 'tokens'

    address = Column(String(64), primary_key=True)
    name = Column(String(200))
    symbol = Column(String(50))
    supply = Column(Float)
    decimals = Column(Integer)
    mint_authority = Column(String(64))
    freeze_authority = Column(String(64))
    holder_count = Column(Integer)
    creation_date = Column(DateTime, index=True)
    is_memecoin = Column(Boolean, default=False, index=True)
    discovery_date = Column(DateTime, default=utc_now)
    last_updated = Column(DateTime, default=utc_now, onupdate=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'name': self.name,
            'symbol': self.symbol,
            'supply': self.supply,
            'decimals': self.decimals,
            'mint_authority': self.mint_authority,
            'freeze_authority': self.freeze_authority,
            'holder_count': self.holder_count,
            'creation_date': self.creation_date,
            'is_memecoin': bool(self.is_memecoin),
        }


class TokenMetric(Base):
    """Market snapshot taken while scoring."""
    __tablename__ = 'token_metrics'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(64), ForeignKey('tokens.address'), nullable=False)
    price = Column(Float)
    volume_24h = Column(Float)
    liquidity = Column(Float)
    market_cap = Column(Float)
    price_change_24h = Column(Float)
    timestamp = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index('idx_token_metrics_token_time', 'token_address', 'timestamp'),
    )


class SocialSignal(Base):
    """Per-platform social aggregate."""
    __tablename__ = 'social_signals'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(64), ForeignKey('tokens.address'), nullable=False)
    platform = Column(String(20), nullable=False)
    mentions = Column(Integer, default=0)
    sentiment_score = Column(Float)
    engagement_score = Column(Float, default=0)
    timestamp = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index('idx_social_signals_token_time', 'token_address', 'timestamp'),
    )


class WhaleMovementRecord(Base):
    """Large transfer by a whale wallet."""
    __tablename__ = 'whale_movements'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(64), ForeignKey('tokens.address'), nullable=False)
    wallet_address = Column(String(64), nullable=False)
    transaction_signature = Column(String(128))
    amount = Column(Float)
    direction = Column(String(10))
    timestamp = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index('idx_whale_movements_token', 'token_address'),
    )


class MemeCorrelationRecord(Base):
    """Token to trending meme correlation."""
    __tablename__ = 'meme_correlations'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(64), ForeignKey('tokens.address'), nullable=False)
    meme_name = Column(String(200), nullable=False)
    correlation_score = Column(Float, nullable=False)
    timestamp = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index('idx_meme_correlations_token_score', 'token_address', 'correlation_score'),
    )


class SafetyScoreRecord(Base):
    """Rugpull scan result."""
    __tablename__ = 'safety_scores'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(64), ForeignKey('tokens.address'), nullable=False)
    contract_score = Column(Float)
    rugpull_risk_score = Column(Float)
    holder_distribution_score = Column(Float)
    liquidity_score = Column(Float)
    overall_safety_score = Column(Float)
    timestamp = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index('idx_safety_scores_token_time', 'token_address', 'timestamp'),
    )
