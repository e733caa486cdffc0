# analysis/models.py
"""
Value records handed to the scorers

Every record is request-scoped: collectors build them from fetched data, the
scorers read them once, and the storage layer may persist the results.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.constants import SocialPlatform


@dataclass(frozen=True)
class Unavailable:
    """Marker returned by a provider whose data could not be fetched"""
    source: str
    reason: str

    def __bool__(self) -> bool:
        return False


def is_available(value: Any) -> bool:
    return not isinstance(value, Unavailable)


@dataclass(frozen=True)
class TokenFacts:
    """On-chain identity and holder facts for one SPL token"""
    address: str
    name: str = "Unknown"
    symbol: str = "UNKNOWN"
    supply: float = 0.0
    decimals: int = 0
    created_at: Optional[datetime] = None
    mint_authority_present: bool = True
    freeze_authority_present: bool = True
    holder_count: int = 0
    top_holder_percentage: float = 100.0
    has_liquidity: bool = False
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None

    @classmethod
    def pessimistic(cls, address: str, name: str = "Unknown", symbol: str = "UNKNOWN") -> "TokenFacts":
        """Worst-case facts used when the chain lookup fails"""
        return cls(address=address, name=name, symbol=symbol)


@dataclass(frozen=True)
class MarketMetrics:
    """DEX market snapshot; zero() is the sentinel for missing data"""
    price: float = 0.0
    volume_24h: float = 0.0
    liquidity: float = 0.0
    market_cap: float = 0.0
    price_change_24h: float = 0.0

    @classmethod
    def zero(cls) -> "MarketMetrics":
        return cls()

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class PlatformSignal:
    """Aggregate over one platform's recent posts about a token"""
    platform: SocialPlatform
    count: int = 0
    sentiment: float = 0.0
    engagement: int = 0
    samples: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def empty(cls, platform: SocialPlatform) -> "PlatformSignal":
        return cls(platform=platform)


@dataclass(frozen=True)
class SocialSnapshot:
    """Per-platform signals gathered for one hype score call"""
    twitter: PlatformSignal = field(default_factory=lambda: PlatformSignal.empty(SocialPlatform.TWITTER))
    reddit: PlatformSignal = field(default_factory=lambda: PlatformSignal.empty(SocialPlatform.REDDIT))
    telegram: PlatformSignal = field(default_factory=lambda: PlatformSignal.empty(SocialPlatform.TELEGRAM))

    def platforms(self) -> List[PlatformSignal]:
        return [self.twitter, self.reddit, self.telegram]


@dataclass(frozen=True)
class SocialAggregate:
    """Historical social totals resolved from storage (7-day window)"""
    mentions: int = 0
    engagement: int = 0
    avg_sentiment: Optional[float] = None


@dataclass(frozen=True)
class TrendingMeme:
    """A meme observed on a trending feed"""
    name: str
    source: str
    observed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class CorrelationEntry:
    """Lexical correlation between a token and one meme"""
    meme_name: str
    correlation_score: float
    source: str
    observed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meme": self.meme_name,
            "correlation": round(self.correlation_score, 4),
            "source": self.source,
            "date": self.observed_at.isoformat() if self.observed_at else None,
        }


@dataclass(frozen=True)
class WhaleMovement:
    """Large balance change by a whale wallet in one transaction"""
    token_address: str
    wallet_address: str
    amount: float
    direction: str
    transaction_signature: str
    block_time: Optional[datetime] = None
    token_name: Optional[str] = None
    token_symbol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_address": self.token_address,
            "token_name": self.token_name,
            "token_symbol": self.token_symbol,
            "wallet_address": self.wallet_address,
            "amount": self.amount,
            "direction": self.direction,
            "transaction_signature": self.transaction_signature,
            "block_time": self.block_time.isoformat() if self.block_time else None,
        }
