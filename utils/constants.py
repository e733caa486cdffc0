"""
System-wide Constants for Memecoin Observatory
Provider endpoints, scoring weights, lexicons and canned report text
"""

from enum import Enum
from typing import Dict, List

# ============= Version Info =============
VERSION = "1.0.0"
PROJECT_NAME = "Memecoin Observatory"
PROJECT_DESCRIPTION = "Solana memecoin analytics: hype, safety, meme correlation and portfolio strategy"

# ============= Solana =============

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_ACCOUNT_SIZE = 165
LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
JUPITER_PRICE_URL = "https://lite-api.jup.ag/price/v3"
JUPITER_TOKEN_SEARCH_URL = "https://lite-api.jup.ag/tokens/v2/search"
DEXSCREENER_TOKENS_URL = "https://api.dexscreener.com/latest/dex/tokens"

# ============= Social =============

TWITTER_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"
REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"
REDDIT_MEMES_URL = "https://www.reddit.com/r/memes/hot.json"
KNOWYOURMEME_TRENDING_URL = "https://knowyourmeme.com/memes/trending"
TELEGRAM_PREVIEW_URL = "https://t.me/s/{channel}"

HTTP_USER_AGENT = "MemecoinObservatory/1.0"


class SocialPlatform(Enum):
    """Platforms contributing to the social aggregate"""
    TWITTER = "twitter"
    REDDIT = "reddit"
    TELEGRAM = "telegram"


# Weight of each platform in the averaged sentiment
PLATFORM_SENTIMENT_WEIGHTS: Dict[SocialPlatform, float] = {
    SocialPlatform.TWITTER: 0.5,
    SocialPlatform.REDDIT: 0.3,
    SocialPlatform.TELEGRAM: 0.2,
}

# Engagement units credited per mention; twitter reports engagement directly
PLATFORM_ENGAGEMENT_MULTIPLIERS: Dict[SocialPlatform, int] = {
    SocialPlatform.REDDIT: 5,
    SocialPlatform.TELEGRAM: 3,
}

DEFAULT_TELEGRAM_CHANNELS = ["solana", "SolanaMemeCoins", "solanadaily"]

POSITIVE_KEYWORDS = [
    'moon', 'gem', 'hodl', 'bullish', 'gains', 'pump', 'green', 'buy', 'win',
    'profit', 'rocket', 'lambo', 'rich', 'good', 'great', 'best', 'amazing',
    'excellent', 'winner', 'early', 'opportunity', 'next', 'x10', 'x100',
]

NEGATIVE_KEYWORDS = [
    'dump', 'scam', 'rug', 'sell', 'red', 'loss', 'crash', 'bad', 'worst',
    'terrible', 'avoid', 'bear', 'bearish', 'fake', 'shit', 'crap', 'trash',
    'waste', 'poor', 'fail', 'failure', 'ponzi', 'beware', 'careful',
]

# ============= Memes =============

MEME_TERMS = [
    'meme', 'doge', 'shib', 'inu', 'cat', 'elon', 'pepe', 'moon', 'safe',
    'cum', 'chad', 'based', 'wojak', 'coin', 'rocket', 'lambo', 'tendies',
    'wen', 'frog', 'bored', 'ape', 'monkey', 'trump', 'biden', 'pump', 'dump',
    'fomo', 'goku', 'senpai', 'sama', 'waifu',
]

MEMECOIN_MIN_SUPPLY = 1_000_000

FALLBACK_MEMES: List[Dict[str, str]] = [
    {"name": "Dogwifhat", "source": "popular culture"},
    {"name": "Pepe the Frog", "source": "popular culture"},
    {"name": "Wojak", "source": "popular culture"},
    {"name": "Chad", "source": "popular culture"},
    {"name": "Doge", "source": "popular culture"},
    {"name": "Moon Boy", "source": "crypto culture"},
    {"name": "Diamond Hands", "source": "crypto culture"},
    {"name": "Paper Hands", "source": "crypto culture"},
    {"name": "WAGMI", "source": "crypto culture"},
    {"name": "HODL", "source": "crypto culture"},
]

# ============= Safety =============

class RiskTier(Enum):
    """Discrete rugpull risk tiers, keyed by combined safety score"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    EXTREME = "Extreme"


# Inclusive lower bounds, checked top-down
RISK_TIER_THRESHOLDS = [
    (80, RiskTier.LOW),
    (50, RiskTier.MEDIUM),
    (20, RiskTier.HIGH),
]

# Names shared by many abandoned or fraudulent launches
SCAM_NAME_PATTERNS = [
    r'SAFE\s*MOON',
    r'BABY\s*(DOGE|SHIB|PEPE)',
    r'MOON\s*SHOT',
    r'100X',
    r'1000X',
    r'GEM\s*FINDER',
    r'RUG\s*PULL',
    r'LAST\s*CHANCE',
    r'DONT\s*MISS',
    r'PRESALE\s*LIVE',
    r'BUY\s*NOW',
    r'SEND\s*IT',
    r'FREE\s*MONEY',
    r'GUARANTEED',
    r'^[A-Z]{1,2}\d+$',
]

RISK_DISCLAIMER = (
    "REMINDER: All memecoins are speculative investments with high volatility. "
    "Never invest more than you can afford to lose."
)

TIER_RECOMMENDATIONS: Dict[RiskTier, str] = {
    RiskTier.EXTREME: (
        "EXTREME CAUTION: This token exhibits multiple high-risk characteristics. "
        "Not recommended for investment."
    ),
    RiskTier.HIGH: (
        "HIGH RISK: This token shows several concerning patterns. "
        "Proceed with significant caution if considering investment."
    ),
    RiskTier.MEDIUM: (
        "MODERATE RISK: This token has some risk factors to be aware of. "
        "Practice caution and only invest what you can afford to lose."
    ),
    RiskTier.LOW: (
        "LOWER RISK: This token appears to have fewer risk factors than many memecoins, "
        "but all memecoins carry inherent risks."
    ),
}

# ============= Portfolio =============

class RiskTolerance(str, Enum):
    """Named portfolio presets"""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    VERY_AGGRESSIVE = "very_aggressive"


class AllocationCategory(str, Enum):
    """Portfolio buckets, safest first"""
    ESTABLISHED = "established"
    NEW = "new"
    SPECULATIVE = "speculative"


PORTFOLIO_KEY_RISKS = [
    "All memecoins carry significant volatility and risk of permanent loss",
    "Market sentiment can shift rapidly with little warning",
    "Regulatory changes could impact the entire memecoin sector",
    "Liquidity can disappear quickly, especially for newer tokens",
    "Always use proper position sizing and only invest what you can afford to lose",
]

# ============= Time Windows =============

RECENT_MEMECOIN_DAYS = 30
SOCIAL_HISTORY_DAYS = 7
WHALE_TRACKING_PERIOD = "Last 24 hours"
