"""
Social Data Collector - token mentions and keyword sentiment

Collects recent mentions of a token from Twitter (v2 recent search), Reddit
(public search JSON) and Telegram (public channel previews) and reduces each
platform to a PlatformSignal.
"""

import asyncio
import html
import re
from typing import Any, Dict, List, Optional, Union

import aiohttp
from loguru import logger

from analysis.models import PlatformSignal, SocialSnapshot, Unavailable
from utils.constants import (
    DEFAULT_TELEGRAM_CHANNELS,
    HTTP_USER_AGENT,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    REDDIT_SEARCH_URL,
    TELEGRAM_PREVIEW_URL,
    TWITTER_SEARCH_URL,
    SocialPlatform,
)
from utils.errors import APIRateLimitError, UpstreamUnavailable
from utils.helpers import safe_float

TELEGRAM_MESSAGE_RE = re.compile(
    r'<div class="tgme_widget_message_text[^"]*"[^>]*>(.*?)</div>', re.DOTALL
)
HTML_TAG_RE = re.compile(r'<[^>]+>')

SignalResult = Union[PlatformSignal, Unavailable]


def calculate_sentiment(text: str) -> float:
    """Keyword sentiment in [-1, 1]: (positive - negative) / (positive + negative)"""
    lowered = (text or "").lower()
    positive = sum(1 for word in POSITIVE_KEYWORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_KEYWORDS if word in lowered)
    if positive == 0 and negative == 0:
        return 0.0
    return (positive - negative) / (positive + negative)


def _average(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class SocialDataCollector:
    """Collects per-platform mention aggregates for a token"""

    def __init__(self, config: Dict[str, Any], session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.twitter_bearer_token = config.get('twitter_bearer_token')
        self.telegram_channels = config.get('telegram_channels') or DEFAULT_TELEGRAM_CHANNELS
        self.max_tweets = config.get('max_tweets', 100)
        self.reddit_limit = config.get('reddit_limit', 10)
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 15))

        self.session = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        logger.info("Initializing Social Data Collector...")
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': HTTP_USER_AGENT},
            )
            self._owns_session = True
        if not self.twitter_bearer_token:
            logger.warning("Twitter bearer token not configured; twitter signals will be unavailable")
        logger.info("Social Data Collector initialized")

    async def close(self) -> None:
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def _get(self, url: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None,
                   as_json: bool = True) -> Any:
        if self.session is None:
            await self.initialize()
        async with self.session.get(url, params=params, headers=headers) as response:
            if response.status == 429:
                raise APIRateLimitError(f"Rate limited by {url}")
            if response.status != 200:
                raise UpstreamUnavailable(f"{url} returned HTTP {response.status}")
            if as_json:
                return await response.json(content_type=None)
            return await response.text()

    async def collect_social_snapshot(self, symbol: str, name: str) -> Dict[SocialPlatform, SignalResult]:
        """Query all platforms concurrently; each result may be Unavailable"""
        twitter, reddit, telegram = await asyncio.gather(
            self.collect_twitter(symbol, name),
            self.collect_reddit(symbol, name),
            self.collect_telegram(symbol, name),
        )
        return {
            SocialPlatform.TWITTER: twitter,
            SocialPlatform.REDDIT: reddit,
            SocialPlatform.TELEGRAM: telegram,
        }

    @staticmethod
    def to_snapshot(results: Dict[SocialPlatform, SignalResult]) -> SocialSnapshot:
        """Substitute empty signals for unavailable platforms"""
        def pick(platform: SocialPlatform) -> PlatformSignal:
            result = results.get(platform)
            return result if isinstance(result, PlatformSignal) else PlatformSignal.empty(platform)

        return SocialSnapshot(
            twitter=pick(SocialPlatform.TWITTER),
            reddit=pick(SocialPlatform.REDDIT),
            telegram=pick(SocialPlatform.TELEGRAM),
        )

    async def collect_twitter(self, symbol: str, name: str) -> SignalResult:
        if not self.twitter_bearer_token:
            return Unavailable(source="twitter", reason="bearer token not configured")

        params = {
            'query': f"{symbol} OR {name} crypto",
            'max_results': self.max_tweets,
            'tweet.fields': 'created_at,public_metrics',
        }
        headers = {'Authorization': f"Bearer {self.twitter_bearer_token}"}
        try:
            data = await self._get(TWITTER_SEARCH_URL, params, headers=headers)
        except (UpstreamUnavailable, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Twitter collection failed: {e}")
            return Unavailable(source="twitter", reason=str(e))

        tweets = (data or {}).get('data') or []
        sentiments = []
        total_engagement = 0
        sources = []
        for tweet in tweets:
            metrics = tweet.get('public_metrics') or {}
            engagement = (
                int(metrics.get('like_count', 0) or 0)
                + int(metrics.get('retweet_count', 0) or 0)
                + int(metrics.get('reply_count', 0) or 0)
            )
            sentiment = calculate_sentiment(tweet.get('text', ''))
            sentiments.append(sentiment)
            total_engagement += engagement
            sources.append({
                'id': tweet.get('id'),
                'text': tweet.get('text', ''),
                'created_at': tweet.get('created_at'),
                'sentiment': sentiment,
                'engagement': engagement,
            })

        return PlatformSignal(
            platform=SocialPlatform.TWITTER,
            count=len(tweets),
            sentiment=_average(sentiments),
            engagement=total_engagement,
            samples=sources[:10],
        )

    async def collect_reddit(self, symbol: str, name: str) -> SignalResult:
        params = {'q': f"{symbol} OR {name} crypto", 'limit': self.reddit_limit}
        try:
            data = await self._get(REDDIT_SEARCH_URL, params)
        except (UpstreamUnavailable, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Reddit collection failed: {e}")
            return Unavailable(source="reddit", reason=str(e))

        children = ((data or {}).get('data') or {}).get('children') or []
        posts = []
        for child in children:
            post = child.get('data') or {}
            title = post.get('title', '')
            posts.append({
                'title': title,
                'upvotes': int(safe_float(post.get('score'))),
                'sentiment': calculate_sentiment(title),
            })

        return PlatformSignal(
            platform=SocialPlatform.REDDIT,
            count=len(posts),
            sentiment=_average([post['sentiment'] for post in posts]),
            engagement=sum(max(0, post['upvotes']) for post in posts),
            samples=posts[:5],
        )

    async def collect_telegram(self, symbol: str, name: str) -> SignalResult:
        """Search public channel previews for messages naming the token"""
        needles = [term.lower() for term in (symbol, name) if term]
        messages: List[Dict[str, Any]] = []
        failures = 0

        for channel in self.telegram_channels:
            try:
                page = await self._get(
                    TELEGRAM_PREVIEW_URL.format(channel=channel),
                    {'q': symbol},
                    as_json=False,
                )
            except (UpstreamUnavailable, aiohttp.ClientError, asyncio.TimeoutError) as e:
                failures += 1
                logger.warning(f"Telegram channel {channel} unavailable: {e}")
                continue

            for raw in TELEGRAM_MESSAGE_RE.findall(page or ""):
                text = html.unescape(HTML_TAG_RE.sub(' ', raw)).strip()
                if any(needle in text.lower() for needle in needles):
                    messages.append({'channel': channel, 'text': text, 'sentiment': calculate_sentiment(text)})

        if failures == len(self.telegram_channels):
            return Unavailable(source="telegram", reason="no channel could be fetched")

        return PlatformSignal(
            platform=SocialPlatform.TELEGRAM,
            count=len(messages),
            sentiment=_average([message['sentiment'] for message in messages]),
            engagement=0,
            samples=messages[:5],
        )
