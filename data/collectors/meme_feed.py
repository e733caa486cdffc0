"""
Trending Meme Feed

Lazily refreshed list of trending memes from Know Your Meme and r/memes.
Each call returns a complete snapshot; when every source fails the fixed
fallback list is served instead.
"""

import asyncio
import html
import re
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from analysis.models import TrendingMeme
from utils.constants import (
    FALLBACK_MEMES,
    HTTP_USER_AGENT,
    KNOWYOURMEME_TRENDING_URL,
    REDDIT_MEMES_URL,
)
from utils.errors import UpstreamUnavailable
from utils.helpers import TTLCache, utc_now

KYM_TITLE_RE = re.compile(r'<h2[^>]*>(.*?)</h2>', re.DOTALL)
HTML_TAG_RE = re.compile(r'<[^>]+>')

CACHE_KEY = "trending"


class MemeFeed:
    """Restartable trending meme listing with a TTL cache"""

    def __init__(self, config: Dict[str, Any], session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.cache = TTLCache(ttl=config.get('ttl_seconds', 1800))
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 5))
        self.session = session
        self._owns_session = session is None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': HTTP_USER_AGENT},
            )
            self._owns_session = True

    async def close(self) -> None:
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def get_trending_memes(self) -> List[TrendingMeme]:
        """Cached snapshot, refreshed once the TTL lapses"""
        cached = self.cache.get(CACHE_KEY)
        if cached is not None:
            return list(cached)

        async with self._lock:
            cached = self.cache.get(CACHE_KEY)
            if cached is not None:
                return list(cached)
            memes = await self.refresh()
            self.cache.set(CACHE_KEY, memes)
            return list(memes)

    async def refresh(self) -> List[TrendingMeme]:
        memes: List[TrendingMeme] = []
        seen = set()

        for fetch in (self._fetch_knowyourmeme, self._fetch_reddit):
            try:
                for meme in await fetch():
                    if meme.name not in seen:
                        seen.add(meme.name)
                        memes.append(meme)
            except (UpstreamUnavailable, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Trending meme source failed: {e}")

        if not memes:
            logger.info("Using fallback meme data as no source returned results")
            return self.fallback_memes()

        logger.info(f"Refreshed {len(memes)} trending memes")
        return memes

    @staticmethod
    def fallback_memes() -> List[TrendingMeme]:
        now = utc_now()
        return [TrendingMeme(name=m["name"], source=m["source"], observed_at=now) for m in FALLBACK_MEMES]

    async def _fetch(self, url: str, as_json: bool):
        if self.session is None:
            await self.initialize()
        async with self.session.get(url) as response:
            if response.status != 200:
                raise UpstreamUnavailable(f"{url} returned HTTP {response.status}")
            if as_json:
                return await response.json(content_type=None)
            return await response.text()

    async def _fetch_knowyourmeme(self) -> List[TrendingMeme]:
        page = await self._fetch(KNOWYOURMEME_TRENDING_URL, as_json=False)
        now = utc_now()
        memes = []
        for raw in KYM_TITLE_RE.findall(page or ""):
            name = html.unescape(HTML_TAG_RE.sub('', raw)).strip()
            if name:
                memes.append(TrendingMeme(name=name, source=KNOWYOURMEME_TRENDING_URL, observed_at=now))
        return memes

    async def _fetch_reddit(self) -> List[TrendingMeme]:
        data = await self._fetch(REDDIT_MEMES_URL, as_json=True)
        now = utc_now()
        memes = []
        for child in ((data or {}).get('data') or {}).get('children') or []:
            post = child.get('data') or {}
            title = (post.get('title') or '').strip()
            if title:
                memes.append(TrendingMeme(
                    name=title,
                    source=f"https://www.reddit.com{post.get('permalink', '')}",
                    observed_at=now,
                ))
        return memes
