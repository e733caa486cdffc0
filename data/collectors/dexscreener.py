"""
DexScreener API Integration
Market snapshot (price, volume, liquidity, price change) for Solana tokens
"""

import asyncio
from collections import deque
from typing import Any, Dict, List, Optional, Union

import aiohttp
from loguru import logger

from analysis.models import MarketMetrics, Unavailable
from utils.constants import DEXSCREENER_TOKENS_URL, HTTP_USER_AGENT
from utils.errors import APIRateLimitError, UpstreamUnavailable
from utils.helpers import TTLCache, safe_float


class DexScreenerCollector:
    """DexScreener market data collector"""

    def __init__(self, config: Dict, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize DexScreener collector

        Args:
            config: Configuration dictionary
            session: Optional shared aiohttp session
        """
        self.config = config
        self.base_url = config.get('base_url', DEXSCREENER_TOKENS_URL)
        self.chain_id = config.get('chain_id', 'solana')
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 15))

        # Caching
        self.cache = TTLCache(ttl=config.get('cache_duration', 60))

        # Rate limiting (requests per minute)
        self.rate_limit = config.get('rate_limit', 300)
        self.request_times = deque(maxlen=self.rate_limit)

        self.session = session
        self._owns_session = session is None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
        }

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

    async def _respect_rate_limit(self) -> None:
        loop = asyncio.get_running_loop()
        now = loop.time()
        if len(self.request_times) == self.rate_limit:
            wait = 60 - (now - self.request_times[0])
            if wait > 0:
                logger.debug(f"DexScreener rate limit reached, waiting {wait:.1f}s")
                await asyncio.sleep(wait)
        self.request_times.append(loop.time())

    async def _fetch_pairs(self, address: str) -> List[Dict[str, Any]]:
        if self.session is None:
            await self.initialize()
        await self._respect_rate_limit()
        self.stats['total_requests'] += 1

        async with self.session.get(f"{self.base_url}/{address}") as response:
            if response.status == 429:
                raise APIRateLimitError("DexScreener rate limited")
            if response.status != 200:
                raise UpstreamUnavailable(f"DexScreener returned HTTP {response.status}")
            data = await response.json(content_type=None)

        self.stats['successful_requests'] += 1
        pairs = (data or {}).get('pairs') or []
        return [pair for pair in pairs if pair.get('chainId') == self.chain_id]

    @staticmethod
    def _deepest_pair(pairs: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not pairs:
            return None
        return max(pairs, key=lambda pair: safe_float((pair.get('liquidity') or {}).get('usd')))

    async def get_market_metrics(self, address: str) -> Union[MarketMetrics, Unavailable]:
        """Metrics of the deepest-liquidity pair, or Unavailable"""
        cached = self.cache.get(address)
        if cached is not None:
            return cached

        try:
            pair = self._deepest_pair(await self._fetch_pairs(address))
        except (UpstreamUnavailable, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['failed_requests'] += 1
            logger.error(f"DexScreener lookup failed for {address}: {e}")
            return Unavailable(source="market", reason=str(e))

        if pair is None:
            return Unavailable(source="market", reason="no trading pairs listed")

        metrics = MarketMetrics(
            price=safe_float(pair.get('priceUsd')),
            volume_24h=safe_float((pair.get('volume') or {}).get('h24')),
            liquidity=safe_float((pair.get('liquidity') or {}).get('usd')),
            market_cap=safe_float(pair.get('marketCap') or pair.get('fdv')),
            price_change_24h=safe_float((pair.get('priceChange') or {}).get('h24')),
        )
        self.cache.set(address, metrics)
        return metrics
