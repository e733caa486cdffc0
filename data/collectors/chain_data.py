"""
Chain Data Collector - Solana on-chain token facts via JSON-RPC
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple, Union

import aiohttp
from loguru import logger

from analysis.models import TokenFacts, Unavailable
from utils.constants import (
    DEFAULT_RPC_URL,
    HTTP_USER_AGENT,
    JUPITER_PRICE_URL,
    JUPITER_TOKEN_SEARCH_URL,
    LAMPORTS_PER_SOL,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_PROGRAM_ID,
)
from utils.errors import APIRateLimitError, NetworkError, RPCError, UpstreamUnavailable
from utils.helpers import from_unix, retry_async, safe_float

RETRYABLE = (APIRateLimitError, aiohttp.ClientError, asyncio.TimeoutError)


class SolanaChainClient:
    """Thin async client over Solana JSON-RPC plus the Jupiter token APIs"""

    def __init__(self, config: Dict[str, Any], session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.rpc_url = config.get('rpc_url', DEFAULT_RPC_URL)
        self.commitment = config.get('commitment', 'confirmed')
        self.timeout = aiohttp.ClientTimeout(total=config.get('request_timeout', 15))
        self.session = session
        self._owns_session = session is None
        self._request_id = 0

        self.stats = {
            'rpc_calls': 0,
            'rpc_errors': 0,
        }

    async def initialize(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': HTTP_USER_AGENT},
            )
            self._owns_session = True
        logger.info(f"Solana chain client ready ({self.rpc_url})")

    async def close(self) -> None:
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    # ============= JSON-RPC =============

    @retry_async(max_retries=3, delay=0.5, exceptions=RETRYABLE)
    async def rpc(self, method: str, params: List[Any]) -> Any:
        """Issue one JSON-RPC call and return its result field"""
        if self.session is None:
            await self.initialize()

        self._request_id += 1
        self.stats['rpc_calls'] += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        async with self.session.post(self.rpc_url, json=payload) as response:
            if response.status == 429:
                self.stats['rpc_errors'] += 1
                raise APIRateLimitError(f"{method} rate limited by {self.rpc_url}")
            if response.status != 200:
                self.stats['rpc_errors'] += 1
                raise RPCError(method, f"HTTP {response.status}")
            data = await response.json(content_type=None)

        if data.get('error'):
            self.stats['rpc_errors'] += 1
            error = data['error']
            raise RPCError(method, error.get('message', str(error)) if isinstance(error, dict) else str(error))
        return data.get('result')

    async def get_mint_info(self, address: str) -> Dict[str, Any]:
        """Parsed SPL mint account (supply, decimals, authorities)"""
        result = await self.rpc("getAccountInfo", [
            address,
            {"encoding": "jsonParsed", "commitment": self.commitment},
        ])
        value = (result or {}).get('value')
        if not value:
            raise UpstreamUnavailable(f"Mint account {address} not found")
        parsed = value.get('data', {}).get('parsed', {}) if isinstance(value.get('data'), dict) else {}
        if parsed.get('type') != 'mint':
            raise UpstreamUnavailable(f"Account {address} is not an SPL mint")
        return parsed.get('info', {})

    async def get_holder_distribution(self, address: str, raw_supply: int) -> Tuple[int, float]:
        """Holder count and top holder share (0-100) from all token accounts of a mint"""
        accounts = await self.rpc("getProgramAccounts", [
            TOKEN_PROGRAM_ID,
            {
                "encoding": "jsonParsed",
                "commitment": self.commitment,
                "filters": [
                    {"dataSize": TOKEN_ACCOUNT_SIZE},
                    {"memcmp": {"offset": 0, "bytes": address}},
                ],
            },
        ]) or []

        balances = []
        for account in accounts:
            info = account.get('account', {}).get('data', {}).get('parsed', {}).get('info', {})
            amount = int(info.get('tokenAmount', {}).get('amount', 0) or 0)
            if amount > 0:
                balances.append(amount)

        if not balances or raw_supply <= 0:
            return len(balances), 0.0
        return len(balances), max(balances) / raw_supply * 100

    async def get_signatures(self, address: str, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.rpc("getSignaturesForAddress", [
            address,
            {"limit": limit, "commitment": self.commitment},
        ]) or []

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        return await self.rpc("getTransaction", [
            signature,
            {
                "encoding": "jsonParsed",
                "commitment": self.commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ])

    async def get_balance_sol(self, address: str) -> float:
        result = await self.rpc("getBalance", [address, {"commitment": self.commitment}])
        return safe_float((result or {}).get('value')) / LAMPORTS_PER_SOL

    async def get_creation_time(self, address: str):
        """Block time of the oldest signature visible for an address"""
        signatures = await self.get_signatures(address, limit=1000)
        if not signatures:
            return None
        return from_unix(signatures[-1].get('blockTime'))

    # ============= Jupiter =============

    async def _get_json(self, url: str, params: Dict[str, str]) -> Any:
        if self.session is None:
            await self.initialize()
        async with self.session.get(url, params=params) as response:
            if response.status == 429:
                raise APIRateLimitError(f"Rate limited by {url}")
            if response.status != 200:
                raise UpstreamUnavailable(f"{url} returned HTTP {response.status}")
            return await response.json(content_type=None)

    async def has_liquidity(self, address: str) -> bool:
        """A token Jupiter can price is tradable on at least one DEX; lookup failures count as no liquidity"""
        try:
            data = await self._get_json(JUPITER_PRICE_URL, {'ids': address}) or {}
        except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Liquidity check failed for {address}: {e}")
            return False
        entry = data.get(address) or {}
        return safe_float(entry.get('usdPrice')) > 0

    async def get_token_metadata(self, address: str) -> Dict[str, Any]:
        """Name and symbol from the Jupiter token index; empty when unlisted"""
        data = await self._get_json(JUPITER_TOKEN_SEARCH_URL, {'query': address}) or []
        for token in data:
            if token.get('id') == address:
                return token
        return {}

    async def _metadata_or_empty(self, address: str) -> Dict[str, Any]:
        try:
            return await self.get_token_metadata(address)
        except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Metadata lookup failed for {address}: {e}")
            return {}

    # ============= Facts =============

    async def get_token_facts(self, address: str) -> Union[TokenFacts, Unavailable]:
        """All safety-relevant facts for a mint, or Unavailable when the mint or holder lookup fails"""
        try:
            mint = await self.get_mint_info(address)
            decimals = int(mint.get('decimals', 0) or 0)
            raw_supply = int(mint.get('supply', 0) or 0)

            holders, liquidity, metadata = await asyncio.gather(
                self.get_holder_distribution(address, raw_supply),
                self.has_liquidity(address),
                self._metadata_or_empty(address),
            )
            holder_count, top_holder = holders

            return TokenFacts(
                address=address,
                name=metadata.get('name') or f"Unknown ({address[:6]}...)",
                symbol=metadata.get('symbol') or "UNKNOWN",
                supply=raw_supply / (10 ** decimals),
                decimals=decimals,
                mint_authority_present=mint.get('mintAuthority') is not None,
                freeze_authority_present=mint.get('freezeAuthority') is not None,
                mint_authority=mint.get('mintAuthority'),
                freeze_authority=mint.get('freezeAuthority'),
                holder_count=holder_count,
                top_holder_percentage=top_holder,
                has_liquidity=liquidity,
            )
        except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Failed to fetch token facts for {address}: {e}")
            return Unavailable(source="chain", reason=str(e))
