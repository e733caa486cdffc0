"""
Token Discovery - new SPL mints from recent token program activity
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

import aiohttp
from loguru import logger

from analysis.models import TokenFacts
from data.collectors.chain_data import SolanaChainClient
from utils.constants import MEME_TERMS, MEMECOIN_MIN_SUPPLY, TOKEN_PROGRAM_ID
from utils.errors import NetworkError
from utils.helpers import from_unix

MINT_INIT_TYPES = ('initializeMint', 'initializeMint2')


def is_memetoken(name: Optional[str], symbol: Optional[str], supply: float) -> bool:
    """Heuristic: meme vocabulary, or a shouty ticker / generic 'token' name with a huge supply"""
    name_lc = (name or "").lower()
    symbol = symbol or ""
    symbol_lc = symbol.lower()

    if any(term in name_lc or term in symbol_lc for term in MEME_TERMS):
        return True

    large_supply = (supply or 0) > MEMECOIN_MIN_SUPPLY
    shouty_ticker = symbol.isupper() and 2 <= len(symbol) <= 10
    return large_supply and (shouty_ticker or 'token' in name_lc)


def find_initialized_mints(transaction: Dict[str, Any]) -> List[str]:
    """Mint addresses initialised by a jsonParsed transaction, in order"""
    if not transaction:
        return []
    meta = transaction.get('meta') or {}
    if meta.get('err') is not None:
        return []

    instructions = list(((transaction.get('transaction') or {}).get('message') or {}).get('instructions') or [])
    for inner in meta.get('innerInstructions') or []:
        instructions.extend(inner.get('instructions') or [])

    mints = []
    for instruction in instructions:
        if instruction.get('programId') != TOKEN_PROGRAM_ID:
            continue
        parsed = instruction.get('parsed')
        if not isinstance(parsed, dict) or parsed.get('type') not in MINT_INIT_TYPES:
            continue
        mint = (parsed.get('info') or {}).get('mint')
        if mint and mint not in mints:
            mints.append(mint)
    return mints


@dataclass
class DiscoveryResult:
    """Outcome of one discovery scan"""
    scanned_transactions: int
    new_memecoins: List[TokenFacts]


class TokenDiscovery:
    """Scans recent token program signatures for freshly created memecoins"""

    def __init__(self, chain: SolanaChainClient, config: Optional[Dict[str, Any]] = None):
        self.chain = chain
        self.config = config or {}

    async def _describe_mint(self, mint: str, created_at: Optional[datetime]) -> Optional[TokenFacts]:
        info = await self.chain.get_mint_info(mint)
        decimals = int(info.get('decimals', 0) or 0)
        supply = int(info.get('supply', 0) or 0) / (10 ** decimals)
        metadata = await self.chain.get_token_metadata(mint)
        name = metadata.get('name') or f"Unknown ({mint[:6]}...)"
        symbol = metadata.get('symbol') or "UNKNOWN"

        if not is_memetoken(metadata.get('name'), metadata.get('symbol'), supply):
            return None

        return TokenFacts(
            address=mint,
            name=name,
            symbol=symbol,
            supply=supply,
            decimals=decimals,
            created_at=created_at,
            mint_authority_present=info.get('mintAuthority') is not None,
            freeze_authority_present=info.get('freezeAuthority') is not None,
            mint_authority=info.get('mintAuthority'),
            freeze_authority=info.get('freezeAuthority'),
        )

    async def scan(self, limit: int = 100, known_addresses: Iterable[str] = ()) -> DiscoveryResult:
        """Inspect the latest `limit` token program transactions"""
        known: Set[str] = set(known_addresses)
        signatures = await self.chain.get_signatures(TOKEN_PROGRAM_ID, limit=limit)
        logger.info(f"Found {len(signatures)} recent token program signatures")

        found: List[TokenFacts] = []
        for entry in signatures:
            signature = entry.get('signature')
            try:
                transaction = await self.chain.get_transaction(signature)
            except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error processing transaction {signature}: {e}")
                continue

            created_at = from_unix((transaction or {}).get('blockTime'))
            for mint in find_initialized_mints(transaction):
                if mint in known:
                    continue
                known.add(mint)
                try:
                    facts = await self._describe_mint(mint, created_at)
                except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                    logger.error(f"Error processing potential token {mint}: {e}")
                    continue
                if facts is not None:
                    logger.info(f"Found new potential memecoin: {facts.name} ({facts.symbol})")
                    found.append(facts)

        return DiscoveryResult(scanned_transactions=len(signatures), new_memecoins=found)
