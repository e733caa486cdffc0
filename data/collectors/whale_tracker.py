"""
Whale Tracker - Monitor Large Wallet Movements
Finds large balance changes by whale wallets in recent token transactions
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from analysis.models import WhaleMovement
from data.collectors.chain_data import SolanaChainClient
from utils.errors import NetworkError
from utils.helpers import TTLCache, from_unix, safe_float

logger = logging.getLogger(__name__)


def balance_changes(transaction: Dict[str, Any], mint: str) -> List[Dict[str, Any]]:
    """Per-account balance deltas for one mint, matched by account index"""
    meta = (transaction or {}).get('meta') or {}
    pre_balances = meta.get('preTokenBalances')
    post_balances = meta.get('postTokenBalances')
    if not pre_balances or not post_balances:
        return []

    pre_by_index = {entry.get('accountIndex'): entry for entry in pre_balances}
    account_keys = ((transaction.get('transaction') or {}).get('message') or {}).get('accountKeys') or []

    changes = []
    for post in post_balances:
        if post.get('mint') != mint:
            continue
        pre = pre_by_index.get(post.get('accountIndex'))
        if pre is None:
            continue
        delta = (
            safe_float((post.get('uiTokenAmount') or {}).get('uiAmount'))
            - safe_float((pre.get('uiTokenAmount') or {}).get('uiAmount'))
        )
        index = post.get('accountIndex')
        account = None
        if isinstance(index, int) and 0 <= index < len(account_keys):
            key = account_keys[index]
            account = key.get('pubkey') if isinstance(key, dict) else key
        changes.append({
            'owner': post.get('owner') or account,
            'token_account': account,
            'delta': delta,
        })
    return changes


class WhaleTracker:
    """Whale movement tracking for SPL tokens"""

    def __init__(self, chain: SolanaChainClient, config: Dict = None):
        """Initialize whale tracker with configuration"""
        self.chain = chain
        self.config = config or {}
        self.cache = TTLCache(ttl=self.config.get('whale_cache_ttl', 300))

        self.thresholds = {
            'min_sol_balance': self.config.get('min_sol_balance', 10),
            'min_recent_transactions': self.config.get('min_recent_transactions', 5),
            'signature_lookback': self.config.get('signature_lookback', 10),
            'transactions_per_token': self.config.get('transactions_per_token', 50),
        }

    async def is_whale(self, wallet: str) -> bool:
        """More than 10 SOL and more than 5 recent transactions"""
        cached = self.cache.get(wallet)
        if cached is not None:
            return cached

        try:
            balance = await self.chain.get_balance_sol(wallet)
            signatures = await self.chain.get_signatures(wallet, limit=self.thresholds['signature_lookback'])
        except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error checking whale account {wallet}: {e}")
            return False

        whale = (
            balance > self.thresholds['min_sol_balance']
            and len(signatures) > self.thresholds['min_recent_transactions']
        )
        self.cache.set(wallet, whale)
        return whale

    async def track_whale_movements(self, token: Dict[str, Any], min_amount: float) -> List[WhaleMovement]:
        """Whale movements in the most recent transactions of one token"""
        address = token['address']
        signatures = await self.chain.get_signatures(address, limit=self.thresholds['transactions_per_token'])
        logger.info(f"Found {len(signatures)} recent transactions for {token.get('symbol')} ({address})")

        movements = []
        for entry in signatures:
            signature = entry.get('signature')
            try:
                transaction = await self.chain.get_transaction(signature)
            except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error processing transaction {signature}: {e}")
                continue

            for change in balance_changes(transaction, address):
                wallet = change['owner']
                if not wallet or abs(change['delta']) < min_amount:
                    continue
                if not await self.is_whale(wallet):
                    continue
                movements.append(WhaleMovement(
                    token_address=address,
                    wallet_address=wallet,
                    amount=abs(change['delta']),
                    direction='buy' if change['delta'] > 0 else 'sell',
                    transaction_signature=signature,
                    block_time=from_unix(transaction.get('blockTime')),
                    token_name=token.get('name'),
                    token_symbol=token.get('symbol'),
                ))
        return movements

    @staticmethod
    def most_recent(movements: List[WhaleMovement], limit: Optional[int] = None) -> List[WhaleMovement]:
        ordered = sorted(
            movements,
            key=lambda m: m.block_time.timestamp() if m.block_time else 0,
            reverse=True,
        )
        return ordered[:limit] if limit is not None else ordered
