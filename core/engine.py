"""
Observatory Engine - orchestrates collectors, scorers and storage

Each public coroutine implements one dispatchable operation. Collectors hand
back either data or an Unavailable marker; the engine substitutes the
documented degraded default and reports what was missing under
`data_quality`. Batch operations skip tokens that fail and list them under
`skipped`.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import aiohttp

from analysis.hype_scorer import HypeScorer
from analysis.meme_correlator import MemeCorrelator
from analysis.models import MarketMetrics, Unavailable, is_available
from analysis.rug_detector import RugDetector
from analysis.token_scorer import TokenScorer
from core.portfolio_manager import Candidate, PortfolioManager
from data.collectors.chain_data import SolanaChainClient
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.meme_feed import MemeFeed
from data.collectors.social_data import SocialDataCollector
from data.collectors.token_discovery import TokenDiscovery
from data.collectors.whale_tracker import WhaleTracker
from data.storage.database import DatabaseManager
from utils.constants import (
    HTTP_USER_AGENT,
    RECENT_MEMECOIN_DAYS,
    SOCIAL_HISTORY_DAYS,
    WHALE_TRACKING_PERIOD,
    RiskTolerance,
)
from utils.errors import InputError, NetworkError, TokenNotFoundError
from utils.helpers import age_in_days, measure_time, round_half_up, utc_now

logger = logging.getLogger(__name__)

OK = "ok"
UNAVAILABLE = "unavailable"


def _quality(value: Any) -> str:
    return OK if is_available(value) else UNAVAILABLE


class ObservatoryEngine:
    """
    Memecoin analytics engine.
    Holds collaborator handles only; no per-request state survives a call.
    """

    def __init__(
        self,
        db: DatabaseManager,
        chain: SolanaChainClient,
        market: DexScreenerCollector,
        social: SocialDataCollector,
        meme_feed: MemeFeed,
        discovery: Optional[TokenDiscovery] = None,
        whales: Optional[WhaleTracker] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config or {}
        self.db = db
        self.chain = chain
        self.market = market
        self.social = social
        self.meme_feed = meme_feed
        self.discovery = discovery or TokenDiscovery(chain)
        self.whales = whales or WhaleTracker(chain)

        self.hype_scorer = HypeScorer()
        self.rug_detector = RugDetector()
        self.meme_correlator = MemeCorrelator()
        self.token_scorer = TokenScorer()
        self.portfolio_manager = PortfolioManager()

        self.limits = {
            'portfolio_candidates': self.config.get('portfolio_candidates', 100),
            'correlation_tokens': self.config.get('correlation_tokens', 50),
            'whale_tokens': self.config.get('whale_tokens', 50),
            'trending_report': self.config.get('trending_report', 10),
            'recent_mentions': self.config.get('recent_mentions', 3),
        }
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings, db: DatabaseManager) -> "ObservatoryEngine":
        """Wire every collector around one shared HTTP session"""
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=settings.solana.request_timeout),
            headers={'User-Agent': HTTP_USER_AGENT},
        )
        chain = SolanaChainClient(settings.solana.model_dump(), session=session)
        engine = cls(
            db=db,
            chain=chain,
            market=DexScreenerCollector({}, session=session),
            social=SocialDataCollector({
                'twitter_bearer_token': settings.twitter.bearer_token,
                'telegram_channels': settings.telegram.channels,
            }, session=session),
            meme_feed=MemeFeed(settings.meme_feed.model_dump(), session=session),
        )
        engine._session = session
        return engine

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    # ============= Token resolution =============

    async def _resolve_token(self, address: str) -> Dict[str, Any]:
        """Stored token, or fetch it from chain and register it"""
        if not address:
            raise InputError("Token address is required")

        token = await self.db.get_token(address)
        if token is not None:
            return token

        facts = await self.chain.get_token_facts(address)
        if isinstance(facts, Unavailable):
            raise TokenNotFoundError(f"Token not found: {address}")

        try:
            created_at = await self.chain.get_creation_time(address)
        except (NetworkError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Creation time unavailable for {address}: {e}")
            created_at = None

        await self.db.upsert_token(replace(facts, created_at=created_at))
        logger.info(f"Registered token {facts.name} ({facts.symbol}) from chain")
        return await self.db.get_token(address)

    async def _market_metrics(self, address: str) -> Union[MarketMetrics, Unavailable]:
        return await self.market.get_market_metrics(address)

    # ============= Hype =============

    @measure_time
    async def get_hype_score(self, token_address: str) -> Dict[str, Any]:
        logger.info(f"Calculating hype score for token: {token_address}")
        token = await self._resolve_token(token_address)

        social_results = await self.social.collect_social_snapshot(token['symbol'], token['name'])
        snapshot = self.social.to_snapshot(social_results)
        market = await self._market_metrics(token_address)
        metrics = market if is_available(market) else MarketMetrics.zero()
        age_days = age_in_days(token.get('creation_date'))

        hype = self.hype_scorer.score(age_days, snapshot, metrics)

        await self.db.save_token_metrics(token_address, metrics)
        # Only the twitter aggregate is recorded in the signal history
        await self.db.save_social_signal(token_address, snapshot.twitter)

        logger.info(f"Hype score for {token['name']}: {hype.score}")
        return {
            'token_address': token_address,
            'name': token['name'],
            'symbol': token['symbol'],
            'hype_score': hype.score,
            'components': {
                'social_engagement': {
                    'twitter': snapshot.twitter.count,
                    'reddit': snapshot.reddit.count,
                    'telegram': snapshot.telegram.count,
                    'total_engagement': hype.total_engagement,
                },
                'sentiment': {
                    'twitter': snapshot.twitter.sentiment,
                    'reddit': snapshot.reddit.sentiment,
                    'telegram': snapshot.telegram.sentiment,
                    'average': round(hype.average_sentiment, 4),
                },
                'market_metrics': {
                    **metrics.to_dict(),
                    'age_days': round_half_up(age_days, 1) if age_days is not None else None,
                },
                'factors': hype.rounded_factors(),
            },
            'recent_mentions': {
                'twitter': snapshot.twitter.samples[:self.limits['recent_mentions']],
                'reddit': snapshot.reddit.samples[:self.limits['recent_mentions']],
            },
            'data_quality': {
                'market': _quality(market),
                **{platform.value: _quality(result) for platform, result in social_results.items()},
            },
        }

    # ============= Safety =============

    @measure_time
    async def run_rugpull_scan(self, token_address: str) -> Dict[str, Any]:
        logger.info(f"Running rugpull scan for token: {token_address}")
        token = await self._resolve_token(token_address)
        facts = await self.chain.get_token_facts(token_address)

        report = self.rug_detector.scan(token_address, facts)

        await self.db.save_safety_score(
            token_address,
            contract_score=report.contract_score,
            rugpull_risk_score=report.scam.score,
            holder_distribution_score=report.holder_distribution_score,
            liquidity_score=report.liquidity_score,
            overall_safety_score=report.safety_score,
        )

        logger.info(
            f"Rugpull scan complete for {token['name']}: "
            f"Score {report.safety_score}, Risk {report.risk_tier.value}"
        )
        return {
            'token_address': token_address,
            'name': token['name'],
            'symbol': token['symbol'],
            'safety_score': report.safety_score,
            'risk_level': report.risk_tier.value,
            'analysis': {
                'on_chain_metrics': report.assessment.details(),
                'contract_safety_score': report.assessment.score,
                'scam_similarity': {
                    'similarity_score': report.scam.score,
                    'patterns': report.scam.patterns,
                },
            },
            'warnings': report.warnings,
            'recommendations': report.recommendations,
            'data_quality': {'chain': _quality(facts)},
        }

    async def _safety_score(self, address: str) -> float:
        """Latest stored overall score, else a fresh contract safety score"""
        stored = await self.db.get_latest_safety_score(address)
        if stored:
            return stored
        facts = await self.chain.get_token_facts(address)
        return self.rug_detector.assess_contract(address, facts).score

    # ============= Meme correlation =============

    @measure_time
    async def analyze_meme_correlation(
        self,
        token_address: Optional[str] = None,
        include_trending_report: bool = True,
    ) -> Dict[str, Any]:
        logger.info(
            f"Analyzing meme correlations {f'for token: {token_address}' if token_address else 'for all tokens'}"
        )
        memes = await self.meme_feed.get_trending_memes()
        logger.info(f"Found {len(memes)} trending memes")

        if token_address:
            tokens = [await self._resolve_token(token_address)]
        else:
            since = utc_now() - timedelta(days=RECENT_MEMECOIN_DAYS)
            tokens = await self.db.get_recent_memecoins(limit=self.limits['correlation_tokens'], since=since)
        if not tokens:
            raise InputError("No tokens found to analyze")

        results: Dict[str, Any] = {'tokens': {}, 'predicted_opportunities': [], 'skipped': []}
        if include_trending_report:
            results['trending_memes'] = [m.to_dict() for m in memes[:self.limits['trending_report']]]

        for token in tokens:
            address = token['address']
            try:
                correlations = self.meme_correlator.correlate(token['name'], token['symbol'], memes)
                await self.db.save_meme_correlations(address, self.meme_correlator.persistable(correlations))
            except Exception as e:
                logger.error(f"Error correlating token {address}: {e}")
                results['skipped'].append({'token_address': address, 'error': str(e)})
                continue

            results['tokens'][address] = {
                'name': token['name'],
                'symbol': token['symbol'],
                'correlations': [c.to_dict() for c in correlations[:self.meme_correlator.top_correlations]],
            }
            strong = self.meme_correlator.strong_matches(correlations)
            if strong:
                results['predicted_opportunities'].append({
                    'token_address': address,
                    'name': token['name'],
                    'symbol': token['symbol'],
                    'trending_meme_matches': [c.to_dict() for c in strong],
                })

        known_memes = await self.db.get_correlated_meme_names()
        results['missing_meme_opportunities'] = self.meme_correlator.missing_meme_opportunities(memes, known_memes)

        logger.info(
            f"Meme correlation analysis complete. Found {len(results['tokens'])} token correlations "
            f"and {len(results['predicted_opportunities'])} potential opportunities"
        )
        return results

    # ============= Portfolio =============

    async def _score_candidate(self, token: Dict[str, Any]) -> Tuple[Candidate, bool]:
        address = token['address']
        market = await self._market_metrics(address)
        metrics = market if is_available(market) else MarketMetrics.zero()
        safety = await self._safety_score(address)
        social = await self.db.get_social_aggregate(address, days=SOCIAL_HISTORY_DAYS)
        correlations = await self.db.get_top_correlations(address, limit=5)

        score = self.token_scorer.score(
            token_address=address,
            safety_score=safety,
            age_days=age_in_days(token.get('creation_date')),
            market=metrics,
            social=social,
            correlations=[c['correlation_score'] for c in correlations],
        )
        candidate = Candidate(address=address, name=token["name"], symbol=token["symbol"], score=score)
        return candidate, is_available(market)

    @measure_time
    async def get_portfolio_strategy(
        self,
        risk_tolerance: Union[RiskTolerance, str],
        investment_size: float,
        existing_portfolio: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        try:
            tolerance = RiskTolerance(risk_tolerance)
        except ValueError:
            raise InputError(f"Unknown risk tolerance: {risk_tolerance}")
        if investment_size is None or investment_size <= 0:
            raise InputError("Investment size must be positive")

        logger.info(f"Generating portfolio strategy with risk tolerance: {tolerance.value}")
        tokens = await self.db.get_recent_memecoins(limit=self.limits['portfolio_candidates'])
        logger.info(f"Found {len(tokens)} recent memecoins for analysis")

        candidates: List[Candidate] = []
        skipped = []
        market_unavailable = 0
        for token in tokens:
            try:
                candidate, market_ok = await self._score_candidate(token)
            except Exception as e:
                logger.error(f"Error processing token {token['address']}: {e}")
                skipped.append({'token_address': token['address'], 'error': str(e)})
                continue
            candidates.append(candidate)
            if not market_ok:
                market_unavailable += 1

        existing = [entry.get('address') for entry in (existing_portfolio or []) if entry.get('address')]
        plan = self.portfolio_manager.allocate(candidates, tolerance, investment_size, existing)

        logger.info(f"Portfolio strategy generated with {len(plan.allocations)} recommendations")
        return {
            'risk_tolerance': tolerance.value,
            'investment_size': investment_size,
            'strategy': self.portfolio_manager.strategy(tolerance),
            'portfolio': plan.to_dict(),
            'candidates_evaluated': len(candidates),
            'skipped': skipped,
            'data_quality': {'market_unavailable': market_unavailable},
        }

    # ============= Discovery =============

    @measure_time
    async def scan_new_memecoins(self, limit: int = 100) -> Dict[str, Any]:
        logger.info(f"Scanning for new memecoins, limit: {limit}")
        known = await self.db.get_memecoin_addresses()
        result = await self.discovery.scan(limit=limit, known_addresses=known)

        for facts in result.new_memecoins:
            await self.db.upsert_token(facts, is_memecoin=True)

        logger.info(
            f"Scan complete. Processed {result.scanned_transactions} transactions, "
            f"found {len(result.new_memecoins)} new memecoins"
        )
        return {
            'scanned_transactions': result.scanned_transactions,
            'new_memecoins_found': len(result.new_memecoins),
            'latest_memecoins': [
                {
                    'address': facts.address,
                    'name': facts.name,
                    'symbol': facts.symbol,
                    'supply': facts.supply,
                    'decimals': facts.decimals,
                    'created_at': facts.created_at.isoformat() if facts.created_at else None,
                }
                for facts in result.new_memecoins[:10]
            ],
        }

    # ============= Whales =============

    @measure_time
    async def track_whale_movements(
        self,
        token_address: Optional[str] = None,
        limit: int = 10,
        min_amount: float = 1000,
    ) -> Dict[str, Any]:
        logger.info(
            f"Tracking whale movements {f'for token: {token_address}' if token_address else 'across all memecoins'}"
        )
        if token_address:
            tokens = [await self._resolve_token(token_address)]
        else:
            tokens = await self.db.get_recent_memecoins(limit=self.limits['whale_tokens'])
        if not tokens:
            raise InputError("No tokens found to track")

        movements = []
        skipped = []
        for token in tokens:
            try:
                found = await self.whales.track_whale_movements(token, min_amount)
                await self.db.save_whale_movements(found)
                movements.extend(found)
            except Exception as e:
                logger.error(f"Error tracking movements for token {token['address']}: {e}")
                skipped.append({'token_address': token['address'], 'error': str(e)})

        recent = self.whales.most_recent(movements, limit)
        logger.info(f"Found {len(movements)} whale movements, returning {len(recent)}")
        return {
            'movements': [m.to_dict() for m in recent],
            'total_found': len(movements),
            'tracking_period': WHALE_TRACKING_PERIOD,
            'skipped': skipped,
        }

    # ============= Maintenance =============

    async def refresh_social_signals(self, limit: int = 50) -> Dict[str, Any]:
        """Recompute hype (and record social history) for the newest memecoins"""
        tokens = await self.db.get_recent_memecoins(limit=limit)
        refreshed = 0
        skipped = []
        for token in tokens:
            try:
                await self.get_hype_score(token['address'])
                refreshed += 1
            except Exception as e:
                logger.error(f"Error updating social data for {token['address']}: {e}")
                skipped.append({'token_address': token['address'], 'error': str(e)})
        logger.info(f"Updated social data for {refreshed} tokens")
        return {'refreshed': refreshed, 'skipped': skipped}
