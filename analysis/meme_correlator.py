# analysis/meme_correlator.py
"""
Meme Correlator - lexical similarity between tokens and trending memes

Correlation is the Jaccard overlap of the word sets of the token name and the
meme name, plus a flat bonus when the meme name contains the token symbol,
capped at 1.0.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Sequence, Set

from analysis.models import CorrelationEntry, TrendingMeme

logger = logging.getLogger(__name__)

WORD_SPLIT = re.compile(r'\W+')


def tokenize(text: str) -> Set[str]:
    """Lowercased word set, split on non-word characters"""
    return {word for word in WORD_SPLIT.split((text or "").lower()) if word}


def jaccard(left: Set[str], right: Set[str]) -> float:
    intersection = left & right
    if not intersection:
        return 0.0
    return len(intersection) / len(left | right)


def generate_token_themes(meme_name: str) -> List[str]:
    """Candidate token names for a meme nobody has launched yet"""
    words = [word for word in WORD_SPLIT.split(meme_name) if word]
    themes = [f"{meme_name} Coin", f"{meme_name} Token"]
    if len(words) > 1:
        themes.append("".join(word[0].upper() for word in words))
    if words:
        themes.append(f"{words[0].upper()} Coin")
    return themes


class MemeCorrelator:
    """Scores and ranks trending memes against a token's name and symbol"""

    def __init__(self, config: Dict[str, Any] = None):
        config = config or {}
        self.symbol_bonus = config.get('symbol_bonus', 0.3)
        self.min_correlation = config.get('min_correlation', 0.1)
        self.persist_threshold = config.get('persist_threshold', 0.3)
        self.opportunity_threshold = config.get('opportunity_threshold', 0.6)
        self.top_correlations = config.get('top_correlations', 5)
        self.max_missing_opportunities = config.get('max_missing_opportunities', 5)

    def correlation(self, name: str, symbol: str, meme_name: str) -> float:
        score = jaccard(tokenize(name), tokenize(meme_name))
        symbol_lc = (symbol or "").lower()
        # An empty symbol is a substring of everything; it earns no bonus
        if symbol_lc and symbol_lc in meme_name.lower():
            score += self.symbol_bonus
        return min(score, 1.0)

    def correlate(self, name: str, symbol: str, memes: Iterable[TrendingMeme]) -> List[CorrelationEntry]:
        """Correlations above the noise floor, strongest first, ties in feed order"""
        entries = []
        for meme in memes:
            score = self.correlation(name, symbol, meme.name)
            if score > self.min_correlation:
                entries.append(CorrelationEntry(
                    meme_name=meme.name,
                    correlation_score=score,
                    source=meme.source,
                    observed_at=meme.observed_at,
                ))
        # sorted() is stable, so equal scores keep feed order
        return sorted(entries, key=lambda entry: entry.correlation_score, reverse=True)

    def persistable(self, entries: Sequence[CorrelationEntry]) -> List[CorrelationEntry]:
        return [entry for entry in entries if entry.correlation_score >= self.persist_threshold]

    def strong_matches(self, entries: Sequence[CorrelationEntry]) -> List[CorrelationEntry]:
        return [entry for entry in entries if entry.correlation_score >= self.opportunity_threshold]

    def missing_meme_opportunities(
        self,
        memes: Sequence[TrendingMeme],
        known_meme_names: Iterable[str],
    ) -> List[Dict[str, Any]]:
        """Trending memes with no correlated token on record"""
        known = {name.lower() for name in known_meme_names if name}
        opportunities = []
        for meme in memes:
            if meme.name.lower() in known:
                continue
            opportunities.append({
                "meme_name": meme.name,
                "source": meme.source,
                "potential_token_themes": generate_token_themes(meme.name),
            })
            if len(opportunities) >= self.max_missing_opportunities:
                break
        return opportunities
