"""
Supported Operations

Closed set of dispatchable functions. Each operation pairs a typed pydantic
parameter model with the engine coroutine that serves it; the table is built
once at import time and never mutated.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.engine import ObservatoryEngine
from utils.constants import RiskTolerance
from utils.errors import InputError, UnknownOperationError

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    GET_HYPE_SCORE = "getHypeScore"
    RUN_RUGPULL_SCAN = "runRugpullScan"
    ANALYZE_MEME_CORRELATION = "analyzeMemeCorrelation"
    GET_PORTFOLIO_STRATEGY = "getPortfolioStrategy"
    SCAN_NEW_MEMECOINS = "scanNewMemecoins"
    TRACK_WHALE_MOVEMENTS = "trackWhaleMovements"


# ============= Parameter models =============

class OperationParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class HypeScoreParams(OperationParams):
    token_address: str = Field(
        ..., alias='tokenAddress', min_length=1,
        description="The Solana address of the memecoin token",
    )


class RugpullScanParams(OperationParams):
    token_address: str = Field(
        ..., alias='tokenAddress', min_length=1,
        description="The Solana address of the memecoin token to analyze",
    )


class MemeCorrelationParams(OperationParams):
    token_address: Optional[str] = Field(
        None, alias='tokenAddress',
        description="Optional: Specific token address to analyze. If not provided, analyzes all recently tracked memecoins.",
    )
    include_trending_report: bool = Field(
        True, alias='includeTrendingReport',
        description="Whether to include a full report of trending memes in the response",
    )


class PortfolioHolding(OperationParams):
    address: str
    amount: Optional[float] = None


class PortfolioStrategyParams(OperationParams):
    risk_tolerance: RiskTolerance = Field(
        ..., alias='riskTolerance',
        description="Risk tolerance level for the portfolio strategy",
    )
    investment_size: float = Field(
        ..., alias='investmentSize', gt=0,
        description="Total investment size in USD",
    )
    existing_portfolio: List[PortfolioHolding] = Field(
        default_factory=list, alias='existingPortfolio',
        description="Optional: Array of tokens already in portfolio to exclude from recommendations",
    )


class ScanMemecoinsParams(OperationParams):
    limit: int = Field(100, gt=0, le=1000, description="Maximum number of recent transactions to scan")


class WhaleMovementParams(OperationParams):
    token_address: Optional[str] = Field(
        None, alias='tokenAddress',
        description="Optional: Specific token address to track. If not provided, tracks across all tracked memecoins.",
    )
    limit: int = Field(10, gt=0, description="Maximum number of movements to return")
    min_amount: float = Field(
        1000, alias='minAmount', ge=0,
        description="Minimum token amount to consider as a significant movement",
    )


# ============= Dispatch table =============

@dataclass(frozen=True)
class OperationDefinition:
    operation: Operation
    description: str
    params_model: Type[OperationParams]
    handler: Callable[[ObservatoryEngine, Any], Awaitable[Dict[str, Any]]]

    def schema(self) -> Dict[str, Any]:
        return self.params_model.model_json_schema(by_alias=True)

    def describe(self) -> Dict[str, Any]:
        return {
            'name': self.operation.value,
            'description': self.description,
            'parameters': self.schema(),
        }


OPERATIONS: Dict[Operation, OperationDefinition] = {
    Operation.GET_HYPE_SCORE: OperationDefinition(
        Operation.GET_HYPE_SCORE,
        "Calculate a 'hype score' for a memecoin based on social signals and on-chain activity",
        HypeScoreParams,
        lambda engine, p: engine.get_hype_score(p.token_address),
    ),
    Operation.RUN_RUGPULL_SCAN: OperationDefinition(
        Operation.RUN_RUGPULL_SCAN,
        "Analyze a memecoin for rugpull and scam risks",
        RugpullScanParams,
        lambda engine, p: engine.run_rugpull_scan(p.token_address),
    ),
    Operation.ANALYZE_MEME_CORRELATION: OperationDefinition(
        Operation.ANALYZE_MEME_CORRELATION,
        "Analyze correlation between memecoin tokens and current trending memes",
        MemeCorrelationParams,
        lambda engine, p: engine.analyze_meme_correlation(p.token_address, p.include_trending_report),
    ),
    Operation.GET_PORTFOLIO_STRATEGY: OperationDefinition(
        Operation.GET_PORTFOLIO_STRATEGY,
        "Generate a personalized memecoin portfolio strategy based on risk profile",
        PortfolioStrategyParams,
        lambda engine, p: engine.get_portfolio_strategy(
            p.risk_tolerance,
            p.investment_size,
            [holding.model_dump() for holding in p.existing_portfolio],
        ),
    ),
    Operation.SCAN_NEW_MEMECOINS: OperationDefinition(
        Operation.SCAN_NEW_MEMECOINS,
        "Scan for newly created memecoin tokens on Solana",
        ScanMemecoinsParams,
        lambda engine, p: engine.scan_new_memecoins(p.limit),
    ),
    Operation.TRACK_WHALE_MOVEMENTS: OperationDefinition(
        Operation.TRACK_WHALE_MOVEMENTS,
        "Track whale wallet movements for Solana memecoins",
        WhaleMovementParams,
        lambda engine, p: engine.track_whale_movements(p.token_address, p.limit, p.min_amount),
    ),
}


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get('loc', ()))
        parts.append(f"{location}: {item.get('msg')}" if location else item.get('msg', ''))
    return "Invalid parameters: " + "; ".join(parts)


class OperationDispatcher:
    """Resolves a named call against the static operation table"""

    def __init__(self, engine: ObservatoryEngine, operations: Optional[Dict[Operation, OperationDefinition]] = None):
        self.engine = engine
        self.operations = operations or OPERATIONS

    def resolve(self, name: str) -> OperationDefinition:
        try:
            return self.operations[Operation(name)]
        except (ValueError, KeyError):
            raise UnknownOperationError(f"Function {name} not found")

    def describe(self) -> List[Dict[str, Any]]:
        return [definition.describe() for definition in self.operations.values()]

    def parse(self, definition: OperationDefinition, parameters: Any) -> OperationParams:
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            raise InputError("Parameters must be an object")
        try:
            return definition.params_model.model_validate(parameters)
        except ValidationError as e:
            raise InputError(_validation_message(e)) from e

    async def execute(self, name: str, parameters: Any = None) -> Dict[str, Any]:
        definition = self.resolve(name)
        params = self.parse(definition, parameters)
        logger.info(f"Executing function: {definition.operation.value}")
        return await definition.handler(self.engine, params)
