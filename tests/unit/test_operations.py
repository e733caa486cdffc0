# tests/unit/test_operations.py
"""
Unit tests for operation dispatch and the job scheduler
"""
from unittest.mock import AsyncMock

import pytest

from config.settings import ScheduledTasksConfig, TaskConfig
from core.operations import OPERATIONS, Operation, OperationDispatcher
from core.scheduler import ScheduledJob, Scheduler
from utils.constants import RiskTolerance
from utils.errors import InputError, UnknownOperationError


@pytest.mark.unit
class TestOperationDispatcher:
    """Name resolution and parameter validation"""

    @pytest.fixture
    def engine(self):
        engine = AsyncMock()
        engine.get_hype_score.return_value = {"hype_score": 42}
        return engine

    @pytest.fixture
    def dispatcher(self, engine):
        return OperationDispatcher(engine)

    def test_operation_table_is_complete(self):
        assert set(OPERATIONS) == set(Operation)

    def test_unknown_operation(self, dispatcher):
        with pytest.raises(UnknownOperationError, match="Function mintMoney not found"):
            dispatcher.resolve("mintMoney")

    async def test_execute(self, dispatcher, engine):
        result = await dispatcher.execute("getHypeScore", {"tokenAddress": "WifMint"})
        assert result == {"hype_score": 42}
        engine.get_hype_score.assert_awaited_once_with("WifMint")

    async def test_missing_required_parameter(self, dispatcher, engine):
        with pytest.raises(InputError, match="tokenAddress"):
            await dispatcher.execute("runRugpullScan", {})
        engine.run_rugpull_scan.assert_not_awaited()

    async def test_parameters_must_be_an_object(self, dispatcher):
        with pytest.raises(InputError, match="must be an object"):
            await dispatcher.execute("scanNewMemecoins", ["limit", 5])

    async def test_defaults_apply(self, dispatcher, engine):
        await dispatcher.execute("scanNewMemecoins", None)
        engine.scan_new_memecoins.assert_awaited_once_with(100)

        await dispatcher.execute("trackWhaleMovements", {})
        engine.track_whale_movements.assert_awaited_once_with(None, 10, 1000)

        await dispatcher.execute("analyzeMemeCorrelation", {})
        engine.analyze_meme_correlation.assert_awaited_once_with(None, True)

    async def test_portfolio_parameters(self, dispatcher, engine):
        await dispatcher.execute("getPortfolioStrategy", {
            "riskTolerance": "aggressive",
            "investmentSize": 2500,
            "existingPortfolio": [{"address": "HeldMint", "amount": 10}],
        })
        engine.get_portfolio_strategy.assert_awaited_once_with(
            RiskTolerance.AGGRESSIVE,
            2500,
            [{"address": "HeldMint", "amount": 10}],
        )

    @pytest.mark.parametrize("params", [
        {"riskTolerance": "yolo", "investmentSize": 100},
        {"riskTolerance": "moderate", "investmentSize": 0},
        {"riskTolerance": "moderate"},
    ])
    async def test_invalid_portfolio_parameters(self, dispatcher, params):
        with pytest.raises(InputError):
            await dispatcher.execute("getPortfolioStrategy", params)

    def test_describe(self, dispatcher):
        described = dispatcher.describe()
        assert [d["name"] for d in described] == [op.value for op in Operation]
        hype = described[0]["parameters"]
        assert hype["required"] == ["tokenAddress"]
        assert "tokenAddress" in hype["properties"]


@pytest.mark.unit
class TestScheduler:
    """Background job bookkeeping"""

    def test_disabled_jobs_are_not_built(self):
        config = ScheduledTasksConfig(social_update=TaskConfig(enabled=False, interval_minutes=60))
        scheduler = Scheduler(AsyncMock(), config)
        assert [job.name for job in scheduler.jobs] == ["token_discovery", "meme_correlation"]

    async def test_jobs_call_the_engine(self):
        engine = AsyncMock()
        scheduler = Scheduler(engine)
        for job in scheduler.jobs:
            await scheduler.run_job(job)

        engine.scan_new_memecoins.assert_awaited_once_with(limit=100)
        engine.refresh_social_signals.assert_awaited_once_with(limit=50)
        engine.analyze_meme_correlation.assert_awaited_once_with(include_trending_report=False)
        assert all(status["runs"] == 1 for status in scheduler.get_status().values())

    async def test_failures_are_counted(self):
        scheduler = Scheduler(AsyncMock())
        job = ScheduledJob("broken", 1, AsyncMock(side_effect=InputError("No tokens found to analyze")))

        await scheduler.run_job(job)

        assert job.failures == 1
        assert job.runs == 0

    async def test_start_and_stop(self):
        scheduler = Scheduler(AsyncMock())
        await scheduler.start()
        assert len(scheduler.tasks) == 3

        await scheduler.stop()
        assert scheduler.tasks == []
        assert scheduler.is_running is False
