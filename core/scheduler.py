"""
Background job scheduler - periodic discovery, social refresh and meme sweeps
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config.settings import ScheduledTasksConfig, TaskConfig
from core.engine import ObservatoryEngine

logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    name: str
    interval_minutes: float
    run: Callable[[], Awaitable[Any]]
    runs: int = 0
    failures: int = 0


class Scheduler:
    """Runs each enabled job in its own asyncio loop"""

    def __init__(self, engine: ObservatoryEngine, config: Optional[ScheduledTasksConfig] = None):
        self.engine = engine
        self.config = config or ScheduledTasksConfig()
        self.jobs = self._build_jobs()
        self.tasks: List[asyncio.Task] = []
        self.is_running = False

    def _build_jobs(self) -> List[ScheduledJob]:
        discovery = self.config.token_discovery
        social = self.config.social_update
        memes = self.config.meme_correlation

        candidates = [
            (discovery, ScheduledJob(
                'token_discovery', discovery.interval_minutes,
                lambda: self.engine.scan_new_memecoins(limit=discovery.limit or 100),
            )),
            (social, ScheduledJob(
                'social_update', social.interval_minutes,
                lambda: self.engine.refresh_social_signals(limit=social.limit or 50),
            )),
            (memes, ScheduledJob(
                'meme_correlation', memes.interval_minutes,
                lambda: self.engine.analyze_meme_correlation(include_trending_report=False),
            )),
        ]
        return [job for task_config, job in candidates if self._enabled(task_config)]

    @staticmethod
    def _enabled(task_config: TaskConfig) -> bool:
        return task_config.enabled

    async def start(self) -> None:
        if self.is_running:
            return
        self.is_running = True
        for job in self.jobs:
            self.tasks.append(asyncio.create_task(self._loop(job), name=f"scheduler:{job.name}"))
            logger.info(f"Scheduled {job.name} every {job.interval_minutes} minutes")

    async def stop(self) -> None:
        self.is_running = False
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        logger.info("Scheduler stopped")

    async def _loop(self, job: ScheduledJob) -> None:
        while self.is_running:
            await asyncio.sleep(job.interval_minutes * 60)
            await self.run_job(job)

    async def run_job(self, job: ScheduledJob) -> None:
        """Run one job; a failing run is logged and the schedule continues"""
        logger.info(f"Running scheduled {job.name} task")
        try:
            await job.run()
            job.runs += 1
        except Exception as e:
            job.failures += 1
            logger.error(f"Error in scheduled {job.name} task: {e}", exc_info=True)

    def get_status(self) -> Dict[str, Dict[str, Any]]:
        return {
            job.name: {
                'interval_minutes': job.interval_minutes,
                'runs': job.runs,
                'failures': job.failures,
            }
            for job in self.jobs
        }
