import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Set

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_profile"
SHUTDOWN_TIMEOUT = 30.0


def _job_name(job_func) -> str:
    return getattr(job_func, "__name__", repr(job_func))


class RuneMetricsAutomations:
    """Schedules the profile refresh on a crontab expression.

    The job runs once immediately on start. A trigger that fires while the
    previous cycle is still running is skipped.
    """

    def __init__(self, cron: str, job_func, *args, **kwargs):
        self._running_jobs: Set[asyncio.Task] = set()
        self._job_lock = asyncio.Lock()
        self._shutdown_timeout = SHUTDOWN_TIMEOUT

        self.trigger = CronTrigger.from_crontab(cron)
        self.job_func = job_func
        self.job_args = args
        self.job_kwargs = kwargs

        self.scheduler = AsyncIOScheduler(executors={"default": AsyncIOExecutor()})

    def start(self):
        self.scheduler.start()
        self.scheduler.add_job(
            self._scheduled_run,
            self.trigger,
            id=REFRESH_JOB_ID,
            name="Profile refresh",
            next_run_time=datetime.now(timezone.utc),
            coalesce=True,
            max_instances=1,
        )
        logger.debug(f"Scheduled {_job_name(self.job_func)} on {self.trigger}")

    async def stop(self):
        logger.info("Stopping automations...")

        self.scheduler.pause()
        await self.wait_for_jobs_to_complete()
        self.scheduler.remove_all_jobs()
        self.scheduler.shutdown(wait=False)

        logger.info("Automations stopped")

    async def wait_for_jobs_to_complete(self):
        async with self._job_lock:
            pending = [task for task in self._running_jobs if not task.done()]

        if not pending:
            return

        logger.info(f"Waiting for {len(pending)} running job(s)...")
        _, still_running = await asyncio.wait(
            pending, timeout=self._shutdown_timeout
        )

        for task in still_running:
            logger.warning(f"Cancelling job after {self._shutdown_timeout}s: {task}")
            task.cancel()

    async def track_job(self, job_func, *args, **kwargs) -> Optional[asyncio.Task]:
        """Start ``job_func`` as a task unless a previous run is still active."""
        async with self._job_lock:
            if any(not task.done() for task in self._running_jobs):
                logger.warning(
                    f"Skipping {_job_name(job_func)}: previous run still in progress"
                )
                return None

            task = asyncio.create_task(self._run_job(job_func, *args, **kwargs))
            self._running_jobs.add(task)

        task.add_done_callback(self._running_jobs.discard)
        return task

    async def _scheduled_run(self):
        try:
            await self.track_job(self.job_func, *self.job_args, **self.job_kwargs)
        except Exception as e:
            logger.error(f"Failed to start {_job_name(self.job_func)}: {e}")

    async def _run_job(self, job_func, *args, **kwargs):
        name = _job_name(job_func)
        logger.debug(f"Running {name}")

        try:
            await job_func(*args, **kwargs)
        except asyncio.CancelledError:
            logger.warning(f"{name} was cancelled")
            raise
        except Exception as e:
            logger.error(f"{name} failed: {type(e).__name__}: {e}", exc_info=True)
