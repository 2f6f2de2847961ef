import logging
from typing import Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sensorfleet.jobs.sensor_worker import SensorWorker, WorkerState

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Runs the sensor worker's tick inside the API process using APScheduler.
    Bootstraps once at start, then ticks every `worker.tick_seconds`.
    Overlapping ticks are never run; a late tick is coalesced into one.
    """

    def __init__(self, worker: SensorWorker, timezone: str = "UTC"):
        self.worker = worker
        self.state: Optional[WorkerState] = None
        self.timezone = pytz.timezone(timezone)
        self.scheduler = BackgroundScheduler(
            timezone=self.timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 30,
            },
        )
        logger.info("SchedulerService initialized with timezone: %s", timezone)

    def start(self):
        """Bootstrap the worker (fatal on a missing registry) and schedule ticks."""
        self.state = self.worker.bootstrap()
        self.scheduler.add_job(
            self.run_tick,
            trigger=IntervalTrigger(seconds=self.worker.tick_seconds, timezone=self.timezone),
            id="sensor_worker_tick",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Background scheduler started: sensor tick every %ss.", self.worker.tick_seconds)
        return self.scheduler

    def run_tick(self):
        try:
            self.state = self.worker.tick(self.state)
        except Exception as e:
            logger.exception("Error during sensor tick: %s", e)

    def stop(self):
        """Gracefully stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped cleanly.")


def start_scheduler(db_timezone: str = "UTC") -> SchedulerService:
    """Entry point for external use (e.g., from FastAPI lifespan)."""
    service = SchedulerService(SensorWorker.from_settings(), timezone=db_timezone)
    service.start()
    return service
