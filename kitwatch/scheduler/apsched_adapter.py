"""APScheduler wrapper re-polling feeds on an interval."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import configure_logging


class APSchedulerAdapter:
    """Manage one interval job per feed."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self, wait: bool = True) -> None:
        if self.started:
            self.scheduler.shutdown(wait=wait)
            self.started = False
            self.logger.info("apscheduler_stopped")

    @staticmethod
    def job_id(feed_name: str) -> str:
        return f"feed::{feed_name}"

    def schedule_feed(
        self,
        feed,
        interval: float,
        callback: Callable[[object], None],
        run_now: bool = True,
    ) -> str:
        """Run ``callback(feed)`` every ``interval`` seconds; overlapping runs are skipped."""

        if interval <= 0:
            raise ValueError("Interval must be positive")
        job_id = self.job_id(feed.name)
        kwargs = {}
        if run_now:
            kwargs["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=float(interval)),
            id=job_id,
            args=[feed],
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **kwargs,
        )
        self.logger.info("job_scheduled", feed=feed.name, interval=interval)
        return job_id

    def remove_feed(self, feed_name: str) -> None:
        try:
            self.scheduler.remove_job(self.job_id(feed_name))
        except JobLookupError:
            self.logger.warning("job_remove_failed", feed=feed_name)

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter"]
