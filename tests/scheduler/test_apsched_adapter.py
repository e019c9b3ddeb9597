from __future__ import annotations

from types import SimpleNamespace

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from kitwatch.scheduler import APSchedulerAdapter


@pytest.fixture
def adapter():
    instance = APSchedulerAdapter(BackgroundScheduler())
    instance.scheduler.start(paused=True)
    instance.started = True
    yield instance
    instance.shutdown(wait=False)


def test_schedule_feed_registers_interval_job(adapter: APSchedulerAdapter) -> None:
    feed = SimpleNamespace(name="urls")

    job_id = adapter.schedule_feed(feed, 60, lambda target: None, run_now=False)

    assert job_id == "feed::urls"
    jobs = adapter.list_jobs()
    assert [job["id"] for job in jobs] == ["feed::urls"]
    assert "interval" in jobs[0]["trigger"]
    job = adapter.scheduler.get_job(job_id)
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.args == (feed,)


def test_rescheduling_replaces_existing_job(adapter: APSchedulerAdapter) -> None:
    feed = SimpleNamespace(name="urls")
    adapter.schedule_feed(feed, 60, lambda target: None)
    adapter.schedule_feed(feed, 30, lambda target: None)
    assert len(adapter.list_jobs()) == 1


def test_remove_feed_tolerates_unknown_jobs(adapter: APSchedulerAdapter) -> None:
    adapter.schedule_feed(SimpleNamespace(name="urls"), 60, lambda target: None)
    adapter.remove_feed("urls")
    adapter.remove_feed("urls")
    assert adapter.list_jobs() == []


def test_non_positive_interval_is_rejected(adapter: APSchedulerAdapter) -> None:
    with pytest.raises(ValueError):
        adapter.schedule_feed(SimpleNamespace(name="urls"), 0, lambda target: None)


def test_start_and_shutdown_are_idempotent() -> None:
    adapter = APSchedulerAdapter(BackgroundScheduler())
    adapter.start()
    adapter.start()
    assert adapter.started is True
    adapter.shutdown(wait=False)
    adapter.shutdown(wait=False)
    assert adapter.started is False
