from __future__ import annotations

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from adblock2hosts.config import ScheduleConfig, ScheduleType
from adblock2hosts.scheduler import APSchedulerAdapter
from adblock2hosts.scheduler.apsched_adapter import JOB_ID


def test_build_triggers() -> None:
    adapter = APSchedulerAdapter()
    cron = adapter._build_trigger(ScheduleConfig())
    assert isinstance(cron, CronTrigger)

    interval = adapter._build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value=30))
    assert isinstance(interval, IntervalTrigger)
    assert interval.interval.total_seconds() == 30

    kwargs = adapter._build_trigger(ScheduleConfig(type=ScheduleType.INTERVAL, value={"minutes": 2}))
    assert kwargs.interval.total_seconds() == 120


def test_invalid_crontab_raises() -> None:
    adapter = APSchedulerAdapter()
    with pytest.raises(ValueError):
        adapter._build_trigger(ScheduleConfig(type=ScheduleType.CRON, value="not a cron"))


def test_schedule_run_uses_scheduler() -> None:
    adapter = APSchedulerAdapter()
    calls: list[dict] = []

    class StubScheduler:
        def add_job(self, callback, trigger, id, replace_existing, max_instances, coalesce):  # noqa: ANN001
            calls.append({"id": id, "callback": callback, "trigger": trigger})

        def get_jobs(self):
            return []

        def start(self):
            calls.append({"event": "started"})

        def shutdown(self, wait=False):  # noqa: ARG002
            calls.append({"event": "shutdown"})

    adapter.scheduler = StubScheduler()  # type: ignore[assignment]

    def job() -> None:
        return None

    adapter.schedule_run(job, ScheduleConfig(type=ScheduleType.INTERVAL, value=60))
    adapter.start()
    adapter.start()
    adapter.shutdown()

    assert calls[0]["id"] == JOB_ID
    assert calls[0]["callback"] is job
    assert isinstance(calls[0]["trigger"], IntervalTrigger)
    assert calls[1:] == [{"event": "started"}, {"event": "shutdown"}]
    assert adapter.list_jobs() == []
