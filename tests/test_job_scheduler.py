import threading

import pytest

from app.scheduler.job_scheduler import JobDefinition, JobScheduler
from app.utils.errors import NotFoundError

from conftest import FakeTimezoneSource


class FakeOutcome:
    def __init__(self, result, ok=True):
        self.result = result
        self._ok = ok

    def successful(self):
        return self._ok


class FakeTask:
    """Stands in for a Celery task executed eagerly via ``apply``"""

    def __init__(self, result=None, ok=True):
        self.calls = []
        self.result = result if result is not None else {"success": True}
        self.ok = ok

    def apply(self, kwargs=None):
        self.calls.append(kwargs)
        return FakeOutcome(self.result, self.ok)


@pytest.fixture
def tasks():
    return {"minute": FakeTask(), "retry": FakeTask(), "daily": FakeTask()}


@pytest.fixture
def tz_source():
    return FakeTimezoneSource("Asia/Shanghai")


@pytest.fixture
def job_scheduler(tasks, tz_source):
    scheduler = JobScheduler(
        definitions=[
            JobDefinition(name="minute", cron="* * * * *", task=tasks["minute"]),
            JobDefinition(name="retry", cron="*/5 * * * *", task=tasks["retry"]),
            JobDefinition(name="daily", cron="5 9 * * *", task=tasks["daily"]),
        ],
        timezone_source=tz_source,
    )

    yield scheduler
    scheduler.shutdown()


class TestJobRegistration:
    """Test starting and stopping cron triggers."""

    def test_start_all_registers_every_job(self, job_scheduler):
        started = job_scheduler.start_all()

        assert started == {"minute": True, "retry": True, "daily": True}
        assert {job.id for job in job_scheduler.scheduler.get_jobs()} == {
            "minute",
            "retry",
            "daily",
        }

    def test_start_twice_keeps_a_single_trigger(self, job_scheduler):
        job_scheduler.start("minute")
        job_scheduler.start("minute")

        assert [job.id for job in job_scheduler.scheduler.get_jobs()] == ["minute"]

    def test_stop_is_a_noop_when_not_running(self, job_scheduler):
        job_scheduler.stop("daily")

        assert not job_scheduler.is_running("daily")

    def test_stop_removes_trigger(self, job_scheduler):
        job_scheduler.start("daily")
        job_scheduler.stop("daily")

        assert job_scheduler.scheduler.get_job("daily") is None
        assert not job_scheduler.is_running("daily")

    def test_invalid_cron_is_not_registered(self, tasks):
        scheduler = JobScheduler(
            definitions=[JobDefinition(name="broken", cron="61 * * * *", task=tasks["daily"])],
            timezone_source=FakeTimezoneSource("UTC"),
        )
        try:
            assert scheduler.start("broken") is False
            assert not scheduler.is_running("broken")
            assert scheduler.scheduler.get_job("broken") is None
        finally:
            scheduler.shutdown()

    def test_unknown_job(self, job_scheduler):
        with pytest.raises(NotFoundError):
            job_scheduler.start("nope")
        with pytest.raises(NotFoundError):
            job_scheduler.run_now("nope")

    def test_triggers_use_configured_timezone(self, job_scheduler):
        job_scheduler.start("daily")

        assert str(job_scheduler.scheduler.get_job("daily").trigger.timezone) == "Asia/Shanghai"

    def test_restart_all_picks_up_new_timezone(self, job_scheduler, tz_source):
        job_scheduler.start_all()

        tz_source.timezone_name = "America/New_York"
        job_scheduler.restart_all()

        for job in job_scheduler.scheduler.get_jobs():
            assert str(job.trigger.timezone) == "America/New_York"
        assert len(job_scheduler.scheduler.get_jobs()) == 3

    def test_list_jobs(self, job_scheduler):
        job_scheduler.start("minute")

        jobs = {job["name"]: job for job in job_scheduler.list_jobs()}

        assert jobs["minute"]["running"] is True
        assert jobs["minute"]["next_run_time"] is not None
        assert jobs["daily"]["running"] is False
        assert jobs["daily"]["cron"] == "5 9 * * *"
        assert jobs["daily"]["timezone"] == "Asia/Shanghai"

    def test_shutdown_stops_everything(self, job_scheduler):
        job_scheduler.start_all()
        job_scheduler.shutdown()

        assert not job_scheduler.scheduler.running
        assert not any(job_scheduler.is_running(name) for name in ("minute", "retry", "daily"))


class TestRunNow:
    """Test manual job execution."""

    def test_run_now_passes_a_job_request_id(self, job_scheduler, tasks):
        result = job_scheduler.run_now("daily")

        assert result == {"success": True}
        request_id = tasks["daily"].calls[0]["request_id"]
        assert request_id.startswith("daily-")

    def test_task_failure_is_reported(self, tasks):
        failing = FakeTask(result=RuntimeError("db down"), ok=False)
        scheduler = JobScheduler(
            definitions=[JobDefinition(name="daily", cron="5 9 * * *", task=failing)],
            timezone_source=FakeTimezoneSource("UTC"),
        )

        result = scheduler.run_now("daily")

        assert result["success"] is False
        assert result["error"] == "db down"

    def test_overlapping_run_is_skipped(self, tasks):
        started = threading.Event()
        release = threading.Event()

        class BlockingTask(FakeTask):
            def apply(self, kwargs=None):
                started.set()
                release.wait(5)
                return super().apply(kwargs)

        blocking = BlockingTask()
        scheduler = JobScheduler(
            definitions=[JobDefinition(name="minute", cron="* * * * *", task=blocking)],
            timezone_source=FakeTimezoneSource("UTC"),
        )
        results = {}
        worker = threading.Thread(target=lambda: results.update(first=scheduler.run_now("minute")))
        worker.start()
        started.wait(5)

        second = scheduler.run_now("minute")
        release.set()
        worker.join(5)

        assert second["skipped"] is True
        assert results["first"] == {"success": True}
        assert len(blocking.calls) == 1
