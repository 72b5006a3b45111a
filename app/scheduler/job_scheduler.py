import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config.settings import settings
from app.db.session import SessionLocal
from app.services.notifications.time_provider import TimeProvider, TimezoneSource
from app.services.settings_service import SettingsService
from app.utils.context import new_job_request_id
from app.utils.errors import NotFoundError
from app.utils.logging import get_logger

logger = get_logger()

NOTIFICATION_DISPATCHER = "notification-dispatcher"
FAILED_NOTIFICATION_RETRIER = "failed-notification-retrier"
EVENT_EXPIRATION = "event-expiration"


@dataclass(frozen=True)
class JobDefinition:
    name: str
    cron: str
    # Celery task (or anything exposing ``apply(kwargs=...)``)
    task: Any
    description: str = ""


class DatabaseTimezoneSource:
    """Reads the configured timezone with a short-lived session per lookup"""

    def get_timezone(self) -> str:
        with SessionLocal() as db_session:
            return SettingsService(db_session).get_timezone()


def default_job_definitions() -> List[JobDefinition]:
    from app.tasks import (
        notification_dispatcher_task,
        failed_notification_retrier_task,
        event_expiration_task,
    )

    return [
        JobDefinition(
            name=NOTIFICATION_DISPATCHER,
            cron=settings.NOTIFICATION_CRON,
            task=notification_dispatcher_task,
            description="Send reminders due at the current minute",
        ),
        JobDefinition(
            name=FAILED_NOTIFICATION_RETRIER,
            cron=settings.RETRY_CRON,
            task=failed_notification_retrier_task,
            description="Resend today's failed reminders below the retry ceiling",
        ),
        JobDefinition(
            name=EVENT_EXPIRATION,
            cron=settings.EXPIRE_CRON,
            task=event_expiration_task,
            description="Expire active events past their target date",
        ),
    ]


class JobScheduler:
    """
    Registers the periodic jobs as cron triggers in the configured timezone.

    There is at most one registered trigger per job name. Cron expressions
    are evaluated in the timezone read at registration time, so a timezone
    change only takes effect after ``restart_all``. Runs of the same job
    never overlap, whether fired by the trigger or by ``run_now``.
    """

    def __init__(
        self,
        definitions: Optional[List[JobDefinition]] = None,
        timezone_source: Optional[TimezoneSource] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.definitions: Dict[str, JobDefinition] = {
            definition.name: definition
            for definition in (
                definitions if definitions is not None else default_job_definitions()
            )
        }
        self.time_provider = TimeProvider(timezone_source or DatabaseTimezoneSource())
        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 30}
        )
        self._handles: Dict[str, Job] = {}
        self._run_locks: Dict[str, threading.Lock] = {
            name: threading.Lock() for name in self.definitions
        }

    def _get_definition(self, name: str) -> JobDefinition:
        definition = self.definitions.get(name)
        if definition is None:
            raise NotFoundError(f"Unknown job: {name}", "JOB_NOT_FOUND")
        return definition

    def _ensure_running(self):
        if not self.scheduler.running:
            self.scheduler.start()

    def is_running(self, name: str) -> bool:
        return name in self._handles

    def start(self, name: str) -> bool:
        """
        (Re)register a job's cron trigger.

        Returns:
            False when the cron expression is invalid; the job then stays stopped
        """
        definition = self._get_definition(name)
        self.stop(name)

        zone = self.time_provider.resolve_zone()
        try:
            trigger = CronTrigger.from_crontab(definition.cron, timezone=zone)
        except ValueError as e:
            logger.error(f"Invalid cron expression {definition.cron!r} for job {name}: {e}")
            return False

        self._ensure_running()
        self._handles[name] = self.scheduler.add_job(
            self._run_job,
            trigger=trigger,
            args=[name],
            id=name,
            name=name,
            replace_existing=True,
        )
        logger.info(f"Scheduled job {name} with cron '{definition.cron}' in {zone.key}")
        return True

    def stop(self, name: str) -> None:
        self._get_definition(name)
        handle = self._handles.pop(name, None)
        if handle is None:
            return

        if self.scheduler.get_job(name) is not None:
            self.scheduler.remove_job(name)
        logger.info(f"Stopped job {name}")

    def start_all(self) -> Dict[str, bool]:
        return {name: self.start(name) for name in self.definitions}

    def stop_all(self) -> None:
        for name in list(self._handles):
            self.stop(name)

    def restart_all(self) -> Dict[str, bool]:
        """Re-register every job, picking up the current timezone"""
        self.stop_all()
        started = self.start_all()
        logger.info(f"Restarted jobs in timezone {self.time_provider.resolve_zone().key}")
        return started

    def run_now(self, name: str) -> Dict[str, Any]:
        """Run a job synchronously in the calling thread"""
        self._get_definition(name)
        return self._run_job(name)

    def list_jobs(self) -> List[Dict[str, Any]]:
        zone = self.time_provider.resolve_zone()
        jobs = []
        for name, definition in self.definitions.items():
            handle = self.scheduler.get_job(name) if name in self._handles else None
            jobs.append(
                {
                    "name": name,
                    "cron": definition.cron,
                    "timezone": str(handle.trigger.timezone) if handle else zone.key,
                    "running": handle is not None,
                    "next_run_time": handle.next_run_time if handle else None,
                }
            )
        return jobs

    def shutdown(self) -> None:
        self.stop_all()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Job scheduler shut down")

    def _run_job(self, name: str) -> Dict[str, Any]:
        definition = self.definitions[name]
        request_id = new_job_request_id(name)
        job_logger = logger.bind(request_id=request_id)

        lock = self._run_locks.setdefault(name, threading.Lock())
        if not lock.acquire(blocking=False):
            job_logger.warning(f"Job {name} is already running, skipping this run")
            return {"success": False, "skipped": True, "request_id": request_id}

        try:
            outcome = definition.task.apply(kwargs={"request_id": request_id})
            if not outcome.successful():
                job_logger.error(f"Job {name} raised: {outcome.result!r}")
                return {
                    "success": False,
                    "error": str(outcome.result),
                    "request_id": request_id,
                }

            result = outcome.result or {}
            job_logger.debug(f"Job {name} finished: {result}")
            return result
        except Exception as e:
            job_logger.exception(f"Job {name} could not be executed: {e}")
            return {"success": False, "error": str(e), "request_id": request_id}
        finally:
            lock.release()
