import logging

from celery import Task, shared_task

from .appointments import parse_appointment_date
from .exceptions import LedgerUnavailable
from .failures import FailureEvent
from .ledger import Ledger
from .pipeline import ReminderContext, run_reminder_check

logger = logging.getLogger(__name__)


class ReminderTask(Task):
    """
    Celery instantiates each task once per worker process, so the context
    (HTTP session, ledger, router) built here is shared by every run in it.
    """
    _context = None

    @property
    def context(self) -> ReminderContext:
        if self._context is None:
            self._context = ReminderContext.from_settings(app=self.app)
        return self._context


@shared_task(base=ReminderTask, bind=True)
def check_appointments(self):
    """
    Periodic task: one pass of the intake reminder pipeline.
    Scheduled in config/celery.py
    """
    logger.info("Checking upcoming appointments for incomplete intake forms...")
    summary = run_reminder_check(self.context)
    return summary.to_dict()


@shared_task(
    bind=True,
    acks_late=True,
    reject_on_worker_lost=True,
    autoretry_for=(LedgerUnavailable,),
    retry_backoff=True,
    retry_backoff_max=600,
    max_retries=None,
)
def record_failed_reminder(self, message):
    """
    Consume one failure event and append a FAILED ledger record.

    Delivery is at-least-once, so the same event may arrive twice; each
    delivery writes its own row. A ledger fault is retried by Celery.
    """
    try:
        event = FailureEvent.from_message(message)
    except ValueError:
        logger.error(f"Dropping malformed failure event: {message!r}")
        return None

    record = Ledger().record_failed(
        appointment_id=event.appointment_id,
        error=event.error,
        patient_name=event.patient_name,
        appointment_date=parse_appointment_date(event.appointment_date),
    )
    return str(record.id)
