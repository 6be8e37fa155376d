"""
One pass of the intake reminder pipeline.

fetch -> window filter -> for each appointment:
    no patient data          -> skipped
    ledger has a record      -> skipped
    intake forms completed   -> skipped
    otherwise                -> notify provider + record SENT

Each appointment yields an AppointmentResult; the results fold into the
RunSummary returned to the caller. A failing appointment never stops the
batch. Only SourceUnavailable aborts the run.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, Optional

from django.conf import settings

from .appointments import DEFAULT_WINDOW, Appointment, filter_within_window
from .exceptions import ReminderError
from .failures import FailureRouter
from .healthie_api import HealthieAPIClient
from .ledger import Ledger
from .notifier import Notifier, build_reminder_note

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SENT = 'sent'
    SKIPPED = 'skipped'
    ERROR = 'error'


@dataclass(frozen=True)
class AppointmentResult:
    appointment_id: str
    outcome: Outcome
    reason: str = ''


@dataclass(frozen=True)
class RunSummary:
    total: int = 0
    processed: int = 0
    reminders_sent: int = 0
    skipped: int = 0
    errors: int = 0

    @classmethod
    def from_results(cls, results: Iterable[AppointmentResult]) -> 'RunSummary':
        counts = Counter(result.outcome for result in results)
        processed = sum(counts.values())
        return cls(
            total=processed,
            processed=processed,
            reminders_sent=counts[Outcome.SENT],
            skipped=counts[Outcome.SKIPPED],
            errors=counts[Outcome.ERROR],
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'processed': self.processed,
            'remindersSent': self.reminders_sent,
            'skipped': self.skipped,
            'errors': self.errors,
        }


@dataclass
class ReminderContext:
    """Collaborators of the pipeline, built once per process"""
    client: HealthieAPIClient
    ledger: Ledger
    router: FailureRouter
    window: timedelta = DEFAULT_WINDOW
    notifier: Notifier = field(init=False)

    def __post_init__(self):
        self.notifier = Notifier(self.client, self.router)

    @classmethod
    def from_settings(cls, app=None) -> 'ReminderContext':
        if app is None:
            from config import celery_app as app
        return cls(
            client=HealthieAPIClient.from_settings(),
            ledger=Ledger(),
            router=FailureRouter(app, queue=settings.REMINDER_FAILURE_QUEUE),
            window=timedelta(hours=settings.REMINDER_WINDOW_HOURS),
        )


def process_appointment(context: ReminderContext, appointment: Appointment) -> AppointmentResult:
    if appointment.patient is None:
        logger.info(f"Skipping appointment {appointment.id} - no patient data")
        return AppointmentResult(appointment.id, Outcome.SKIPPED, 'no patient data')

    try:
        if context.ledger.has_reminder(appointment.id):
            logger.info(f"Reminder already sent for appointment {appointment.id}")
            return AppointmentResult(appointment.id, Outcome.SKIPPED, 'already reminded')

        if not appointment.needs_intake_reminder():
            logger.info(f"Skipping appointment {appointment.id} - intake forms completed")
            return AppointmentResult(appointment.id, Outcome.SKIPPED, 'intake forms completed')

        logger.info(f"Sending reminder for appointment {appointment.id} - intake forms not completed")
        note = build_reminder_note(appointment)
        conversation_id = context.notifier.notify(appointment, note)
        context.ledger.record_sent(appointment, conversation_id, note)

    except ReminderError as e:
        logger.error(f"Error processing appointment {appointment.id}: {e}")
        return AppointmentResult(appointment.id, Outcome.ERROR, str(e))

    except Exception as e:
        logger.error(f"Unexpected error processing appointment {appointment.id}: {e}", exc_info=True)
        return AppointmentResult(appointment.id, Outcome.ERROR, str(e))

    return AppointmentResult(appointment.id, Outcome.SENT)


def run_reminder_check(context: ReminderContext, now: Optional[datetime] = None) -> RunSummary:
    """
    Run one pipeline pass and return its summary.

    Raises SourceUnavailable when the appointment list cannot be fetched;
    nothing is processed in that case.
    """
    appointments = context.client.fetch_upcoming_appointments()
    upcoming = filter_within_window(appointments, now=now, window=context.window)
    logger.info(f"Found {len(upcoming)} appointments in next {context.window}")

    summary = RunSummary.from_results(process_appointment(context, appointment) for appointment in upcoming)
    logger.info(f"Reminder check finished: {summary.to_dict()}")
    return summary
