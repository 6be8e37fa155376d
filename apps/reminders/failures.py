"""
Failure routing for provider notifications.

When a provider message cannot be sent, the notifier publishes a
FailureEvent on a dedicated Celery queue. The failure recorder task
(tasks.record_failed_reminder) consumes it and writes a FAILED ledger row,
so a ledger outage at send time does not lose the failure.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

from django.utils import timezone

logger = logging.getLogger(__name__)

PROVIDER_MESSAGE_FAILED = 'PROVIDER_MESSAGE_FAILED'
RECORDER_TASK_NAME = 'apps.reminders.tasks.record_failed_reminder'

# Wire names of the queued message
_MESSAGE_FIELDS = {
    'type': 'type',
    'appointment_id': 'appointmentId',
    'error': 'error',
    'timestamp': 'timestamp',
    'patient_name': 'patientName',
    'appointment_date': 'appointmentDate',
}


@dataclass(frozen=True)
class FailureEvent:
    appointment_id: str
    error: str
    timestamp: str
    patient_name: str = ''
    appointment_date: str = ''
    type: str = PROVIDER_MESSAGE_FAILED

    @classmethod
    def for_appointment(cls, appointment, error: str) -> 'FailureEvent':
        return cls(
            appointment_id=appointment.id,
            error=error,
            timestamp=timezone.now().isoformat(),
            patient_name=appointment.patient_name,
            appointment_date=appointment.date,
        )

    def to_message(self) -> Dict[str, Any]:
        return {_MESSAGE_FIELDS[key]: value for key, value in asdict(self).items()}

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> 'FailureEvent':
        """Raises ValueError when the message has no appointmentId"""
        if not isinstance(message, dict) or not message.get('appointmentId'):
            raise ValueError(f"Failure event without appointmentId: {message!r}")
        return cls(
            appointment_id=str(message['appointmentId']),
            error=message.get('error') or '',
            timestamp=message.get('timestamp') or '',
            patient_name=message.get('patientName') or '',
            appointment_date=message.get('appointmentDate') or '',
            type=message.get('type') or PROVIDER_MESSAGE_FAILED,
        )


class FailureRouter:
    """Publishes failure events to the failure queue"""

    def __init__(self, app, queue: str, task_name: str = RECORDER_TASK_NAME):
        self.app = app
        self.queue = queue
        self.task_name = task_name

    def publish(self, event: FailureEvent) -> None:
        logger.info(f"Routing {event.type} for appointment {event.appointment_id} to {self.queue}")
        self.app.send_task(self.task_name, args=[event.to_message()], queue=self.queue)
