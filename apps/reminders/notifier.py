"""
Provider notification for incomplete intake forms.

The notifier creates a Healthie conversation shared with the provider.
It never retries: on failure it routes a FailureEvent and raises
NotifyFailed so the run counts the appointment as an error.
"""

import logging

from django.utils import timezone
from kombu.exceptions import KombuError

from .appointments import Appointment
from .exceptions import NotifyFailed
from .failures import FailureEvent, FailureRouter
from .healthie_api import HealthieAPIClient

logger = logging.getLogger(__name__)


def format_appointment_time(appointment: Appointment) -> str:
    """Appointment time in the clinic time zone, e.g. 'Mar 01, 2024 09:30 AM'"""
    if appointment.scheduled_at is None:
        return appointment.date
    return timezone.localtime(appointment.scheduled_at).strftime('%b %d, %Y %I:%M %p')


def build_reminder_note(appointment: Appointment) -> str:
    return (
        f"Alert: Patient {appointment.patient_name} has not completed their intake forms "
        f"for the upcoming appointment on {format_appointment_time(appointment)}."
    )


def conversation_name(appointment: Appointment) -> str:
    return f"{appointment.patient_name} - Intake Reminder"


class Notifier:

    def __init__(self, client: HealthieAPIClient, router: FailureRouter):
        self.client = client
        self.router = router

    def notify(self, appointment: Appointment, note: str) -> str:
        """
        Send `note` to the appointment's provider.

        Returns the created conversation id. On failure the FailureEvent is
        published first, then NotifyFailed is raised.
        """
        provider = appointment.provider
        if provider is None or not provider.messaging_channel_id:
            self._fail(appointment, "Provider has no messaging id")

        logger.info(f"Sending intake reminder for appointment {appointment.id} to provider {provider.id}")

        try:
            success, conversation_id, error = self.client.create_conversation(
                provider_user_id=provider.messaging_channel_id,
                name=conversation_name(appointment),
                note=note,
            )
        except Exception as e:
            logger.exception(f"Unexpected error sending reminder for appointment {appointment.id}")
            self._fail(appointment, str(e) or e.__class__.__name__)

        if not success:
            self._fail(appointment, error or "Unknown error")

        logger.info(f"Reminder for appointment {appointment.id} sent in conversation {conversation_id}")
        return conversation_id

    def _fail(self, appointment: Appointment, error: str):
        logger.error(f"Provider message for appointment {appointment.id} failed: {error}")
        try:
            self.router.publish(FailureEvent.for_appointment(appointment, error))
        except KombuError:
            # Broker down: the failure is only in the logs now
            logger.exception(f"Could not route failure for appointment {appointment.id}")
        raise NotifyFailed(appointment.id, error)
