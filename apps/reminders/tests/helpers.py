"""Builders shared by the reminder tests"""

from datetime import timedelta
from unittest.mock import MagicMock

from django.utils import timezone

from apps.reminders.appointments import Appointment
from apps.reminders.failures import FailureRouter
from apps.reminders.healthie_api import HealthieAPIClient
from apps.reminders.ledger import Ledger
from apps.reminders.pipeline import ReminderContext


def api_appointment(appointment_id, starts_in=timedelta(hours=2), completed=False, now=None,
                    patient_name='Jane Doe', with_user=True, doc_share_id='prov-share-1'):
    """One item of the Healthie `appointments` query"""
    now = now or timezone.now()
    data = {
        'id': appointment_id,
        'date': (now + starts_in).isoformat(),
        'contact_type': 'Video Call',
        'length': 60,
        'location': '',
        'provider': {
            'id': 'prov-1',
            'full_name': 'Dr. Sam Lee',
            'doc_share_id': doc_share_id,
        },
        'appointment_type': {'id': 'type-1', 'name': 'Initial Consult'},
        'user': None,
    }
    if with_user:
        data['user'] = {
            'id': f'patient-{appointment_id}',
            'full_name': patient_name,
            'has_completed_intake_forms': completed,
        }
    return data


def make_appointment(appointment_id, **kwargs):
    return Appointment.from_api(api_appointment(appointment_id, **kwargs))


def make_context(appointments=(), conversation_id='conv-1', send_error=None):
    """
    ReminderContext with a real Ledger and mocked Healthie client/router.

    `send_error` makes create_conversation fail with that message.
    """
    client = MagicMock(spec=HealthieAPIClient)
    client.fetch_upcoming_appointments.return_value = list(appointments)
    if send_error:
        client.create_conversation.return_value = (False, None, send_error)
    else:
        client.create_conversation.return_value = (True, conversation_id, None)

    router = MagicMock(spec=FailureRouter)
    return ReminderContext(client=client, ledger=Ledger(), router=router)
