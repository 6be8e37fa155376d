"""
Appointment data as returned by Healthie, normalized for one pipeline pass.

Nothing here is persisted: appointments are fetched fresh on every run.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class Provider:
    id: str
    full_name: str
    # Healthie user id that the conversation is shared with
    messaging_channel_id: Optional[str] = None


@dataclass(frozen=True)
class Patient:
    id: str
    full_name: str
    has_completed_intake_forms: bool = False


@dataclass(frozen=True)
class AppointmentType:
    id: str
    name: str


@dataclass(frozen=True)
class Appointment:
    id: str
    date: str  # raw value from Healthie, carried into failure events
    scheduled_at: Optional[datetime]
    contact_type: str = ''
    provider: Optional[Provider] = None
    patient: Optional[Patient] = None
    appointment_type: Optional[AppointmentType] = None
    length: Optional[int] = None
    location: str = ''

    @property
    def patient_name(self) -> str:
        return self.patient.full_name if self.patient else ''

    def needs_intake_reminder(self) -> bool:
        return self.patient is not None and not self.patient.has_completed_intake_forms

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Appointment':
        """Build an Appointment from one item of the Healthie `appointments` query"""
        provider_data = data.get('provider') or {}
        user_data = data.get('user')
        type_data = data.get('appointment_type')

        provider = None
        if provider_data:
            provider = Provider(
                id=str(provider_data.get('id', '')),
                full_name=provider_data.get('full_name') or '',
                messaging_channel_id=provider_data.get('doc_share_id'),
            )

        patient = None
        if user_data:
            patient = Patient(
                id=str(user_data.get('id', '')),
                full_name=user_data.get('full_name') or '',
                has_completed_intake_forms=bool(user_data.get('has_completed_intake_forms')),
            )

        appointment_type = None
        if type_data:
            appointment_type = AppointmentType(id=str(type_data.get('id', '')), name=type_data.get('name') or '')

        raw_date = data.get('date') or ''
        return cls(
            id=str(data['id']),
            date=raw_date,
            scheduled_at=parse_appointment_date(raw_date),
            contact_type=data.get('contact_type') or '',
            provider=provider,
            patient=patient,
            appointment_type=appointment_type,
            length=data.get('length'),
            location=data.get('location') or '',
        )


def parse_appointment_date(value: str) -> Optional[datetime]:
    """
    Parse a Healthie date such as '2024-03-01 09:30:00 -0500'.

    Naive values are taken to be in the clinic time zone.
    Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.warning(f"Unparseable appointment date: {value!r}")
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def filter_within_window(appointments: List[Appointment], now: Optional[datetime] = None,
                         window: timedelta = DEFAULT_WINDOW) -> List[Appointment]:
    """
    Keep appointments scheduled at or before now + window.

    The upper bound is inclusive and there is no lower bound. Appointments
    whose date could not be parsed are dropped.
    """
    now = now or timezone.now()
    horizon = now + window
    return [
        appointment for appointment in appointments
        if appointment.scheduled_at is not None and appointment.scheduled_at <= horizon
    ]
