"""
Read/write access to the reminder ledger (ReminderRecord table).

Database faults are translated to LedgerUnavailable so the pipeline can
count them per appointment instead of aborting the run.
"""

import logging
from datetime import datetime
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction

from .appointments import Appointment
from .exceptions import DuplicateReminder, LedgerUnavailable
from .models import ReminderRecord

logger = logging.getLogger(__name__)


class Ledger:

    def has_reminder(self, appointment_id: str) -> bool:
        """True when any record (SENT or FAILED) exists for the appointment"""
        try:
            return ReminderRecord.objects.filter(appointment_id=appointment_id).exists()
        except DatabaseError as e:
            raise LedgerUnavailable(f"Could not read ledger for appointment {appointment_id}: {e}") from e

    def record_sent(self, appointment: Appointment, conversation_id: str, reminder_note: str) -> ReminderRecord:
        """
        Insert the SENT record for an appointment.

        The insert is conditional: the unique constraint on SENT rows
        rejects a second one for the same appointment, which surfaces as
        DuplicateReminder.
        """
        try:
            with transaction.atomic():
                record = ReminderRecord.objects.create(
                    appointment_id=appointment.id,
                    status=ReminderRecord.STATUS_SENT,
                    appointment_date=appointment.scheduled_at,
                    patient_name=appointment.patient_name,
                    conversation_id=conversation_id,
                    reminder_note=reminder_note,
                )
        except IntegrityError as e:
            raise DuplicateReminder(appointment.id) from e
        except DatabaseError as e:
            raise LedgerUnavailable(f"Could not record reminder for appointment {appointment.id}: {e}") from e

        logger.info(f"Recorded SENT reminder {record.id} for appointment {appointment.id}")
        return record

    def record_failed(self, appointment_id: str, error: str, patient_name: str = '',
                      appointment_date: Optional[datetime] = None) -> ReminderRecord:
        """Insert a FAILED record. Every call creates a new row."""
        try:
            record = ReminderRecord.objects.create(
                appointment_id=appointment_id,
                status=ReminderRecord.STATUS_FAILED,
                appointment_date=appointment_date,
                patient_name=patient_name,
                error=error,
            )
        except DatabaseError as e:
            raise LedgerUnavailable(f"Could not record failure for appointment {appointment_id}: {e}") from e

        logger.info(f"Recorded FAILED reminder {record.id} for appointment {appointment_id}")
        return record

    def recent(self, status: str, limit: int = 50) -> List[ReminderRecord]:
        """Most recent records of one status, newest first"""
        try:
            return list(ReminderRecord.objects.filter(status=status).order_by('-created_at')[:limit])
        except DatabaseError as e:
            raise LedgerUnavailable(f"Could not list {status} reminders: {e}") from e
