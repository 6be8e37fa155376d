"""
Errors raised by the intake reminder pipeline.

Run-fatal:
- SourceUnavailable: the appointment list could not be fetched

Per-appointment (counted, the run continues):
- LedgerUnavailable: the ledger could not be read or written
- DuplicateReminder: the ledger already holds a SENT record for the appointment
- NotifyFailed: the provider message was not created (failure event already routed)
"""


class ReminderError(Exception):
    """Base class for every pipeline error"""
    pass


class SourceUnavailable(ReminderError):
    pass


class LedgerUnavailable(ReminderError):
    pass


class DuplicateReminder(LedgerUnavailable):
    """The conditional SENT insert lost to an existing SENT record"""

    def __init__(self, appointment_id):
        super().__init__(f"SENT reminder already recorded for appointment {appointment_id}")
        self.appointment_id = appointment_id


class NotifyFailed(ReminderError):

    def __init__(self, appointment_id, error):
        super().__init__(f"Failed to send provider message for appointment {appointment_id}: {error}")
        self.appointment_id = appointment_id
        self.error = error
