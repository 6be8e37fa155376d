"""
Reminder ledger model.

One row per reminder attempt (SENT or FAILED). Rows are append-only:
they are created once by the pipeline or the failure recorder and never
updated or deleted.
"""

import uuid
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ImmutableRecordError(Exception):
    """Raised when code tries to change or remove a ledger row"""
    pass


class ReminderRecordQuerySet(models.QuerySet):
    """Bulk writes are refused the same way instance writes are"""

    def update(self, **kwargs):
        raise ImmutableRecordError("Reminder records cannot be updated")

    def delete(self):
        raise ImmutableRecordError("Reminder records cannot be deleted")


class ReminderRecord(models.Model):

    STATUS_SENT = 'SENT'
    STATUS_FAILED = 'FAILED'
    STATUS_CHOICES = [(STATUS_SENT, _('Sent')), (STATUS_FAILED, _('Failed')), ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, verbose_name=_('ID'))
    appointment_id = models.CharField(max_length=64, verbose_name=_('Appointment ID'), help_text=_('Healthie appointment ID'))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, verbose_name=_('Status'))
    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Created At'))

    # Appointment snapshot
    appointment_date = models.DateTimeField(blank=True, null=True, verbose_name=_('Appointment Date'))
    patient_name = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Patient Name'))

    # SENT only
    conversation_id = models.CharField(max_length=64, blank=True, null=True, verbose_name=_('Conversation ID'), help_text=_('Healthie conversation created for the provider'))
    reminder_note = models.TextField(blank=True, default='', verbose_name=_('Reminder Note'), help_text=_('Text sent to the provider'))

    # FAILED only
    error = models.TextField(blank=True, default='', verbose_name=_('Error'), help_text=_('Why the provider message could not be sent'))

    objects = ReminderRecordQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reminder Record')
        verbose_name_plural = _('Reminder Records')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['appointment_id', 'created_at'], name='reminder_by_appointment'),
            models.Index(fields=['status', '-created_at'], name='reminder_by_status'),
            models.Index(fields=['patient_name', 'appointment_date'], name='reminder_by_patient'),
            models.Index(fields=['conversation_id'], name='reminder_by_conversation'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['appointment_id'],
                condition=Q(status='SENT'),
                name='unique_sent_reminder_per_appointment',
            ),
        ]

    def __str__(self):
        return f"{self.status} - appointment {self.appointment_id}"

    def is_sent(self):
        return self.status == self.STATUS_SENT

    def is_failed(self):
        return self.status == self.STATUS_FAILED

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"Reminder record {self.pk} is immutable")
        # Always INSERT: a UUID pk would otherwise make Django try an UPDATE first
        kwargs['force_insert'] = True
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"Reminder record {self.pk} cannot be deleted")
