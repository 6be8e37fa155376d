import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ReminderRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('appointment_id', models.CharField(help_text='Healthie appointment ID', max_length=64, verbose_name='Appointment ID')),
                ('status', models.CharField(choices=[('SENT', 'Sent'), ('FAILED', 'Failed')], max_length=10, verbose_name='Status')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Created At')),
                ('appointment_date', models.DateTimeField(blank=True, null=True, verbose_name='Appointment Date')),
                ('patient_name', models.CharField(blank=True, default='', max_length=255, verbose_name='Patient Name')),
                ('conversation_id', models.CharField(blank=True, help_text='Healthie conversation created for the provider', max_length=64, null=True, verbose_name='Conversation ID')),
                ('reminder_note', models.TextField(blank=True, default='', help_text='Text sent to the provider', verbose_name='Reminder Note')),
                ('error', models.TextField(blank=True, default='', help_text='Why the provider message could not be sent', verbose_name='Error')),
            ],
            options={
                'verbose_name': 'Reminder Record',
                'verbose_name_plural': 'Reminder Records',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['appointment_id', 'created_at'], name='reminder_by_appointment'),
                    models.Index(fields=['status', '-created_at'], name='reminder_by_status'),
                    models.Index(fields=['patient_name', 'appointment_date'], name='reminder_by_patient'),
                    models.Index(fields=['conversation_id'], name='reminder_by_conversation'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'SENT')), fields=('appointment_id',), name='unique_sent_reminder_per_appointment'),
                ],
            },
        ),
    ]
