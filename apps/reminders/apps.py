from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class RemindersConfig(AppConfig):
    """
    Intake reminder pipeline

    Fetches upcoming Healthie appointments, messages the provider when a
    patient has not completed intake forms, and keeps the reminder ledger.
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.reminders'
    verbose_name = _('Intake Reminders')
