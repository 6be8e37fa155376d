# Celery runs the intake reminder pipeline in the background
#
# - Periodic appointment check (beat, every REMINDER_CHECK_INTERVAL_MINUTES)
# - Failure recorder consuming the reminder-failures queue
#
# The beat schedule and task routes live in settings.py
# (CELERY_BEAT_SCHEDULE, CELERY_TASK_ROUTES) next to the values they use.
#
# Start worker: celery -A config worker -l info -Q celery,reminder-failures
# Start beat: celery -A config beat -l info
# ==============================================================================

import os
from celery import Celery

# Set the default Django settings module for Celery
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# 'intake_reminders' is the app name (appears in logs and monitoring)
app = Celery('intake_reminders')

# All settings prefixed with 'CELERY_' will be used
# Example: CELERY_BROKER_URL, CELERY_BEAT_SCHEDULE
app.config_from_object('django.conf:settings', namespace='CELERY')

# Looks for tasks.py file in each app (apps/reminders/tasks.py)
app.autodiscover_tasks()
