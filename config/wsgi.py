# WSGI configuration for production deployment

# Serves the two reminder endpoints:
# - POST /api/check-appointments/  (on-demand pipeline run)
# - GET  /api/reminders/           (recent ledger activity)
# ==============================================================================

import os
from django.core.wsgi import get_wsgi_application

# Points to config/settings.py
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()


# GUNICORN
# ========
# Run: gunicorn config.wsgi:application --bind 0.0.0.0:8000 --workers 2
#
# The Celery worker and beat run as separate processes:
#   celery -A config worker -l info -Q celery,reminder-failures
#   celery -A config beat -l info
