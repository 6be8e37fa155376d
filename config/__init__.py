# ==============================================================================
# INTAKE REMINDERS - CONFIG PACKAGE INITIALIZER
# ==============================================================================

# Import Celery app to ensure it's loaded when Django starts
# so that shared tasks bind to it and the beat schedule is registered
from .celery import app as celery_app

# Make celery_app available at package level
# This allows importing as: from config import celery_app
__all__ = ('celery_app',)
