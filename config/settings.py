from pathlib import Path
from decouple import config, Csv


# BASE DIRECTORY
# BASE_DIR points to the project root (where manage.py is)
BASE_DIR = Path(__file__).resolve().parent.parent


# SECURITY SETTINGS

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-CHANGE-THIS-IN-PRODUCTION')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=True, cast=bool)

# Format: 'domain.com,www.domain.com,api.domain.com'
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,0.0.0.0', cast=Csv())


# INSTALLED APPS

# The service has no user-facing pages, only the reminder pipeline
# and two JSON endpoints, so the contrib footprint is kept small
INSTALLED_APPS = [
    'django.contrib.contenttypes',  # Content types framework

    # Our custom apps
    'apps.reminders',  # Intake reminder pipeline
]


# MIDDLEWARE

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',  # Security enhancements
    'django.middleware.common.CommonMiddleware',  # Common utilities
    'django.middleware.csrf.CsrfViewMiddleware',  # CSRF protection
    'django.middleware.clickjacking.XFrameOptionsMiddleware',  # Clickjacking protection
]


# URL CONFIGURATION

ROOT_URLCONF = 'config.urls'

# WSGI application (used by Gunicorn, uWSGI, etc.)
WSGI_APPLICATION = 'config.wsgi.application'


# DATABASE

# The reminder ledger lives here.
# Local development and the test suite run on SQLite; production sets
# DB_ENGINE=django.db.backends.postgresql and the DB_* credentials
DB_ENGINE = config('DB_ENGINE', default='django.db.backends.sqlite3')

if DB_ENGINE == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default='intake_reminders'),
            'USER': config('DB_USER', default='reminders_user'),
            'PASSWORD': config('DB_PASSWORD', default='reminders_pass'),
            'HOST': config('DB_HOST', default='db'),  # 'db' is Docker service name
            'PORT': config('DB_PORT', default='5432'),

            # Keep connection open for 10 minutes
            'CONN_MAX_AGE': 600,

            'OPTIONS': {
                'connect_timeout': 10,  # Timeout if connection fails
            }
        }
    }


# INTERNATIONALIZATION

LANGUAGE_CODE = 'en-us'

# Clinic time zone, used to render appointment times in reminder notes
# and to interpret appointment dates that carry no offset
TIME_ZONE = config('TIME_ZONE', default='America/New_York')

USE_I18N = True

# All datetimes in database are stored in UTC
USE_TZ = True


# CELERY (Background Tasks)

# Celery broker URL (where tasks are queued)
CELERY_BROKER_URL = config('REDIS_URL', default='redis://redis:6379/0')

# Celery result backend (where results are stored)
CELERY_RESULT_BACKEND = config('REDIS_URL', default='redis://redis:6379/0')

# Celery task serialization format
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'

CELERY_TIMEZONE = TIME_ZONE

# Celery task time limit (5 minutes)
CELERY_TASK_TIME_LIMIT = 5 * 60

# Celery task soft time limit (4 minutes - gives 1 min for cleanup)
CELERY_TASK_SOFT_TIME_LIMIT = 4 * 60

# Unacknowledged failure events become visible again after this many seconds
# (redelivery is how a crashed consumer gets the event back)
CELERY_BROKER_TRANSPORT_OPTIONS = {
    'visibility_timeout': config('REMINDER_FAILURE_VISIBILITY_TIMEOUT', default=3600, cast=int),
}


# HEALTHIE (Scheduling / EHR API)

# GraphQL endpoint, e.g. https://api.gethealthie.com/graphql
HEALTHIE_API_URL = config('HEALTHIE_API_URL', default='https://staging-api.gethealthie.com/graphql')
HEALTHIE_API_KEY = config('HEALTHIE_API_KEY', default='')

# Healthie expects "Authorization: Basic <api key>"
HEALTHIE_AUTH_SCHEME = config('HEALTHIE_AUTH_SCHEME', default='Basic')

# Seconds before a request to Healthie is abandoned
HEALTHIE_TIMEOUT = config('HEALTHIE_TIMEOUT', default=30, cast=int)


# INTAKE REMINDERS

# Lookahead horizon: appointments up to now + this many hours are checked
REMINDER_WINDOW_HOURS = config('REMINDER_WINDOW_HOURS', default=24, cast=int)

# How often Celery beat runs the check
REMINDER_CHECK_INTERVAL_MINUTES = config('REMINDER_CHECK_INTERVAL_MINUTES', default=60, cast=int)

# Queue that carries failed provider notifications to the failure recorder
REMINDER_FAILURE_QUEUE = config('REMINDER_FAILURE_QUEUE', default='reminder-failures')

# Page size of the reporting endpoint (per status)
REMINDER_RECENT_LIMIT = config('REMINDER_RECENT_LIMIT', default=50, cast=int)

# Shared secret for the on-demand trigger (empty = no check)
REMINDER_TRIGGER_TOKEN = config('REMINDER_TRIGGER_TOKEN', default='')


# CELERY BEAT SCHEDULE AND ROUTES

# Beat scheduler reads this and triggers the check automatically
CELERY_BEAT_SCHEDULE = {
    'check-intake-reminders': {
        'task': 'apps.reminders.tasks.check_appointments',
        'schedule': REMINDER_CHECK_INTERVAL_MINUTES * 60,  # seconds
    },
}

# Failure events travel on their own queue so a backlog of them never
# delays the periodic check
CELERY_TASK_ROUTES = {
    'apps.reminders.tasks.record_failed_reminder': {
        'queue': REMINDER_FAILURE_QUEUE,
    },
}


# LOGGING

LOG_DIR = BASE_DIR / 'logs'
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,

    # Log formatters
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },

    # Log handlers (where to send logs)
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'reminders.log',
            'maxBytes': 1024 * 1024 * 10,  # 10 MB
            'backupCount': 5,
            'formatter': 'verbose',
        },
    },

    # Loggers
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': config('LOG_LEVEL', default='INFO'),
            'propagate': True,
        },
        'celery': {
            'handlers': ['console', 'file'],
            'level': config('LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'apps': {  # Our custom apps
            'handlers': ['console', 'file'],
            'level': 'DEBUG',
            'propagate': False,
        },
    },
}


# SECURITY SETTINGS (Production)

if not DEBUG:
    # HTTPS/SSL settings
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

    # Security headers
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'

    # HSTS (HTTP Strict Transport Security)
    SECURE_HSTS_SECONDS = 31536000  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True


# DEFAULT AUTO FIELD

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
