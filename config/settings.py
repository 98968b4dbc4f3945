"""
Django settings for the stars ledger service.

Values come from the environment (or a local .env file) through
python-decouple. Without DB_HOST the project runs on a local SQLite file,
which is also what the test suite uses.
"""
from pathlib import Path

from celery.schedules import crontab
from decouple import config, Csv

from .logging import LOGGING  # noqa: F401

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('DJANGO_SECRET_KEY', default='django-insecure-local-development-key')
DEBUG = config('DJANGO_DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('DJANGO_ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'graphene_django',
    'users',
    'telegram_verification',
    'devices',
    'rewards',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'config.middleware.CloseDbConnectionsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

DB_HOST = config('DB_HOST', default='')
if DB_HOST:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('DB_NAME', default='stars'),
            'USER': config('DB_USER', default='stars'),
            'PASSWORD': config('DB_PASSWORD', default=''),
            'HOST': DB_HOST,
            'PORT': config('DB_PORT', default='5432'),
            'CONN_MAX_AGE': config('DB_CONN_MAX_AGE', default=60, cast=int),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = []

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

GRAPHENE = {
    'SCHEMA': 'config.schema.schema',
}

# Telegram
TELEGRAM_BOT_TOKEN = config('TELEGRAM_BOT_TOKEN', default='')
TELEGRAM_GATING_GROUP_ID = config('TELEGRAM_GATING_GROUP_ID', default='')
TELEGRAM_GROUP_LINK = config('TELEGRAM_GROUP_LINK', default='')
TELEGRAM_API_TIMEOUT = config('TELEGRAM_API_TIMEOUT', default=10, cast=int)
# Sent to setWebhook as secret_token; the webhook rejects updates without it
TELEGRAM_WEBHOOK_SECRET = config('TELEGRAM_WEBHOOK_SECRET', default='')

# Session tokens and OTP hashing share one HMAC secret
AUTH_SECRET = config('AUTH_SECRET', default=SECRET_KEY)
SESSION_TOKEN_SECRET = AUTH_SECRET
OTP_HASH_KEY = AUTH_SECRET
# Unset means tokens never expire; set a number of seconds to enforce max-age.
SESSION_TOKEN_MAX_AGE_SECONDS = config('SESSION_TOKEN_MAX_AGE_SECONDS', default=None, cast=lambda v: int(v) if v else None)

# OTP
OTP_TTL_SECONDS = 180
OTP_MAX_ATTEMPTS = 3
OTP_CODE_LENGTH = 6

# Stars ledger and quota
PHONE_DEFAULT_COUNTRY_PREFIX = config('PHONE_DEFAULT_COUNTRY_PREFIX', default='60')
STARS_DAILY_LIMIT = 5
STARS_NEW_DEVICE_STARS = 1
STARS_WELCOME_BONUS = 30
STARS_REFERRAL_REWARD = 1
STARS_QUOTA_TIMEZONE = config('STARS_QUOTA_TIMEZONE', default='Asia/Kuala_Lumpur')

# Celery
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default=None)
CELERY_TASK_ALWAYS_EAGER = config('CELERY_TASK_ALWAYS_EAGER', default=False, cast=bool)
CELERY_TASK_IGNORE_RESULT = True
CELERY_TIMEZONE = 'UTC'
CELERY_BEAT_SCHEDULE = {
    'cleanup-expired-otp-challenges': {
        'task': 'telegram_verification.cleanup_expired_otp_challenges',
        'schedule': crontab(minute='*/10'),
    },
}
