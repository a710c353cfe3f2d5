"""
Django settings for the payments project.

Credentials are read from the environment (or a local .env file) and are
never committed.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-payments-dev-only')

DEBUG = os.getenv('DEBUG', 'False') == 'True'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',

    # Third-party apps
    'rest_framework',

    # Local apps
    'payments',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'


# ==============================================================================
# PAYMENT GATEWAYS
# ==============================================================================

DEFAULT_PAYMENT_GATEWAY = os.getenv('DEFAULT_PAYMENT_GATEWAY', 'razorpay')

# Seconds to wait on each outbound provider call
PAYMENT_GATEWAY_TIMEOUT = int(os.getenv('PAYMENT_GATEWAY_TIMEOUT', '30'))

RAZORPAY_KEY_ID = os.getenv('RAZORPAY_KEY_ID', '')
RAZORPAY_KEY_SECRET = os.getenv('RAZORPAY_KEY_SECRET', '')
RAZORPAY_WEBHOOK_SECRET = os.getenv('RAZORPAY_WEBHOOK_SECRET', '')


# ==============================================================================
# LOGGING CONFIGURATION
# ==============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'payments': {
            'level': os.getenv('PAYMENTS_LOG_LEVEL', 'INFO'),
        },
    },
}
