"""Test settings.

In-memory database, eager Celery, local-memory email and an emulated
Stripe gateway, so the suite never touches the network.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.InMemoryStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STRIPE_SECRET_KEY = ''
STRIPE_WEBHOOK_SECRET = 'whsec_test_secret'

ENCRYPTION_KEY = 'test-encryption-key'

LOGGING['loggers']['apps']['level'] = 'WARNING'
