"""Overriding settings for the test environment."""

from server.settings.components import config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='django-insecure-test-key')

DEBUG = False

ALLOWED_HOSTS = ['testserver']

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]
