"""Overriding settings for the development environment."""

from server.settings.components import config

SECRET_KEY = config(
    'DJANGO_SECRET_KEY',
    default='django-insecure-development-only-key',
)

DEBUG = True

ALLOWED_HOSTS = [
    config('DOMAIN_NAME', default='localhost'),
    'localhost',
    '127.0.0.1',
]
