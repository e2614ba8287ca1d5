"""Overriding settings for the production environment."""

from server.settings.components import config

SECRET_KEY = config('DJANGO_SECRET_KEY')

DEBUG = False

ALLOWED_HOSTS = [
    config('DOMAIN_NAME'),
]

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
