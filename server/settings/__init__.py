"""Main settings file.

This file processes all other settings files. Settings are split into
``components`` (shared by every environment) and ``environments``
(selected with the ``DJANGO_ENV`` variable).
"""

from os import environ

import django_stubs_ext
from split_settings.tools import include, optional

# Monkeypatching Django, so stubs will work for all generics,
# see: https://github.com/typeddjango/django-stubs/tree/master/ext
django_stubs_ext.monkeypatch()

# Managing environment via `DJANGO_ENV` variable,
# pytest sets `PYTEST_VERSION` for the duration of a test run:
environ.setdefault(
    'DJANGO_ENV',
    'test' if 'PYTEST_VERSION' in environ else 'development',
)
_ENV = environ['DJANGO_ENV']

_base_settings = (
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    # Select the right env:
    f'environments/{_ENV}.py',
    # Optionally override some settings:
    optional('environments/local.py'),
)

# Include settings:
include(*_base_settings)
