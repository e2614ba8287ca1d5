"""Main URL mapping configuration file.

The item store exposes no HTTP endpoints of its own; only the admin
is routed here.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
