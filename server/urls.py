"""Main URL mapping configuration file."""

from django.urls import include, path

urlpatterns = [
    path('api/mobile-uploader/', include('server.apps.uploader.urls')),
]
