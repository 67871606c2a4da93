"""Django settings shared by every environment."""

from typing import Final

from server.settings.components import BASE_DIR, config

SECRET_KEY = config(
    'DJANGO_SECRET_KEY',
    default='django-insecure-mobile-uploader-dev-key',
)

DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

ALLOWED_HOSTS = config(
    'DJANGO_ALLOWED_HOSTS',
    cast=lambda hosts: [host.strip() for host in hosts.split(',') if host],
    default='localhost,127.0.0.1,testserver',
)

INSTALLED_APPS: Final = (
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',

    # Our apps:
    'server.apps.uploader',
)

MIDDLEWARE: Final = (
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
)

ROOT_URLCONF = 'server.urls'

WSGI_APPLICATION = 'server.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': config(
            'DJANGO_DATABASE_NAME',
            default=str(BASE_DIR.joinpath('db.sqlite3')),
        ),
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'

USE_I18N = False

USE_TZ = True

# Daily quotas roll over at midnight in this zone
TIME_ZONE = config('DJANGO_TIME_ZONE', default='UTC')

# Uploads larger than this are streamed to a temporary file
FILE_UPLOAD_MAX_MEMORY_SIZE = 2 * 1024 * 1024

# Multipart batches are limited by the uploader quotas, not by Django
DATA_UPLOAD_MAX_NUMBER_FILES = config(
    'DJANGO_DATA_UPLOAD_MAX_NUMBER_FILES',
    cast=int,
    default=1000,
)
