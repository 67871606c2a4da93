"""Mobile uploader settings.

Defaults mirror the shipped plugin configuration. Size values are in
megabytes and ``0`` means "no limit" for every cap.
"""

import json

from decouple import Csv

from server.settings.components import config

# App identity checks (all four must match on every request)
UPLOADER_API_KEY = config('UPLOADER_API_KEY', default='')
UPLOADER_SECURITY_TOKEN = config('UPLOADER_SECURITY_TOKEN', default='')
UPLOADER_ALLOWED_APP_PACKAGE = config(
    'UPLOADER_ALLOWED_APP_PACKAGE',
    default='com.yourcompany.yourapp',
)
UPLOADER_CLIENT_IDENTIFIER = config(
    'UPLOADER_CLIENT_IDENTIFIER',
    default='MobileUploader',
)

# Feature toggles
UPLOADER_ENABLE_UPLOADS = config(
    'UPLOADER_ENABLE_UPLOADS',
    cast=bool,
    default=True,
)
UPLOADER_ALLOW_FOLDER_CREATION = config(
    'UPLOADER_ALLOW_FOLDER_CREATION',
    cast=bool,
    default=True,
)
UPLOADER_MAX_FOLDER_DEPTH = config(
    'UPLOADER_MAX_FOLDER_DEPTH',
    cast=int,
    default=3,
)

# Per-file caps
UPLOADER_MAX_FILE_SIZE_MB = config(
    'UPLOADER_MAX_FILE_SIZE_MB',
    cast=int,
    default=100,
)
UPLOADER_FREE_USER_MAX_FILE_SIZE_MB = config(
    'UPLOADER_FREE_USER_MAX_FILE_SIZE_MB',
    cast=int,
    default=50,
)

# Daily caps
UPLOADER_FREE_USER_DAILY_UPLOAD_LIMIT = config(
    'UPLOADER_FREE_USER_DAILY_UPLOAD_LIMIT',
    cast=int,
    default=10,
)
UPLOADER_FREE_USER_DAILY_SIZE_LIMIT_MB = config(
    'UPLOADER_FREE_USER_DAILY_SIZE_LIMIT_MB',
    cast=int,
    default=500,
)
UPLOADER_PREMIUM_USER_MAX_FILES = config(
    'UPLOADER_PREMIUM_USER_MAX_FILES',
    cast=int,
    default=0,
)
UPLOADER_PREMIUM_USER_MAX_SIZE_MB = config(
    'UPLOADER_PREMIUM_USER_MAX_SIZE_MB',
    cast=int,
    default=0,
)
UPLOADER_USAGE_RETENTION_DAYS = config(
    'UPLOADER_USAGE_RETENTION_DAYS',
    cast=int,
    default=2,
)

# Premium entitlement
UPLOADER_ENABLE_PREMIUM_BYPASS = config(
    'UPLOADER_ENABLE_PREMIUM_BYPASS',
    cast=bool,
    default=False,
)
UPLOADER_PREMIUM_API_KEY = config('UPLOADER_PREMIUM_API_KEY', default='')
UPLOADER_PREMIUM_VERIFICATION_ENDPOINT = config(
    'UPLOADER_PREMIUM_VERIFICATION_ENDPOINT',
    default='',
)
UPLOADER_PREMIUM_VERIFICATION_TIMEOUT = config(
    'UPLOADER_PREMIUM_VERIFICATION_TIMEOUT',
    cast=float,
    default=5.0,
)

# Allowed extensions per library category
UPLOADER_EXTENSIONS = {
    'photos': config(
        'UPLOADER_PHOTO_EXTENSIONS',
        cast=Csv(),
        default='.jpg,.jpeg,.png,.gif,.webp,.bmp,.tiff,.heic,.raw',
    ),
    'videos': config(
        'UPLOADER_VIDEO_EXTENSIONS',
        cast=Csv(),
        default='.mp4,.mkv,.avi,.mov,.wmv,.flv,.webm,.m4v,.3gp,.mpg,.mpeg',
    ),
    'movies': config(
        'UPLOADER_MOVIE_EXTENSIONS',
        cast=Csv(),
        default=(
            '.mp4,.mkv,.avi,.mov,.wmv,.flv,.webm,.m4v,.ts,.m2ts,'
            '.iso,.img,.vob,.ifo,.bup'
        ),
    ),
    'tvshows': config(
        'UPLOADER_TVSHOW_EXTENSIONS',
        cast=Csv(),
        default=(
            '.mp4,.mkv,.avi,.mov,.wmv,.flv,.webm,.m4v,.ts,.m2ts,'
            '.mpg,.mpeg,.ogv'
        ),
    ),
    'anime': config(
        'UPLOADER_ANIME_EXTENSIONS',
        cast=Csv(),
        default='.mp4,.mkv,.avi,.mov,.wmv,.flv,.webm,.m4v,.ogv,.rm,.rmvb,.asf',
    ),
    'music': config(
        'UPLOADER_MUSIC_EXTENSIONS',
        cast=Csv(),
        default='.mp3,.flac,.wav,.aac,.ogg,.wma,.m4a,.opus,.ape,.dsd,.dsf,.dff',
    ),
    'books': config(
        'UPLOADER_BOOK_EXTENSIONS',
        cast=Csv(),
        default=(
            '.pdf,.epub,.mobi,.azw,.azw3,.cbr,.cbz,.cb7,.cbt,'
            '.mp3,.m4a,.m4b,.aax,.aa,.flac'
        ),
    ),
}

# Library registry exposed by the host, a JSON list of objects:
# [{"id": "...", "name": "...", "path": "...", "collection_type": "photos"}]
UPLOADER_LIBRARIES = config(
    'UPLOADER_LIBRARIES',
    cast=json.loads,
    default='[]',
)
