"""Main settings file.

Settings are split into components, see ``server/settings/components``.
To change settings use environment variables or the ``config/.env`` file.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/uploader.py',
)
