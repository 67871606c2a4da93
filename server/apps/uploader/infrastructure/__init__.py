"""Infrastructure layer for uploader app.

This package contains integrations with external systems:
- Filesystem storage for library folders
- Media library host (library registry, rescan trigger)
- Session store resolving bearer tokens
- Premium subscription verification endpoint
"""
