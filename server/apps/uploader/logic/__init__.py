"""Business logic layer for uploader app.

This package holds the upload admission pipeline and its parts:
- Extension policy per library category
- Daily usage ledger and quota arithmetic
- Premium entitlement resolution
- Upload persistence and library/folder directory

Nothing here knows about HTTP; views translate requests into calls on
these modules and exceptions into responses.
"""
