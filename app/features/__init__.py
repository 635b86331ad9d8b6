"""
Features Module - Self-contained feature units.

- database: Supabase repositories per entity
- attachments: quote file storage and the upload-then-write saga
- realtime: live queries over Supabase Realtime
- viewmodels: render-ready list state over repositories and live queries
"""

from app.features.database import DatabaseClient

__all__ = [
    "DatabaseClient",
]
