"""Public façade for the playsync.data package.

This module exposes the JSON-backed stores used around a sync pass: the
local playlist store (read-only for the engine) and the per-playlist sync
records. Callers should import them from this façade instead of the
internal modules.
"""

from .playlists import JsonPlaylistStore
from .sync_records import SyncRecord, SyncRecordStore

__all__ = [
    "JsonPlaylistStore",
    "SyncRecord",
    "SyncRecordStore",
]
