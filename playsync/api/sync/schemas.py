from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from playsync.config import BATCH_SYNC_MAX_PLAYLISTS
from playsync.core import SyncOptions


class SyncOptionsPayload(BaseModel):
    """
    Options accepted at the HTTP boundary. Omitted switches default to
    True here; inside the engine every switch is explicit.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    create_if_not_exists: StrictBool = Field(default=True, alias="createIfNotExists")
    update_existing: StrictBool = Field(default=True, alias="updateExisting")
    handle_conflicts: StrictBool = Field(default=True, alias="handleConflicts")

    def to_options(self) -> SyncOptions:
        return SyncOptions(
            create_if_not_exists=self.create_if_not_exists,
            update_existing=self.update_existing,
            handle_conflicts=self.handle_conflicts,
        )


class BatchSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    playlist_ids: List[str] = Field(
        alias="playlistIds", min_length=1, max_length=BATCH_SYNC_MAX_PLAYLISTS
    )
    options: Optional[SyncOptionsPayload] = None


class UnmatchedSongPayload(BaseModel):
    song_id: str
    reason: str
    title: Optional[str] = None
    artist: Optional[str] = None


class SyncResponse(BaseModel):
    success: bool
    playlist_id: str
    remote_playlist_id: Optional[str] = None
    created: bool
    songs_added: int
    songs_removed: int
    songs_reordered: int
    unmatched: List[UnmatchedSongPayload]
    outcomes: List[Dict[str, Any]]
    status: str
    message: str
    cancelled: bool
    duration: float


class BatchSyncItem(BaseModel):
    playlist_id: str
    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    message: Optional[str] = None


class BatchSyncResponse(BaseModel):
    results: List[BatchSyncItem]
    total: int
    successful: int
    failed: int
