from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from playsync.core import SyncStatus, log_info
from playsync.sync import NotFoundLocal, SyncEngine, sync_many

from ..deps import get_current_user_id, get_sync_engine
from .schemas import (
    BatchSyncRequest,
    BatchSyncResponse,
    SyncOptionsPayload,
    SyncResponse,
)

router = APIRouter()


@router.post("/spotify/playlist/{playlist_id}", response_model=SyncResponse)
def sync_spotify_playlist(
    playlist_id: str,
    options: Optional[SyncOptionsPayload] = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    engine: SyncEngine = Depends(get_sync_engine),
) -> Dict[str, Any]:
    """
    Run one sync pass of a local playlist to Spotify.

    A 200 response may still describe a partial sync: check `status`,
    `unmatched` and the failed entries of `outcomes`.
    """
    options = options or SyncOptionsPayload()
    result = engine.sync_playlist(user_id, playlist_id, options.to_options())
    return {
        "success": result.status in (SyncStatus.COMPLETED, SyncStatus.PARTIAL),
        **result.to_dict(),
    }


@router.post("/spotify/batch", response_model=BatchSyncResponse)
def sync_spotify_batch(
    request: BatchSyncRequest,
    user_id: str = Depends(get_current_user_id),
    engine: SyncEngine = Depends(get_sync_engine),
) -> Dict[str, Any]:
    options = request.options or SyncOptionsPayload()
    return sync_many(engine, user_id, request.playlist_ids, options.to_options())


@router.get("/spotify/status/{playlist_id}")
def get_spotify_sync_status(
    playlist_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: SyncEngine = Depends(get_sync_engine),
) -> Dict[str, Any]:
    if engine.playlist_store.get_playlist(user_id, playlist_id) is None:
        raise NotFoundLocal(f"Playlist {playlist_id} not found.")

    platform = engine.provider.name
    record = engine.record_store.get(playlist_id, platform)
    if record is None:
        log_info(f"Playlist {playlist_id} has never been synced to {platform}.")
        return {"playlist_id": playlist_id, "platform": platform, "status": "not_synced"}
    return record.to_dict()
