from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Sequence

from playsync.config import BATCH_SYNC_MAX_PLAYLISTS, BATCH_SYNC_WORKERS
from playsync.core import SyncOptions, log_error, log_info, log_section

from .errors import SyncError
from .orchestrator import SyncEngine


def _sync_one(
    engine: SyncEngine, user_id: str, playlist_id: str, options: SyncOptions
) -> Dict[str, Any]:
    try:
        result = engine.sync_playlist(user_id, playlist_id, options)
    except SyncError as e:
        return {"playlist_id": playlist_id, "success": False, **e.to_dict()}
    except Exception as e:
        log_error(f"Unexpected failure while syncing playlist {playlist_id}: {e}")
        return {
            "playlist_id": playlist_id,
            "success": False,
            "error": "InternalError",
            "message": str(e),
        }
    return {
        "playlist_id": playlist_id,
        "success": result.status.value in ("completed", "partial"),
        "result": result.to_dict(),
    }


def sync_many(
    engine: SyncEngine,
    user_id: str,
    playlist_ids: Sequence[str],
    options: SyncOptions,
    max_workers: int = BATCH_SYNC_WORKERS,
) -> Dict[str, Any]:
    """
    Sync several playlists concurrently, one pass per playlist.

    A failing playlist never stops the others: its entry carries the
    `{error, message}` payload instead of a result.
    """
    if not 1 <= len(playlist_ids) <= BATCH_SYNC_MAX_PLAYLISTS:
        raise ValueError(
            f"Between 1 and {BATCH_SYNC_MAX_PLAYLISTS} playlists can be synced at once."
        )

    log_section(f"Batch sync of {len(playlist_ids)} playlist(s)")
    workers = max(1, min(max_workers, len(playlist_ids)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_sync_one, engine, user_id, playlist_id, options)
            for playlist_id in playlist_ids
        ]
        results: List[Dict[str, Any]] = [f.result() for f in futures]

    successful = sum(1 for r in results if r["success"])
    log_info(f"Batch sync done: {successful} succeeded, {len(results) - successful} failed.")
    return {
        "results": results,
        "total": len(results),
        "successful": successful,
        "failed": len(results) - successful,
    }
