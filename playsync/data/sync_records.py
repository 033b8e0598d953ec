from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from playsync.config import SYNC_RECENT_LOGS_LIMIT, SYNC_RECORDS_FILE
from playsync.core import (
    OperationKind,
    SyncResult,
    SyncStatus,
    log_warning,
    read_json,
    update_json,
)

# Per-song log lines kept on disk per record
_MAX_STORED_LOGS = 100


@dataclass
class SyncRecord:
    playlist_id: str
    platform: str
    remote_playlist_id: Optional[str] = None
    status: SyncStatus = SyncStatus.PENDING
    last_sync_at: Optional[datetime] = None
    songs_added: int = 0
    songs_removed: int = 0
    songs_reordered: int = 0
    unmatched_count: int = 0
    error_message: Optional[str] = None
    logs: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self, logs_limit: int = SYNC_RECENT_LOGS_LIMIT) -> Dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "platform": self.platform,
            "remote_playlist_id": self.remote_playlist_id,
            "status": self.status.value,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "songs_added": self.songs_added,
            "songs_removed": self.songs_removed,
            "songs_reordered": self.songs_reordered,
            "unmatched_count": self.unmatched_count,
            "error_message": self.error_message,
            "recent_logs": self.logs[-logs_limit:][::-1],
        }


def _record_key(playlist_id: str, platform: str) -> str:
    return f"{platform}:{playlist_id}"


def _serialize(record: SyncRecord) -> Dict[str, Any]:
    data = record.to_dict()
    del data["recent_logs"]
    data["logs"] = record.logs[-_MAX_STORED_LOGS:]
    return data


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _deserialize(data: Dict[str, Any]) -> SyncRecord:
    return SyncRecord(
        playlist_id=data["playlist_id"],
        platform=data["platform"],
        remote_playlist_id=data.get("remote_playlist_id"),
        status=SyncStatus(data.get("status", SyncStatus.PENDING.value)),
        last_sync_at=_parse_dt(data.get("last_sync_at")),
        songs_added=int(data.get("songs_added", 0)),
        songs_removed=int(data.get("songs_removed", 0)),
        songs_reordered=int(data.get("songs_reordered", 0)),
        unmatched_count=int(data.get("unmatched_count", 0)),
        error_message=data.get("error_message"),
        logs=list(data.get("logs") or []),
    )


def _result_logs(result: SyncResult, at: str) -> List[Dict[str, Any]]:
    """One log line per song-level event of a pass."""
    lines: List[Dict[str, Any]] = []
    for outcome in result.outcomes:
        op = outcome.operation
        if op.kind == OperationKind.CREATE_PLAYLIST:
            continue
        lines.append(
            {
                "song_id": op.local_song_id,
                "track_id": op.track_id,
                "action": op.kind.value,
                "status": outcome.status.value,
                "error": outcome.error,
                "at": at,
            }
        )
    for unmatched in result.unmatched:
        lines.append(
            {
                "song_id": unmatched.song_id,
                "track_id": None,
                "action": "skip",
                "status": "unmatched",
                "error": unmatched.reason,
                "at": at,
            }
        )
    return lines


class SyncRecordStore:
    """
    Per (local playlist, platform) sync bookkeeping.

    The remote playlist id lives here: it is how the next pass finds the
    playlist a previous pass created.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or SYNC_RECORDS_FILE

    def _load_all(self) -> Dict[str, Any]:
        raw = read_json(
            self.path,
            default={},
            on_error=lambda e: log_warning(f"Invalid sync records file {self.path}: {e}"),
        )
        return raw if isinstance(raw, dict) else {}

    def get(self, playlist_id: str, platform: str) -> Optional[SyncRecord]:
        data = self._load_all().get(_record_key(playlist_id, platform))
        if not isinstance(data, dict):
            return None
        try:
            return _deserialize(data)
        except (KeyError, ValueError, TypeError) as e:
            log_warning(f"Malformed sync record for {playlist_id}: {e}")
            return None

    def _update(self, playlist_id: str, platform: str, change) -> SyncRecord:
        key = _record_key(playlist_id, platform)
        holder: Dict[str, SyncRecord] = {}

        def mutate(doc: Any) -> Dict[str, Any]:
            doc = doc if isinstance(doc, dict) else {}
            current = doc.get(key)
            record = (
                _deserialize(current)
                if isinstance(current, dict)
                else SyncRecord(playlist_id=playlist_id, platform=platform)
            )
            change(record)
            doc[key] = _serialize(record)
            holder["record"] = record
            return doc

        update_json(self.path, mutate, default={})
        return holder["record"]

    def mark_in_progress(self, playlist_id: str, platform: str) -> SyncRecord:
        def change(record: SyncRecord) -> None:
            record.status = SyncStatus.IN_PROGRESS
            record.error_message = None

        return self._update(playlist_id, platform, change)

    def set_remote_playlist_id(
        self, playlist_id: str, platform: str, remote_playlist_id: Optional[str]
    ) -> SyncRecord:
        def change(record: SyncRecord) -> None:
            record.remote_playlist_id = remote_playlist_id

        return self._update(playlist_id, platform, change)

    def record_result(self, platform: str, result: SyncResult) -> SyncRecord:
        now = datetime.now(timezone.utc)

        def change(record: SyncRecord) -> None:
            if result.remote_playlist_id:
                record.remote_playlist_id = result.remote_playlist_id
            record.status = result.status
            record.last_sync_at = now
            record.songs_added = result.songs_added
            record.songs_removed = result.songs_removed
            record.songs_reordered = result.songs_reordered
            record.unmatched_count = len(result.unmatched)
            record.error_message = (
                None if result.status == SyncStatus.COMPLETED else result.message
            )
            record.logs.extend(_result_logs(result, now.isoformat()))

        return self._update(result.playlist_id, platform, change)

    def record_failure(
        self, playlist_id: str, platform: str, status: SyncStatus, message: str
    ) -> SyncRecord:
        now = datetime.now(timezone.utc)

        def change(record: SyncRecord) -> None:
            record.status = status
            record.last_sync_at = now
            record.error_message = message

        return self._update(playlist_id, platform, change)
