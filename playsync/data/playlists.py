from typing import Any, Dict, List, Optional

from playsync.config import PLAYLISTS_FILE
from playsync.core import LocalPlaylistSnapshot, LocalSong, log_warning, read_json, update_json


def _deserialize_song(data: Dict[str, Any]) -> LocalSong:
    return LocalSong(
        id=str(data["id"]),
        title=data.get("title") or "",
        artist=data.get("artist") or "",
        album=data.get("album"),
        external_ids=dict(data.get("external_ids") or {}),
        isrc=data.get("isrc"),
    )


def _serialize_song(song: LocalSong) -> Dict[str, Any]:
    return {
        "id": song.id,
        "title": song.title,
        "artist": song.artist,
        "album": song.album,
        "external_ids": dict(song.external_ids),
        "isrc": song.isrc,
    }


def _deserialize_playlist(playlist_id: str, data: Dict[str, Any]) -> LocalPlaylistSnapshot:
    return LocalPlaylistSnapshot(
        id=str(data.get("id") or playlist_id),
        owner_id=str(data["owner_id"]),
        songs=tuple(_deserialize_song(s) for s in data.get("songs") or []),
        name=data.get("name") or "",
        description=data.get("description"),
        is_public=bool(data.get("is_public", False)),
    )


class JsonPlaylistStore:
    """
    Read side of the local playlist store, backed by one JSON document:

        {"<playlist id>": {"owner_id": ..., "name": ..., "songs": [...]}, ...}

    The sync engine only reads from it; `save_playlist` exists for tooling
    and tests.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or PLAYLISTS_FILE

    def _load_all(self) -> Dict[str, Any]:
        raw = read_json(
            self.path,
            default={},
            on_error=lambda e: log_warning(f"Invalid playlists file {self.path}: {e}"),
        )
        return raw if isinstance(raw, dict) else {}

    def load_playlist(self, playlist_id: str) -> Optional[LocalPlaylistSnapshot]:
        data = self._load_all().get(playlist_id)
        if not isinstance(data, dict):
            return None
        try:
            return _deserialize_playlist(playlist_id, data)
        except (KeyError, TypeError) as e:
            log_warning(f"Malformed local playlist {playlist_id}: {e}")
            return None

    def get_playlist(self, user_id: str, playlist_id: str) -> Optional[LocalPlaylistSnapshot]:
        """Playlist owned by `user_id`; someone else's playlist reads as missing."""
        playlist = self.load_playlist(playlist_id)
        if playlist is None or playlist.owner_id != user_id:
            return None
        return playlist

    def list_playlist_ids(self, user_id: str) -> List[str]:
        return [
            pid
            for pid, data in self._load_all().items()
            if isinstance(data, dict) and str(data.get("owner_id")) == user_id
        ]

    def save_playlist(self, playlist: LocalPlaylistSnapshot) -> None:
        def mutate(doc: Any) -> Dict[str, Any]:
            doc = doc if isinstance(doc, dict) else {}
            doc[playlist.id] = {
                "id": playlist.id,
                "owner_id": playlist.owner_id,
                "name": playlist.name,
                "description": playlist.description,
                "is_public": playlist.is_public,
                "songs": [_serialize_song(s) for s in playlist.songs],
            }
            return doc

        update_json(self.path, mutate, default={})
