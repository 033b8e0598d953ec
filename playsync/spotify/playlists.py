from typing import Dict, Optional, Sequence, Tuple

from playsync.core import log_debug
from playsync.sync.provider import TrackPage

from .auth import get_current_user_id
from .client import spotify_request
from .tracks import track_ref_from_item, track_uri

PLAYLIST_TRACK_FIELDS = (
    "items(track(id,uri,name,artists(name),external_ids)),total,next"
)


def get_playlist_tracks_page(
    token_info: Dict, playlist_id: str, offset: int, limit: int
) -> TrackPage:
    data = spotify_request(
        "GET",
        f"/playlists/{playlist_id}/tracks",
        token_info,
        params={"offset": offset, "limit": limit, "fields": PLAYLIST_TRACK_FIELDS},
    ) or {}
    items = [
        track_ref_from_item(item.get("track"), offset + i)
        for i, item in enumerate(data.get("items") or [])
    ]
    return TrackPage(
        items=items,
        total=int(data.get("total") or 0),
        has_next=bool(data.get("next")),
    )


def create_playlist(
    token_info: Dict, name: str, description: Optional[str], public: bool
) -> str:
    user_id = get_current_user_id(token_info)
    body = {"name": name, "public": public}
    if description:
        body["description"] = description
    data = spotify_request("POST", f"/users/{user_id}/playlists", token_info, json=body)
    return data["id"]


def add_playlist_tracks(
    token_info: Dict, playlist_id: str, track_ids: Sequence[str], position: int
) -> None:
    log_debug(f"Adding {len(track_ids)} track(s) to {playlist_id} at {position}")
    spotify_request(
        "POST",
        f"/playlists/{playlist_id}/tracks",
        token_info,
        json={"uris": [track_uri(t) for t in track_ids], "position": position},
    )


def remove_playlist_tracks(
    token_info: Dict, playlist_id: str, entries: Sequence[Tuple[str, int]]
) -> None:
    log_debug(f"Removing {len(entries)} track(s) from {playlist_id}")
    spotify_request(
        "DELETE",
        f"/playlists/{playlist_id}/tracks",
        token_info,
        json={
            "tracks": [
                {"uri": track_uri(track_id), "positions": [position]}
                for track_id, position in entries
            ]
        },
    )


def reorder_playlist_tracks(
    token_info: Dict,
    playlist_id: str,
    range_start: int,
    insert_before: int,
    range_length: int = 1,
) -> None:
    spotify_request(
        "PUT",
        f"/playlists/{playlist_id}/tracks",
        token_info,
        json={
            "range_start": range_start,
            "insert_before": insert_before,
            "range_length": range_length,
        },
    )
