from typing import Any, Dict, List, Optional

from playsync.core import RemoteTrackRef

from .client import SpotifyClientError, spotify_request

TRACK_URI_PREFIX = "spotify:track:"
# Placeholder for playlist items whose track is gone (no id, no uri)
UNAVAILABLE_TRACK_ID = "spotify:unavailable"


def track_uri(track_id: str) -> str:
    """Spotify URI for a track id; URIs (local files) pass through."""
    if track_id.startswith("spotify:"):
        return track_id
    return f"{TRACK_URI_PREFIX}{track_id}"


def track_ref_from_item(track: Optional[Dict[str, Any]], position: int) -> RemoteTrackRef:
    """
    Build a RemoteTrackRef from a Spotify track object.

    Local files have no id: their URI stands in for it so they keep their
    slot (and can be removed like any other entry).
    """
    if not track:
        return RemoteTrackRef(track_id=UNAVAILABLE_TRACK_ID, title="", artist="", position=position)
    track_id = track.get("id") or track.get("uri") or UNAVAILABLE_TRACK_ID
    artists = track.get("artists") or []
    return RemoteTrackRef(
        track_id=track_id,
        title=track.get("name") or "",
        artist=", ".join(a.get("name", "") for a in artists if a),
        position=position,
        isrc=(track.get("external_ids") or {}).get("isrc"),
    )


def _quote(value: str) -> str:
    return value.replace('"', " ").strip()


def search_tracks(token_info: Dict, title: str, artist: str, limit: int) -> List[RemoteTrackRef]:
    query = f'track:"{_quote(title)}"'
    if artist.strip():
        query += f' artist:"{_quote(artist)}"'
    data = spotify_request(
        "GET",
        "/search",
        token_info,
        params={"q": query, "type": "track", "limit": limit},
    )
    items = ((data or {}).get("tracks") or {}).get("items") or []
    return [track_ref_from_item(item, i) for i, item in enumerate(items)]


def get_track(token_info: Dict, track_id: str) -> Optional[RemoteTrackRef]:
    try:
        data = spotify_request("GET", f"/tracks/{track_id}", token_info)
    except SpotifyClientError:
        # 404 for unknown ids, 400 for malformed ones
        return None
    if not data or not data.get("id"):
        return None
    return track_ref_from_item(data, 0)


def find_track_by_isrc(token_info: Dict, isrc: str) -> Optional[RemoteTrackRef]:
    data = spotify_request(
        "GET",
        "/search",
        token_info,
        params={"q": f"isrc:{isrc}", "type": "track", "limit": 1},
    )
    items = ((data or {}).get("tracks") or {}).get("items") or []
    if not items:
        return None
    return track_ref_from_item(items[0], 0)
