from functools import lru_cache
from typing import Optional

from fastapi import Header

from playsync.spotify import SpotifyPlaylistProvider, load_spotify_token
from playsync.sync import AuthError, SyncEngine


@lru_cache(maxsize=1)
def get_sync_engine() -> SyncEngine:
    """Process-wide engine bound to Spotify and the JSON stores."""
    return SyncEngine(SpotifyPlaylistProvider(), load_spotify_token)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Caller identity, as forwarded by the session layer in front of the API.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthError("Unauthorized")
    return x_user_id.strip()
