"""Public façade for the playsync.spotify package.

This module exposes the Spotify Web API integration used by the sync
engine: credential loading, the HTTP error mapping, playlist and track
helpers, and the SpotifyPlaylistProvider adapter. Callers should import
these symbols from this façade instead of the internal modules.
"""

from .auth import (
    SpotifyTokenMissing,
    get_current_user_id,
    load_spotify_token,
    save_spotify_token,
)
from .client import (
    SpotifyAPIError,
    SpotifyAuthError,
    SpotifyClientError,
    SpotifyNotFound,
    SpotifyRateLimited,
    SpotifyServerError,
    spotify_headers,
    spotify_request,
)
from .playlists import (
    add_playlist_tracks,
    create_playlist,
    get_playlist_tracks_page,
    remove_playlist_tracks,
    reorder_playlist_tracks,
)
from .provider import SpotifyPlaylistProvider
from .tracks import find_track_by_isrc, get_track, search_tracks, track_uri

__all__ = [
    "load_spotify_token",
    "save_spotify_token",
    "spotify_headers",
    "get_current_user_id",
    "spotify_request",
    "SpotifyTokenMissing",
    "SpotifyAPIError",
    "SpotifyAuthError",
    "SpotifyRateLimited",
    "SpotifyServerError",
    "SpotifyClientError",
    "SpotifyNotFound",
    "get_playlist_tracks_page",
    "create_playlist",
    "add_playlist_tracks",
    "remove_playlist_tracks",
    "reorder_playlist_tracks",
    "search_tracks",
    "get_track",
    "find_track_by_isrc",
    "track_uri",
    "SpotifyPlaylistProvider",
]
