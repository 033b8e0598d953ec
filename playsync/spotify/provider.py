from typing import Dict, List, Optional, Sequence, Tuple

from playsync.config import SPOTIFY_PLATFORM
from playsync.core import RemoteTrackRef
from playsync.sync.provider import PlaylistProvider, TrackPage

from .playlists import (
    add_playlist_tracks,
    create_playlist,
    get_playlist_tracks_page,
    remove_playlist_tracks,
    reorder_playlist_tracks,
)
from .tracks import UNAVAILABLE_TRACK_ID, find_track_by_isrc, get_track, search_tracks


class SpotifyPlaylistProvider(PlaylistProvider):
    """PlaylistProvider backed by the Spotify Web API."""

    name = SPOTIFY_PLATFORM
    # ISRC lookups are `isrc:` queries on /search
    isrc_lookup_is_search = True

    def can_remove(self, track_id: str) -> bool:
        return track_id != UNAVAILABLE_TRACK_ID

    def list_playlist_tracks(
        self, token_info: Dict, playlist_id: str, offset: int, limit: int
    ) -> TrackPage:
        return get_playlist_tracks_page(token_info, playlist_id, offset, limit)

    def create_playlist(
        self, token_info: Dict, name: str, description: Optional[str], public: bool
    ) -> str:
        return create_playlist(token_info, name, description, public)

    def add_tracks(
        self, token_info: Dict, playlist_id: str, track_ids: Sequence[str], position: int
    ) -> None:
        add_playlist_tracks(token_info, playlist_id, track_ids, position)

    def remove_tracks(
        self, token_info: Dict, playlist_id: str, entries: Sequence[Tuple[str, int]]
    ) -> None:
        remove_playlist_tracks(token_info, playlist_id, entries)

    def move_tracks(
        self,
        token_info: Dict,
        playlist_id: str,
        range_start: int,
        insert_before: int,
        range_length: int = 1,
    ) -> None:
        reorder_playlist_tracks(token_info, playlist_id, range_start, insert_before, range_length)

    def search_tracks(
        self, token_info: Dict, title: str, artist: str, limit: int
    ) -> List[RemoteTrackRef]:
        return search_tracks(token_info, title, artist, limit)

    def get_track(self, token_info: Dict, track_id: str) -> Optional[RemoteTrackRef]:
        return get_track(token_info, track_id)

    def find_by_isrc(self, token_info: Dict, isrc: str) -> Optional[RemoteTrackRef]:
        return find_track_by_isrc(token_info, isrc)
