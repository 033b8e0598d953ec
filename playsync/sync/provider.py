from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from playsync.core import RemoteTrackRef


@dataclass
class TrackPage:
    """One page of a remote playlist listing."""

    items: List[RemoteTrackRef]
    total: int
    has_next: bool


class PlaylistProvider(ABC):
    """
    Abstract remote music platform, as consumed by the sync engine.

    Every call receives the caller's credentials (`token_info`) explicitly;
    a provider keeps no session of its own.

    Failed calls raise the ProviderError subclasses from
    playsync.sync.errors; returning normally means the call succeeded.
    """

    name: str

    # True when find_by_isrc goes through the same search endpoint as
    # search_tracks, so it counts against the per-song search allowance.
    isrc_lookup_is_search: bool = False

    def can_remove(self, track_id: str) -> bool:
        """False for listed entries the platform cannot address for removal."""
        return True

    @abstractmethod
    def list_playlist_tracks(
        self, token_info: Dict, playlist_id: str, offset: int, limit: int
    ) -> TrackPage:
        """
        Return the page starting at `offset`. Items carry their absolute
        position in the playlist. Raises ProviderNotFound for an unknown
        playlist.
        """
        raise NotImplementedError

    @abstractmethod
    def create_playlist(
        self,
        token_info: Dict,
        name: str,
        description: Optional[str],
        public: bool,
    ) -> str:
        """Create an empty playlist and return its remote id."""
        raise NotImplementedError

    @abstractmethod
    def add_tracks(
        self,
        token_info: Dict,
        playlist_id: str,
        track_ids: Sequence[str],
        position: int,
    ) -> None:
        """Insert `track_ids` contiguously, the first one ending at `position`."""
        raise NotImplementedError

    @abstractmethod
    def remove_tracks(
        self,
        token_info: Dict,
        playlist_id: str,
        entries: Sequence[Tuple[str, int]],
    ) -> None:
        """
        Remove the (track_id, position) entries. All positions refer to the
        playlist as it is before this call.
        """
        raise NotImplementedError

    @abstractmethod
    def move_tracks(
        self,
        token_info: Dict,
        playlist_id: str,
        range_start: int,
        insert_before: int,
        range_length: int = 1,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def search_tracks(
        self, token_info: Dict, title: str, artist: str, limit: int
    ) -> List[RemoteTrackRef]:
        raise NotImplementedError

    @abstractmethod
    def get_track(self, token_info: Dict, track_id: str) -> Optional[RemoteTrackRef]:
        """Return the catalog track, or None when the id is unknown."""
        raise NotImplementedError

    @abstractmethod
    def find_by_isrc(self, token_info: Dict, isrc: str) -> Optional[RemoteTrackRef]:
        raise NotImplementedError
