import threading
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from playsync.core import LocalPlaylistSnapshot, LocalSong, RemoteTrackRef
from playsync.data import JsonPlaylistStore, SyncRecordStore
from playsync.sync import (
    EngineSettings,
    PlaylistLockRegistry,
    PlaylistProvider,
    ProviderNotFound,
    ProviderRejected,
    SyncEngine,
    TokenBucket,
    TrackPage,
    reset_rate_limiters,
)
from playsync.sync.normalizer import normalize_title

MUTATIONS = ("create_playlist", "add_tracks", "remove_tracks", "move_tracks")


class FakeProvider(PlaylistProvider):
    """
    In-memory platform. Mutations really change the stored playlists, so a
    second pass sees the result of the first one.

    `fail(method, *errors)` queues exceptions raised by the next calls of
    `method`, one per call.
    """

    name = "fake"

    def __init__(self) -> None:
        self.playlists: Dict[str, List[str]] = {}
        self.catalog: Dict[str, Tuple[str, str, Optional[str]]] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self._failures: Dict[str, List[Exception]] = {}
        self._created = 0
        self._lock = threading.Lock()

    # --- test helpers -----------------------------------------------------------

    def add_catalog_track(
        self, track_id: str, title: str, artist: str, isrc: Optional[str] = None
    ) -> None:
        self.catalog[track_id] = (title, artist, isrc)

    def fail(self, method: str, *errors: Exception) -> None:
        self._failures.setdefault(method, []).extend(errors)

    def calls_to(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    @property
    def mutation_calls(self) -> int:
        return sum(1 for name, _ in self.calls if name in MUTATIONS)

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, args))
        queue = self._failures.get(method)
        if queue:
            raise queue.pop(0)

    def _ref(self, track_id: str, position: int) -> RemoteTrackRef:
        title, artist, isrc = self.catalog.get(track_id, ("", "", None))
        return RemoteTrackRef(track_id, title, artist, position, isrc)

    def _playlist(self, playlist_id: str) -> List[str]:
        if playlist_id not in self.playlists:
            raise ProviderNotFound(f"playlist {playlist_id} not found", 404)
        return self.playlists[playlist_id]

    # --- PlaylistProvider -------------------------------------------------------

    def list_playlist_tracks(self, token_info, playlist_id, offset, limit) -> TrackPage:
        self._record("list_playlist_tracks", playlist_id, offset, limit)
        tracks = self._playlist(playlist_id)
        page = tracks[offset : offset + limit]
        return TrackPage(
            items=[self._ref(t, offset + i) for i, t in enumerate(page)],
            total=len(tracks),
            has_next=offset + limit < len(tracks),
        )

    def create_playlist(self, token_info, name, description, public) -> str:
        self._record("create_playlist", name, description, public)
        with self._lock:
            self._created += 1
            playlist_id = f"remote-{self._created}"
            self.playlists[playlist_id] = []
        return playlist_id

    def add_tracks(self, token_info, playlist_id, track_ids: Sequence[str], position: int) -> None:
        self._record("add_tracks", playlist_id, list(track_ids), position)
        tracks = self._playlist(playlist_id)
        if position > len(tracks):
            raise ProviderRejected("position out of range", 400)
        tracks[position:position] = list(track_ids)

    def remove_tracks(self, token_info, playlist_id, entries) -> None:
        self._record("remove_tracks", playlist_id, list(entries))
        tracks = self._playlist(playlist_id)
        for track_id, position in entries:
            if position >= len(tracks) or tracks[position] != track_id:
                raise ProviderRejected(f"{track_id} is not at {position}", 400)
        for position in sorted({p for _, p in entries}, reverse=True):
            del tracks[position]

    def move_tracks(self, token_info, playlist_id, range_start, insert_before, range_length=1) -> None:
        self._record("move_tracks", playlist_id, range_start, insert_before, range_length)
        tracks = self._playlist(playlist_id)
        moved = tracks[range_start : range_start + range_length]
        rest = tracks[:range_start] + tracks[range_start + range_length :]
        index = insert_before if insert_before <= range_start else insert_before - range_length
        rest[index:index] = moved
        tracks[:] = rest

    def search_tracks(self, token_info, title, artist, limit) -> List[RemoteTrackRef]:
        self._record("search_tracks", title, artist, limit)
        wanted = normalize_title(title)
        hits = [
            track_id
            for track_id, (t, _a, _i) in self.catalog.items()
            if normalize_title(t) == wanted
        ]
        return [self._ref(t, i) for i, t in enumerate(hits[:limit])]

    def get_track(self, token_info, track_id) -> Optional[RemoteTrackRef]:
        self._record("get_track", track_id)
        if track_id not in self.catalog:
            return None
        return self._ref(track_id, 0)

    def find_by_isrc(self, token_info, isrc) -> Optional[RemoteTrackRef]:
        self._record("find_by_isrc", isrc)
        for track_id, (_t, _a, track_isrc) in self.catalog.items():
            if track_isrc == isrc:
                return self._ref(track_id, 0)
        return None


def make_song(song_id: str, title: str, artist: str, **kwargs) -> LocalSong:
    return LocalSong(id=song_id, title=title, artist=artist, **kwargs)


def make_playlist(
    songs: Sequence[LocalSong],
    playlist_id: str = "pl-1",
    owner_id: str = "user-1",
    name: str = "Road trip",
) -> LocalPlaylistSnapshot:
    return LocalPlaylistSnapshot(id=playlist_id, owner_id=owner_id, songs=tuple(songs), name=name)


def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture(autouse=True)
def _fresh_rate_limiters():
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def playlist_store(tmp_path) -> JsonPlaylistStore:
    return JsonPlaylistStore(str(tmp_path / "playlists.json"))


@pytest.fixture
def record_store(tmp_path) -> SyncRecordStore:
    return SyncRecordStore(str(tmp_path / "sync_records.json"))


@pytest.fixture
def engine_settings() -> EngineSettings:
    return EngineSettings(deadline_seconds=30, backoff_seconds=0.0, sleep=no_sleep)


@pytest.fixture
def engine(provider, playlist_store, record_store, engine_settings) -> SyncEngine:
    return SyncEngine(
        provider,
        lambda user_id: {"access_token": f"token-{user_id}"},
        playlist_store=playlist_store,
        record_store=record_store,
        settings=engine_settings,
        lock_registry=PlaylistLockRegistry(),
        rate_limiter=TokenBucket(1000, 1000),
    )
