import time
from typing import Any, Dict, List, Optional

import pytest
import requests

from playsync.spotify import (
    SpotifyAuthError,
    SpotifyClientError,
    SpotifyNotFound,
    SpotifyPlaylistProvider,
    SpotifyRateLimited,
    SpotifyServerError,
    SpotifyTokenMissing,
    load_spotify_token,
    save_spotify_token,
)
from playsync.core import LocalSong
from playsync.sync import (
    ProviderNotFound,
    ProviderRateLimited,
    ProviderUnavailable,
    RemoteCaller,
    TrackMatcher,
)

TOKEN = {"access_token": "abc"}


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.content = b"" if payload is None else b"{}"
        self.text = ""
        self.reason = ""

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class RecordingRequests:
    def __init__(self, *responses: FakeResponse) -> None:
        self.responses: List[FakeResponse] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method, url, **kwargs) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)


@pytest.fixture
def fake_requests(monkeypatch):
    def install(*responses: FakeResponse) -> RecordingRequests:
        recorder = RecordingRequests(*responses)
        monkeypatch.setattr("playsync.spotify.client.requests.request", recorder)
        return recorder

    return install


def _track(track_id: str, name: str, artist: str, isrc: Optional[str] = None) -> Dict:
    return {
        "id": track_id,
        "uri": f"spotify:track:{track_id}",
        "name": name,
        "artists": [{"name": artist}],
        "external_ids": {"isrc": isrc} if isrc else {},
    }


@pytest.mark.parametrize(
    "status, error_type, generic_type",
    [
        (401, SpotifyAuthError, SpotifyAuthError),
        (404, SpotifyNotFound, ProviderNotFound),
        (500, SpotifyServerError, ProviderUnavailable),
        (403, SpotifyClientError, SpotifyClientError),
    ],
)
def test_http_errors_are_mapped(fake_requests, status, error_type, generic_type) -> None:
    fake_requests(FakeResponse(status, {"error": {"status": status, "message": "nope"}}))

    with pytest.raises(error_type) as excinfo:
        SpotifyPlaylistProvider().list_playlist_tracks(TOKEN, "pl", 0, 100)

    assert isinstance(excinfo.value, generic_type)
    assert excinfo.value.status == status


def test_rate_limit_carries_retry_after(fake_requests) -> None:
    fake_requests(FakeResponse(429, {"error": {"message": "slow"}}, {"Retry-After": "3"}))

    with pytest.raises(SpotifyRateLimited) as excinfo:
        SpotifyPlaylistProvider().search_tracks(TOKEN, "Yellow", "Coldplay", 5)

    assert isinstance(excinfo.value, ProviderRateLimited)
    assert excinfo.value.retry_after == 3.0


def test_connection_errors_are_transient(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise requests.ConnectionError("reset")

    monkeypatch.setattr("playsync.spotify.client.requests.request", boom)

    with pytest.raises(ProviderUnavailable):
        SpotifyPlaylistProvider().get_track(TOKEN, "R1")


def test_list_playlist_tracks_page(fake_requests) -> None:
    recorder = fake_requests(
        FakeResponse(
            200,
            {
                "items": [
                    {"track": _track("R1", "Yellow", "Coldplay", "GB1")},
                    {"track": {"id": None, "uri": "spotify:local:a:b:c:1", "name": "Demo", "artists": []}},
                ],
                "total": 102,
                "next": "https://api.spotify.com/v1/playlists/pl/tracks?offset=102",
            },
        )
    )

    page = SpotifyPlaylistProvider().list_playlist_tracks(TOKEN, "pl", 100, 100)

    assert [t.track_id for t in page.items] == ["R1", "spotify:local:a:b:c:1"]
    assert [t.position for t in page.items] == [100, 101]
    assert page.items[0].isrc == "GB1"
    assert page.has_next
    call = recorder.calls[0]
    assert call["method"] == "GET"
    assert call["url"].endswith("/playlists/pl/tracks")
    assert call["params"]["offset"] == 100
    assert call["headers"] == {"Authorization": "Bearer abc"}


def test_mutation_payloads(fake_requests) -> None:
    recorder = fake_requests(
        FakeResponse(201, {"snapshot_id": "s1"}),
        FakeResponse(200, {"snapshot_id": "s2"}),
        FakeResponse(200, {"snapshot_id": "s3"}),
    )
    provider = SpotifyPlaylistProvider()

    provider.add_tracks(TOKEN, "pl", ["R1", "R2"], 4)
    provider.remove_tracks(TOKEN, "pl", [("R9", 7), ("R8", 2)])
    provider.move_tracks(TOKEN, "pl", 5, 1)

    add, remove, move = recorder.calls
    assert (add["method"], add["json"]) == (
        "POST",
        {"uris": ["spotify:track:R1", "spotify:track:R2"], "position": 4},
    )
    assert remove["method"] == "DELETE"
    assert remove["json"] == {
        "tracks": [
            {"uri": "spotify:track:R9", "positions": [7]},
            {"uri": "spotify:track:R8", "positions": [2]},
        ]
    }
    assert (move["method"], move["json"]) == (
        "PUT",
        {"range_start": 5, "insert_before": 1, "range_length": 1},
    )


def test_create_playlist_uses_current_user(fake_requests) -> None:
    recorder = fake_requests(
        FakeResponse(200, {"id": "spotify-user"}),
        FakeResponse(201, {"id": "new-playlist"}),
    )

    remote_id = SpotifyPlaylistProvider().create_playlist(TOKEN, "Mix", None, False)

    assert remote_id == "new-playlist"
    assert recorder.calls[1]["url"].endswith("/users/spotify-user/playlists")
    assert recorder.calls[1]["json"] == {"name": "Mix", "public": False}


def test_search_and_isrc_lookup(fake_requests) -> None:
    recorder = fake_requests(
        FakeResponse(200, {"tracks": {"items": [_track("R1", "Yellow", "Coldplay")]}}),
        FakeResponse(200, {"tracks": {"items": []}}),
    )
    provider = SpotifyPlaylistProvider()

    results = provider.search_tracks(TOKEN, "Yellow", "Coldplay", 5)
    missing = provider.find_by_isrc(TOKEN, "GB0000000000")

    assert [r.track_id for r in results] == ["R1"]
    assert recorder.calls[0]["params"]["q"] == 'track:"Yellow" artist:"Coldplay"'
    assert recorder.calls[1]["params"]["q"] == "isrc:GB0000000000"
    assert missing is None


def test_song_with_unknown_isrc_costs_one_search_request(fake_requests) -> None:
    recorder = fake_requests(FakeResponse(200, {"tracks": {"items": []}}))
    caller = RemoteCaller(backoff_seconds=0.0, sleep=lambda _s: None)
    matcher = TrackMatcher(SpotifyPlaylistProvider(), TOKEN, caller=caller)
    song = LocalSong(id="s1", title="Yellow", artist="Coldplay", isrc="GB0000000000")

    result = matcher.match(song, [])

    assert not result.is_matched
    assert [c["params"]["q"] for c in recorder.calls if c["url"].endswith("/search")] == [
        "isrc:GB0000000000"
    ]
    assert matcher.search_calls == 1


def test_unavailable_items_are_listed_but_not_removable(fake_requests) -> None:
    fake_requests(
        FakeResponse(
            200,
            {
                "items": [{"track": _track("R1", "Yellow", "Coldplay")}, {"track": None}],
                "total": 2,
                "next": None,
            },
        )
    )
    provider = SpotifyPlaylistProvider()

    page = provider.list_playlist_tracks(TOKEN, "pl", 0, 100)

    assert [t.position for t in page.items] == [0, 1]
    assert provider.can_remove(page.items[0].track_id)
    assert not provider.can_remove(page.items[1].track_id)


def test_get_track_unknown_id_is_none(fake_requests) -> None:
    fake_requests(FakeResponse(404, {"error": {"message": "not found"}}))

    assert SpotifyPlaylistProvider().get_track(TOKEN, "nope") is None


def test_load_spotify_token(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("playsync.spotify.auth.TOKENS_FILE", str(tmp_path / "tokens.json"))

    with pytest.raises(SpotifyTokenMissing):
        load_spotify_token("user-1")

    save_spotify_token("user-1", {"access_token": "abc", "expires_in": 3600})
    assert load_spotify_token("user-1")["access_token"] == "abc"

    save_spotify_token(
        "user-2",
        {"access_token": "old", "expires_in": 3600, "timestamp": int(time.time()) - 7200},
    )
    with pytest.raises(SpotifyTokenMissing):
        load_spotify_token("user-2")
