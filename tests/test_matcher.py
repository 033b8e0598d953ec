import pytest

from playsync.core import MatchTier, RemoteTrackRef
from playsync.sync import (
    NO_CONFIDENT_MATCH,
    AuthError,
    ProviderAuthError,
    ProviderUnavailable,
    RemoteCaller,
    TrackMatcher,
)

from conftest import make_song, no_sleep

TOKEN = {"access_token": "t"}


def _matcher(provider, **kwargs) -> TrackMatcher:
    caller = RemoteCaller(backoff_seconds=0.0, sleep=no_sleep)
    return TrackMatcher(provider, TOKEN, caller=caller, **kwargs)


def test_recorded_provider_id_in_playlist_wins(provider) -> None:
    song = make_song("s1", "Yellow", "Coldplay", external_ids={"fake": "R9"})
    candidates = [RemoteTrackRef("R9", "Something else", "Nobody", 0)]

    result = _matcher(provider).match(song, candidates)

    assert result.track_id == "R9"
    assert result.tier == MatchTier.EXACT_PROVIDER_ID
    assert provider.calls == []


def test_recorded_provider_id_resolved_through_get_track(provider) -> None:
    provider.add_catalog_track("R9", "Yellow", "Coldplay")
    song = make_song("s1", "Yellow", "Coldplay", external_ids={"fake": "R9"})

    result = _matcher(provider).match(song, [])

    assert result.tier == MatchTier.EXACT_PROVIDER_ID
    assert provider.calls_to("get_track") == [("R9",)]
    assert provider.calls_to("search_tracks") == []


def test_isrc_match_against_playlist_candidates(provider) -> None:
    song = make_song("s1", "Yellow", "Coldplay", isrc="gbaye0000351")
    candidates = [RemoteTrackRef("R2", "Yellow (Live)", "Coldplay", 0, isrc="GBAYE0000351")]

    result = _matcher(provider).match(song, candidates)

    assert result.track_id == "R2"
    assert result.tier == MatchTier.EXACT_FINGERPRINT


def test_isrc_lookup_when_not_in_playlist(provider) -> None:
    provider.add_catalog_track("R5", "Yellow", "Coldplay", isrc="GBAYE0000351")
    song = make_song("s1", "Unrelated title", "Coldplay", isrc="GBAYE0000351")

    result = _matcher(provider).match(song, [])

    assert result.track_id == "R5"
    assert result.tier == MatchTier.EXACT_FINGERPRINT
    assert provider.calls_to("search_tracks") == []


def test_fuzzy_match_against_candidates_skips_search(provider) -> None:
    song = make_song("s1", "Hey Jude", "The Beatles")
    candidates = [
        RemoteTrackRef("R1", "Let It Be", "The Beatles", 0),
        RemoteTrackRef("R2", "Hey Jude - Remastered 2015", "The Beatles", 1),
    ]

    result = _matcher(provider).match(song, candidates)

    assert result.track_id == "R2"
    assert result.tier == MatchTier.FUZZY_TITLE_ARTIST
    assert provider.calls_to("search_tracks") == []


def test_fuzzy_match_falls_back_to_one_search(provider) -> None:
    provider.add_catalog_track("R7", "Hey Jude", "The Beatles")
    song = make_song("s1", "Hey Jude", "The Beatles")

    result = _matcher(provider).match(song, [])

    assert result.track_id == "R7"
    assert len(provider.calls_to("search_tracks")) == 1


def test_low_score_is_unmatched(provider) -> None:
    provider.add_catalog_track("R7", "Hey Jude", "Wrong Artist Entirely")
    song = make_song("s1", "Hey Jude", "The Beatles")

    result = _matcher(provider).match(song, [])

    assert not result.is_matched
    assert result.reason == NO_CONFIDENT_MATCH


def test_song_listed_twice_costs_one_search(provider) -> None:
    song = make_song("s1", "Nowhere", "Nobody")
    matcher = _matcher(provider)

    results = matcher.match_all([song, song], [])

    assert [r.is_matched for r in results] == [False, False]
    assert matcher.search_calls == 1
    assert len(provider.calls_to("search_tracks")) == 1


def test_search_failure_after_retries_is_unmatched(provider) -> None:
    provider.fail("search_tracks", *[ProviderUnavailable("boom", 503)] * 3)
    song = make_song("s1", "Hey Jude", "The Beatles")

    result = _matcher(provider).match(song, [])

    assert not result.is_matched
    assert result.reason.startswith("search failed")
    assert len(provider.calls_to("search_tracks")) == 3


def test_auth_failure_is_fatal(provider) -> None:
    provider.fail("search_tracks", ProviderAuthError("expired", 401))
    song = make_song("s1", "Hey Jude", "The Beatles")

    with pytest.raises(AuthError):
        _matcher(provider).match(song, [])
