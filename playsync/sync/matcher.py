"""Identifier matcher: local song -> remote track id.

Resolution order, first hit wins:
  1. previously recorded provider id (in the playlist, or via get-track)
  2. ISRC fingerprint (in the playlist, or via provider-wide lookup)
  3. fuzzy (title, artist) against the playlist, then against one search call

A provider whose ISRC lookup goes through its search endpoint spends the
song's one search there; tier 3 then only compares against the playlist.

A matcher instance lives for exactly one pass: results are memoized per
local song id so a song listed twice costs one search at most, and nothing
survives into the next pass.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple

from playsync.config import FUZZY_MATCH_THRESHOLD, SEARCH_RESULT_LIMIT
from playsync.core import (
    LocalSong,
    MatchResult,
    MatchTier,
    RemoteTrackRef,
    log_debug,
    log_warning,
)

from .errors import AuthError, ProviderAuthError, ProviderError, RetryExhausted
from .normalizer import title_artist_score
from .provider import PlaylistProvider
from .retry import RemoteCaller

NO_CONFIDENT_MATCH = "no confident match"


def best_fuzzy_candidate(
    song: LocalSong,
    candidates: Sequence[RemoteTrackRef],
) -> Tuple[Optional[RemoteTrackRef], float]:
    """Highest scoring candidate; ties go to the earliest one."""
    best: Optional[RemoteTrackRef] = None
    best_score = 0.0
    for candidate in candidates:
        score = title_artist_score(song.title, song.artist, candidate.title, candidate.artist)
        if score > best_score:
            best, best_score = candidate, score
    return best, best_score


class TrackMatcher:
    def __init__(
        self,
        provider: PlaylistProvider,
        token_info: Dict,
        caller: Optional[RemoteCaller] = None,
        threshold: float = FUZZY_MATCH_THRESHOLD,
        search_limit: int = SEARCH_RESULT_LIMIT,
    ) -> None:
        self.provider = provider
        self.token_info = token_info
        self.caller = caller or RemoteCaller()
        self.threshold = threshold
        self.search_limit = search_limit
        self.search_calls = 0
        self._results: Dict[str, MatchResult] = {}
        # songs that already used their one search-endpoint call
        self._searched: Set[str] = set()

    # --- remote lookups -------------------------------------------------------

    def _lookup(self, name: str, fn, *args) -> Optional[RemoteTrackRef]:
        """Provider lookup where any non-auth failure just means 'no hit'."""
        try:
            result, _attempts = self.caller.call(name, fn, self.token_info, *args)
            return result
        except ProviderAuthError as e:
            raise AuthError(f"{self.provider.name} rejected the credentials: {e}") from e
        except (ProviderError, RetryExhausted) as e:
            log_warning(f"{name} failed: {e}")
            return None

    def _search(self, song: LocalSong) -> Tuple[List[RemoteTrackRef], Optional[str]]:
        self.search_calls += 1
        self._searched.add(song.id)
        try:
            results, _attempts = self.caller.call(
                "search_tracks",
                self.provider.search_tracks,
                self.token_info,
                song.title,
                song.artist,
                self.search_limit,
            )
            return results, None
        except ProviderAuthError as e:
            raise AuthError(f"{self.provider.name} rejected the credentials: {e}") from e
        except (ProviderError, RetryExhausted) as e:
            log_warning(f"Search failed for '{song.artist} - {song.title}': {e}")
            return [], f"search failed: {e}"

    # --- tiers ----------------------------------------------------------------

    def _match_provider_id(
        self, song: LocalSong, candidates: Sequence[RemoteTrackRef]
    ) -> Optional[MatchResult]:
        recorded = song.external_id(self.provider.name)
        if not recorded:
            return None
        if any(c.track_id == recorded for c in candidates):
            return MatchResult.matched(song.id, recorded, MatchTier.EXACT_PROVIDER_ID)
        track = self._lookup("get_track", self.provider.get_track, recorded)
        if track is not None:
            return MatchResult.matched(song.id, track.track_id, MatchTier.EXACT_PROVIDER_ID)
        return None

    def _match_fingerprint(
        self, song: LocalSong, candidates: Sequence[RemoteTrackRef]
    ) -> Optional[MatchResult]:
        if not song.isrc:
            return None
        isrc = song.isrc.strip().upper()
        for c in candidates:
            if c.isrc and c.isrc.strip().upper() == isrc:
                return MatchResult.matched(song.id, c.track_id, MatchTier.EXACT_FINGERPRINT)
        if self.provider.isrc_lookup_is_search:
            self.search_calls += 1
            self._searched.add(song.id)
        track = self._lookup("find_by_isrc", self.provider.find_by_isrc, isrc)
        if track is not None:
            return MatchResult.matched(song.id, track.track_id, MatchTier.EXACT_FINGERPRINT)
        return None

    def _match_fuzzy(
        self, song: LocalSong, candidates: Sequence[RemoteTrackRef]
    ) -> MatchResult:
        best, score = best_fuzzy_candidate(song, candidates)
        if best is not None and score > self.threshold:
            return MatchResult.matched(
                song.id, best.track_id, MatchTier.FUZZY_TITLE_ARTIST, round(score, 4)
            )

        if song.id in self._searched:
            return MatchResult.unmatched(song.id, NO_CONFIDENT_MATCH)
        results, error = self._search(song)
        best, score = best_fuzzy_candidate(song, results)
        if best is not None and score > self.threshold:
            return MatchResult.matched(
                song.id, best.track_id, MatchTier.FUZZY_TITLE_ARTIST, round(score, 4)
            )
        return MatchResult.unmatched(song.id, error or NO_CONFIDENT_MATCH)

    def match(self, song: LocalSong, remote_candidates: Sequence[RemoteTrackRef]) -> MatchResult:
        cached = self._results.get(song.id)
        if cached is not None:
            return cached

        result = (
            self._match_provider_id(song, remote_candidates)
            or self._match_fingerprint(song, remote_candidates)
            or self._match_fuzzy(song, remote_candidates)
        )
        if result.is_matched:
            log_debug(
                f"Matched '{song.artist} - {song.title}' -> {result.track_id} "
                f"({result.tier.value})"
            )
        self._results[song.id] = result
        return result

    def match_all(
        self, songs: Sequence[LocalSong], remote_candidates: Sequence[RemoteTrackRef]
    ) -> List[MatchResult]:
        return [self.match(song, remote_candidates) for song in songs]
