"""Sync orchestrator: one pass, local playlist -> remote playlist.

    Idle -> Reading -> Matching -> Resolving -> Planning -> Applying
         -> Reporting -> Done

A policy abort always leaves from Resolving: when the existence or update
gate already fails after Reading, the pass enters Resolving straight away
and aborts there, before any search. Fatal errors (auth, unreadable
remote) abort from the state they happen in. The playlist lock is held
from Reading until Done/Aborted, whatever happens.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from playsync.config import (
    FUZZY_MATCH_THRESHOLD,
    RATE_LIMIT_CAPACITY,
    RATE_LIMIT_REFILL_PER_SECOND,
    READ_PAGE_SIZE,
    SEARCH_RESULT_LIMIT,
    SYNC_BACKOFF_SECONDS,
    SYNC_MAX_ATTEMPTS,
    SYNC_MAX_BATCH_SIZE,
    SYNC_PASS_DEADLINE_SECONDS,
)
from playsync.core import (
    LocalPlaylistSnapshot,
    OperationKind,
    SyncOptions,
    SyncResult,
    SyncStatus,
    UnmatchedSong,
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from playsync.data import JsonPlaylistStore, SyncRecordStore

from .applier import ApplyReport, MutationApplier
from .errors import NotFoundLocal, PassInterrupted, SyncAborted, SyncError
from .locks import PlaylistLockRegistry, get_lock_registry
from .matcher import TrackMatcher
from .planner import plan_sync
from .provider import PlaylistProvider
from .rate_limit import Deadline, TokenBucket, get_rate_limiter
from .reader import read_remote_playlist
from .resolver import check_remote_policy, resolve_conflicts
from .retry import RemoteCaller

REJECTED_BY_PROVIDER = "rejected by provider"


class SyncState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    MATCHING = "matching"
    RESOLVING = "resolving"
    PLANNING = "planning"
    APPLYING = "applying"
    REPORTING = "reporting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class EngineSettings:
    """Tunables of a SyncEngine; defaults come from playsync.config."""

    deadline_seconds: Optional[float] = SYNC_PASS_DEADLINE_SECONDS
    max_attempts: int = SYNC_MAX_ATTEMPTS
    backoff_seconds: float = SYNC_BACKOFF_SECONDS
    max_batch_size: int = SYNC_MAX_BATCH_SIZE
    page_size: int = READ_PAGE_SIZE
    rate_limit_capacity: int = RATE_LIMIT_CAPACITY
    rate_limit_refill_per_second: float = RATE_LIMIT_REFILL_PER_SECOND
    fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD
    search_limit: int = SEARCH_RESULT_LIMIT
    sleep: Callable[[float], None] = time.sleep


StateListener = Callable[[str, SyncState], None]


class SyncEngine:
    def __init__(
        self,
        provider: PlaylistProvider,
        token_loader: Callable[[str], Dict],
        playlist_store: Optional[JsonPlaylistStore] = None,
        record_store: Optional[SyncRecordStore] = None,
        settings: Optional[EngineSettings] = None,
        lock_registry: Optional[PlaylistLockRegistry] = None,
        rate_limiter: Optional[TokenBucket] = None,
        state_listener: Optional[StateListener] = None,
    ) -> None:
        self.provider = provider
        self.token_loader = token_loader
        self.playlist_store = playlist_store or JsonPlaylistStore()
        self.record_store = record_store or SyncRecordStore()
        self.settings = settings or EngineSettings()
        self.locks = lock_registry or get_lock_registry()
        self.rate_limiter = rate_limiter
        self.state_listener = state_listener

    def _limiter_for(self, user_id: str) -> TokenBucket:
        if self.rate_limiter is not None:
            return self.rate_limiter
        return get_rate_limiter(
            self.provider.name,
            user_id,
            self.settings.rate_limit_capacity,
            self.settings.rate_limit_refill_per_second,
        )

    def sync_playlist(
        self,
        user_id: str,
        playlist_id: str,
        options: SyncOptions,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncResult:
        """
        Run one pass for `playlist_id` on behalf of `user_id`.

        Raises SyncError subclasses for aborts (policy, auth, not found, ...);
        anything else comes back as a SyncResult, possibly partial.
        """
        log_section(f"Sync playlist {playlist_id} -> {self.provider.name}")

        local = self.playlist_store.get_playlist(user_id, playlist_id)
        if local is None:
            raise NotFoundLocal(f"Playlist {playlist_id} not found.")
        token_info = self.token_loader(user_id)

        deadline = Deadline(self.settings.deadline_seconds)
        caller = RemoteCaller(
            rate_limiter=self._limiter_for(user_id),
            deadline=deadline,
            cancel_event=cancel_event,
            max_attempts=self.settings.max_attempts,
            backoff_seconds=self.settings.backoff_seconds,
            sleep=self.settings.sleep,
        )

        with self.locks.hold(playlist_id, timeout=deadline.remaining()):
            return SyncPass(self, local, token_info, options, caller).run()


class SyncPass:
    """State of one pass; built and discarded by SyncEngine.sync_playlist."""

    def __init__(
        self,
        engine: SyncEngine,
        local: LocalPlaylistSnapshot,
        token_info: Dict,
        options: SyncOptions,
        caller: RemoteCaller,
    ) -> None:
        self.engine = engine
        self.provider = engine.provider
        self.platform = engine.provider.name
        self.local = local
        self.token_info = token_info
        self.options = options
        self.caller = caller
        self.state = SyncState.IDLE
        self.states: List[SyncState] = [SyncState.IDLE]
        self._started = time.monotonic()

    def _enter(self, state: SyncState) -> None:
        log_step(f"[{self.local.id}] {self.state.value} -> {state.value}")
        self.state = state
        self.states.append(state)
        if self.engine.state_listener is not None:
            self.engine.state_listener(self.local.id, state)

    def run(self) -> SyncResult:
        store = self.engine.record_store
        store.mark_in_progress(self.local.id, self.platform)
        try:
            result = self._run()
        except SyncAborted as e:
            self._enter(SyncState.ABORTED)
            log_warning(f"Sync aborted: {e.message}")
            store.record_failure(self.local.id, self.platform, SyncStatus.ABORTED, e.message)
            raise
        except SyncError as e:
            self._enter(SyncState.ABORTED)
            log_error(f"Sync failed: {e.message}")
            store.record_failure(
                self.local.id, self.platform, SyncStatus.FAILED, f"Sync failed: {e.message}"
            )
            raise
        except Exception as e:
            self._enter(SyncState.ABORTED)
            store.record_failure(
                self.local.id, self.platform, SyncStatus.FAILED, f"Sync failed: {e}"
            )
            raise

        result.duration = time.monotonic() - self._started
        store.record_result(self.platform, result)
        self._enter(SyncState.DONE)
        if result.status == SyncStatus.COMPLETED:
            log_success(result.message)
        else:
            log_warning(result.message)
        return result

    def _run(self) -> SyncResult:
        settings = self.engine.settings
        result = SyncResult(playlist_id=self.local.id)

        try:
            self._enter(SyncState.READING)
            record = self.engine.record_store.get(self.local.id, self.platform)
            remote = read_remote_playlist(
                self.provider,
                self.token_info,
                record.remote_playlist_id if record else None,
                caller=self.caller,
                page_size=settings.page_size,
            )
            # Existence / update gates before matching: no search is spent on
            # a pass that would be aborted anyway.
            try:
                check_remote_policy(self.options, remote)
            except SyncAborted:
                self._enter(SyncState.RESOLVING)
                raise
            if remote.exists:
                result.remote_playlist_id = remote.playlist_id

            self._enter(SyncState.MATCHING)
            matcher = TrackMatcher(
                self.provider,
                self.token_info,
                caller=self.caller,
                threshold=settings.fuzzy_threshold,
                search_limit=settings.search_limit,
            )
            matches = matcher.match_all(self.local.songs, remote.tracks)
            log_info(
                f"Matched {sum(1 for m in matches if m.is_matched)}/{len(matches)} songs "
                f"({matcher.search_calls} search call(s))."
            )
        except PassInterrupted as e:
            return self._report_interrupted(result, e.message, ApplyReport())

        self._enter(SyncState.RESOLVING)
        resolution = resolve_conflicts(self.options, self.local, remote, matches)
        result.unmatched = list(resolution.unmatched)

        self._enter(SyncState.PLANNING)
        plan = plan_sync(remote, resolution.target)
        log_info(
            f"Plan: {plan.adds} add(s), {plan.removes} remove(s), {plan.moves} move(s), "
            f"{plan.anchors} track(s) kept in place."
        )

        self._enter(SyncState.APPLYING)
        applier = MutationApplier(
            self.provider, self.token_info, caller=self.caller, max_batch_size=settings.max_batch_size
        )

        if resolution.creates_playlist:
            try:
                outcome, remote_id = applier.create_remote_playlist(self.local)
            except PassInterrupted as e:
                return self._report_interrupted(result, e.message, ApplyReport())
            result.outcomes.append(outcome)
            if remote_id is None:
                self._enter(SyncState.REPORTING)
                result.status = SyncStatus.FAILED
                result.message = f"Sync failed: could not create remote playlist ({outcome.message})"
                return result
            self.engine.record_store.set_remote_playlist_id(self.local.id, self.platform, remote_id)
            result.remote_playlist_id = remote_id
            result.created = True

        report = ApplyReport()
        if plan.operations:
            current_ids = remote.track_ids if remote.exists else []
            report = applier.apply(result.remote_playlist_id, plan.operations, current_ids)

        if report.cancelled:
            return self._report_interrupted(result, report.interruption or "interrupted", report)

        self._enter(SyncState.REPORTING)
        self._collect(result, report)

        synced = len(resolution.target) - len(report.rejected_adds)
        errors = len(result.failed_outcomes)
        conflicts = len(result.unmatched)
        if not errors and not conflicts:
            result.status = SyncStatus.COMPLETED
            result.message = f"Successfully synced {synced} tracks"
        elif errors and not any(o.succeeded for o in report.outcomes):
            result.status = SyncStatus.FAILED
            result.message = f"Sync failed: all {errors} remote operation(s) failed"
        else:
            result.status = SyncStatus.PARTIAL
            result.message = (
                f"Synced {synced} tracks with {conflicts} conflicts and {errors} errors"
            )
        return result

    def _collect(self, result: SyncResult, report: ApplyReport) -> None:
        result.outcomes.extend(report.outcomes)
        result.songs_added = report.succeeded(OperationKind.ADD)
        result.songs_removed = report.succeeded(OperationKind.REMOVE)
        result.songs_reordered = report.succeeded(OperationKind.MOVE)

        songs = {song.id: song for song in self.local.songs}
        for op in report.rejected_adds:
            song = songs.get(op.local_song_id or "")
            result.unmatched.append(
                UnmatchedSong(
                    song_id=op.local_song_id or op.track_id or "",
                    reason=REJECTED_BY_PROVIDER,
                    title=song.title if song else None,
                    artist=song.artist if song else None,
                )
            )

    def _report_interrupted(
        self, result: SyncResult, reason: str, report: ApplyReport
    ) -> SyncResult:
        self._enter(SyncState.REPORTING)
        self._collect(result, report)
        result.cancelled = True
        applied = sum(1 for o in result.outcomes if o.succeeded)
        if result.outcomes:
            result.status = SyncStatus.PARTIAL
        else:
            result.status = SyncStatus.ABORTED
        result.message = (
            f"Sync interrupted ({reason}): {applied} operation(s) applied, "
            f"{report.skipped} not sent"
        )
        return result
