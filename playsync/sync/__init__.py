"""Public façade for the playsync.sync package.

This module exposes the sync engine (matcher, reader, resolver, planner,
applier and orchestrator), its error taxonomy and the provider contract.
Callers should import these symbols from this façade instead of the
internal modules.
"""

from .applier import ApplyReport, MutationApplier, group_batches
from .batch import sync_many
from .errors import (
    RATE_LIMIT_EXHAUSTED,
    REJECTED,
    TRANSIENT_FAILURE,
    UNREMOVABLE,
    AuthError,
    NotFoundLocal,
    PassInterrupted,
    ProviderAuthError,
    ProviderError,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderRejected,
    ProviderUnavailable,
    RemotePlaylistMissing,
    RetryExhausted,
    SyncAborted,
    SyncError,
    SyncInProgress,
    TransientFetchError,
    UnresolvedConflict,
    UpdateNotPermitted,
)
from .locks import PlaylistLockRegistry, get_lock_registry
from .matcher import NO_CONFIDENT_MATCH, TrackMatcher, best_fuzzy_candidate
from .orchestrator import EngineSettings, SyncEngine, SyncPass, SyncState
from .planner import SyncPlan, apply_plan_locally, longest_common_subsequence, plan_operations, plan_sync
from .provider import PlaylistProvider, TrackPage
from .rate_limit import Deadline, TokenBucket, get_rate_limiter, reset_rate_limiters
from .reader import read_remote_playlist
from .resolver import Resolution, check_remote_policy, resolve_conflicts
from .retry import RemoteCaller

__all__ = [
    "PlaylistProvider",
    "TrackPage",
    "TrackMatcher",
    "best_fuzzy_candidate",
    "NO_CONFIDENT_MATCH",
    "read_remote_playlist",
    "Resolution",
    "check_remote_policy",
    "resolve_conflicts",
    "SyncPlan",
    "longest_common_subsequence",
    "plan_operations",
    "plan_sync",
    "apply_plan_locally",
    "ApplyReport",
    "MutationApplier",
    "group_batches",
    "Deadline",
    "TokenBucket",
    "get_rate_limiter",
    "reset_rate_limiters",
    "RemoteCaller",
    "PlaylistLockRegistry",
    "get_lock_registry",
    "EngineSettings",
    "SyncEngine",
    "SyncPass",
    "SyncState",
    "sync_many",
    "TRANSIENT_FAILURE",
    "RATE_LIMIT_EXHAUSTED",
    "REJECTED",
    "UNREMOVABLE",
    "SyncError",
    "AuthError",
    "NotFoundLocal",
    "SyncInProgress",
    "TransientFetchError",
    "SyncAborted",
    "RemotePlaylistMissing",
    "UpdateNotPermitted",
    "UnresolvedConflict",
    "PassInterrupted",
    "RetryExhausted",
    "ProviderError",
    "ProviderAuthError",
    "ProviderRateLimited",
    "ProviderUnavailable",
    "ProviderRejected",
    "ProviderNotFound",
]
