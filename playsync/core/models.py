"""Data model shared by the sync engine, the stores and the HTTP layer.

Snapshots and operations are frozen dataclasses: they are point-in-time
captures built at the start of a pass and never mutated afterwards.
Results and outcomes are mutable because the orchestrator fills them in as
the pass progresses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class LocalSong:
    id: str
    title: str
    artist: str
    album: Optional[str] = None
    # platform name -> previously recorded remote track id
    external_ids: Mapping[str, str] = field(default_factory=dict)
    isrc: Optional[str] = None

    def external_id(self, platform: str) -> Optional[str]:
        return self.external_ids.get(platform) or None


@dataclass(frozen=True)
class LocalPlaylistSnapshot:
    """
    Ordered local playlist. The order is the intended final remote order;
    the same song may appear several times.
    """

    id: str
    owner_id: str
    songs: Tuple[LocalSong, ...]
    name: str = ""
    description: Optional[str] = None
    is_public: bool = False


@dataclass(frozen=True)
class RemoteTrackRef:
    track_id: str
    title: str
    artist: str
    position: int
    isrc: Optional[str] = None


@dataclass(frozen=True)
class RemotePlaylistSnapshot:
    playlist_id: Optional[str]
    tracks: Tuple[RemoteTrackRef, ...] = ()
    exists: bool = True

    @classmethod
    def not_found(cls, playlist_id: Optional[str] = None) -> "RemotePlaylistSnapshot":
        return cls(playlist_id=playlist_id, tracks=(), exists=False)

    @property
    def track_ids(self) -> List[str]:
        return [t.track_id for t in self.tracks]


class MatchTier(str, Enum):
    """Confidence tiers, highest first."""

    EXACT_PROVIDER_ID = "exact_provider_id"
    EXACT_FINGERPRINT = "exact_fingerprint"
    FUZZY_TITLE_ARTIST = "fuzzy_title_artist"


@dataclass(frozen=True)
class MatchResult:
    local_song_id: str
    track_id: Optional[str] = None
    tier: Optional[MatchTier] = None
    score: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def matched(
        cls,
        local_song_id: str,
        track_id: str,
        tier: MatchTier,
        score: float = 1.0,
    ) -> "MatchResult":
        return cls(local_song_id=local_song_id, track_id=track_id, tier=tier, score=score)

    @classmethod
    def unmatched(cls, local_song_id: str, reason: str) -> "MatchResult":
        return cls(local_song_id=local_song_id, reason=reason)

    @property
    def is_matched(self) -> bool:
        return self.track_id is not None


@dataclass(frozen=True)
class SyncOptions:
    """Policy switches for one pass. No defaults: callers must decide."""

    create_if_not_exists: bool
    update_existing: bool
    handle_conflicts: bool


class OperationKind(str, Enum):
    CREATE_PLAYLIST = "create_playlist"
    ADD = "add"
    REMOVE = "remove"
    MOVE = "move"


@dataclass(frozen=True)
class SyncOperation:
    """
    One remote mutation.

    Positions always refer to the remote playlist as it is right before this
    operation runs (all earlier operations of the plan already applied).

    - ADD    : insert `track_id` so that it ends up at `position`
    - REMOVE : delete the entry currently at `position`
    - MOVE   : take the entry at `position` and re-insert it so that it ends
               up at `to_position`
    """

    kind: OperationKind
    track_id: Optional[str] = None
    position: Optional[int] = None
    to_position: Optional[int] = None
    local_song_id: Optional[str] = None

    @classmethod
    def create_playlist(cls) -> "SyncOperation":
        return cls(kind=OperationKind.CREATE_PLAYLIST)

    @classmethod
    def add(
        cls, track_id: str, position: int, local_song_id: Optional[str] = None
    ) -> "SyncOperation":
        return cls(
            kind=OperationKind.ADD,
            track_id=track_id,
            position=position,
            local_song_id=local_song_id,
        )

    @classmethod
    def remove(cls, position: int, track_id: Optional[str] = None) -> "SyncOperation":
        return cls(kind=OperationKind.REMOVE, track_id=track_id, position=position)

    @classmethod
    def move(
        cls,
        from_position: int,
        to_position: int,
        track_id: Optional[str] = None,
        local_song_id: Optional[str] = None,
    ) -> "SyncOperation":
        return cls(
            kind=OperationKind.MOVE,
            track_id=track_id,
            position=from_position,
            to_position=to_position,
            local_song_id=local_song_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.track_id is not None:
            data["track_id"] = self.track_id
        if self.kind == OperationKind.MOVE:
            data["from_position"] = self.position
            data["to_position"] = self.to_position
        elif self.position is not None:
            data["position"] = self.position
        if self.local_song_id is not None:
            data["local_song_id"] = self.local_song_id
        return data


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    RETRIED = "retried"  # succeeded after at least one retry
    FAILED = "failed"


@dataclass
class OperationOutcome:
    operation: SyncOperation
    status: OutcomeStatus
    attempts: int = 1
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status != OutcomeStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation.to_dict(),
            "status": self.status.value,
            "attempts": self.attempts,
            "error": self.error,
            "message": self.message,
        }


@dataclass(frozen=True)
class UnmatchedSong:
    song_id: str
    reason: str
    title: Optional[str] = None
    artist: Optional[str] = None


class SyncStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass
class SyncResult:
    playlist_id: str
    remote_playlist_id: Optional[str] = None
    created: bool = False
    songs_added: int = 0
    songs_removed: int = 0
    songs_reordered: int = 0
    unmatched: List[UnmatchedSong] = field(default_factory=list)
    outcomes: List[OperationOutcome] = field(default_factory=list)
    status: SyncStatus = SyncStatus.COMPLETED
    message: str = ""
    cancelled: bool = False
    duration: float = 0.0

    @property
    def failed_outcomes(self) -> List[OperationOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "remote_playlist_id": self.remote_playlist_id,
            "created": self.created,
            "songs_added": self.songs_added,
            "songs_removed": self.songs_removed,
            "songs_reordered": self.songs_reordered,
            "unmatched": [
                {
                    "song_id": u.song_id,
                    "reason": u.reason,
                    "title": u.title,
                    "artist": u.artist,
                }
                for u in self.unmatched
            ],
            "outcomes": [o.to_dict() for o in self.outcomes],
            "status": self.status.value,
            "message": self.message,
            "cancelled": self.cancelled,
            "duration": round(self.duration, 3),
        }
