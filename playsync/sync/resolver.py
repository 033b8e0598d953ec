"""Conflict resolver: sync policy applied to a pass before any mutation.

Pure functions over the data model; the only effect is raising a
SyncAborted subclass.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from playsync.core import (
    LocalPlaylistSnapshot,
    LocalSong,
    MatchResult,
    RemotePlaylistSnapshot,
    SyncOperation,
    SyncOptions,
    UnmatchedSong,
)

from .errors import RemotePlaylistMissing, UnresolvedConflict, UpdateNotPermitted


@dataclass
class Resolution:
    # (local song, remote track id), local order, unmatched songs removed
    target: List[Tuple[LocalSong, str]] = field(default_factory=list)
    unmatched: List[UnmatchedSong] = field(default_factory=list)
    pre_operations: List[SyncOperation] = field(default_factory=list)

    @property
    def creates_playlist(self) -> bool:
        return bool(self.pre_operations)


def check_remote_policy(options: SyncOptions, remote: RemotePlaylistSnapshot) -> None:
    """Existence / update gates, evaluated before anything else."""
    if not remote.exists and not options.create_if_not_exists:
        raise RemotePlaylistMissing(
            "Remote playlist does not exist and creation is not allowed."
        )
    if remote.exists and not options.update_existing:
        raise UpdateNotPermitted(
            f"Remote playlist {remote.playlist_id} exists and updating it is not allowed."
        )


def resolve_conflicts(
    options: SyncOptions,
    local: LocalPlaylistSnapshot,
    remote: RemotePlaylistSnapshot,
    matches: Sequence[MatchResult],
) -> Resolution:
    """
    Rules, in order:
      1. remote missing, creation not allowed  -> RemotePlaylistMissing
      2. remote missing, creation allowed      -> CreatePlaylist pre-operation
      3. remote present, update not allowed    -> UpdateNotPermitted
      4. unmatched songs: skipped when handle_conflicts, else
         UnresolvedConflict listing all of them

    Remote tracks without a local counterpart are not handled here: they
    are absent from the target, so the planner removes them.
    """
    if len(matches) != len(local.songs):
        raise ValueError("one MatchResult per local song is required")

    check_remote_policy(options, remote)

    resolution = Resolution()
    if not remote.exists:
        resolution.pre_operations.append(SyncOperation.create_playlist())

    for song, match in zip(local.songs, matches):
        if match.is_matched:
            resolution.target.append((song, match.track_id))
        else:
            resolution.unmatched.append(
                UnmatchedSong(
                    song_id=song.id,
                    reason=match.reason or "unmatched",
                    title=song.title,
                    artist=song.artist,
                )
            )

    if resolution.unmatched and not options.handle_conflicts:
        raise UnresolvedConflict(resolution.unmatched)

    return resolution
