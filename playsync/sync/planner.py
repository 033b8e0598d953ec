"""Diff planner: minimal add / remove / move script between two ordered lists.

The longest common subsequence (LCS) of the current remote order and the
target order is the backbone that never moves. Everything else is:

  - Remove : remote entries with no unpaired counterpart in the target,
             emitted in descending position order;
  - Move   : entries present on both sides but outside the backbone, each
             moved exactly once, placed right after its target predecessor;
  - Add    : target entries with no remote counterpart, emitted in
             ascending target position.

Repeated track ids are matched positionally, so a track listed twice is
two independent entries.

Every emitted position is computed against a simulated remote list to
which all previous operations have been applied, so the applier can run
the plan strictly in order without re-deriving anything.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence, Tuple

from playsync.core import (
    LocalSong,
    OperationKind,
    RemotePlaylistSnapshot,
    SyncOperation,
)


@dataclass
class SyncPlan:
    operations: List[SyncOperation] = field(default_factory=list)
    anchors: int = 0

    def _count(self, kind: OperationKind) -> int:
        return sum(1 for op in self.operations if op.kind == kind)

    @property
    def adds(self) -> int:
        return self._count(OperationKind.ADD)

    @property
    def removes(self) -> int:
        return self._count(OperationKind.REMOVE)

    @property
    def moves(self) -> int:
        return self._count(OperationKind.MOVE)

    @property
    def is_empty(self) -> bool:
        return not self.operations


def longest_common_subsequence(
    current: Sequence[str], target: Sequence[str]
) -> List[Tuple[int, int]]:
    """
    Return the LCS as (index in current, index in target) pairs, ascending.

    Common prefix and suffix are peeled off first: for an incremental edit
    of a long playlist the quadratic table only covers the edited middle.
    """
    n, m = len(current), len(target)

    prefix = 0
    while prefix < n and prefix < m and current[prefix] == target[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < n - prefix
        and suffix < m - prefix
        and current[n - 1 - suffix] == target[m - 1 - suffix]
    ):
        suffix += 1

    pairs: List[Tuple[int, int]] = [(k, k) for k in range(prefix)]

    a = current[prefix : n - suffix]
    b = target[prefix : m - suffix]
    rows, cols = len(a), len(b)
    if rows and cols:
        # table[i][j] = LCS length of a[i:] and b[j:]
        table = [[0] * (cols + 1) for _ in range(rows + 1)]
        for i in range(rows - 1, -1, -1):
            row, below = table[i], table[i + 1]
            ai = a[i]
            for j in range(cols - 1, -1, -1):
                if ai == b[j]:
                    row[j] = below[j + 1] + 1
                else:
                    row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

        i = j = 0
        while i < rows and j < cols:
            if a[i] == b[j]:
                pairs.append((prefix + i, prefix + j))
                i += 1
                j += 1
            elif table[i + 1][j] >= table[i][j + 1]:
                i += 1
            else:
                j += 1

    pairs.extend((n - suffix + k, m - suffix + k) for k in range(suffix))
    return pairs


def plan_operations(
    current_ids: Sequence[str],
    target_ids: Sequence[str],
    target_song_ids: Optional[Sequence[Optional[str]]] = None,
) -> SyncPlan:
    """Compute the ordered operation list turning `current_ids` into `target_ids`."""
    if target_song_ids is None:
        target_song_ids = [None] * len(target_ids)

    anchors = longest_common_subsequence(current_ids, target_ids)
    anchored_current = {i for i, _ in anchors}
    target_to_current: Dict[int, int] = {j: i for i, j in anchors}

    # Pair leftover entries of the same track id, in order: these are moves.
    free_current: Dict[str, Deque[int]] = defaultdict(deque)
    for i, track_id in enumerate(current_ids):
        if i not in anchored_current:
            free_current[track_id].append(i)

    add_positions: List[int] = []
    for j, track_id in enumerate(target_ids):
        if j in target_to_current:
            continue
        queue = free_current.get(track_id)
        if queue:
            target_to_current[j] = queue.popleft()
        else:
            add_positions.append(j)

    remove_indices = sorted(
        (i for queue in free_current.values() for i in queue), reverse=True
    )

    operations: List[SyncOperation] = []
    # Simulated remote list; tokens are indices into current_ids.
    state: List[int] = list(range(len(current_ids)))

    # 1) removals, highest position first: no removal shifts a later one
    for i in remove_indices:
        position = state.index(i)
        operations.append(SyncOperation.remove(position, track_id=current_ids[i]))
        del state[position]

    # 2) moves, walking the target order
    desired = [target_to_current[j] for j in sorted(target_to_current)]
    current_to_target = {i: j for j, i in target_to_current.items()}
    for k, token in enumerate(desired):
        if token in anchored_current:
            continue
        from_position = state.index(token)
        if k == 0:
            to_position = 0
        else:
            predecessor = state.index(desired[k - 1])
            to_position = predecessor if from_position < predecessor else predecessor + 1
        if from_position == to_position:
            continue
        j = current_to_target[token]
        operations.append(
            SyncOperation.move(
                from_position,
                to_position,
                track_id=current_ids[token],
                local_song_id=target_song_ids[j],
            )
        )
        state.pop(from_position)
        state.insert(to_position, token)

    # 3) additions, lowest target position first
    for j in add_positions:
        operations.append(
            SyncOperation.add(target_ids[j], j, local_song_id=target_song_ids[j])
        )

    return SyncPlan(operations=operations, anchors=len(anchors))


def plan_sync(
    remote: RemotePlaylistSnapshot,
    target: Sequence[Tuple[LocalSong, str]],
) -> SyncPlan:
    """Plan against a remote snapshot (empty when the playlist is to be created)."""
    current_ids = remote.track_ids if remote.exists else []
    target_ids = [track_id for _song, track_id in target]
    song_ids = [song.id for song, _track_id in target]
    return plan_operations(current_ids, target_ids, song_ids)


def apply_plan_locally(current_ids: Sequence[str], operations: Sequence[SyncOperation]) -> List[str]:
    """
    Replay a plan on a plain list of track ids.

    Used to preview the resulting remote order (dry runs, tests).
    """
    state = list(current_ids)
    for op in operations:
        if op.kind == OperationKind.REMOVE:
            del state[op.position]
        elif op.kind == OperationKind.ADD:
            state.insert(op.position, op.track_id)
        elif op.kind == OperationKind.MOVE:
            track_id = state.pop(op.position)
            state.insert(op.to_position, track_id)
    return state
