"""Remote mutation applier.

Runs a plan strictly in order, grouping operations into provider calls:

  - consecutive removes, whatever their positions (descending order keeps
    every position valid against the state before the call);
  - consecutive adds whose positions are contiguous, inserted as one block;
  - moves, one call each.

Batches hold at most `max_batch_size` operations. A failed batch is
recorded and the applier goes on with the next one; only an auth failure
or an interrupted pass stops it. Entries the provider cannot address are
left out of their remove batch and recorded as Unremovable.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from playsync.config import SYNC_MAX_BATCH_SIZE
from playsync.core import (
    LocalPlaylistSnapshot,
    OperationKind,
    OperationOutcome,
    OutcomeStatus,
    SyncOperation,
    log_debug,
    log_error,
    log_info,
    log_progress,
    log_warning,
)

from .errors import (
    REJECTED,
    UNREMOVABLE,
    AuthError,
    PassInterrupted,
    ProviderAuthError,
    ProviderRejected,
    RetryExhausted,
)
from .provider import PlaylistProvider
from .retry import RemoteCaller


@dataclass
class ApplyReport:
    outcomes: List[OperationOutcome] = field(default_factory=list)
    cancelled: bool = False
    interruption: Optional[str] = None
    # operations never sent because the pass was interrupted
    skipped: int = 0

    @property
    def rejected_adds(self) -> List[SyncOperation]:
        return [
            o.operation
            for o in self.outcomes
            if o.error == REJECTED and o.operation.kind == OperationKind.ADD
        ]

    def succeeded(self, kind: OperationKind) -> int:
        return sum(1 for o in self.outcomes if o.succeeded and o.operation.kind == kind)


def group_batches(
    operations: Sequence[SyncOperation], max_batch_size: int = SYNC_MAX_BATCH_SIZE
) -> List[List[SyncOperation]]:
    batches: List[List[SyncOperation]] = []
    current: List[SyncOperation] = []

    def fits(op: SyncOperation) -> bool:
        if not current or len(current) >= max_batch_size:
            return False
        last = current[-1]
        if op.kind != last.kind:
            return False
        if op.kind == OperationKind.REMOVE:
            return op.position < last.position
        if op.kind == OperationKind.ADD:
            return op.position == last.position + 1
        return False

    for op in operations:
        if op.kind == OperationKind.CREATE_PLAYLIST:
            raise ValueError("create_playlist is applied through create_remote_playlist()")
        if fits(op):
            current.append(op)
        else:
            if current:
                batches.append(current)
            current = [op]
    if current:
        batches.append(current)
    return batches


class _RemoteTimeline:
    """
    Entry tokens of the remote playlist as the plan expects it (`planned`)
    and as the provider holds it (`actual`).

    The two lists only diverge once an operation fails or is not sent. From
    then on a position is carried over through the entry it refers to, or
    for an insertion, through the nearest preceding entry that is actually
    present.
    """

    def __init__(self, size: int) -> None:
        self.planned: List[int] = list(range(size))
        self.actual: List[int] = list(range(size))
        self._next_token = size

    @property
    def diverged(self) -> bool:
        return self.planned != self.actual

    @staticmethod
    def _position_after(preceding: Sequence[int], state: Sequence[int]) -> int:
        index = {token: i for i, token in enumerate(state)}
        for token in reversed(preceding):
            if token in index:
                return index[token] + 1
        return 0

    def translate(self, batch: Sequence[SyncOperation]) -> List[Tuple[SyncOperation, int]]:
        """Return (operation with actual positions, entry token) per operation."""
        first = batch[0]
        if first.kind == OperationKind.REMOVE:
            # descending positions: each is valid against the pre-batch state
            out = []
            for op in batch:
                token = self.planned[op.position]
                out.append((replace(op, position=self.actual.index(token)), token))
            return out

        if first.kind == OperationKind.ADD:
            start = self._position_after(self.planned[: first.position], self.actual)
            out = []
            for offset, op in enumerate(batch):
                out.append((replace(op, position=start + offset), self._next_token))
                self._next_token += 1
            return out

        token = self.planned[first.position]
        planned_after = [t for t in self.planned if t != token]
        actual_without = [t for t in self.actual if t != token]
        to_position = self._position_after(planned_after[: first.to_position], actual_without)
        moved = replace(first, position=self.actual.index(token), to_position=to_position)
        return [(moved, token)]

    def commit(
        self,
        batch: Sequence[SyncOperation],
        translated: Sequence[Tuple[SyncOperation, int]],
        sent: Sequence[bool],
    ) -> None:
        """Advance `planned` by the whole batch and `actual` by what was applied."""
        for op, (actual_op, token), applied in zip(batch, translated, sent):
            if op.kind == OperationKind.REMOVE:
                del self.planned[op.position]
                if applied:
                    self.actual.remove(token)
            elif op.kind == OperationKind.ADD:
                self.planned.insert(op.position, token)
                if applied:
                    self.actual.insert(actual_op.position, token)
            else:
                self.planned.remove(token)
                self.planned.insert(op.to_position, token)
                if applied:
                    self.actual.remove(token)
                    self.actual.insert(actual_op.to_position, token)


class MutationApplier:
    def __init__(
        self,
        provider: PlaylistProvider,
        token_info: Dict,
        caller: Optional[RemoteCaller] = None,
        max_batch_size: int = SYNC_MAX_BATCH_SIZE,
    ) -> None:
        self.provider = provider
        self.token_info = token_info
        self.caller = caller or RemoteCaller()
        self.max_batch_size = max(1, max_batch_size)
        self.calls = 0

    def _auth_failure(self, e: ProviderAuthError) -> AuthError:
        return AuthError(f"{self.provider.name} rejected the credentials: {e}")

    # --- create -----------------------------------------------------------------

    def create_remote_playlist(self, local: LocalPlaylistSnapshot):
        """
        Run the CreatePlaylist pre-operation.

        Returns (outcome, remote playlist id or None).
        """
        op = SyncOperation.create_playlist()
        self.caller.check_interrupted()
        self.calls += 1
        try:
            remote_id, attempts = self.caller.call(
                "create_playlist",
                self.provider.create_playlist,
                self.token_info,
                local.name or local.id,
                local.description,
                local.is_public,
            )
        except ProviderAuthError as e:
            raise self._auth_failure(e) from e
        except RetryExhausted as e:
            log_error(f"Could not create remote playlist: {e}")
            return (
                OperationOutcome(op, OutcomeStatus.FAILED, e.attempts, e.code, str(e.last_error)),
                None,
            )
        except ProviderRejected as e:
            log_error(f"Provider refused to create the playlist: {e}")
            return OperationOutcome(op, OutcomeStatus.FAILED, 1, REJECTED, str(e)), None

        log_info(f"Created remote playlist {remote_id} for '{local.name or local.id}'.")
        status = OutcomeStatus.SUCCESS if attempts == 1 else OutcomeStatus.RETRIED
        return OperationOutcome(op, status, attempts), remote_id

    # --- plan -------------------------------------------------------------------

    def _send(self, remote_playlist_id: str, batch: List[SyncOperation]) -> int:
        first = batch[0]
        if first.kind == OperationKind.REMOVE:
            entries = [(op.track_id, op.position) for op in batch]
            _result, attempts = self.caller.call(
                "remove_tracks",
                self.provider.remove_tracks,
                self.token_info,
                remote_playlist_id,
                entries,
            )
        elif first.kind == OperationKind.ADD:
            _result, attempts = self.caller.call(
                "add_tracks",
                self.provider.add_tracks,
                self.token_info,
                remote_playlist_id,
                [op.track_id for op in batch],
                first.position,
            )
        else:
            # the provider reorders by "insert before" on the pre-move list
            insert_before = (
                first.to_position
                if first.to_position < first.position
                else first.to_position + 1
            )
            _result, attempts = self.caller.call(
                "move_tracks",
                self.provider.move_tracks,
                self.token_info,
                remote_playlist_id,
                first.position,
                insert_before,
                1,
            )
        return attempts

    def apply(
        self,
        remote_playlist_id: str,
        operations: Sequence[SyncOperation],
        current_ids: Sequence[str],
    ) -> ApplyReport:
        """
        Apply a plan computed against `current_ids`.

        A failed batch leaves the remote list different from what the plan
        expects; later operations are sent with positions carried over to
        the actual list, so each one still lands on its own entry.
        """
        report = ApplyReport()
        batches = group_batches(operations, self.max_batch_size)
        timeline = _RemoteTimeline(len(current_ids))
        total = len(batches)

        for index, batch in enumerate(batches, start=1):
            translated = timeline.translate(batch)
            if timeline.diverged:
                log_debug(f"Batch {index}/{total} rebased onto the actual remote order")
            outcomes: List[Optional[OperationOutcome]] = [None] * len(batch)

            pending = []
            for slot, (op, _token) in enumerate(translated):
                if op.kind == OperationKind.REMOVE and not self.provider.can_remove(op.track_id):
                    log_warning(f"Entry {op.track_id} at {op.position} cannot be removed remotely")
                    outcomes[slot] = OperationOutcome(
                        op, OutcomeStatus.FAILED, 0, UNREMOVABLE, "entry not addressable"
                    )
                else:
                    pending.append(slot)
            to_send = [translated[slot][0] for slot in pending]

            if to_send:
                try:
                    self.caller.check_interrupted()
                    self.calls += 1
                    attempts = self._send(remote_playlist_id, to_send)
                except PassInterrupted as e:
                    report.cancelled = True
                    report.interruption = e.message
                    report.skipped = sum(len(b) for b in batches[index - 1 :])
                    log_warning(f"Stopping before batch {index}/{total}: {e.message}")
                    break
                except ProviderAuthError as e:
                    raise self._auth_failure(e) from e
                except RetryExhausted as e:
                    log_error(f"Batch {index}/{total} ({to_send[0].kind.value}) failed: {e}")
                    for slot in pending:
                        outcomes[slot] = OperationOutcome(
                            translated[slot][0],
                            OutcomeStatus.FAILED,
                            e.attempts,
                            e.code,
                            str(e.last_error),
                        )
                except ProviderRejected as e:
                    log_error(f"Batch {index}/{total} ({to_send[0].kind.value}) rejected: {e}")
                    for slot in pending:
                        outcomes[slot] = OperationOutcome(
                            translated[slot][0], OutcomeStatus.FAILED, 1, REJECTED, str(e)
                        )
                else:
                    status = OutcomeStatus.SUCCESS if attempts == 1 else OutcomeStatus.RETRIED
                    for slot in pending:
                        outcomes[slot] = OperationOutcome(translated[slot][0], status, attempts)

            timeline.commit(batch, translated, [o.succeeded for o in outcomes])
            report.outcomes.extend(outcomes)
            log_progress(index, total, prefix="Applying")

        return report
