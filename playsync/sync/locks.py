import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from playsync.core import log_debug

from .errors import SyncInProgress


class PlaylistLockRegistry:
    """
    One non-reentrant lock per local playlist id, shared by every pass in
    the process. Two passes on the same playlist never overlap; passes on
    different playlists never wait for each other.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, playlist_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(playlist_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[playlist_id] = lock
            return lock

    def is_locked(self, playlist_id: str) -> bool:
        return self._lock_for(playlist_id).locked()

    @contextmanager
    def hold(self, playlist_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold the playlist lock for the duration of the block.

        Waits at most `timeout` seconds (forever when None), then raises
        SyncInProgress. The lock is released on every exit path.
        """
        lock = self._lock_for(playlist_id)
        acquired = lock.acquire(timeout=-1 if timeout is None else max(0.0, timeout))
        if not acquired:
            raise SyncInProgress(f"A sync of playlist {playlist_id} is already running.")
        log_debug(f"Lock acquired for playlist {playlist_id}")
        try:
            yield
        finally:
            lock.release()
            log_debug(f"Lock released for playlist {playlist_id}")


_default_registry = PlaylistLockRegistry()


def get_lock_registry() -> PlaylistLockRegistry:
    return _default_registry
