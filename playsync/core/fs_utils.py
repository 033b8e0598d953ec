import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Callable, Dict, Optional

# One lock per JSON file, so read-modify-write cycles from concurrent sync
# passes do not clobber each other inside this process.
_FILE_LOCKS: Dict[str, threading.Lock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def ensure_parent_dir(path: Path | str) -> None:
    """Ensure the parent directory of a file path exists."""
    ensure_dir(os.path.dirname(str(path)))


def ensure_dir(directory: str) -> None:
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def write_json(path: str | Path, data: Any) -> None:
    """
    Write JSON data to a file using an atomic replace.

    The document is written to a temporary file next to the target, fsynced,
    then moved over the target with os.replace. Readers either see the
    previous document or the new one, never a truncated file.
    """
    target_path = Path(path)
    ensure_parent_dir(target_path)

    fd, tmp_path_str = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=target_path.name,
        suffix=".tmp",
    )
    tmp_path = Path(tmp_path_str)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, target_path)
    except Exception:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def read_json(
    path: str | Path,
    default: Any = None,
    *,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Any:
    """
    Read a JSON file safely.

    - returns `default` if the file does not exist
    - returns `default` if the JSON is invalid (optionally calling on_error)
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError as e:
        if on_error:
            on_error(e)
        return default


def _lock_for(path: str | Path) -> threading.Lock:
    key = os.path.abspath(str(path))
    with _FILE_LOCKS_GUARD:
        lock = _FILE_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _FILE_LOCKS[key] = lock
        return lock


def update_json(
    path: str | Path,
    mutate: Callable[[Any], Any],
    default: Any = None,
) -> Any:
    """
    Read-modify-write a JSON document under a per-file process lock.

    `mutate` receives the current document (or `default`) and returns the
    document to persist. The persisted document is returned.
    """
    with _lock_for(path):
        current = read_json(path, default=default)
        updated = mutate(current)
        write_json(path, updated)
        return updated
