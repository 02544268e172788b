"""
JSON file helpers: cooperative locking and all-or-nothing writes.
"""

import contextlib
import errno
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

try:  # fcntl is only available on POSIX platforms
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows has no advisory locks
    fcntl = None  # type: ignore


DEFAULT_LOCK_TIMEOUT = 8.0  # seconds
LOCK_POLL_INTERVAL = 0.05  # seconds

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@contextlib.contextmanager
def file_lock(target: PathLike, exclusive: bool,
              timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> Iterator[None]:
    """
    Hold an advisory lock on ``<target>.lock`` for the duration of the block.

    Readers take a shared lock, writers an exclusive one. Raises TimeoutError
    when the lock is not granted within ``timeout`` seconds; ``None`` waits
    forever. A no-op where fcntl is unavailable.
    """
    if fcntl is None:
        yield
        return

    target = Path(target)
    lock_path = target.with_name(target.name + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    with open(lock_path, "a") as handle:
        if timeout is None:
            fcntl.flock(handle.fileno(), mode)
        else:
            deadline = time.monotonic() + timeout
            while True:
                try:
                    fcntl.flock(handle.fileno(), mode | fcntl.LOCK_NB)
                    break
                except OSError as exc:  # pragma: no cover - timing dependent
                    if exc.errno not in (errno.EACCES, errno.EAGAIN):
                        raise
                    if time.monotonic() >= deadline:
                        raise TimeoutError(f"Timed out waiting for lock on {target}") from exc
                    time.sleep(LOCK_POLL_INTERVAL)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def safe_read_json(file_path: PathLike, default: Optional[Dict] = None, *,
                   strict: bool = False,
                   lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> Any:
    """
    Read a JSON document under a shared lock.

    Args:
        file_path: File to read
        default: Returned when the file does not exist (and, unless
            ``strict``, when it cannot be read or parsed)
        strict: Re-raise read and decode errors instead of returning default

    Returns:
        The decoded document or ``default``
    """
    if default is None:
        default = {}

    path = Path(os.path.expanduser(str(file_path)))
    if not path.exists():
        return default

    try:
        with file_lock(path, exclusive=False, timeout=lock_timeout):
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
    except (json.JSONDecodeError, OSError, TimeoutError) as exc:
        if strict:
            raise
        logger.warning("Failed to read %s: %s", path, exc)
        return default


def safe_write_json(file_path: PathLike, data: Any, indent: int = 2, *,
                    lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
    """
    Replace a JSON file atomically under an exclusive lock.

    The document is written to a temporary sibling and renamed over the
    target, so readers see either the old or the new content.

    Returns:
        True on success; False (after logging) if nothing was written
    """
    path = Path(os.path.expanduser(str(file_path)))
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with file_lock(path, exclusive=True, timeout=lock_timeout):
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=".tmp_", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=indent, ensure_ascii=False, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, str(path))
            tmp_name = None
        return True
    except (OSError, TimeoutError, TypeError, ValueError) as exc:
        logger.error("Error writing to %s: %s", path, exc)
        return False
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
