"""
Filesystem helpers for plotgram.io (local file protocol).

Responsibilities
- Provide the small set of filesystem operations the output sink needs:
  directory creation, fsync, atomic rename, and an atomic whole-file write.
- Establish the atomic write path: tmp write → fsync → atomic rename.

Import DAG discipline
- stdlib-only.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem;
  temporary files are therefore created next to their destination.
- All helpers are synchronous.
"""

from __future__ import annotations

import os
import uuid


def makedirs(path: str, exist_ok: bool = True) -> None:
    """
    Create directories recursively.

    Args:
        path (str): Directory path to create.
        exist_ok (bool): Do not error if the directory already exists.
    """
    os.makedirs(path, exist_ok=exist_ok)


def fsync_path(path: str) -> None:
    """
    Open a path read-only and fsync its file descriptor.

    Args:
        path (str): Path to an already-written file.
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def rename_atomic(src: str, dst: str) -> None:
    """
    Atomically rename src -> dst on the same filesystem.

    Notes:
        Uses os.replace, which is atomic only if src and dst reside on the same filesystem.
    """
    os.replace(src, dst)


def tmp_path_for(path: str) -> str:
    """Return a unique temporary sibling path for `path`."""
    head, tail = os.path.split(path)
    return os.path.join(head, f".{tail}.{uuid.uuid4().hex}.tmp")


def write_bytes_atomic(path: str, payload: bytes) -> int:
    """
    Write `payload` to `path` via tmp file → fsync → atomic rename.

    Args:
        path (str): Final destination.
        payload (bytes): File contents.

    Returns:
        int: Number of bytes written.

    Raises:
        OSError: Propagated from the failing step; the tmp file is removed best-effort.
    """
    parent = os.path.dirname(path)
    if parent:
        makedirs(parent, exist_ok=True)
    tmp = tmp_path_for(path)
    try:
        with open(tmp, "wb") as fh:
            fh.write(payload)
        fsync_path(tmp)
        rename_atomic(tmp, path)
    except OSError:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    return len(payload)
