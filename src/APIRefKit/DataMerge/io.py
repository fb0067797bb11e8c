"""UTF-8 file helpers used by the merge: plain reads and atomic replacement."""

from __future__ import annotations

import contextlib
import os
import uuid
from pathlib import Path
from typing import Iterator, TextIO, Union

__all__ = ["atomic_write", "read_text", "write_text_atomic"]


def read_text(path: Union[str, Path]) -> str:
    """Return the UTF-8 contents of ``path`` with line endings preserved."""

    with Path(path).open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


@contextlib.contextmanager
def atomic_write(path: Path) -> Iterator[TextIO]:
    """Write to a temporary file and atomically replace the destination."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex}")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def write_text_atomic(path: Union[str, Path], content: str) -> int:
    """Overwrite ``path`` with ``content`` in full and return the byte size."""

    with atomic_write(Path(path)) as handle:
        handle.write(content)
    return len(content.encode("utf-8"))
