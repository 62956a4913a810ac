from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union


def content_hash(data: Union[str, bytes]) -> str:
    """Return the MD5 hex digest of ``data``.

    Text is always encoded as UTF-8 so digests stay stable across releases.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.md5(bytes(data)).hexdigest()


def file_hash(path: Path, chunk: int = 65536) -> str:
    h = hashlib.md5()
    with Path(path).open("rb") as f:
        while True:
            b = f.read(chunk)
            if not b:
                break
            h.update(b)
    return h.hexdigest()
