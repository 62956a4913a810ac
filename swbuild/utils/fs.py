from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Union

from ..errors import ArtifactWriteError

logger = logging.getLogger("swbuild.fs")

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArtifactWriteError(f"cannot create directory {p}: {exc}") from exc
    return p


def remove_tree(path: PathLike) -> None:
    """Remove ``path`` recursively; a missing directory is not an error."""
    p = Path(path).resolve()
    if not p.exists():
        return
    try:
        if p.is_dir():
            shutil.rmtree(p)
        else:
            p.unlink()
    except OSError as exc:
        raise ArtifactWriteError(f"cannot remove {p}: {exc}") from exc
    logger.info("removed previous artifact directory %s", p)


def write_text(path: PathLike, content: str) -> Path:
    """Write ``content`` as UTF-8, creating parent directories as needed."""
    p = Path(path)
    ensure_dir(p.parent)
    try:
        p.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ArtifactWriteError(f"cannot write {p}: {exc}") from exc
    return p


def copy_file(src: PathLike, dest_dir: PathLike) -> Path:
    target = ensure_dir(dest_dir) / Path(src).name
    try:
        shutil.copy2(str(src), str(target))
    except OSError as exc:
        raise ArtifactWriteError(f"cannot copy {src} to {target}: {exc}") from exc
    return target
