from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_tree(src: str | Path, dst: str | Path) -> list[Path]:
    """Copy every file under src into dst, preserving layout. Returns the copied files."""

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(str(s))

    copied: list[Path] = []
    d.mkdir(parents=True, exist_ok=True)
    for item in sorted(s.rglob("*")):
        rel = item.relative_to(s)
        out = d / rel
        if item.is_dir():
            out.mkdir(parents=True, exist_ok=True)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, out)
            copied.append(out)
    logger.info("Copied %d file(s) %s -> %s", len(copied), s, d)
    return copied


def remove_tree(path: str | Path) -> bool:
    """Delete a directory tree. Returns False if nothing was there."""

    p = Path(path)
    if not p.exists():
        return False
    if p.is_dir():
        shutil.rmtree(p)
    else:
        p.unlink()
    logger.info("Removed %s", p)
    return True


def build_zip(src_dir: str | Path, archive: str | Path) -> Path:
    """Write a fresh zip of src_dir to archive, replacing any existing file."""

    s = Path(src_dir)
    a = Path(archive)
    if not s.is_dir():
        raise FileNotFoundError(str(s))
    if a.exists():
        a.unlink()
    a.parent.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(a, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for item in sorted(s.rglob("*")):
            if item.is_file():
                zf.write(item, item.relative_to(s).as_posix())
    logger.info("Built %s from %s", a, s)
    return a
