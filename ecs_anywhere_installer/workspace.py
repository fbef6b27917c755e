from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PREFIX = "ecs-anywhere-"


class TempWorkspace:
    """Per-run scratch directory under the system temp root.

    Use as a context manager; the directory is removed exactly once when
    the block exits, whatever the outcome.
    """

    def __init__(self, root: Optional[str] = None) -> None:
        self._root = root
        self._path: Optional[Path] = None
        self._removed = False

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("workspace not created")
        return self._path

    def create(self) -> Path:
        if self._path is None:
            self._path = Path(tempfile.mkdtemp(prefix=PREFIX, dir=self._root))
            logger.info("Created workspace %s", self._path)
        return self._path

    def remove(self) -> None:
        if self._path is None or self._removed:
            return
        self._removed = True
        shutil.rmtree(self._path, ignore_errors=True)
        if self._path.exists():
            logger.warning("Workspace %s could not be fully removed", self._path)
        else:
            logger.info("Removed workspace %s", self._path)

    def __enter__(self) -> "TempWorkspace":
        self.create()
        return self

    def __exit__(self, *exc) -> bool:
        self.remove()
        return False
