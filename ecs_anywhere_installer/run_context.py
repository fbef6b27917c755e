from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import InstallationContext, Paths
from .errors import InstallerError
from .lib.blobstore import BlobFetcher


@dataclass(frozen=True)
class RunContext:
    """Everything a step needs for one run, passed explicitly."""

    ctx: InstallationContext
    paths: Paths
    workspace: Path
    fetcher: BlobFetcher

    @property
    def artifacts_dir(self) -> Path:
        return self.workspace / "artifacts"

    @property
    def downloads_dir(self) -> Path:
        return self.workspace / "downloads"


class InstallStep(Protocol):
    """A component with an install and an uninstall action.

    ``order`` matches the numeric prefix of the step module; branches list
    their steps explicitly since uninstall does not run in that order.
    """

    step_id: str
    order: int
    error_cls: type[InstallerError]

    def install(self, run: RunContext) -> None:
        ...

    def uninstall(self, run: RunContext) -> None:
        ...
