from __future__ import annotations

import logging

from ..errors import InstallError
from ..lib.assets import build_zip, remove_tree
from ..run_context import RunContext

logger = logging.getLogger(__name__)


class ExecDependenciesStep:
    """Packages the SSM agent install so ECS Exec can ship it into tasks."""

    step_id = "40_exec_dependencies"
    order = 40
    error_cls = InstallError

    def install(self, run: RunContext) -> None:
        src = run.paths.ssm_dir
        archive = run.paths.exec_dependencies_archive
        if not src.is_dir():
            raise InstallError(f"Exec dependency source missing: {src}")

        if remove_tree(archive):
            logger.info("Replaced previous exec dependency archive")
        build_zip(src, archive)

    def uninstall(self, run: RunContext) -> None:
        # Lives under the ECS cache dir, which the fleet agent removal deletes.
        return None
