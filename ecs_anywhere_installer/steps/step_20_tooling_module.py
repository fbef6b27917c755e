from __future__ import annotations

import logging

from ..errors import ModuleInstallError
from ..lib.assets import copy_tree, remove_tree
from ..lib.command import ps_quote, run_powershell
from ..lib.layout import MODULE_FILES, MODULE_NAME, MODULE_TREE
from ..run_context import RunContext

logger = logging.getLogger(__name__)


def unload_module(name: str = MODULE_NAME) -> None:
    run_powershell(
        f"if (Get-Module -Name {ps_quote(name)}) {{ Remove-Module -Name {ps_quote(name)} -Force }}"
    )


def module_available(name: str = MODULE_NAME) -> bool:
    r = run_powershell(
        f"Get-Module -ListAvailable -Name {ps_quote(name)} | Select-Object -ExpandProperty Name",
        check=False,
    )
    return name in r.stdout.split()


class ToolingModuleStep:
    """ECSTools PowerShell module. Both branches need it."""

    step_id = "20_tooling_module"
    order = 20
    error_cls = ModuleInstallError

    def install(self, run: RunContext) -> None:
        module_dir = run.paths.module_dir

        unload_module()
        remove_tree(module_dir)
        copy_tree(run.artifacts_dir / MODULE_TREE, module_dir)

        present = sorted(p.name for p in module_dir.iterdir() if p.is_file())
        if len(present) != len(MODULE_FILES) or set(present) != set(MODULE_FILES):
            raise ModuleInstallError(
                f"{MODULE_NAME} expected {len(MODULE_FILES)} files {list(MODULE_FILES)}, found {present}"
            )
        if not module_available():
            raise ModuleInstallError(f"{MODULE_NAME} is not discoverable by Get-Module -ListAvailable")

        logger.info("%s module installed at %s", MODULE_NAME, module_dir)

    def uninstall(self, run: RunContext) -> None:
        unload_module()
        if remove_tree(run.paths.module_dir):
            logger.info("%s module removed", MODULE_NAME)
