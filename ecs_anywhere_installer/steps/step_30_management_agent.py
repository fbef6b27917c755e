from __future__ import annotations

import logging
from pathlib import Path

from ..errors import InstallError
from ..lib import services
from ..lib.command import run_cmd
from ..lib.layout import SSM_INSTALLER_KEY, SSM_INSTALLER_NAME, SSM_SERVICE, ssm_bucket
from ..run_context import RunContext

logger = logging.getLogger(__name__)


def _installer_path(run: RunContext) -> Path:
    return run.downloads_dir / SSM_INSTALLER_NAME


class ManagementAgentStep:
    """SSM agent: registers the host with the activation credentials."""

    step_id = "30_management_agent"
    order = 30
    error_cls = InstallError

    def install(self, run: RunContext) -> None:
        ctx = run.ctx
        installer = _installer_path(run)
        run.fetcher.fetch(ssm_bucket(ctx.region), SSM_INSTALLER_KEY, installer)

        run_cmd(
            [
                str(installer),
                "/q",
                "/log",
                str(run.workspace / "ssm-install.log"),
                f"CODE={ctx.activation_code}",
                f"ID={ctx.activation_id}",
                f"REGION={ctx.region}",
            ],
            secrets=ctx.secrets(),
        )
        services.wait_until_running(SSM_SERVICE)
        logger.info("SSM agent installed and registered in %s", ctx.region)

    def uninstall(self, run: RunContext) -> None:
        if services.service_exists(SSM_SERVICE):
            if services.is_running(SSM_SERVICE):
                services.stop_service(SSM_SERVICE)
            services.delete_service(SSM_SERVICE)
        else:
            logger.info("Service %s not present", SSM_SERVICE)

        installer = _installer_path(run)
        if not installer.is_file():
            run.fetcher.fetch(ssm_bucket(run.ctx.region), SSM_INSTALLER_KEY, installer)

        run_cmd([str(installer), "/uninstall", "/q", "/log", str(run.workspace / "ssm-uninstall.log")])
        logger.info("SSM agent removed")
