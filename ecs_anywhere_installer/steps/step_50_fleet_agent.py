from __future__ import annotations

import logging

from ..config import InstallationContext
from ..errors import InstallError
from ..lib import services
from ..lib.assets import remove_tree
from ..lib.command import ps_quote, run_powershell
from ..lib.layout import ECS_SERVICE, MODULE_NAME
from ..run_context import RunContext
from .step_20_tooling_module import ToolingModuleStep

logger = logging.getLogger(__name__)

LOGGING_DRIVERS = '["json-file","awslogs"]'


def initialize_agent_script(ctx: InstallationContext) -> str:
    args = [
        f"-Cluster {ps_quote(ctx.cluster)}",
        f"-Region {ps_quote(ctx.region)}",
        f"-Version {ps_quote(ctx.version)}",
        f"-LoggingDrivers {ps_quote(LOGGING_DRIVERS)}",
        "-ExternalInstance",
        "-EnableTaskIAMRole",
    ]
    if ctx.ecs_endpoint:
        args.append(f"-ECSEndpoint {ps_quote(ctx.ecs_endpoint)}")
    if ctx.artifact_bucket:
        args.append(f"-SourceBucket {ps_quote(ctx.artifact_bucket)}")
    return f"Import-Module {MODULE_NAME}; Initialize-ECSAgent " + " ".join(args)


class FleetAgentStep:
    """ECS agent, initialized through ECSTools."""

    step_id = "50_fleet_agent"
    order = 50
    error_cls = InstallError

    def install(self, run: RunContext) -> None:
        run_powershell(initialize_agent_script(run.ctx))
        services.wait_until_running(ECS_SERVICE)
        logger.info("ECS agent running for cluster %s", run.ctx.cluster)

    def uninstall(self, run: RunContext) -> None:
        # Remove-ECSAgent stops and deletes the AmazonECS service.
        run_powershell(f"Import-Module {MODULE_NAME}; Remove-ECSAgent")
        remove_tree(run.paths.ecs_dir)
        remove_tree(run.paths.ecs_cache_dir)
        ToolingModuleStep().uninstall(run)
        logger.info("ECS agent removed")
