from __future__ import annotations

import logging

from .config import InstallationContext
from .errors import (
    MissingParameterError,
    PreconditionError,
    ServiceNotFoundError,
    ServiceStartError,
    UnsupportedOSError,
)
from .lib import services
from .lib.layout import SSM_SERVICE

logger = logging.getLogger(__name__)

SUPPORTED_OS_BUILDS = {
    "14393": "Windows Server 2016",
    "17763": "Windows Server 2019",
    "20348": "Windows Server 2022",
}


def validate_os_release(build_number: str) -> str:
    """Return the release name for a supported build, else raise."""

    build = str(build_number).strip()
    name = SUPPORTED_OS_BUILDS.get(build)
    if name is None:
        raise UnsupportedOSError(
            f"Unsupported OS build {build_number!r}; supported: "
            + ", ".join(f"{b} ({n})" for b, n in sorted(SUPPORTED_OS_BUILDS.items()))
        )
    logger.info("OS build %s (%s) is supported", build, name)
    return name


def validate_parameters(ctx: InstallationContext) -> None:
    if not ctx.region:
        raise MissingParameterError("--region is required")

    if ctx.uninstall:
        if ctx.skip_registration:
            logger.warning("--skip-registration has no effect together with --uninstall")
        return

    if not ctx.cluster:
        raise MissingParameterError("--cluster must not be empty")

    if ctx.skip_registration:
        try:
            services.wait_until_running(SSM_SERVICE)
        except (ServiceNotFoundError, ServiceStartError) as e:
            raise PreconditionError(
                f"--skip-registration requires the {SSM_SERVICE} service to be running: {e.message}",
                cause=e,
            )
        logger.info("Skipping SSM registration; %s already running", SSM_SERVICE)
        return

    missing = [
        flag
        for flag, value in (("--activation-id", ctx.activation_id), ("--activation-code", ctx.activation_code))
        if not value
    ]
    if missing:
        raise MissingParameterError(f"Missing required parameter(s): {', '.join(missing)}")
