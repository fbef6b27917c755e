from __future__ import annotations

import logging
import shutil
from typing import Sequence

from ..errors import PreconditionError
from .command import POWERSHELL, ps_quote, run_powershell
from .layout import CONTAINERS_FEATURE

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = (POWERSHELL,)


def check_required_tools(tools: Sequence[str] = REQUIRED_TOOLS) -> None:
    """Fail closed if a tool the installer shells out to is missing."""

    missing = [t for t in tools if shutil.which(t) is None]
    if missing:
        raise PreconditionError(f"Required tools not found on PATH: {', '.join(missing)}")


def os_build_number() -> str:
    r = run_powershell(
        "(Get-ItemProperty 'HKLM:\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion').CurrentBuildNumber"
    )
    return r.stdout.strip()


def enable_containers_feature(feature: str = CONTAINERS_FEATURE) -> bool:
    """Install the Windows feature; return True when the host needs a restart."""

    r = run_powershell(f"(Install-WindowsFeature -Name {ps_quote(feature)}).RestartNeeded")
    restart = r.stdout.strip().lower() == "yes"
    logger.info("Windows feature %s enabled (restart_needed=%s)", feature, restart)
    return restart
