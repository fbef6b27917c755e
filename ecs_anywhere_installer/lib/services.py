from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import ServiceNotFoundError, ServiceStartError
from .command import ps_quote, run_cmd, run_powershell

logger = logging.getLogger(__name__)

RUNNING = "Running"

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INTERVAL_S = 5.0


@dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    required_state: str = RUNNING


def get_service_status(name: str) -> Optional[str]:
    """Return the service status string, or None if no such service exists."""

    r = run_powershell(
        f"$s = Get-Service -Name {ps_quote(name)} -ErrorAction SilentlyContinue; if ($s) {{ $s.Status.ToString() }}",
        check=False,
    )
    status = r.stdout.strip()
    return status or None


def service_exists(name: str) -> bool:
    return get_service_status(name) is not None


def is_running(name: str) -> bool:
    return get_service_status(name) == RUNNING


def wait_until_running(
    name: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL_S,
    status_fn: Callable[[str], Optional[str]] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> int:
    """Poll until ``name`` reports Running.

    Makes at most ``max_attempts`` observations, sleeping ``interval``
    seconds between them. Returns the number of observations it took.
    A service that does not exist at the first observation fails at once.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    status_fn = status_fn or get_service_status
    sleep = sleep or time.sleep
    desc = ServiceDescriptor(name=name)
    status: Optional[str] = None

    for attempt in range(1, max_attempts + 1):
        status = status_fn(desc.name)
        if status is None and attempt == 1:
            raise ServiceNotFoundError(f"Service {desc.name} does not exist on this host")
        if status == desc.required_state:
            logger.info("Service %s is %s (check %d/%d)", desc.name, status, attempt, max_attempts)
            return attempt
        logger.info(
            "Service %s is %s, waiting for %s (check %d/%d)",
            desc.name,
            status or "missing",
            desc.required_state,
            attempt,
            max_attempts,
        )
        if attempt < max_attempts:
            sleep(interval)

    raise ServiceStartError(
        f"Service {desc.name} did not reach {desc.required_state} after {max_attempts} checks (last={status})"
    )


def start_service(name: str) -> None:
    run_powershell(f"Start-Service -Name {ps_quote(name)}")


def stop_service(name: str) -> None:
    run_powershell(f"Stop-Service -Name {ps_quote(name)} -Force")


def delete_service(name: str) -> None:
    run_cmd(["sc.exe", "delete", name])
