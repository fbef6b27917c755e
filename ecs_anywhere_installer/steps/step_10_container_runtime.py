from __future__ import annotations

import logging

from ..errors import InstallError
from ..lib import services
from ..lib.assets import copy_tree, remove_tree
from ..lib.command import run_cmd
from ..lib.layout import DOCKER_BINARIES, DOCKER_SERVICE, DOCKER_TREE
from ..run_context import RunContext

logger = logging.getLogger(__name__)


class ContainerRuntimeStep:
    """Docker engine: binaries from the verified bundle, registered as a service."""

    step_id = "10_container_runtime"
    order = 10
    error_cls = InstallError

    def install(self, run: RunContext) -> None:
        docker_dir = run.paths.docker_dir

        if docker_dir.exists():
            logger.info("Existing Docker installation found at %s; replacing it", docker_dir)
            if services.is_running(DOCKER_SERVICE):
                services.stop_service(DOCKER_SERVICE)
            remove_tree(docker_dir)

        docker_dir.mkdir(parents=True, exist_ok=True)
        src = run.artifacts_dir / DOCKER_TREE
        copy_tree(src, docker_dir)

        missing = [b for b in DOCKER_BINARIES if not (docker_dir / b).is_file()]
        if missing:
            raise InstallError(f"Docker bundle is missing {', '.join(missing)}")

        run_cmd([str(docker_dir / "dockerd.exe"), "--register-service"])
        services.start_service(DOCKER_SERVICE)
        services.wait_until_running(DOCKER_SERVICE)

        r = run_cmd([str(docker_dir / "docker.exe"), "version"])
        logger.info("Docker installed and validated (%s)", r.stdout.strip().splitlines()[0] if r.stdout.strip() else "ok")

    def uninstall(self, run: RunContext) -> None:
        # The runtime is left in place on uninstall.
        return None
