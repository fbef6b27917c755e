from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .config import InstallationContext, Paths
from .errors import (
    DownloadError,
    InstallError,
    InstallerError,
    ModuleInstallError,
    PreconditionError,
    UninstallError,
    wrap,
)
from .lib import host
from .lib.blobstore import BlobFetcher
from .lib.layout import ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, artifact_bucket
from .run_context import InstallStep, RunContext
from .steps import (
    ContainerRuntimeStep,
    ExecDependenciesStep,
    FleetAgentStep,
    ManagementAgentStep,
    ToolingModuleStep,
)
from .validate import validate_os_release, validate_parameters
from .workspace import TempWorkspace

logger = logging.getLogger(__name__)


class State(str, enum.Enum):
    INIT = "Init"
    VALIDATING_ENVIRONMENT = "ValidatingEnvironment"
    ENABLING_HOST_FEATURE = "EnablingHostFeature"
    FETCHING_ARTIFACTS = "FetchingArtifacts"
    INSTALLING_TOOLING_MODULE = "InstallingToolingModule"
    INSTALL_BRANCH = "InstallBranch"
    UNINSTALL_BRANCH = "UninstallBranch"
    DONE = "Done"
    RESTART_REQUIRED = "RestartRequired"
    FAILED = "Failed"


class Outcome(str, enum.Enum):
    DONE = "done"
    RESTART_REQUIRED = "restart_required"
    FAILED = "failed"


@dataclass
class RunResult:
    outcome: Outcome
    error: Optional[InstallerError] = None
    ran_steps: List[str] = field(default_factory=list)
    states: List[State] = field(default_factory=list)
    workspace: Optional[Path] = None

    @property
    def exit_code(self) -> int:
        return 1 if self.outcome is Outcome.FAILED else 0


def install_steps(ctx: InstallationContext) -> List[InstallStep]:
    steps: List[InstallStep] = [ContainerRuntimeStep()]
    if not ctx.skip_registration:
        steps.append(ManagementAgentStep())
    steps += [ExecDependenciesStep(), FleetAgentStep()]
    return steps


def uninstall_steps(ctx: InstallationContext) -> List[InstallStep]:
    # Reverse of the agent dependency, not a mirror of every install step.
    return [FleetAgentStep(), ManagementAgentStep()]


def _call(step_name: str, error_cls: type[InstallerError], fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return fn(*args)
    except Exception as e:
        raise wrap(e, error_cls).with_step(step_name)


def run_steps(
    *,
    run: RunContext,
    steps: Sequence[InstallStep],
    uninstall: bool = False,
    ran: Optional[List[str]] = None,
) -> List[str]:
    """Run steps strictly in order; the first failure stops the branch.

    Completed step ids are appended to ``ran`` as they finish, so a caller
    holding the list sees partial progress after a failure.
    """

    ran = [] if ran is None else ran
    for step in steps:
        action = step.uninstall if uninstall else step.install
        error_cls = UninstallError if uninstall else step.error_cls
        logger.info("%s step %s", "Uninstalling" if uninstall else "Running", step.step_id)
        _call(step.step_id, error_cls, action, run)
        ran.append(step.step_id)
    return ran


class Orchestrator:
    """Sequences validation, artifact acquisition and the install/uninstall branch."""

    def __init__(
        self,
        ctx: InstallationContext,
        paths: Paths,
        *,
        fetcher_factory: Callable[[str], BlobFetcher] = BlobFetcher,
        temp_root: Optional[str] = None,
    ) -> None:
        self.ctx = ctx
        self.paths = paths
        self.fetcher_factory = fetcher_factory
        self.temp_root = temp_root
        self.states: List[State] = [State.INIT]
        self.ran_steps: List[str] = []

    def _enter(self, state: State) -> None:
        self.states.append(state)
        logger.info("State -> %s", state.value)

    def run(self) -> RunResult:
        """Execute the run. Never raises InstallerError; the workspace is always removed."""

        workspace = TempWorkspace(self.temp_root)
        outcome = Outcome.FAILED
        error: Optional[InstallerError] = None
        ws_path: Optional[Path] = None
        try:
            ws_path = workspace.create()
        except OSError as e:
            error = PreconditionError(f"Cannot create workspace: {e}", step="create_workspace", cause=e)
            self._enter(State.FAILED)
        else:
            with workspace:
                try:
                    outcome = self._run(ws_path)
                except InstallerError as e:
                    error = e
                    self._enter(State.FAILED)

        result = RunResult(
            outcome=outcome,
            error=error,
            ran_steps=list(self.ran_steps),
            states=list(self.states),
            workspace=ws_path,
        )
        self._report(result)
        return result

    def _report(self, result: RunResult) -> None:
        mode = "uninstall" if self.ctx.uninstall else "installation"
        if result.outcome is Outcome.DONE:
            logger.info("ECS Anywhere %s completed successfully", mode)
        elif result.outcome is Outcome.RESTART_REQUIRED:
            logger.info("Restart required to finish enabling the Containers feature; restart the host and re-run")
        elif result.error is not None:
            logger.error("%s", result.error.describe())

    def _run(self, workspace: Path) -> Outcome:
        ctx = self.ctx
        mode = "uninstall" if ctx.uninstall else "install"
        logger.info("Starting ECS Anywhere %s (region=%s cluster=%s)", mode, ctx.region or "-", ctx.cluster)

        self._enter(State.VALIDATING_ENVIRONMENT)
        _call("validate_environment", PreconditionError, host.check_required_tools)
        build = _call("validate_environment", PreconditionError, host.os_build_number)
        _call("validate_environment", PreconditionError, validate_os_release, build)
        _call("validate_parameters", PreconditionError, validate_parameters, ctx)

        self._enter(State.ENABLING_HOST_FEATURE)
        if _call("enable_containers_feature", InstallError, host.enable_containers_feature):
            self._enter(State.RESTART_REQUIRED)
            return Outcome.RESTART_REQUIRED

        self._enter(State.FETCHING_ARTIFACTS)
        fetcher = _call("fetch_artifacts", DownloadError, self.fetcher_factory, ctx.region)
        run = RunContext(ctx=ctx, paths=self.paths, workspace=workspace, fetcher=fetcher)
        _call(
            "fetch_artifacts",
            DownloadError,
            lambda: fetcher.fetch_and_verify(
                artifact_bucket(ctx.region, ctx.artifact_bucket),
                ARTIFACT_ARCHIVE_KEY,
                ARTIFACT_HASH_KEY,
                run.artifacts_dir,
                download_dir=run.downloads_dir,
            ),
        )

        self._enter(State.INSTALLING_TOOLING_MODULE)
        tooling = ToolingModuleStep()
        _call(tooling.step_id, ModuleInstallError, tooling.install, run)
        self.ran_steps.append(tooling.step_id)

        if ctx.uninstall:
            self._enter(State.UNINSTALL_BRANCH)
            run_steps(run=run, steps=uninstall_steps(ctx), uninstall=True, ran=self.ran_steps)
        else:
            self._enter(State.INSTALL_BRANCH)
            run_steps(run=run, steps=install_steps(ctx), ran=self.ran_steps)
        self._enter(State.DONE)
        return Outcome.DONE
