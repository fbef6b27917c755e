from __future__ import annotations

from typing import Optional, Sequence


class InstallerError(RuntimeError):
    """Base error for every failure the installer reports.

    Carries the failing step (filled in by the orchestrator) and the
    underlying cause, so the top-level handler can print one line.
    """

    def __init__(
        self,
        message: str,
        *,
        step: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.step = step
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def kind(self) -> str:
        return type(self).__name__

    def with_step(self, step: str) -> "InstallerError":
        if self.step is None:
            self.step = step
        return self

    def describe(self) -> str:
        prefix = f"{self.step}: " if self.step else ""
        return f"{prefix}{self.kind}: {self.message}"


# Validation / pre-flight (no side effects yet)
class UnsupportedOSError(InstallerError):
    pass


class MissingParameterError(InstallerError):
    pass


class PreconditionError(InstallerError):
    pass


# Artifact acquisition
class DownloadError(InstallerError):
    pass


class IntegrityError(InstallerError):
    pass


# Health gating
class ServiceNotFoundError(InstallerError):
    pass


class ServiceStartError(InstallerError):
    pass


# Component actions
class InstallError(InstallerError):
    pass


class ModuleInstallError(InstallerError):
    pass


class UninstallError(InstallerError):
    pass


class CommandError(InstallerError):
    """A host command exited non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str, *, display: str) -> None:
        detail = stderr.strip()
        msg = f"Command failed ({returncode}): {display}"
        if detail:
            msg = f"{msg}\n{detail}"
        super().__init__(msg)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


def wrap(exc: BaseException, error_cls: type[InstallerError]) -> InstallerError:
    """Return exc unchanged if it is already a typed InstallerError, else wrap it in error_cls."""

    if isinstance(exc, InstallerError) and not isinstance(exc, CommandError):
        return exc
    return error_cls(str(exc) or type(exc).__name__, cause=exc)
