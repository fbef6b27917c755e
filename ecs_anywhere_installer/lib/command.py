from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from ..errors import CommandError

logger = logging.getLogger(__name__)

POWERSHELL = "powershell.exe"


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str], secrets: Iterable[str] = ()) -> str:
    out = " ".join(shlex.quote(a) for a in argv)
    for s in secrets:
        if s:
            out = out.replace(s, "****")
    return out


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    secrets: Sequence[str] = (),
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command, with any ``secrets`` masked.
    - Captures stdout/stderr.
    - Raises CommandError on non-zero exit when ``check`` is set.
    """

    argv_list = list(argv)
    display = _fmt_argv(argv_list, secrets)
    logger.info("CMD %s", display)

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except OSError as e:
        raise CommandError(argv_list, 127, str(e), display=display) from e

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise CommandError(argv_list, p.returncode, p.stderr or "", display=display)

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def run_powershell(script: str, *, check: bool = True, secrets: Sequence[str] = ()) -> CmdResult:
    return run_cmd(
        [
            POWERSHELL,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            script,
        ],
        check=check,
        secrets=secrets,
    )
