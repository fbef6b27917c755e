from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CLUSTER = "default"
DEFAULT_VERSION = "latest"


@dataclass(frozen=True)
class InstallationContext:
    """Validated invocation parameters. Built once, never mutated."""

    region: str
    activation_id: Optional[str] = None
    activation_code: Optional[str] = None
    cluster: str = DEFAULT_CLUSTER
    version: str = DEFAULT_VERSION
    ecs_endpoint: Optional[str] = None
    artifact_bucket: Optional[str] = None
    skip_registration: bool = False
    uninstall: bool = False

    def secrets(self) -> tuple[str, ...]:
        return tuple(s for s in (self.activation_code,) if s)


@dataclass(frozen=True)
class Paths:
    docker_dir: Path
    ecs_dir: Path
    ecs_cache_dir: Path
    ssm_dir: Path
    module_dir: Path
    exec_dependencies_archive: Path


def default_paths(environ: Mapping[str, str] | None = None) -> Paths:
    env = os.environ if environ is None else environ
    program_files = Path(env.get("ProgramFiles") or r"C:\Program Files")
    program_data = Path(env.get("ProgramData") or r"C:\ProgramData")
    return Paths(
        docker_dir=program_files / "Docker",
        ecs_dir=program_files / "Amazon" / "ECS",
        ecs_cache_dir=program_data / "Amazon" / "ECS",
        ssm_dir=program_files / "Amazon" / "SSM",
        module_dir=program_files / "WindowsPowerShell" / "Modules" / "ECSTools",
        exec_dependencies_archive=program_data / "Amazon" / "ECS" / "data" / "execute-command" / "dependencies.zip",
    )


def paths_from_mapping(raw: Mapping[str, Any] | None, base: Paths | None = None) -> Paths:
    """Overlay a ``paths:`` mapping from the config file onto the defaults."""

    base = base or default_paths()
    raw = raw or {}
    if not isinstance(raw, Mapping):
        raise ValueError("config 'paths' must be a mapping")
    known = {f.name for f in fields(Paths)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown paths in config: {', '.join(sorted(unknown))}")
    values = {name: Path(str(raw[name])) if raw.get(name) else getattr(base, name) for name in known}
    return Paths(**values)


def load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")
    return raw


def _pick(cli: Any, raw: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if cli is not None:
        return cli
    value = raw.get(key)
    if value is None or value == "":
        return default
    return value


def _pick_bool(cli: Any, raw: Mapping[str, Any], key: str) -> bool:
    if cli is not None:
        return bool(cli)
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"config '{key}' must be true or false, got {value!r}")
    return value


def build_context(cli: Mapping[str, Any], raw: Mapping[str, Any] | None = None) -> InstallationContext:
    """Merge CLI values (None = not given) over config-file values."""

    raw = raw or {}
    return InstallationContext(
        region=str(_pick(cli.get("region"), raw, "region", "")).strip(),
        activation_id=_pick(cli.get("activation_id"), raw, "activation_id"),
        activation_code=_pick(cli.get("activation_code"), raw, "activation_code"),
        cluster=str(_pick(cli.get("cluster"), raw, "cluster", DEFAULT_CLUSTER)).strip(),
        version=str(_pick(cli.get("version"), raw, "version", DEFAULT_VERSION)).strip(),
        ecs_endpoint=_pick(cli.get("ecs_endpoint"), raw, "ecs_endpoint"),
        artifact_bucket=_pick(cli.get("artifact_bucket"), raw, "artifact_bucket"),
        skip_registration=_pick_bool(cli.get("skip_registration"), raw, "skip_registration"),
        uninstall=_pick_bool(cli.get("uninstall"), raw, "uninstall"),
    )
