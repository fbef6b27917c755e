from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional, Tuple

import yaml

from .config import InstallationContext, Paths, build_context, load_config_file, paths_from_mapping
from .logging_utils import configure_logging
from .pipeline import Orchestrator, RunResult

logger = logging.getLogger(__name__)


def load_settings(cli: Dict[str, Any], config_path: Optional[str] = None) -> Tuple[InstallationContext, Paths]:
    """Merge the CLI values over the optional YAML file."""

    raw = load_config_file(config_path) if config_path else {}
    return build_context(cli, raw), paths_from_mapping(raw.get("paths"))


def run(
    *,
    cli: Dict[str, Any],
    config_path: Optional[str] = None,
    log_path: Optional[str] = None,
    debug: bool = False,
    **orchestrator_kwargs: Any,
) -> RunResult:
    """Build the InstallationContext and run the orchestrator once."""

    configure_logging(log_path=log_path, level=logging.DEBUG if debug else logging.INFO)
    ctx, paths = load_settings(cli, config_path)
    return Orchestrator(ctx, paths, **orchestrator_kwargs).run()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ecs-anywhere-install",
        description="Install or uninstall the ECS Anywhere components on a Windows Server host.",
    )
    p.add_argument("--region", default=None, help="AWS region of the ECS cluster and artifact buckets")
    p.add_argument("--activation-id", default=None, help="SSM hybrid activation ID")
    p.add_argument("--activation-code", default=None, help="SSM hybrid activation code")
    p.add_argument("--cluster", default=None, help="ECS cluster to join (default: default)")
    p.add_argument("--version", default=None, help="ECS agent version (default: latest)")
    p.add_argument("--ecs-endpoint", default=None, help="Alternate ECS endpoint")
    p.add_argument("--artifact-bucket", default=None, help="Alternate S3 bucket for the installation artifacts")
    p.add_argument(
        "--skip-registration",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Do not install the SSM agent; it must already be running",
    )
    p.add_argument("--uninstall", action=argparse.BooleanOptionalAction, default=None, help="Remove the ECS and SSM agents")
    p.add_argument("--config", default=None, help="YAML file with default values for the options above")
    p.add_argument("--log", default=None, help="Also write the log to this file")
    p.add_argument("--debug", action="store_true", help="Log command output")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on usage errors; the installer only reports 0 or 1.
        return 1 if e.code else 0

    configure_logging(log_path=args.log, level=logging.DEBUG if args.debug else logging.INFO)

    cli = {
        "region": args.region,
        "activation_id": args.activation_id,
        "activation_code": args.activation_code,
        "cluster": args.cluster,
        "version": args.version,
        "ecs_endpoint": args.ecs_endpoint,
        "artifact_bucket": args.artifact_bucket,
        "skip_registration": args.skip_registration,
        "uninstall": args.uninstall,
    }

    try:
        ctx, paths = load_settings(cli, args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("configuration: %s", e)
        return 1

    return Orchestrator(ctx, paths).run().exit_code


if __name__ == "__main__":
    raise SystemExit(main())
