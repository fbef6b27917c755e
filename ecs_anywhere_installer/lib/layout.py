"""Remote bucket layout and the structure of the extracted artifact bundle."""

from __future__ import annotations

from typing import Optional

# Artifact bundle (docker binaries + ECSTools module), hash-checked.
ARTIFACT_ARCHIVE_KEY = "ecs-anywhere-windows/ecs-anywhere-install-artifacts.zip"
ARTIFACT_HASH_KEY = ARTIFACT_ARCHIVE_KEY + ".sha256"

SSM_INSTALLER_KEY = "latest/windows_amd64/AmazonSSMAgentSetup.exe"
SSM_INSTALLER_NAME = "AmazonSSMAgentSetup.exe"

# Relative to the extracted artifact tree.
DOCKER_TREE = "docker"
DOCKER_BINARIES = ("dockerd.exe", "docker.exe")
MODULE_TREE = "ECSTools"
MODULE_NAME = "ECSTools"
MODULE_FILES = ("ECSTools.psd1", "ECSTools.psm1")

DOCKER_SERVICE = "docker"
SSM_SERVICE = "AmazonSSMAgent"
ECS_SERVICE = "AmazonECS"

CONTAINERS_FEATURE = "Containers"


def ecs_agent_bucket(region: str) -> str:
    return f"amazon-ecs-agent-{region}"


def ssm_bucket(region: str) -> str:
    return f"amazon-ssm-{region}"


def artifact_bucket(region: str, override: Optional[str] = None) -> str:
    return override or ecs_agent_bucket(region)
