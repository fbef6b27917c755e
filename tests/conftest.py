import hashlib
import io
import logging
import re
import subprocess
import types
import zipfile
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from ecs_anywhere_installer.config import InstallationContext, Paths
from ecs_anywhere_installer.lib import host as host_mod
from ecs_anywhere_installer.lib.blobstore import BlobFetcher
from ecs_anywhere_installer.lib.layout import (
    ARTIFACT_ARCHIVE_KEY,
    ARTIFACT_HASH_KEY,
    SSM_INSTALLER_KEY,
    ecs_agent_bucket,
    ssm_bucket,
)

REGION = "us-west-2"


class FakeHost:
    """Stands in for subprocess.run and simulates the Windows host the installer drives."""

    def __init__(self, paths: Paths):
        self.paths = paths
        self.calls = []
        self.services = {}
        self.build = "17763"
        self.restart_needed = False
        self.fail_on = set()
        self.never_running = set()

    def scripts(self):
        return [c[-1] for c in self.calls if c[0] == "powershell.exe"]

    def ran(self, fragment):
        return any(fragment in " ".join(c) for c in self.calls)

    def _ok(self, out=""):
        return types.SimpleNamespace(returncode=0, stdout=out, stderr="")

    def _set_running(self, name):
        self.services[name] = "Stopped" if name in self.never_running else "Running"

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        line = " ".join(argv)
        for frag in self.fail_on:
            if frag in line:
                return types.SimpleNamespace(returncode=1, stdout="", stderr=f"simulated failure: {frag}")

        exe = Path(argv[0].replace("\\", "/")).name
        if exe == "powershell.exe":
            return self._powershell(argv[-1])
        if exe == "sc.exe" and argv[1] == "delete":
            self.services.pop(argv[2], None)
            return self._ok()
        if exe == "dockerd.exe":
            self.services["docker"] = "Stopped"
            return self._ok()
        if exe == "docker.exe":
            return self._ok("Client: Docker Engine - Community\n Version: 20.10.9\n")
        if exe == "AmazonSSMAgentSetup.exe":
            if "/uninstall" in argv:
                self.services.pop("AmazonSSMAgent", None)
            else:
                self._set_running("AmazonSSMAgent")
                self.paths.ssm_dir.mkdir(parents=True, exist_ok=True)
                (self.paths.ssm_dir / "amazon-ssm-agent.exe").write_bytes(b"ssm")
            return self._ok()
        return self._ok()

    def _powershell(self, script):
        m = re.search(r"Get-Service -Name '([^']+)'", script)
        if m:
            return self._ok(self.services.get(m.group(1), "") + "\n")
        if "CurrentBuildNumber" in script:
            return self._ok(self.build + "\n")
        if "Install-WindowsFeature" in script:
            return self._ok("Yes\n" if self.restart_needed else "No\n")
        if "Get-Module -ListAvailable" in script:
            present = self.paths.module_dir.is_dir() and any(self.paths.module_dir.iterdir())
            return self._ok("ECSTools\n" if present else "")
        m = re.search(r"Start-Service -Name '([^']+)'", script)
        if m:
            self._set_running(m.group(1))
            return self._ok()
        m = re.search(r"Stop-Service -Name '([^']+)'", script)
        if m:
            self.services[m.group(1)] = "Stopped"
            return self._ok()
        if "Initialize-ECSAgent" in script:
            self._set_running("AmazonECS")
            self.paths.ecs_dir.mkdir(parents=True, exist_ok=True)
            return self._ok()
        if "Remove-ECSAgent" in script:
            self.services.pop("AmazonECS", None)
            return self._ok()
        return self._ok()


class FakeS3Client:
    def __init__(self):
        self.objects = {}
        self.calls = []

    def put(self, bucket, key, data):
        self.objects[(bucket, key)] = data

    def download_file(self, Bucket, Key, Filename):
        self.calls.append((Bucket, Key))
        data = self.objects.get((Bucket, Key))
        if data is None:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        Path(Filename).write_bytes(data)


def make_bundle():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name in ("dockerd.exe", "docker.exe"):
            zf.writestr(f"docker/{name}", f"{name}-binary")
            zf.writestr(f"docker/{name}.sha256", hashlib.sha256(f"{name}-binary".encode()).hexdigest())
        zf.writestr("ECSTools/ECSTools.psd1", "@{ ModuleVersion = '1.0' }")
        zf.writestr("ECSTools/ECSTools.psm1", "function Initialize-ECSAgent {}")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def clean_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    for attr in ("_ecs_anywhere_configured", "_ecs_anywhere_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def paths(tmp_path):
    pf = tmp_path / "ProgramFiles"
    pd = tmp_path / "ProgramData"
    return Paths(
        docker_dir=pf / "Docker",
        ecs_dir=pf / "Amazon" / "ECS",
        ecs_cache_dir=pd / "Amazon" / "ECS",
        ssm_dir=pf / "Amazon" / "SSM",
        module_dir=pf / "WindowsPowerShell" / "Modules" / "ECSTools",
        exec_dependencies_archive=pd / "Amazon" / "ECS" / "data" / "execute-command" / "dependencies.zip",
    )


@pytest.fixture
def fake_host(monkeypatch, paths):
    h = FakeHost(paths)
    monkeypatch.setattr(subprocess, "run", h)
    monkeypatch.setattr(host_mod.shutil, "which", lambda tool: f"C:/Windows/{tool}")
    monkeypatch.setattr("ecs_anywhere_installer.lib.services.time.sleep", lambda s: None)
    return h


@pytest.fixture
def s3():
    client = FakeS3Client()
    bundle = make_bundle()
    client.put(ecs_agent_bucket(REGION), ARTIFACT_ARCHIVE_KEY, bundle)
    client.put(
        ecs_agent_bucket(REGION),
        ARTIFACT_HASH_KEY,
        (hashlib.sha256(bundle).hexdigest() + "  ecs-anywhere-install-artifacts.zip\n").encode(),
    )
    client.put(ssm_bucket(REGION), SSM_INSTALLER_KEY, b"MZ-ssm-installer")
    return client


@pytest.fixture
def fetcher_factory(s3):
    return lambda region: BlobFetcher(region, client=s3)


@pytest.fixture
def install_ctx():
    return InstallationContext(
        region=REGION,
        activation_id="act-id-1234",
        activation_code="act-code-secret",
        cluster="ecs-anywhere",
    )
