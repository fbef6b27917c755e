from __future__ import annotations

import hashlib
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import DownloadError, IntegrityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    bucket: str
    remote_path: str
    local_path: Path
    hash_path: Optional[str] = None
    verified: bool = False


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _read_sidecar(path: Path) -> str:
    # sha256sum style "<hex>  <name>" or a bare digest
    text = path.read_text(encoding="utf-8", errors="replace").strip()
    return text.split()[0].lower() if text else ""


def _safe_extract(archive: Path, destination: Path) -> None:
    dest = destination.resolve()
    with zipfile.ZipFile(archive) as zf:
        for name in zf.namelist():
            target = (dest / name).resolve()
            if target != dest and dest not in target.parents:
                raise IntegrityError(f"Archive member escapes destination: {name}")
        destination.mkdir(parents=True, exist_ok=True)
        zf.extractall(destination)


class BlobFetcher:
    """Downloads objects from the public per-region S3 buckets."""

    def __init__(self, region: str, *, client: Any | None = None) -> None:
        if client is None:
            session = boto3.session.Session(region_name=region)
            client = session.client("s3", config=Config(signature_version=UNSIGNED))
        self._client = client
        self.region = region

    def fetch(self, bucket: str, remote_path: str, local_path: Path) -> Artifact:
        """Download s3://bucket/remote_path to local_path.

        Any transport failure surfaces as DownloadError once we confirm the
        file did not land. No retry here.
        """

        local_path = Path(local_path)
        if local_path.exists():
            local_path.unlink()
        local_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Downloading s3://%s/%s -> %s", bucket, remote_path, local_path)
        cause: Optional[BaseException] = None
        try:
            self._client.download_file(bucket, remote_path, str(local_path))
        except (BotoCoreError, ClientError, OSError) as e:
            logger.warning("Transfer of s3://%s/%s failed: %s", bucket, remote_path, e)
            cause = e

        if not local_path.is_file():
            raise DownloadError(
                f"Failed to download s3://{bucket}/{remote_path} to {local_path}",
                cause=cause,
            )
        return Artifact(bucket=bucket, remote_path=remote_path, local_path=local_path)

    def fetch_and_verify(
        self,
        bucket: str,
        archive_path: str,
        hash_path: str,
        destination_dir: Path,
        *,
        download_dir: Optional[Path] = None,
    ) -> Artifact:
        """Fetch an archive plus its SHA-256 sidecar and extract only on match."""

        destination_dir = Path(destination_dir)
        download_dir = Path(download_dir) if download_dir else destination_dir.parent
        archive_local = download_dir / Path(archive_path).name
        hash_local = download_dir / Path(hash_path).name

        archive = self.fetch(bucket, archive_path, archive_local)
        self.fetch(bucket, hash_path, hash_local)

        expected = _read_sidecar(hash_local)
        actual = sha256_file(archive_local)
        if not expected or actual != expected:
            raise IntegrityError(
                f"Hash mismatch for s3://{bucket}/{archive_path}: expected {expected or '<empty>'}, got {actual}"
            )
        logger.info("Verified %s (sha256=%s)", archive_local.name, actual)

        _safe_extract(archive_local, destination_dir)
        logger.info("Extracted %s -> %s", archive_local.name, destination_dir)
        return Artifact(
            bucket=archive.bucket,
            remote_path=archive.remote_path,
            local_path=archive.local_path,
            hash_path=hash_path,
            verified=True,
        )
