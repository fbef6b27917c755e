import hashlib
import io
import zipfile

import pytest

from ecs_anywhere_installer.errors import DownloadError, IntegrityError
from ecs_anywhere_installer.lib.blobstore import BlobFetcher
from ecs_anywhere_installer.lib.layout import ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, ecs_agent_bucket

from conftest import REGION, FakeS3Client, make_bundle

BUCKET = ecs_agent_bucket(REGION)


def test_fetch_replaces_existing_file(tmp_path, s3):
    target = tmp_path / "dl" / "setup.exe"
    target.parent.mkdir()
    target.write_bytes(b"stale")
    s3.put("b", "k", b"fresh")

    art = BlobFetcher(REGION, client=s3).fetch("b", "k", target)

    assert target.read_bytes() == b"fresh"
    assert art.local_path == target
    assert not art.verified


def test_fetch_missing_object_raises_download_error(tmp_path, s3):
    target = tmp_path / "setup.exe"
    target.write_bytes(b"stale")
    with pytest.raises(DownloadError):
        BlobFetcher(REGION, client=s3).fetch("b", "missing", target)
    assert not target.exists()


def test_fetch_and_verify_extracts_on_match(tmp_path, s3):
    dest = tmp_path / "artifacts"
    art = BlobFetcher(REGION, client=s3).fetch_and_verify(
        BUCKET, ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, dest, download_dir=tmp_path / "dl"
    )
    assert art.verified
    assert (dest / "docker" / "dockerd.exe").read_text() == "dockerd.exe-binary"
    assert (dest / "ECSTools" / "ECSTools.psm1").exists()


def test_sidecar_hash_is_case_insensitive(tmp_path):
    bundle = make_bundle()
    client = FakeS3Client()
    client.put(BUCKET, ARTIFACT_ARCHIVE_KEY, bundle)
    client.put(BUCKET, ARTIFACT_HASH_KEY, hashlib.sha256(bundle).hexdigest().upper().encode())
    art = BlobFetcher(REGION, client=client).fetch_and_verify(
        BUCKET, ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, tmp_path / "out"
    )
    assert art.verified


@pytest.mark.parametrize("offset", [0, 100, -1])
def test_flipped_byte_never_extracts(tmp_path, s3, offset):
    bundle = bytearray(s3.objects[(BUCKET, ARTIFACT_ARCHIVE_KEY)])
    bundle[offset] ^= 0x01
    s3.put(BUCKET, ARTIFACT_ARCHIVE_KEY, bytes(bundle))
    dest = tmp_path / "artifacts"

    with pytest.raises(IntegrityError):
        BlobFetcher(REGION, client=s3).fetch_and_verify(
            BUCKET, ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, dest, download_dir=tmp_path / "dl"
        )
    assert not dest.exists()


def test_mismatch_leaves_existing_destination_untouched(tmp_path, s3):
    s3.put(BUCKET, ARTIFACT_HASH_KEY, b"0" * 64)
    dest = tmp_path / "artifacts"
    dest.mkdir()
    (dest / "keep.txt").write_text("x")

    with pytest.raises(IntegrityError):
        BlobFetcher(REGION, client=s3).fetch_and_verify(
            BUCKET, ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, dest, download_dir=tmp_path / "dl"
        )
    assert [p.name for p in dest.iterdir()] == ["keep.txt"]


def test_missing_sidecar_is_a_download_error(tmp_path, s3):
    del s3.objects[(BUCKET, ARTIFACT_HASH_KEY)]
    with pytest.raises(DownloadError):
        BlobFetcher(REGION, client=s3).fetch_and_verify(
            BUCKET, ARTIFACT_ARCHIVE_KEY, ARTIFACT_HASH_KEY, tmp_path / "out"
        )


def test_archive_member_escaping_destination_is_rejected(tmp_path):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("../evil.txt", "boom")
    data = buf.getvalue()
    client = FakeS3Client()
    client.put(BUCKET, "a.zip", data)
    client.put(BUCKET, "a.zip.sha256", hashlib.sha256(data).hexdigest().encode())
    dest = tmp_path / "out" / "artifacts"

    with pytest.raises(IntegrityError):
        BlobFetcher(REGION, client=client).fetch_and_verify(BUCKET, "a.zip", "a.zip.sha256", dest)
    assert not (tmp_path / "out" / "evil.txt").exists()
    assert not dest.exists()
