import io
import os
import tarfile
from pathlib import Path

import pytest

from cnb_shim import fetcher
from cnb_shim.routes import create_app
from cnb_shim.shim import ENTRY_POINTS, ShimService

REGISTRY = "https://registry.test/buildpacks"


def make_tgz(files: dict) -> bytes:
    """Build an in-memory .tgz from {relative path: bytes}."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel_path, content in files.items():
            info = tarfile.TarInfo(rel_path)
            info.size = len(content)
            info.mode = 0o755 if rel_path.startswith("bin/") else 0o644
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def read_tgz(data: bytes) -> dict:
    """Return {normalized path: bytes} for every regular file in a .tgz."""
    files = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        for member in tar.getmembers():
            if member.isfile():
                files[os.path.normpath(member.name)] = tar.extractfile(member).read()
    return files


class FakeResponse:
    def __init__(self, body: bytes = b"", status_code: int = 200, error: Exception | None = None):
        self.body = body
        self.status_code = status_code
        self.error = error
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise fetcher.requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]
        if self.error is not None:
            raise self.error


class FakeRegistry:
    """Stands in for requests.get, serving tarballs by URL."""

    def __init__(self):
        self.buildpacks = {}
        self.requested = []

    def add(self, buildpack_id: str, files: dict):
        self.buildpacks[f"{REGISTRY}/{buildpack_id}.tgz"] = make_tgz(files)

    def get(self, url, stream=False):
        self.requested.append(url)
        if url not in self.buildpacks:
            return FakeResponse(b"<Error>NoSuchKey</Error>", status_code=403)
        return FakeResponse(self.buildpacks[url])


@pytest.fixture()
def registry(monkeypatch):
    fake = FakeRegistry()
    monkeypatch.setattr(fetcher.requests, "get", fake.get)
    return fake


@pytest.fixture()
def buildpack_dir(tmp_path: Path) -> Path:
    bp_dir = tmp_path / "buildpack-src"
    (bp_dir / "bin").mkdir(parents=True)
    for entry_point in ENTRY_POINTS:
        script = bp_dir / "bin" / entry_point
        script.write_text(f"#!/usr/bin/env bash\necho {entry_point}\n", encoding="utf-8")
        script.chmod(0o755)
    return bp_dir


@pytest.fixture()
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture()
def service(buildpack_dir, scratch_dir):
    return ShimService(
        buildpack_dir=str(buildpack_dir),
        registry_base_url=REGISTRY,
        tmp_dir=str(scratch_dir),
    )


@pytest.fixture()
def client(service):
    app = create_app(service)
    app.config["TESTING"] = True
    return app.test_client()
