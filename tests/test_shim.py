import logging
import os
import tomllib

import pytest

from cnb_shim.errors import BadRequestError, ServiceError
from cnb_shim.shim import ShimService
from cnb_shim.validation import resolve_shim_request

from conftest import REGISTRY, read_tgz


V2_FILES = {"a.txt": b"alpha", "sub/b.txt": b"beta", "bin/compile": b"#!/bin/sh\necho compile\n"}


def test_shim_layout(service, registry, buildpack_dir, scratch_dir):
    registry.add("heroku/ruby", V2_FILES)

    shimmed = service.shim(resolve_shim_request("heroku", "ruby", version="1.2.3"))

    assert shimmed.filename.endswith(".tgz")
    files = read_tgz(shimmed.data)
    assert files["target/a.txt"] == b"alpha"
    assert files["target/sub/b.txt"] == b"beta"
    assert files["target/bin/compile"] == V2_FILES["bin/compile"]
    for entry_point in ("detect", "build", "release", "exports"):
        assert files[f"bin/{entry_point}"] == (buildpack_dir / "bin" / entry_point).read_bytes()

    manifest = tomllib.loads(files["buildpack.toml"].decode())
    assert manifest["buildpack"]["id"] == "heroku/ruby"
    assert manifest["buildpack"]["version"] == "1.2.3"

    assert registry.requested == [f"{REGISTRY}/heroku/ruby.tgz"]
    assert os.listdir(scratch_dir) == []


def test_shim_unique_filenames(service, registry):
    registry.add("heroku/ruby", V2_FILES)
    req = resolve_shim_request("heroku", "ruby")
    assert service.shim(req).filename != service.shim(req).filename


def test_missing_v2_buildpack_is_bad_request(service, registry, scratch_dir):
    with pytest.raises(BadRequestError):
        service.shim(resolve_shim_request("heroku", "missing"))
    assert os.listdir(scratch_dir) == []


def test_corrupt_v2_buildpack_is_service_error(service, registry, scratch_dir):
    registry.buildpacks[f"{REGISTRY}/heroku/ruby.tgz"] = b"not a tarball"
    with pytest.raises(ServiceError):
        service.shim(resolve_shim_request("heroku", "ruby"))
    assert os.listdir(scratch_dir) == []


def test_missing_entry_point_is_service_error(service, registry, buildpack_dir, scratch_dir):
    registry.add("heroku/ruby", V2_FILES)
    (buildpack_dir / "bin" / "exports").unlink()

    with pytest.raises(ServiceError):
        service.shim(resolve_shim_request("heroku", "ruby"))
    # Nothing is fetched once preparing the staging tree failed
    assert registry.requested == []
    assert os.listdir(scratch_dir) == []


def test_tmp_dir_creation_failure_is_service_error(buildpack_dir, registry, tmp_path):
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("x")
    service = ShimService(str(buildpack_dir), REGISTRY, tmp_dir=str(not_a_dir))

    with pytest.raises(ServiceError):
        service.shim(resolve_shim_request("heroku", "ruby"))
    assert registry.requested == []


def test_manifest_serialization_failure_is_service_error(service, registry, monkeypatch, scratch_dir):
    def broken(shim_request):
        raise TypeError("Object of type X is not TOML serializable")

    monkeypatch.setattr("cnb_shim.shim.render_manifest", broken)
    with pytest.raises(ServiceError):
        service.shim(resolve_shim_request("heroku", "ruby"))
    assert os.listdir(scratch_dir) == []


def test_workspace_removal_logged_on_failure(service, registry, scratch_dir, caplog):
    caplog.set_level(logging.DEBUG, logger="cnb_shim.shim")
    with pytest.raises(BadRequestError):
        service.shim(resolve_shim_request("heroku", "missing"))

    assert any(record.getMessage().startswith("Removing workspace") for record in caplog.records)
    assert os.listdir(scratch_dir) == []
