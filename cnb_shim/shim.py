"""
Shim pipeline for the buildpack shim service.

Turns a validated ShimRequest into a gzip-compressed v3 buildpack tarball.
"""

import logging
import os
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from dataclasses import dataclass

from .archive import tar_directory, untar
from .errors import BadRequestError, ServiceError
from .fetcher import TransportError, download, registry_url
from .manifest import MANIFEST_FILENAME, render_manifest
from .models import ShimRequest

logger = logging.getLogger(__name__)

ENTRY_POINTS = ("detect", "build", "release", "exports")


@dataclass(frozen=True)
class ShimmedBuildpack:
    filename: str
    data: bytes


class ShimService:
    """
    Builds shimmed v3 buildpacks from v2 buildpacks in the registry.

    One instance is shared by all request handlers. Its attributes are set
    once at construction and only read afterwards; all per-request state
    lives in a private workspace directory.

    Workspace layout (removed when the request finishes, on every path):
        <workspace>/
        ├── buildpack/          (staging tree, packed into the result)
        │   ├── bin/{detect,build,release,exports}
        │   ├── target/         (unpacked v2 buildpack)
        │   └── buildpack.toml
        ├── buildpack.tgz       (downloaded v2 buildpack)
        └── <uuid>.tgz          (shimmed v3 buildpack)
    """

    def __init__(self, buildpack_dir: str, registry_base_url: str, tmp_dir: str | None = None):
        """
        Args:
            buildpack_dir: Directory holding bin/{detect,build,release,exports}
            registry_base_url: Base URL of the v2 buildpack registry
            tmp_dir: Parent directory for request workspaces. Default: system temp dir
        """
        self.buildpack_dir = buildpack_dir
        self.registry_base_url = registry_base_url
        self.tmp_dir = tmp_dir

    def shim(self, shim_request: ShimRequest) -> ShimmedBuildpack:
        """
        Run the shim pipeline for one request.

        Stages run strictly in order:
            prepare -> fetch -> unpack -> pack -> respond
        and the first failure aborts the pipeline.

        Returns:
            ShimmedBuildpack with the "<uuid>.tgz" filename and tarball bytes

        Raises:
            BadRequestError: the v2 buildpack could not be downloaded
            ServiceError: any local filesystem, archive or serialization failure
        """
        filename = f"{uuid.uuid4()}.tgz"

        with self._workspace() as workspace:
            staging_dir = os.path.join(workspace, "buildpack")
            v2_buildpack_path = os.path.join(workspace, "buildpack.tgz")
            archive_path = os.path.join(workspace, filename)

            self._prepare(shim_request, staging_dir)
            self._fetch(shim_request, v2_buildpack_path)
            self._unpack(v2_buildpack_path, os.path.join(staging_dir, "target"))
            self._pack(staging_dir, archive_path)
            data = self._read(archive_path)

        logger.info(f"Shimmed {shim_request.id} {shim_request.version} as {filename} ({len(data)} bytes)")
        return ShimmedBuildpack(filename=filename, data=data)

    @contextmanager
    def _workspace(self):
        try:
            workspace = tempfile.TemporaryDirectory(prefix="cnb-shim-", dir=self.tmp_dir)
        except OSError as e:
            raise ServiceError("Can't create tmp dir") from e

        with workspace as path:
            logger.debug(f"Created workspace {path}")
            try:
                yield path
            finally:
                logger.debug(f"Removing workspace {path}")

    def _prepare(self, shim_request: ShimRequest, staging_dir: str) -> None:
        logger.debug(f"Stage prepare: {staging_dir}")

        bin_dir = os.path.join(staging_dir, "bin")
        try:
            os.makedirs(bin_dir)
        except OSError as e:
            raise ServiceError("Can't create bin dir") from e

        for entry_point in ENTRY_POINTS:
            src = os.path.join(self.buildpack_dir, "bin", entry_point)
            try:
                shutil.copy(src, os.path.join(bin_dir, entry_point))
            except OSError as e:
                raise ServiceError(f"Can't copy file {src}") from e
            logger.debug(f"Copied {src}")

        try:
            manifest = render_manifest(shim_request)
        except (TypeError, ValueError) as e:
            raise ServiceError(f"Can't convert {MANIFEST_FILENAME} to string: {e}") from e

        try:
            with open(os.path.join(staging_dir, MANIFEST_FILENAME), "w", encoding="utf-8") as f:
                f.write(manifest)
        except OSError as e:
            raise ServiceError(f"Can't write {MANIFEST_FILENAME} to disk") from e

    def _fetch(self, shim_request: ShimRequest, dst: str) -> None:
        url = registry_url(self.registry_base_url, shim_request.id)
        logger.debug(f"Stage fetch: {url}")

        try:
            download(url, dst)
        except TransportError as e:
            # The buildpack most likely does not exist in the registry
            raise BadRequestError(f"Can't download v2 buildpack: {e}") from e
        except OSError as e:
            raise ServiceError(f"Can't download v2 buildpack: {e}") from e

    def _unpack(self, tar_path: str, dst: str) -> None:
        logger.debug(f"Stage unpack: {tar_path}")
        try:
            untar(tar_path, dst)
        except OSError as e:
            raise ServiceError(f"Could not untar v2 buildpack: {e}") from e

    def _pack(self, src: str, dst: str) -> None:
        logger.debug(f"Stage pack: {dst}")
        try:
            tar_directory(dst, src)
        except OSError as e:
            raise ServiceError(f"Could not create shimmed tarball: {e}") from e

    def _read(self, path: str) -> bytes:
        logger.debug(f"Stage respond: {path}")
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ServiceError("Could not read shimmed buildpack") from e
