"""
Buildpack shim service.

Converts v2 buildpacks from the buildpack registry into v3 (Cloud Native
Buildpack) buildpacks on demand:

    GET /v1/<namespace>/<name>?version=&name=&api=&stacks=

downloads <registry>/<namespace>/<name>.tgz, nests its contents under
target/, adds a generated buildpack.toml plus the bin/{detect,build,release,exports}
entry points, and returns the result as a gzip-compressed tarball.

See README.md for full documentation.
"""

__version__ = "0.1.0"

# Import key components for convenience
from .config import Config
from .errors import BadRequestError, ServiceError, ShimError
from .models import BuildpackApi, BuildpackId, ShimRequest, Stack, Version
from .validation import resolve_shim_request
from .manifest import build_manifest, render_manifest
from .fetcher import download, registry_url
from .archive import tar_directory, untar
from .shim import ShimService

__all__ = [
    "Config",
    "ShimError",
    "BadRequestError",
    "ServiceError",
    "BuildpackApi",
    "BuildpackId",
    "ShimRequest",
    "Stack",
    "Version",
    "resolve_shim_request",
    "build_manifest",
    "render_manifest",
    "download",
    "registry_url",
    "tar_directory",
    "untar",
    "ShimService",
]
