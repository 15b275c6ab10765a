"""
Buildpack shim service.

Serves v2 buildpacks from the buildpack registry as v3 (Cloud Native
Buildpack) buildpacks, shimmed on demand.

Endpoints:
    - GET /health - Health check
    - GET /v1/<namespace>/<name> - Shimmed buildpack tarball

Query Parameters (shim endpoint):
    version, name, api, stacks (repeatable or comma-delimited)

Environment Variables:
    LOG_LEVEL, FLASK_HOST, FLASK_PORT, REGISTRY_URL, BUILDPACK_DIR,
    SHIM_TMPDIR, MAX_IDENTIFIER_LENGTH

Example:
    $ LOG_LEVEL=DEBUG python app.py
    $ curl -o ruby.tgz "localhost:3000/v1/heroku/ruby?version=1.2.3&stacks=heroku-20"

See README.md for full documentation.
"""

import logging
import os
import sys

from cnb_shim.config import config
from cnb_shim.routes import create_app
from cnb_shim.shim import ENTRY_POINTS, ShimService

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def check_buildpack_dir(buildpack_dir: str) -> list[str]:
    """Return the entry points missing from buildpack_dir/bin."""
    return [
        entry_point
        for entry_point in ENTRY_POINTS
        if not os.path.isfile(os.path.join(buildpack_dir, "bin", entry_point))
    ]


def main():
    """Main entry point for the shim service."""
    try:
        buildpack_dir = os.path.abspath(config.BUILDPACK_DIR or os.getcwd())
    except OSError:
        logger.error("Could not get the current directory.")
        sys.exit(1)

    missing = check_buildpack_dir(buildpack_dir)
    if missing:
        logger.warning(f"Missing entry points in {buildpack_dir}/bin: {', '.join(missing)}")

    service = ShimService(
        buildpack_dir=buildpack_dir,
        registry_base_url=config.REGISTRY_URL,
        tmp_dir=config.SHIM_TMPDIR,
    )
    app = create_app(service)

    debug_mode = logger.getEffectiveLevel() == logging.DEBUG
    logger.info(f"Starting buildpack shim service on {config.FLASK_HOST}:{config.FLASK_PORT}")
    logger.info(f"Configuration: {config}")
    logger.info(f"Log level: {logging.getLevelName(logger.getEffectiveLevel())}")
    if debug_mode:
        logger.info("Flask debug mode enabled")
    app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=debug_mode)


if __name__ == "__main__":
    main()
