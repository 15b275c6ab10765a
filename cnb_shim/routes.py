"""
Flask application and buildpack shim endpoints.

Endpoints:
    - GET /health - Health check
    - GET /v1/<namespace>/<name> - Shimmed v3 buildpack tarball
"""

import logging
import os

from flask import Blueprint, Flask, Response, current_app, make_response, request

from .config import config
from .errors import ShimError
from .shim import ShimService
from .validation import resolve_shim_request

logger = logging.getLogger(__name__)

EXTENSION_KEY = "cnb_shim"
ERROR_BODY = "INTERNAL SERVER ERROR"

bp = Blueprint("shim", __name__)


def create_app(service: ShimService | None = None) -> Flask:
    """
    Create the Flask application.

    Args:
        service: Shim pipeline shared by all requests. Default: one built
            from the environment configuration

    Returns:
        Flask app serving /health and /v1/<namespace>/<name>
    """
    if service is None:
        service = ShimService(
            buildpack_dir=config.BUILDPACK_DIR or os.getcwd(),
            registry_base_url=config.REGISTRY_URL,
            tmp_dir=config.SHIM_TMPDIR,
        )

    flask_app = Flask(__name__)
    flask_app.extensions[EXTENSION_KEY] = service
    flask_app.register_blueprint(bp)
    flask_app.register_error_handler(ShimError, handle_shim_error)
    flask_app.after_request(log_request)
    return flask_app


def handle_shim_error(error: ShimError):
    """Log a shim failure and map it to its HTTP status with a fixed body."""
    logger.error(error.message)
    return Response(ERROR_BODY, status=error.status_code, mimetype="text/plain")


def log_request(response: Response) -> Response:
    logger.info(f"{request.method} {request.full_path.rstrip('?')} {response.status_code}")
    return response


def _stacks_param() -> list[str] | None:
    """
    Collect the stacks query parameter.

    Accepts both repeated (?stacks=a&stacks=b) and comma-delimited
    (?stacks=a,b) forms. Returns None when the parameter is absent.
    """
    values = request.args.getlist("stacks")
    if not values:
        return None
    return [stack for value in values for stack in value.split(",")]


# -------------------------------
# Endpoints
# -------------------------------


@bp.route("/health")
def health():
    return Response("health check ok", status=200, mimetype="text/plain")


@bp.route("/v1/<namespace>/<name>")
def shim(namespace, name):
    """
    Shim a v2 buildpack from the registry into a v3 buildpack tarball.

    Args:
        namespace: Registry namespace of the v2 buildpack
        name: Name of the v2 buildpack

    Query Parameters:
        version: Buildpack version. Default: 0.1.0
        name: Buildpack display name. Default: the name path segment
        api: Buildpack API version. Default: 0.4
        stacks: Stack ids, repeated or comma-delimited. Default: heroku-18,heroku-20

    Response Headers:
        Content-Type: application/x-gzip
        Content-Disposition: attachment; filename="<uuid>.tgz"

    Raises:
        400: Invalid input or v2 buildpack not downloadable
        500: Local failure while building the tarball
    """
    logger.info(f"shimming: {namespace}/{name}")

    shim_request = resolve_shim_request(
        namespace,
        name,
        version=request.args.get("version"),
        display_name=request.args.get("name"),
        api=request.args.get("api"),
        stacks=_stacks_param(),
    )

    service = current_app.extensions[EXTENSION_KEY]
    shimmed = service.shim(shim_request)

    resp = make_response(shimmed.data)
    resp.headers["Content-Type"] = "application/x-gzip"
    resp.headers["Content-Disposition"] = f'attachment; filename="{shimmed.filename}"'
    return resp
