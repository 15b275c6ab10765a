"""
buildpack.toml synthesis for shimmed buildpacks.
"""

import logging

import tomli_w

from .models import ShimRequest

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "buildpack.toml"


def build_manifest(shim_request: ShimRequest) -> dict:
    """
    Build the buildpack.toml document for a shim request.

    The document carries no homepage, an empty build order and an empty
    metadata table. Every stack is declared without mixins.

    Example:
        >>> build_manifest(request)["buildpack"]
        {'id': 'heroku/ruby', 'name': 'ruby', 'version': '0.1.0', 'clear_env': False}
    """
    return {
        "api": str(shim_request.api),
        "buildpack": {
            "id": str(shim_request.id),
            "name": shim_request.name,
            "version": str(shim_request.version),
            "clear_env": False,
        },
        "stacks": [
            {"id": stack.id, "mixins": list(stack.mixins)}
            for stack in shim_request.stacks
        ],
        "order": [],
        "metadata": {},
    }


def render_manifest(shim_request: ShimRequest) -> str:
    """Serialize the buildpack.toml document for a shim request to TOML text."""
    document = build_manifest(shim_request)
    text = tomli_w.dumps(document)
    logger.debug(f"Rendered {MANIFEST_FILENAME} for {shim_request.id}:\n{text}")
    return text
