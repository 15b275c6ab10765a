"""
v2 buildpack download module.

Fetches legacy buildpack tarballs from the v2 buildpack registry.
"""

import logging

import requests

from .models import BuildpackId

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class TransportError(Exception):
    """The registry could not be reached or did not return the buildpack."""


def registry_url(base_url: str, buildpack_id: BuildpackId) -> str:
    """
    Build the registry URL of a v2 buildpack tarball.

    Example:
        >>> registry_url("https://example.com/buildpacks", BuildpackId("heroku", "ruby"))
        'https://example.com/buildpacks/heroku/ruby.tgz'
    """
    return f"{base_url.rstrip('/')}/{buildpack_id}.tgz"


def download(url: str, dst: str) -> int:
    """
    Stream a remote file to disk.

    Args:
        url: URL to GET
        dst: Destination file path (created or overwritten)

    Returns:
        Number of bytes written

    Raises:
        TransportError: the request failed, returned a non-success status, or
            the connection broke while streaming the body
        OSError: the destination file could not be created or written

    Note:
        No retries and no timeout beyond what the network stack applies.
        Callers rely on the two exception kinds to tell an unavailable
        buildpack apart from a local storage failure.
    """
    logger.info(f"Downloading {url}")

    try:
        response = requests.get(url, stream=True)
    except requests.RequestException as e:
        raise TransportError(f"failed to download {url}: {e}") from e

    written = 0
    with response:
        try:
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"failed to download {url}: {e}") from e

        with open(dst, "wb") as f:
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
                    written += len(chunk)
            except requests.RequestException as e:
                raise TransportError(f"failed to download {url}: {e}") from e

    logger.debug(f"Downloaded {written} bytes to {dst}")
    return written
