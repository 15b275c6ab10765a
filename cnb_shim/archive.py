"""
Tarball handling module for the buildpack shim service.

Provides functions for unpacking v2 buildpack tarballs and packing shimmed
buildpack directories into gzip-compressed tarballs.
"""

import logging
import os
import tarfile

logger = logging.getLogger(__name__)


class ArchiveError(OSError):
    """A tarball could not be read, decompressed, extracted or written."""


def _keep_permissions(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo:
    """Reject members escaping dest_path, keeping the archived rwx bits."""
    filtered = tarfile.tar_filter(member, dest_path)
    if member.mode is None:
        return filtered
    return filtered.replace(mode=member.mode & 0o777, deep=False)


def untar(tar_path: str, dst: str) -> None:
    """
    Extract a gzip-compressed tarball into a directory.

    Args:
        tar_path: Path to the .tgz file
        dst: Destination directory (created if missing)

    Raises:
        ArchiveError: on any read, decompress or extract failure

    Behavior:
        - Relative paths, directory structure and permissions are preserved
        - Members with absolute paths or paths escaping dst are rejected
    """
    logger.debug(f"Extracting {tar_path} into {dst}")

    try:
        os.makedirs(dst, exist_ok=True)
        with tarfile.open(tar_path, "r:gz") as tar:
            tar.extractall(dst, filter=_keep_permissions)
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveError(f"failed to extract {tar_path}: {e}") from e


def tar_directory(dst: str, src: str) -> int:
    """
    Pack a directory into a gzip-compressed tarball.

    Every file and directory under src is added recursively with paths
    relative to src; the root itself is stored as ".". Compression uses
    the zlib default level (6).

    Args:
        dst: Path of the tarball to create
        src: Directory to pack

    Returns:
        Size of the written tarball in bytes

    Raises:
        ArchiveError: on any local read or write failure

    Example:
        A directory holding bin/detect and buildpack.toml produces the
        members ".", "./bin", "./bin/detect" and "./buildpack.toml".
    """
    logger.debug(f"Packing {src} into {dst}")

    try:
        with tarfile.open(dst, "w:gz", compresslevel=6) as tar:
            tar.add(src, arcname=".")
        size = os.path.getsize(dst)
    except (tarfile.TarError, OSError) as e:
        raise ArchiveError(f"failed to create {dst}: {e}") from e

    logger.debug(f"Packed {dst}: {size} bytes")
    return size
