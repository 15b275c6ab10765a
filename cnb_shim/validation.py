"""
Input validation module for the buildpack shim service.

Turns the raw path segments and query parameters of a shim request into a
``ShimRequest``. Nothing here touches the network or the filesystem, so a
request is fully validated before any side effect happens.
"""

import logging
import re

from .config import config
from .errors import BadRequestError
from .models import BuildpackApi, BuildpackId, ShimRequest, Stack, Version

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.1.0"
DEFAULT_API_VERSION = "0.4"
DEFAULT_STACKS = ("heroku-18", "heroku-20")

# Alphanumeric segments separated by single '/', '.' or '-'
IDENTIFIER_RE = re.compile(r"[a-zA-Z0-9]+(?:[./-][a-zA-Z0-9]+)*")

_NUMERIC = r"0|[1-9]\d*"
_PRE_IDENT = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
VERSION_RE = re.compile(
    rf"({_NUMERIC})\.({_NUMERIC})\.({_NUMERIC})"
    rf"(?:-({_PRE_IDENT}(?:\.{_PRE_IDENT})*))?",
    re.ASCII,
)

API_RE = re.compile(r"(\d+)\.(\d+)", re.ASCII)


class InvalidIdentifier(BadRequestError):
    pass


class InvalidVersion(BadRequestError):
    pass


class InvalidApi(BadRequestError):
    pass


class InvalidStack(BadRequestError):
    pass


def _is_identifier(value: str) -> bool:
    return 0 < len(value) <= config.MAX_IDENTIFIER_LENGTH and bool(IDENTIFIER_RE.fullmatch(value))


def parse_buildpack_id(namespace: str, name: str) -> BuildpackId:
    """
    Validate the namespace and name path segments of a buildpack id.

    Args:
        namespace: Registry namespace (e.g., "heroku")
        name: Buildpack name within the namespace (e.g., "ruby")

    Returns:
        BuildpackId whose string form is "namespace/name"

    Raises:
        InvalidIdentifier: if either segment is empty or the combined id does
            not match the identifier grammar

    Examples:
        >>> str(parse_buildpack_id("heroku", "ruby"))
        'heroku/ruby'
        >>> parse_buildpack_id("my namespace", "ruby")  # Raises (space)
    """
    combined = f"{namespace}/{name}"
    if not namespace or not name or not _is_identifier(combined):
        logger.warning(f"Invalid buildpack id: {combined!r}")
        raise InvalidIdentifier("invalid buildpack id")

    logger.debug(f"Buildpack id validated: {combined}")
    return BuildpackId(namespace=namespace, name=name)


def parse_version(value: str) -> Version:
    """
    Parse a "major.minor.patch[-pre]" version string.

    Numeric components may not carry leading zeros. Build metadata
    ("+build") is not accepted.

    Raises:
        InvalidVersion: on a malformed version string
    """
    match = VERSION_RE.fullmatch(value)
    if not match:
        logger.warning(f"Invalid buildpack version: {value!r}")
        raise InvalidVersion(f"invalid buildpack version: {value!r}")

    major, minor, patch, pre = match.groups()
    return Version(int(major), int(minor), int(patch), pre)


def parse_api(value: str) -> BuildpackApi:
    """Parse a "major.minor" buildpack API version. Any syntactically valid value is accepted."""
    match = API_RE.fullmatch(value)
    if not match:
        logger.warning(f"Invalid buildpack api: {value!r}")
        raise InvalidApi("invalid buildpack api")

    return BuildpackApi(int(match.group(1)), int(match.group(2)))


def parse_stack(value: str) -> Stack:
    if not _is_identifier(value):
        logger.warning(f"Invalid stack: {value!r}")
        raise InvalidStack(f"invalid stack: {value!r}")
    return Stack(id=value)


def resolve_shim_request(
    namespace: str,
    name: str,
    version: str | None = None,
    display_name: str | None = None,
    api: str | None = None,
    stacks: list[str] | None = None,
) -> ShimRequest:
    """
    Build a validated ShimRequest from request path segments and query options.

    Args:
        namespace: Path segment naming the registry namespace
        name: Path segment naming the buildpack
        version: Buildpack version. Default: 0.1.0
        display_name: Human-readable buildpack name. Default: the name segment
        api: Target buildpack API version. Default: 0.4
        stacks: Stack ids, already split into individual values.
            Default: heroku-18 and heroku-20. An empty list yields no stacks.

    Returns:
        ShimRequest describing the v3 buildpack to produce

    Raises:
        InvalidIdentifier, InvalidVersion, InvalidApi, InvalidStack:
            all subclasses of BadRequestError (HTTP 400)
    """
    # The id goes first: it appears in every later log line and error
    buildpack_id = parse_buildpack_id(namespace, name)
    parsed_version = parse_version(version if version is not None else DEFAULT_VERSION)
    parsed_api = parse_api(api if api is not None else DEFAULT_API_VERSION)

    if stacks is None:
        stacks = list(DEFAULT_STACKS)
    parsed_stacks = []
    seen = set()
    for stack_id in stacks:
        stack = parse_stack(stack_id)
        if stack.id not in seen:
            seen.add(stack.id)
            parsed_stacks.append(stack)

    return ShimRequest(
        id=buildpack_id,
        version=parsed_version,
        name=display_name if display_name is not None else buildpack_id.name,
        api=parsed_api,
        stacks=tuple(parsed_stacks),
    )
