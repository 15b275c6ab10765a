"""
Value types describing a resolved shim request.

All types are immutable; a ``ShimRequest`` is built once by
``validation.resolve_shim_request`` and only read afterwards.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BuildpackId:
    namespace: str
    name: str

    def __str__(self):
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    pre: str | None = None

    def __str__(self):
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.pre}" if self.pre else core


@dataclass(frozen=True)
class BuildpackApi:
    major: int
    minor: int

    def __str__(self):
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class Stack:
    id: str
    # Mixins are never populated for shimmed buildpacks
    mixins: tuple[str, ...] = ()


@dataclass(frozen=True)
class ShimRequest:
    """Fully validated description of the buildpack to shim."""

    id: BuildpackId
    version: Version
    name: str
    api: BuildpackApi
    stacks: tuple[Stack, ...] = field(default_factory=tuple)
