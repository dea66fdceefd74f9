from __future__ import annotations

import dataclasses
import logging
import posixpath
from collections.abc import Iterable, Iterator, Mapping

from .config import BuildConfig
from .exceptions import UnknownTargetError

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Target:
    """A hardware profile the kernel is built for."""

    #: The symbolic name, e.g. `x86`.
    name: str

    #: The Rust target triple or target specification file name, e.g. `x86_64-aphrodite.json`.
    platform: str

    @property
    def binary_name(self) -> str:
        """The name of the Cargo binary that contains the entrypoint for this target."""

        return f"entrypoint_{self.name}"

    @property
    def artifact_name(self) -> str:
        return f"kernel-{self.name}"

    @property
    def output_triple(self) -> str:
        """The directory name Cargo uses below `target/` for this platform."""

        return self.platform.removesuffix(".json")


def normalize_platform(value: str) -> str:
    """Strips directory components from a platform identifier, leaving the triple or file name."""

    return posixpath.basename(value.strip().rstrip("/"))


def resolve_target(name: str, values: Mapping[str, str]) -> Target:
    """
    Resolves a target by using its *name* as a key into *values*. Raises :class:`UnknownTargetError` if the key is
    not set or empty.
    """

    platform = normalize_platform(values.get(name, ""))
    if not platform:
        raise UnknownTargetError(name)
    return Target(name, platform)


class TargetRegistry:
    """
    The ordered set of targets a build processes by default. All targets listed in `TARGETS` are resolved when the
    registry is constructed, so an unresolvable name fails the run before any target is built.
    """

    def __init__(self, targets: Iterable[Target], values: Mapping[str, str]) -> None:
        self._targets = {target.name: target for target in targets}
        self._values = values

    @classmethod
    def from_config(cls, config: BuildConfig) -> TargetRegistry:
        targets = [resolve_target(name, config.values) for name in config.targets]
        for target in targets:
            logger.debug("registered target %s (%s)", target.name, target.platform)
        return cls(targets, config.values)

    @property
    def names(self) -> list[str]:
        return list(self._targets)

    def get(self, name: str) -> Target:
        """
        Returns the target with the given *name*. A name that is not listed in `TARGETS` is resolved from the
        configuration in the same way.
        """

        target = self._targets.get(name)
        if target is None:
            target = resolve_target(name, self._values)
        return target

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, name: object) -> bool:
        return name in self._targets
