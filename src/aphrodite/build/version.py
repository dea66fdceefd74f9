from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import tomli

from .config import BuildConfig
from .exceptions import ConfigurationError, VersionMismatchError

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class VersionInfo:
    #: The version of the kernel itself, as declared in its `Cargo.toml`.
    kernel_version: str

    #: The version the configuration was written for (`CFG_VERSION`).
    config_version: str

    def matches(self) -> bool:
        return self.kernel_version == self.config_version


def read_kernel_version(cargo_manifest: Path) -> str:
    """Returns the `package.version` of the kernel's Cargo manifest."""

    try:
        data = tomli.loads(cargo_manifest.read_text())
    except FileNotFoundError:
        raise ConfigurationError([f'"{cargo_manifest}" does not exist, cannot determine the kernel version'])
    except tomli.TOMLDecodeError as exc:
        raise ConfigurationError([f'"{cargo_manifest}" is not valid TOML: {exc}'])

    version = data.get("package", {}).get("version")
    if not isinstance(version, str) or not version:
        raise ConfigurationError([f'"{cargo_manifest}" does not declare a package.version'])
    return version


def check_version(config: BuildConfig, kernel_version: str) -> VersionInfo:
    """
    Ensures that the configuration was written for *kernel_version*. If the versions differ, a
    :class:`VersionMismatchError` is raised unless the configuration sets `CONT_WITH_DIFFERENT_VERSION=true`, in which
    case a warning is logged instead.
    """

    info = VersionInfo(kernel_version=kernel_version, config_version=config.version)
    if info.matches():
        return info

    if not config.continue_with_different_version:
        raise VersionMismatchError(info.config_version, info.kernel_version)

    logger.warning(
        'Configuration version "%s" is different than actual version "%s"',
        info.config_version,
        info.kernel_version,
    )
    return info
