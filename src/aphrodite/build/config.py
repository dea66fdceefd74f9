"""
Loads the build configuration (`config.aphro`) and the target manifest (`targets`) of the kernel.

Both documents consist of `KEY=VALUE` lines and `#` comment lines. Before a document is parsed, `$NAME` and `${NAME}`
references are expanded from the process environment, so that operators can override values at invocation time. The
result is an immutable :class:`BuildConfig` that is handed to every other component; nothing writes back into
:data:`os.environ`.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
import shlex
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from ._envsubst import envsubst
from ._fs import scratch_file
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.aphro"
MANIFEST_FILENAME = "targets"
SCRATCH_SUFFIX = ".tmp"

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FLAG_VALUES = {"true": True, "false": False, "": False}


@dataclasses.dataclass(frozen=True)
class ProjectLayout:
    """
    The well-known files and directories of a kernel checkout. All paths are derived from :attr:`kernel_dir`.
    """

    kernel_dir: Path

    @property
    def config_file(self) -> Path:
        return self.kernel_dir / CONFIG_FILENAME

    @property
    def manifest_file(self) -> Path:
        return self.kernel_dir / MANIFEST_FILENAME

    @property
    def cargo_manifest(self) -> Path:
        return self.kernel_dir / "Cargo.toml"

    @property
    def cargo_target_dir(self) -> Path:
        return self.kernel_dir / "target"

    @property
    def grub_template_dir(self) -> Path:
        return self.kernel_dir / "grub_template"

    @property
    def grub_staging_dir(self) -> Path:
        return self.kernel_dir / "grub"

    @classmethod
    def current(cls) -> ProjectLayout:
        return cls(Path.cwd().resolve())


@dataclasses.dataclass(frozen=True)
class BuildConfig:
    """The validated configuration of a single build run."""

    #: The absolute path of the kernel checkout.
    kernel_dir: Path

    #: The version the configuration was written for (`CFG_VERSION`).
    version: str

    #: The targets to process when no explicit target is given (`TARGETS`), in order.
    targets: tuple[str, ...]

    #: Whether to package allow-listed targets into GRUB ISO images (`CONFIG_BUILD_GRUB`).
    build_grub: bool

    #: Whether to continue if :attr:`version` does not match the kernel version (`CONT_WITH_DIFFERENT_VERSION`).
    continue_with_different_version: bool

    #: All key/value pairs: the process environment overlaid by the manifest and the build configuration.
    values: Mapping[str, str]

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.values.get(key, default)

    @property
    def env(self) -> dict[str, str]:
        """The environment for subprocesses, so the toolchain sees every configuration key."""

        return dict(self.values)

    @classmethod
    def from_values(cls, values: Mapping[str, str], kernel_dir: Path) -> BuildConfig:
        """
        Validate the raw key/value pairs. All problems are collected and raised as a single
        :class:`ConfigurationError`.
        """

        problems: list[str] = []

        # An unset version is left to the version gate, which the override applies to.
        version = values.get("CFG_VERSION", "").strip()

        targets = tuple(values.get("TARGETS", "").split())
        duplicates = sorted({name for name in targets if targets.count(name) > 1})
        if duplicates:
            problems.append(f"TARGETS lists {', '.join(duplicates)} more than once")

        build_grub = _parse_flag(values, "CONFIG_BUILD_GRUB", problems)
        continue_with_different_version = _parse_flag(values, "CONT_WITH_DIFFERENT_VERSION", problems)

        if problems:
            raise ConfigurationError(problems)

        return cls(
            kernel_dir=kernel_dir,
            version=version,
            targets=targets,
            build_grub=build_grub,
            continue_with_different_version=continue_with_different_version,
            values=MappingProxyType(dict(values)),
        )


def _parse_flag(values: Mapping[str, str], key: str, problems: list[str]) -> bool:
    value = values.get(key, "").strip()
    try:
        return _FLAG_VALUES[value.lower()]
    except KeyError:
        problems.append(f"{key} must be true or false, got {value!r}")
        return False


def parse_document(text: str, source: str = "<string>") -> dict[str, str]:
    """
    Parses `KEY=VALUE` lines. Blank lines and lines starting with `#` are skipped. Values are unquoted with shell word
    rules, thus `TARGETS="x86 arm"` yields `x86 arm`.
    """

    values: dict[str, str] = {}
    problems: list[str] = []

    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not _KEY_PATTERN.match(key):
            problems.append(f"{source}:{lineno}: expected KEY=VALUE, got {line!r}")
            continue

        try:
            values[key] = " ".join(shlex.split(value))
        except ValueError as exc:
            problems.append(f"{source}:{lineno}: {exc}")

    if problems:
        raise ConfigurationError(problems)
    return values


def load_document(path: Path, variables: Mapping[str, str]) -> dict[str, str]:
    """
    Expands variables in the document at *path* into a scratch copy next to it and parses the copy. A missing
    document yields no values.
    """

    if not path.is_file():
        logger.debug('"%s" does not exist, it does not contribute any configuration', path)
        return {}

    expanded = envsubst(path.read_text(), variables)
    with scratch_file(path.with_name(path.name + SCRATCH_SUFFIX), expanded) as scratch:
        values = parse_document(scratch.read_text(), str(path))

    logger.debug('loaded %d value(s) from "%s"', len(values), path)
    return values


def load_config(layout: ProjectLayout, environ: Mapping[str, str] | None = None) -> BuildConfig:
    """
    Loads the target manifest and then the build configuration of the kernel at *layout*. Values of the build
    configuration take precedence over the manifest, both take precedence over *environ* (defaults to
    :data:`os.environ`). A document may reference keys of the environment and of documents loaded before it.
    """

    values = dict(os.environ if environ is None else environ)
    values["KERNEL_DIR"] = str(layout.kernel_dir)

    for path in (layout.manifest_file, layout.config_file):
        values.update(load_document(path, values))

    return BuildConfig.from_values(values, layout.kernel_dir)
