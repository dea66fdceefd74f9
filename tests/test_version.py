import logging
from pathlib import Path

import pytest

from aphrodite.build.config import BuildConfig
from aphrodite.build.exceptions import ConfigurationError, VersionMismatchError
from aphrodite.build.version import VersionInfo, check_version, read_kernel_version


def _config(version: str, override: str = "") -> BuildConfig:
    return BuildConfig.from_values(
        {"CFG_VERSION": version, "CONT_WITH_DIFFERENT_VERSION": override},
        Path("/kernel"),
    )


def test__read_kernel_version__reads_package_version(tempdir: Path) -> None:
    manifest = tempdir / "Cargo.toml"
    manifest.write_text('[package]\nname = "aphrodite"\nversion = "0.2.0"\n')
    assert read_kernel_version(manifest) == "0.2.0"


def test__read_kernel_version__fails_without_manifest_or_version(tempdir: Path) -> None:
    with pytest.raises(ConfigurationError):
        read_kernel_version(tempdir / "Cargo.toml")

    (tempdir / "Cargo.toml").write_text('[workspace]\nmembers = ["kernel"]\n')
    with pytest.raises(ConfigurationError):
        read_kernel_version(tempdir / "Cargo.toml")


def test__check_version__passes_on_match(caplog: pytest.LogCaptureFixture) -> None:
    assert check_version(_config("1.0"), "1.0") == VersionInfo(kernel_version="1.0", config_version="1.0")
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test__check_version__raises_on_mismatch() -> None:
    with pytest.raises(VersionMismatchError) as excinfo:
        check_version(_config("0.9"), "1.0")

    assert excinfo.value.config_version == "0.9"
    assert excinfo.value.kernel_version == "1.0"


def test__check_version__warns_once_when_override_is_set(caplog: pytest.LogCaptureFixture) -> None:
    info = check_version(_config("0.9", override="true"), "1.0")

    assert not info.matches()
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "0.9" in warnings[0].getMessage()
