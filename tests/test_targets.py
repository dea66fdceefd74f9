from pathlib import Path

import pytest

from aphrodite.build.config import BuildConfig
from aphrodite.build.exceptions import UnknownTargetError
from aphrodite.build.targets import Target, TargetRegistry, normalize_platform


def _config(**values: str) -> BuildConfig:
    return BuildConfig.from_values({"CFG_VERSION": "1.0", **values}, Path("/kernel"))


def test__normalize_platform__strips_directories() -> None:
    assert normalize_platform("/kernel/specs/x86_64-aphrodite.json") == "x86_64-aphrodite.json"
    assert normalize_platform("mips64-unknown-none") == "mips64-unknown-none"


def test__Target__derived_names() -> None:
    target = Target("x86", "x86_64-aphrodite.json")
    assert target.binary_name == "entrypoint_x86"
    assert target.artifact_name == "kernel-x86"
    assert target.output_triple == "x86_64-aphrodite"
    assert Target("arm", "armv7a-none-eabi").output_triple == "armv7a-none-eabi"


def test__TargetRegistry__resolves_listed_targets_in_order() -> None:
    registry = TargetRegistry.from_config(
        _config(TARGETS="mips64 x86", x86="/kernel/specs/x86_64-aphrodite.json", mips64="mips64-unknown-none")
    )

    assert registry.names == ["mips64", "x86"]
    assert list(registry) == [Target("mips64", "mips64-unknown-none"), Target("x86", "x86_64-aphrodite.json")]
    assert "x86" in registry and len(registry) == 2


def test__TargetRegistry__fails_eagerly_on_unresolved_target() -> None:
    with pytest.raises(UnknownTargetError) as excinfo:
        TargetRegistry.from_config(_config(TARGETS="x86 arm", x86="x86_64-unknown-none", arm=""))
    assert excinfo.value.name == "arm"


def test__TargetRegistry__get_resolves_unlisted_target_from_config() -> None:
    registry = TargetRegistry.from_config(_config(TARGETS="x86", x86="x86_64-unknown-none", riscv="riscv64gc"))

    assert registry.get("riscv") == Target("riscv", "riscv64gc")
    with pytest.raises(UnknownTargetError):
        registry.get("sparc")
