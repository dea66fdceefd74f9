from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from tempfile import TemporaryDirectory
from textwrap import dedent

from pytest import fixture

from aphrodite.build.config import ProjectLayout

DEFAULT_MANIFEST = """
# Targets the kernel can be built for.
TARGETS="x86 mips64 arm"

x86=$KERNEL_DIR/specs/x86_64-aphrodite.json
mips64=mips64-unknown-none
arm=armv7a-none-eabi
"""

DEFAULT_CONFIG = """
# Aphrodite build configuration
CFG_VERSION=1.0
CONFIG_BUILD_GRUB=false
"""

GRUB_CFG = """
menuentry "Aphrodite %{VERSION}" {
    multiboot2 /boot/aphrodite.kernel
}
"""


@fixture
def tempdir() -> Iterator[Path]:
    with TemporaryDirectory() as tempdir:
        yield Path(tempdir).resolve()


@dataclasses.dataclass
class RecordingRunner:
    """
    Stands in for the external tools. Every command is recorded; `cargo build` and `grub-mkrescue` leave the files
    behind that the real tools would produce.
    """

    #: Commands that contain any of these strings exit with code 1.
    fail_on: tuple[str, ...] = ()

    #: Whether `cargo build` writes the binary it was asked for.
    produce_binaries: bool = True

    commands: list[list[str]] = dataclasses.field(default_factory=list)
    envs: list[dict[str, str]] = dataclasses.field(default_factory=list)

    def __call__(self, command: Sequence[str], cwd: Path, env: Mapping[str, str]) -> int:
        command = list(command)
        self.commands.append(command)
        self.envs.append(dict(env))

        if any(pattern in " ".join(command) for pattern in self.fail_on):
            return 1

        if command[:2] == ["cargo", "build"] and self.produce_binaries:
            platform = command[command.index("--target") + 1].removesuffix(".json")
            binary = command[command.index("--bin") + 1]
            output = cwd / "target" / platform / "release" / binary
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(f"binary {binary} for {platform}\n")
        elif command[0] == "grub-mkrescue":
            staging = cwd / command[3]
            kernel = (staging / "boot" / "aphrodite.kernel").read_text()
            (cwd / command[2]).write_text(f"iso of {kernel}")

        return 0

    def invocations(self, *prefix: str) -> list[list[str]]:
        return [command for command in self.commands if command[: len(prefix)] == list(prefix)]


@fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


KernelFactory = Callable[..., ProjectLayout]


@fixture
def make_kernel(tempdir: Path) -> KernelFactory:
    """
    Returns a function that populates a kernel checkout in a temporary directory. Pass `None` for a document to
    leave it out.
    """

    def _make_kernel(
        version: str = "1.0",
        manifest: str | None = DEFAULT_MANIFEST,
        config: str | None = DEFAULT_CONFIG,
        grub_template: bool = True,
    ) -> ProjectLayout:
        layout = ProjectLayout(tempdir)
        layout.cargo_manifest.write_text(
            dedent(
                f"""
                [package]
                name = "aphrodite"
                version = "{version}"
                """
            )
        )
        if manifest is not None:
            layout.manifest_file.write_text(dedent(manifest))
        if config is not None:
            layout.config_file.write_text(dedent(config))
        if grub_template:
            (layout.grub_template_dir / "boot" / "grub").mkdir(parents=True)
            (layout.grub_template_dir / "boot" / "grub" / "grub.cfg").write_text(GRUB_CFG)
        return layout

    return _make_kernel
