"""
Packages freshly built kernels into bootable GRUB ISO images.
"""

from __future__ import annotations

import dataclasses
import logging
import shutil
from collections.abc import Mapping
from pathlib import Path

from ._fs import atomic_write_text, safe_rmpath
from ._option_sets import RuntimeMode
from ._runner import CommandRunner, subprocess_runner
from .config import ProjectLayout
from .exceptions import PackagingError, ToolInvocationError
from .steps import Step
from .targets import Target

logger = logging.getLogger(__name__)

PRODUCT_NAME = "aphrodite"

#: The targets that GRUB can boot, only these are packaged into images.
GRUB_TARGETS = ("x86", "mips64", "mipsel", "mipsle")

#: Placeholder in `boot/grub/grub.cfg` that is replaced with the kernel version.
VERSION_PLACEHOLDER = "%{VERSION}"


@dataclasses.dataclass(frozen=True)
class PackagingPolicy:
    enabled: bool
    allow_list: tuple[str, ...] = GRUB_TARGETS

    def is_eligible(self, mode: RuntimeMode, target: Target) -> bool:
        return mode is RuntimeMode.COMPILE and self.enabled and target.name in self.allow_list


class GrubMkrescueStep(Step):
    def __init__(
        self,
        staging_dir: Path,
        output: Path,
        kernel_dir: Path,
        env: Mapping[str, str],
        runner: CommandRunner = subprocess_runner,
    ) -> None:
        super().__init__(kernel_dir, env, runner)
        self.staging_dir = staging_dir
        self.output = output

    def get_command(self) -> list[str]:
        return ["grub-mkrescue", "-o", self.output.name, self.staging_dir.name]


class IsoPackager:
    """
    Stages the GRUB template directory with a kernel artifact and turns it into an ISO image. Every target produces
    two identical images, `<product>-grub-<target>.iso` and `<product>-<target>.iso`.
    """

    def __init__(
        self,
        layout: ProjectLayout,
        kernel_version: str,
        env: Mapping[str, str],
        runner: CommandRunner = subprocess_runner,
        product: str = PRODUCT_NAME,
    ) -> None:
        self.layout = layout
        self.kernel_version = kernel_version
        self.env = env
        self.runner = runner
        self.product = product

    def grub_image(self, target: Target) -> Path:
        return self.layout.kernel_dir / f"{self.product}-grub-{target.name}.iso"

    def image(self, target: Target) -> Path:
        return self.layout.kernel_dir / f"{self.product}-{target.name}.iso"

    def stage(self, target: Target, artifact: Path) -> Path:
        """
        Recreates the staging directory from the template, copies the *artifact* into it and writes the kernel
        version into the GRUB configuration. Returns the staging directory.
        """

        staging = self.layout.grub_staging_dir
        try:
            safe_rmpath(staging)
            safe_rmpath(self.grub_image(target))
            safe_rmpath(self.image(target))
            shutil.copytree(self.layout.grub_template_dir, staging)
            shutil.copy(artifact, staging / "boot" / f"{self.product}.kernel")
            grub_cfg = staging / "boot" / "grub" / "grub.cfg"
            atomic_write_text(grub_cfg, grub_cfg.read_text().replace(VERSION_PLACEHOLDER, self.kernel_version))
        except OSError as exc:
            raise PackagingError(f"could not stage {target.name} for packaging: {exc}") from exc
        return staging

    def package(self, target: Target, artifact: Path) -> tuple[Path, Path]:
        logger.info("Packaging target %s into an ISO image", target.name)

        staging = self.stage(target, artifact)
        grub_image = self.grub_image(target)

        step = GrubMkrescueStep(staging, grub_image, self.layout.kernel_dir, self.env, self.runner)
        status = step.execute()
        if status.is_not_ok():
            raise ToolInvocationError(status.message)
        if not grub_image.is_file():
            raise PackagingError(f'grub-mkrescue did not produce "{grub_image}"')

        image = self.image(target)
        try:
            shutil.copyfile(grub_image, image)
        except OSError as exc:
            raise PackagingError(f'could not copy "{grub_image}" to "{image}": {exc}') from exc

        return grub_image, image
