from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from ._option_sets import RuntimeMode, RuntimeOptions
from ._runner import CommandRunner, subprocess_runner
from .config import BuildConfig, ProjectLayout
from .exceptions import ToolInvocationError
from .iso import IsoPackager, PackagingPolicy
from .steps import CargoBuildStep, CargoCheckStep, CargoFmtStep, Step, StepStatus
from .targets import Target, TargetRegistry

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class BuildResult:
    mode: RuntimeMode
    target: Target | None = None
    artifact: Path | None = None
    images: tuple[Path, ...] = ()


class BuildDispatcher:
    """
    Runs the external toolchain for the selected mode and targets. The first failing invocation raises a
    :class:`ToolInvocationError` and no further targets are processed.
    """

    def __init__(
        self,
        config: BuildConfig,
        layout: ProjectLayout,
        packager: IsoPackager,
        runner: CommandRunner = subprocess_runner,
        policy: PackagingPolicy | None = None,
    ) -> None:
        self.config = config
        self.layout = layout
        self.packager = packager
        self.runner = runner
        self.policy = policy or PackagingPolicy(enabled=config.build_grub)

    def _execute(self, step: Step) -> StepStatus:
        logger.debug("%s", step.get_description())
        status = step.execute()
        if status.is_not_ok():
            raise ToolInvocationError(status.message or f"{type(step).__name__} failed")
        return status

    def format(self) -> BuildResult:
        logger.info("Formatting")
        self._execute(CargoFmtStep(self.layout.kernel_dir, self.config.env, self.runner))
        return BuildResult(RuntimeMode.FORMAT)

    def check(self, target: Target) -> BuildResult:
        logger.info("Checking target %s (with rust target of %s)", target.name, target.platform)
        self._execute(CargoCheckStep(target, self.layout.kernel_dir, self.config.env, self.runner))
        return BuildResult(RuntimeMode.CHECK, target)

    def compile(self, target: Target) -> BuildResult:
        logger.info("Compiling target %s (with rust target of %s)", target.name, target.platform)
        step = CargoBuildStep(
            target,
            self.layout.kernel_dir,
            self.config.env,
            self.runner,
            cargo_target_dir=self.layout.cargo_target_dir,
        )
        self._execute(step)

        images: tuple[Path, ...] = ()
        if self.policy.is_eligible(RuntimeMode.COMPILE, target):
            images = self.packager.package(target, step.artifact)
        return BuildResult(RuntimeMode.COMPILE, target, step.artifact, images)

    def process(self, mode: RuntimeMode, target: Target) -> BuildResult:
        if mode is RuntimeMode.CHECK:
            return self.check(target)
        elif mode is RuntimeMode.COMPILE:
            return self.compile(target)
        else:
            raise ValueError(f"targets are not processed in {mode.value} mode")

    def dispatch(self, options: RuntimeOptions) -> list[BuildResult]:
        """
        Runs the build for *options*. In format mode the target registry is never built. Otherwise the explicit
        target is processed alone if one was given, else every registered target in order.
        """

        if options.mode is RuntimeMode.FORMAT:
            return [self.format()]

        registry = TargetRegistry.from_config(self.config)

        if options.target is not None:
            logger.info("Processing only target %s", options.target)
            return [self.process(options.mode, registry.get(options.target))]

        if not len(registry):
            logger.warning("TARGETS is empty, there is nothing to do")

        return [self.process(options.mode, target) for target in registry]
