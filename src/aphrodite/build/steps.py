from __future__ import annotations

import abc
import dataclasses
import enum
import logging
import shlex
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import ClassVar

from ._runner import CommandRunner, format_command, subprocess_runner
from .targets import Target

logger = logging.getLogger(__name__)

#: Additional flags for `cargo check` and `cargo build`, split with shell word rules.
CARGO_FLAGS_VARIABLE = "APHRODITE_CARGO_FLAGS"


class StepStatusType(enum.Enum):
    """Represents the possible outcomes of executing a step."""

    FAILED = enum.auto()
    SUCCEEDED = enum.auto()

    def is_ok(self) -> bool:
        return self == StepStatusType.SUCCEEDED


@dataclasses.dataclass
class StepStatus:
    """Represents a step status with a message."""

    type: StepStatusType
    message: str | None

    def is_ok(self) -> bool:
        return self.type.is_ok()

    def is_not_ok(self) -> bool:
        return not self.type.is_ok()

    @staticmethod
    def failed(message: str | None = None) -> StepStatus:
        return StepStatus(StepStatusType.FAILED, message)

    @staticmethod
    def succeeded(message: str | None = None) -> StepStatus:
        return StepStatus(StepStatusType.SUCCEEDED, message)

    @staticmethod
    def from_exit_code(command: list[str] | None, code: int) -> StepStatus:
        return StepStatus(
            StepStatusType.SUCCEEDED if code == 0 else StepStatusType.FAILED,
            None if code == 0 or command is None else f'command "{format_command(command)}" returned exit code {code}',
        )


class Step(abc.ABC):
    """
    A single invocation of an external tool in the kernel directory. Steps are executed synchronously, the
    environment of the tool is the configuration of the build.
    """

    def __init__(self, kernel_dir: Path, env: Mapping[str, str], runner: CommandRunner = subprocess_runner) -> None:
        self.kernel_dir = kernel_dir
        self.env = env
        self.runner = runner

    @abc.abstractmethod
    def get_command(self) -> list[str]:
        raise NotImplementedError(self)

    def get_description(self) -> str:
        return f"Run `{format_command(self.get_command())}`."

    def execute(self) -> StepStatus:
        command = self.get_command()
        return StepStatus.from_exit_code(command, self.runner(command, self.kernel_dir, self.env))


class CargoFmtStep(Step):
    """Formats the whole kernel source tree."""

    def get_command(self) -> list[str]:
        return ["cargo", "fmt", "--all"]


class CargoTargetStep(Step):
    """Base class for Cargo invocations that build the entrypoint binary of a single target."""

    #: The Cargo subcommand to run.
    subcommand: ClassVar[str]

    def __init__(
        self,
        target: Target,
        kernel_dir: Path,
        env: Mapping[str, str],
        runner: CommandRunner = subprocess_runner,
    ) -> None:
        super().__init__(kernel_dir, env, runner)
        self.target = target

    def get_cargo_command_additional_flags(self) -> list[str]:
        return shlex.split(self.env.get(CARGO_FLAGS_VARIABLE, ""))

    def get_command(self) -> list[str]:
        return [
            "cargo",
            self.subcommand,
            "--target",
            self.target.platform,
            "--release",
            "-Zbuild-std=core,alloc",
            "--bin",
            self.target.binary_name,
            *self.get_cargo_command_additional_flags(),
        ]


class CargoCheckStep(CargoTargetStep):
    """Type and borrow checks a target without producing an artifact."""

    subcommand = "check"


class CargoBuildStep(CargoTargetStep):
    """Builds a target and copies the produced binary to `kernel-<target>` in the kernel directory."""

    subcommand = "build"

    def __init__(
        self,
        target: Target,
        kernel_dir: Path,
        env: Mapping[str, str],
        runner: CommandRunner = subprocess_runner,
        cargo_target_dir: Path | None = None,
    ) -> None:
        super().__init__(target, kernel_dir, env, runner)
        self.cargo_target_dir = cargo_target_dir or kernel_dir / "target"

    @property
    def out_binary(self) -> Path:
        return self.cargo_target_dir / self.target.output_triple / "release" / self.target.binary_name

    @property
    def artifact(self) -> Path:
        return self.kernel_dir / self.target.artifact_name

    def execute(self) -> StepStatus:
        status = super().execute()
        if status.is_not_ok():
            return status

        if not self.out_binary.is_file():
            return StepStatus.failed(f'cargo did not produce "{self.out_binary}"')

        try:
            shutil.copy(self.out_binary, self.artifact)
        except OSError as exc:
            return StepStatus.failed(f'could not copy "{self.out_binary}" to "{self.artifact}": {exc}')

        logger.debug('copied "%s" to "%s"', self.out_binary, self.artifact)
        return StepStatus.succeeded(f"wrote {self.artifact.name}")
