from __future__ import annotations

import argparse
import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

#: Diagnostics are tagged INFO, WARN or ERROR.
WARN_LEVEL_NAME = "WARN"


class RuntimeMode(enum.Enum):
    """What a build run does with the kernel sources."""

    #: Run the formatter over the whole source tree; targets are not consulted.
    FORMAT = "format"

    #: Type and borrow check the selected targets without producing artifacts.
    CHECK = "check"

    #: Build the selected targets and package them into images where enabled.
    COMPILE = "compile"


@dataclass(frozen=True)
class RuntimeOptions:
    mode: RuntimeMode

    #: An explicit single target. When set, only this target is processed.
    target: str | None = None

    @classmethod
    def from_flags(cls, check: bool, format: bool, target: str | None) -> RuntimeOptions:
        """
        Resolves the `--check` and `--format` flags into a mode. Both flags together are treated as `--format` alone,
        as formatting also checks that the kernel compiles.
        """

        if check and format:
            logger.warning(
                "Both --check and --format were passed. Interpreting as only --format, as format will also check "
                "that the kernel can compile."
            )
            check = False

        if format:
            mode = RuntimeMode.FORMAT
        elif check:
            mode = RuntimeMode.CHECK
        else:
            mode = RuntimeMode.COMPILE
        return cls(mode, target)


@dataclass(frozen=True)
class LoggingOptions:
    verbosity: int
    quietness: int

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser, default_verbosity: int = 0) -> None:
        group = parser.add_argument_group("logging options")
        group.add_argument(
            "-v",
            dest="verbosity",
            action="count",
            default=default_verbosity,
            help="increase the log level (can be specified multiple times)",
        )
        group.add_argument(
            "-q",
            dest="quietness",
            action="count",
            default=0,
            help="decrease the log level (can be specified multiple times)",
        )

    @classmethod
    def collect(cls, args: argparse.Namespace) -> LoggingOptions:
        return cls(
            verbosity=args.verbosity,
            quietness=args.quietness,
        )

    @property
    def level(self) -> int:
        verbosity = self.verbosity - self.quietness
        if verbosity > 1:
            return logging.DEBUG
        elif verbosity > 0:
            return logging.INFO
        elif verbosity == 0:
            return logging.WARNING
        else:
            return logging.ERROR

    def init_logging(self) -> None:
        from rich.logging import RichHandler

        logging.addLevelName(logging.WARNING, WARN_LEVEL_NAME)
        logging.basicConfig(
            level=self.level,
            format="%(message)s",
            handlers=[RichHandler(show_time=False, show_path=False)],
            force=True,
        )
