"""
Implements the command runners that external tools are invoked through.
"""

import logging
import shlex
import subprocess as sp
from collections.abc import Mapping, Sequence
from pathlib import Path

from typing_extensions import Protocol

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """
    Runs a command to completion and returns its exit code. The command inherits the standard streams of the
    orchestrator. *env* is the complete environment of the command.
    """

    def __call__(self, command: Sequence[str], cwd: Path, env: Mapping[str, str]) -> int: ...


def format_command(command: Sequence[str]) -> str:
    return " ".join(map(shlex.quote, command))


def subprocess_runner(command: Sequence[str], cwd: Path, env: Mapping[str, str]) -> int:
    """
    The default :class:`CommandRunner`. A command that cannot be started at all (e.g. because the executable is not
    installed or not executable) is reported with the exit code 127, like a shell would.
    """

    logger.info("$ %s", format_command(command))
    try:
        return sp.call(list(command), cwd=cwd, env=dict(env))
    except OSError as exc:
        logger.error("could not run %s: %s", command[0], exc)
        return 127
