"""
Command-line parsing. Whether flags can be parsed is decided by a capability probe; when the capability is missing, a
reduced parser that only understands the positional target is used instead.
"""

from __future__ import annotations

import abc
import argparse
import dataclasses
import logging
import textwrap
from collections.abc import Mapping, Sequence
from typing import NoReturn, Union

from termcolor import colored

from ._option_sets import LoggingOptions, RuntimeOptions
from .exceptions import ArgumentParseError, CapabilityMissingError

logger = logging.getLogger(__name__)

#: Set to `false` to mark flag parsing as unavailable.
HAVE_GETOPT_VARIABLE = "HAVE_GETOPT"

#: Set to a non-empty value to fail instead of ignoring flags when flag parsing is unavailable.
EXIT_WITHOUT_GETOPT_VARIABLE = "EXIT_WITHOUT_GETOPT"

_FormatterClass = lambda prog: argparse.RawDescriptionHelpFormatter(prog, max_help_position=60, width=120)  # noqa: E731


@dataclasses.dataclass(frozen=True)
class FlagParserAvailable:
    pass


@dataclasses.dataclass(frozen=True)
class FlagParserMissing:
    reason: str


FlagParserCapability = Union[FlagParserAvailable, FlagParserMissing]


def probe_flag_parser(environ: Mapping[str, str]) -> FlagParserCapability:
    value = environ.get(HAVE_GETOPT_VARIABLE, "true").strip()
    if value.lower() in ("false", "0"):
        return FlagParserMissing(f"{HAVE_GETOPT_VARIABLE}={value}")
    return FlagParserAvailable()


@dataclasses.dataclass(frozen=True)
class ParsedArguments:
    runtime: RuntimeOptions
    logging: LoggingOptions


class ArgumentParser(abc.ABC):
    @abc.abstractmethod
    def parse(self, argv: Sequence[str]) -> ParsedArguments:
        raise NotImplementedError(self)


class _RaisingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ArgumentParseError(f"{self.prog}: {message}")


class FlagArgumentParser(ArgumentParser):
    """Understands `--check`, `--format`, the logging flags and an optional target."""

    def __init__(self, prog: str) -> None:
        self.parser = _RaisingArgumentParser(
            prog,
            formatter_class=_FormatterClass,
            allow_abbrev=False,
            description=textwrap.dedent(
                f"""
                Builds the {colored("Aphrodite", attrs=["bold"])} kernel for every target listed in the `targets`
                manifest, or for a single target if one is given.
                """
            ),
        )
        self.parser.add_argument("-c", "--check", action="store_true", help="only check that the targets compile")
        self.parser.add_argument("-f", "--format", action="store_true", help="format the source tree and exit")
        self.parser.add_argument(
            "target", nargs="*", help="build only this target instead of all of TARGETS, further arguments are ignored"
        )
        LoggingOptions.add_to_parser(self.parser, default_verbosity=1)

    def parse(self, argv: Sequence[str]) -> ParsedArguments:
        args = self.parser.parse_intermixed_args(list(argv))
        target, *ignored = args.target or [None]
        if ignored:
            logger.warning("Ignoring extra arguments: %s", " ".join(ignored))
        return ParsedArguments(
            runtime=RuntimeOptions.from_flags(args.check, args.format, target),
            logging=LoggingOptions.collect(args),
        )


class DegradedArgumentParser(ArgumentParser):
    """
    Used when flags cannot be parsed. Flags are ignored entirely, but the first argument that is not a flag is still
    used as the explicit target.
    """

    def parse(self, argv: Sequence[str]) -> ParsedArguments:
        positional = [arg for arg in argv if not arg.startswith("-")]
        ignored = [arg for arg in argv if arg.startswith("-")]
        if ignored:
            logger.warning("Ignoring command line flags: %s", " ".join(ignored))
        return ParsedArguments(
            runtime=RuntimeOptions.from_flags(False, False, positional[0] if positional else None),
            logging=LoggingOptions(verbosity=1, quietness=0),
        )


def get_argument_parser(prog: str, environ: Mapping[str, str]) -> ArgumentParser:
    """
    Returns the parser to use according to :func:`probe_flag_parser`. Raises :class:`CapabilityMissingError` if flags
    cannot be parsed and `EXIT_WITHOUT_GETOPT` is set.
    """

    capability = probe_flag_parser(environ)
    if isinstance(capability, FlagParserAvailable):
        return FlagArgumentParser(prog)

    if environ.get(EXIT_WITHOUT_GETOPT_VARIABLE):
        raise CapabilityMissingError(capability.reason)

    logger.warning(
        "Flag parsing is unavailable (%s). Continuing and ignoring command line flags (note that the first argument "
        "will still be used for the target)",
        capability.reason,
    )
    logger.warning("To exit instead of ignoring flags, set %s to a non-empty value", EXIT_WITHOUT_GETOPT_VARIABLE)
    return DegradedArgumentParser()
