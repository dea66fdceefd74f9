from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, Sequence
from typing import NoReturn

from ._argparse import get_argument_parser
from ._option_sets import LoggingOptions, RuntimeOptions
from ._runner import CommandRunner, subprocess_runner
from .config import ProjectLayout, load_config
from .dispatcher import BuildDispatcher, BuildResult
from .exceptions import AphroditeBuildError, exit_on_known_exceptions
from .iso import IsoPackager
from .version import check_version, read_kernel_version

PROG = "aphrodite-build"
logger = logging.getLogger(__name__)


def execute(
    options: RuntimeOptions,
    layout: ProjectLayout,
    environ: Mapping[str, str],
    runner: CommandRunner = subprocess_runner,
) -> list[BuildResult]:
    """
    Loads the configuration of the kernel at *layout*, checks its version and runs the build described by *options*.
    Any error aborts the build by raising an :class:`AphroditeBuildError`.
    """

    config = load_config(layout, environ)
    version = check_version(config, read_kernel_version(layout.cargo_manifest))

    packager = IsoPackager(layout, version.kernel_version, config.env, runner)
    dispatcher = BuildDispatcher(config, layout, packager, runner)
    return dispatcher.dispatch(options)


def _log_results(results: Sequence[BuildResult]) -> None:
    for result in results:
        for path in filter(None, (result.artifact, *result.images)):
            logger.info("Wrote %s", os.path.relpath(path))


@exit_on_known_exceptions(AphroditeBuildError)
def main(argv: Sequence[str] | None = None) -> NoReturn:
    # Initialize logging before parsing, the parser may already have to warn about missing capabilities.
    LoggingOptions(verbosity=1, quietness=0).init_logging()

    environ = dict(os.environ)
    parser = get_argument_parser(PROG, environ)
    arguments = parser.parse(sys.argv[1:] if argv is None else argv)
    arguments.logging.init_logging()

    results = execute(arguments.runtime, ProjectLayout.current(), environ, subprocess_runner)
    _log_results(results)
    sys.exit(0)


if __name__ == "__main__":
    main()
