__version__ = "0.1.0"

from ._argparse import (
    DegradedArgumentParser,
    FlagArgumentParser,
    FlagParserAvailable,
    FlagParserMissing,
    get_argument_parser,
    probe_flag_parser,
)
from ._option_sets import LoggingOptions, RuntimeMode, RuntimeOptions
from ._runner import CommandRunner, subprocess_runner
from .config import BuildConfig, ProjectLayout, load_config
from .dispatcher import BuildDispatcher, BuildResult
from .exceptions import (
    AphroditeBuildError,
    ArgumentParseError,
    CapabilityMissingError,
    ConfigurationError,
    PackagingError,
    ToolInvocationError,
    UnknownTargetError,
    VersionMismatchError,
)
from .iso import IsoPackager, PackagingPolicy
from .targets import Target, TargetRegistry
from .version import VersionInfo, check_version, read_kernel_version

__all__ = [
    # _argparse
    "DegradedArgumentParser",
    "FlagArgumentParser",
    "FlagParserAvailable",
    "FlagParserMissing",
    "get_argument_parser",
    "probe_flag_parser",
    # _option_sets
    "LoggingOptions",
    "RuntimeMode",
    "RuntimeOptions",
    # _runner
    "CommandRunner",
    "subprocess_runner",
    # config
    "BuildConfig",
    "ProjectLayout",
    "load_config",
    # dispatcher
    "BuildDispatcher",
    "BuildResult",
    # exceptions
    "AphroditeBuildError",
    "ArgumentParseError",
    "CapabilityMissingError",
    "ConfigurationError",
    "PackagingError",
    "ToolInvocationError",
    "UnknownTargetError",
    "VersionMismatchError",
    # iso
    "IsoPackager",
    "PackagingPolicy",
    # targets
    "Target",
    "TargetRegistry",
    # version
    "VersionInfo",
    "check_version",
    "read_kernel_version",
]
