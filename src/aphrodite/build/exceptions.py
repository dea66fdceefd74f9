import logging
import sys
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)


T_Callable = TypeVar("T_Callable", bound=Callable[..., Any])


class AphroditeBuildError(Exception):
    """
    Base class for all errors that abort a build run.
    """


class CapabilityMissingError(AphroditeBuildError):
    """
    Raised if command-line flags cannot be parsed and the degraded parser was disallowed.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def __str__(self) -> str:
        return f"command-line flag parsing is unavailable ({self.reason})"


class ArgumentParseError(AphroditeBuildError):
    pass


class ConfigurationError(AphroditeBuildError):
    """
    Raised if the configuration documents are malformed or miss required keys. Multiple problems are
    reported together.
    """

    def __init__(self, problems: Iterable[str]) -> None:
        assert not isinstance(problems, str), type(problems)
        self.problems = list(problems)

    def __str__(self) -> str:
        if len(self.problems) == 1:
            return f"invalid configuration: {self.problems[0]}"
        return "invalid configuration:\n" + "\n".join(f"  - {problem}" for problem in self.problems)


class VersionMismatchError(AphroditeBuildError):
    def __init__(self, config_version: str, kernel_version: str) -> None:
        self.config_version = config_version
        self.kernel_version = kernel_version

    def __str__(self) -> str:
        return (
            f'configuration version "{self.config_version}" is different than actual version '
            f'"{self.kernel_version}"; not continuing (set CONT_WITH_DIFFERENT_VERSION=true to override)'
        )


class UnknownTargetError(AphroditeBuildError):
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f'target "{self.name}" does not resolve to a platform identifier'


class ToolInvocationError(AphroditeBuildError):
    pass


class PackagingError(AphroditeBuildError):
    pass


def exit_on_known_exceptions(
    *exception_types: type[BaseException], log: bool = True, exit_code: int = 1
) -> Callable[[T_Callable], T_Callable]:
    """
    A useful decorator for CLI entrypoints that catches known exceptions and exits with a non-zero exit code.
    """

    def decorator(func: T_Callable) -> T_Callable:
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except exception_types as exc:
                if log:
                    logger.error("%s", exc)
                    logger.debug("Exiting due to known exception", exc_info=True)
                sys.exit(exit_code)

        return wrapper  # type: ignore[return-value]

    return decorator
