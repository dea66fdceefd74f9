import re
from collections.abc import Mapping

_VARIABLE_PATTERN = re.compile(r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<plain>[A-Za-z_][A-Za-z0-9_]*))")


def envsubst(text: str, variables: Mapping[str, str]) -> str:
    """
    Expands `$NAME` and `${NAME}` references in *text* from *variables*, the same way GNU `envsubst` does. References
    to undefined variables expand to an empty string. Anything else that looks like shell syntax (e.g. `${A:-b}` or
    `$1`) is left untouched.
    """

    def _replace(match: "re.Match[str]") -> str:
        name = match.group("braced") or match.group("plain")
        return variables.get(name, "")

    return _VARIABLE_PATTERN.sub(_replace, text)
