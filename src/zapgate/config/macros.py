"""``${VAR}`` / ``$VAR`` expansion for job fields."""

import re
from collections.abc import Mapping
from typing import Any

_MACRO = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_.]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")
# An escaped ``\$`` is a literal dollar, as in URL regexes.
_PLACEHOLDER = re.compile(r"\$\{[^}]*\}|(?<!\\)\$[A-Za-z_][A-Za-z0-9_]*")


def expand_macros(text: str, env: Mapping[str, str]) -> str:
    """Replace known variables; unknown references are left as written."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return env.get(name, match.group(0))

    return _MACRO.sub(_replace, text)


def find_placeholders(text: str) -> list[str]:
    """Return every ``${...}`` or ``$NAME`` reference still present in ``text``."""
    return _PLACEHOLDER.findall(text)


def expand_tree(value: Any, env: Mapping[str, str]) -> Any:
    """Expand every string inside nested dicts/lists."""
    if isinstance(value, str):
        return expand_macros(value, env)
    if isinstance(value, dict):
        return {key: expand_tree(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_tree(item, env) for item in value]
    return value


def unexpanded_fields(value: Any, prefix: str = "", skip: frozenset[str] = frozenset()) -> list[str]:
    """List dotted paths of strings that still carry placeholders."""
    found: list[str] = []
    if isinstance(value, str):
        if find_placeholders(value):
            found.append(prefix)
    elif isinstance(value, dict):
        for key, item in value.items():
            if key in skip:
                continue
            path = f"{prefix}.{key}" if prefix else str(key)
            found.extend(unexpanded_fields(item, path, skip))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            found.extend(unexpanded_fields(item, f"{prefix}[{index}]", skip))
    return found
