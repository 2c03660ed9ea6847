"""Encoding of selected values for helm.

Values reach helm either as ``--set`` flags or through a generated values
file. Helm's ``--set`` parser splits on commas and treats dots, braces and
brackets as path syntax, so every value is escaped before it is handed over.
Entries flagged ``useFile`` bypass escaping in file mode and are embedded
as YAML literal blocks, which is what makes multi-line secrets possible.
"""

import re
from collections.abc import Sequence
from typing import Any

import yaml

from helm_deployer.models import EnvVarEntry, NamedValue, ValueBindings

_SPECIAL_CHARS = re.compile(r"([,.{\[\]}])")


class LiteralValue(str):
    """A string dumped as a YAML literal block scalar."""

    __slots__ = ()


class _ValuesDumper(yaml.SafeDumper):
    pass


def _represent_literal(dumper: yaml.SafeDumper, data: LiteralValue) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="|")


_ValuesDumper.add_representer(LiteralValue, _represent_literal)


def escape_special_chars(value: str) -> str:
    """Backslash-escape ``, . { [ ] }`` in a single pass.

    Args:
        value: The raw value.

    Returns:
        The escaped value, e.g. ``a\\,b\\.c`` for ``a,b.c``.

    """
    return _SPECIAL_CHARS.sub(r"\\\1", value)


def encode_value(entry: NamedValue | EnvVarEntry, use_file: bool) -> str:
    """Encode an entry's value for the current mode.

    Args:
        entry: The secret, variable or environment variable.
        use_file: Whether this run passes values through a file.

    Returns:
        A LiteralValue holding the raw content for file-mode entries that
        asked for it, otherwise the escaped value.

    """
    if use_file and isinstance(entry, NamedValue) and entry.use_file:
        return LiteralValue(entry.value)
    return escape_special_chars(entry.value)


def shell_quote(text: str) -> str:
    """Wrap text in single quotes, escaping embedded single quotes."""
    return "'" + text.replace("'", "'\"'\"'") + "'"


def build_values_document(
    secrets: Sequence[NamedValue],
    configs: Sequence[NamedValue],
    env_vars: Sequence[EnvVarEntry],
    bindings: ValueBindings,
    use_file: bool = True,
) -> dict[str, list[dict[str, str]]]:
    """Build the values document for file mode.

    Args:
        secrets: Selected secrets.
        configs: Selected variables.
        env_vars: Collected environment variables.
        bindings: Value paths for the three lists.
        use_file: Whether file-mode entries are embedded literally.

    Returns:
        A mapping with one list per binding, entries in selection order.

    """
    return {
        bindings.secrets: [{"key": s.key, "value": encode_value(s, use_file)} for s in secrets],
        bindings.configs: [{"key": c.key, "value": encode_value(c, use_file)} for c in configs],
        bindings.env_vars: [{"name": e.name, "value": encode_value(e, use_file)} for e in env_vars],
    }


def render_values_document(document: dict[str, Any]) -> str:
    """Dump a values document to YAML, keeping key order and literal blocks."""
    return yaml.dump(
        document,
        Dumper=_ValuesDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def build_set_flags(
    secrets: Sequence[NamedValue],
    configs: Sequence[NamedValue],
    env_vars: Sequence[EnvVarEntry],
    bindings: ValueBindings,
) -> list[str]:
    """Build ``--set`` flags for flag mode.

    Every entry contributes two flags. The index is the entry's position
    within its own list.

    Returns:
        The flags, secrets first, then configs, then environment variables.

    """
    flags: list[str] = []

    for binding, entries in ((bindings.secrets, secrets), (bindings.configs, configs)):
        for idx, entry in enumerate(entries):
            flags.append(f"--set {binding}[{idx}].key={shell_quote(entry.key)}")
            flags.append(f"--set {binding}[{idx}].value={shell_quote(encode_value(entry, use_file=False))}")

    for idx, env_var in enumerate(env_vars):
        flags.append(f"--set {bindings.env_vars}[{idx}].name={shell_quote(env_var.name)}")
        flags.append(f"--set {bindings.env_vars}[{idx}].value={shell_quote(encode_value(env_var, use_file=False))}")

    return flags
