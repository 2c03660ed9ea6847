"""Selection of secrets, variables and environment variables.

Secrets and variables are shared across every chart deployed from a
repository. Each entry is stored under a key following the
``DEPLOYMENT_{PREFIX}_{ENVIRONMENT}_`` convention and carries a JSON
payload naming the chart it belongs to.
"""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from icecream import ic

from helm_deployer import console
from helm_deployer.exceptions import SecretParsingError, VariableParsingError
from helm_deployer.models import EnvVarEntry, NamedValue

_KEY_PREFIX = "DEPLOYMENT_"


def build_key_prefix(prefix: str | None, environment: str | None) -> str:
    """Build the key prefix selected entries must start with.

    Args:
        prefix: Optional global prefix.
        environment: Optional target environment.

    Returns:
        The upper-cased prefix, e.g. ``DEPLOYMENT_TEAM_PROD_``.

    """
    parts = [_KEY_PREFIX]
    for part in (prefix, environment):
        if part:
            parts.append(f"{part}_")
    return "".join(parts).upper()


def _parse_entry(raw: str) -> dict[str, Any]:
    """Decode and validate one JSON payload.

    Raises:
        ValueError: If the payload is malformed.

    """
    try:
        entry = json.loads(raw)
    except TypeError as err:
        raise ValueError("payload must be a JSON string") from err

    if not isinstance(entry, dict):
        raise ValueError("payload must be a JSON object")

    for field in ("chart", "key", "value"):
        if not isinstance(entry.get(field), str):
            raise ValueError(f"field '{field}' must be a string")

    if not isinstance(entry.get("useFile", False), bool):
        raise ValueError("field 'useFile' must be a boolean")

    return entry


def _select(
    raw: Mapping[str, str],
    chart: str,
    *,
    prefix: str | None,
    environment: str | None,
    dry_run: bool,
    kind: str,
    error: type[SecretParsingError] | type[VariableParsingError],
) -> list[NamedValue]:
    key_prefix = build_key_prefix(prefix, environment)
    ic(kind, key_prefix)

    selected: list[NamedValue] = []
    for source_key, payload in raw.items():
        if not source_key.upper().startswith(key_prefix):
            continue

        try:
            entry = _parse_entry(payload)
        except ValueError as err:
            # JSONDecodeError messages carry a position, never the document.
            raise error(source_key, str(err)) from None

        if entry["chart"] != chart:
            continue

        if dry_run:
            console.step(f"Configuring {kind} with key: {console.highlight(source_key)}")

        selected.append(NamedValue(key=entry["key"], value=entry["value"], use_file=entry.get("useFile", False)))

    return selected


def select_secrets(
    raw: Mapping[str, str],
    chart: str,
    *,
    prefix: str | None = None,
    environment: str | None = None,
    dry_run: bool = False,
) -> list[NamedValue]:
    """Select the secrets that apply to a chart.

    Args:
        raw: Secret name -> JSON payload, in CI order.
        chart: The chart being deployed.
        prefix: Optional global key prefix.
        environment: Optional target environment.
        dry_run: Emit a trace line for every accepted secret.

    Returns:
        Selected secrets, in the order of ``raw``.

    Raises:
        SecretParsingError: If a matching payload is malformed.

    """
    return _select(
        raw,
        chart,
        prefix=prefix,
        environment=environment,
        dry_run=dry_run,
        kind="secret",
        error=SecretParsingError,
    )


def select_variables(
    raw: Mapping[str, str],
    chart: str,
    *,
    prefix: str | None = None,
    environment: str | None = None,
    dry_run: bool = False,
) -> list[NamedValue]:
    """Select the variables that apply to a chart.

    Same as select_secrets, but malformed payloads raise
    VariableParsingError.
    """
    return _select(
        raw,
        chart,
        prefix=prefix,
        environment=environment,
        dry_run=dry_run,
        kind="variable",
        error=VariableParsingError,
    )


def collect_env_vars(raw: Mapping[str, str]) -> list[EnvVarEntry]:
    """Convert a flat mapping into environment variable entries, unfiltered."""
    return [EnvVarEntry(name=name, value=value) for name, value in raw.items()]


def requires_values_file(*groups: Iterable[NamedValue]) -> bool:
    """Return True if any selected entry asks to be passed through a values file."""
    return any(entry.use_file for group in groups for entry in group)
