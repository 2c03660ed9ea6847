"""Configuration loading for helm-deployer.

CI hands every setting over as a string, usually through environment
variables. This module validates those strings and resolves them into
a single immutable DeploymentContext.
"""

import json
from pathlib import Path

from icecream import ic

from helm_deployer.exceptions import ConfigurationError
from helm_deployer.models import DeploymentContext, ValueBindings

DEFAULT_KUBECONFIG = ".kubeConfig"
DEFAULT_VALUES_FILE = ".helmValues.yaml"

DEFAULT_SECRET_VARIABLE_NAME = "secrets"
DEFAULT_CONFIG_MAP_VARIABLE_NAME = "configMaps"
DEFAULT_ENV_VAR_VARIABLE_NAME = "envVars"


def _optional(value: str | None) -> str | None:
    """Treat empty and whitespace-only strings as unset."""
    if value is None or not value.strip():
        return None
    return value.strip()


def parse_mapping(raw: str | None, source: str) -> dict[str, str]:
    """Decode a JSON object of string values.

    Args:
        raw: The JSON text. None or an empty string yields an empty mapping.
        source: Name of the setting the text came from, used in error messages.

    Returns:
        The decoded mapping, in document order.

    Raises:
        ConfigurationError: If the text is not a JSON object of strings.

    """
    if raw is None or not raw.strip():
        return {}

    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError as err:
        raise ConfigurationError(f"{source} is not valid JSON: {err.msg}") from err

    if not isinstance(mapping, dict):
        raise ConfigurationError(f"{source} must be a JSON object")

    for key, value in mapping.items():
        if not isinstance(value, str):
            raise ConfigurationError(f"{source} entry '{key}' must be a string")

    return mapping


def build_context(
    *,
    name: str | None,
    chart_url: str | None,
    namespace: str | None,
    chart_version: str | None = None,
    environment: str | None = None,
    tag: str | None = None,
    prefix: str | None = None,
    secret_variable_name: str | None = DEFAULT_SECRET_VARIABLE_NAME,
    config_map_variable_name: str | None = DEFAULT_CONFIG_MAP_VARIABLE_NAME,
    env_var_variable_name: str | None = DEFAULT_ENV_VAR_VARIABLE_NAME,
    kubeconfig: str | None = DEFAULT_KUBECONFIG,
    values_file: str | Path | None = DEFAULT_VALUES_FILE,
    dry_run: bool = False,
) -> DeploymentContext:
    """Validate raw settings and build the deployment context.

    Returns:
        The resolved DeploymentContext.

    Raises:
        ConfigurationError: If a required setting is missing or the
            value bindings are empty or not distinct.

    """
    chart_url = _optional(chart_url)
    if chart_url is None:
        raise ConfigurationError("Misconfigured action. Helm chart URL is missing.")

    name = _optional(name)
    if name is None:
        raise ConfigurationError("Misconfigured action. Deployment name is missing.")

    namespace = _optional(namespace)
    if namespace is None:
        raise ConfigurationError("Misconfigured action. Namespace is missing.")

    bindings = ValueBindings(
        secrets=_optional(secret_variable_name) or "",
        configs=_optional(config_map_variable_name) or "",
        env_vars=_optional(env_var_variable_name) or "",
    )
    if not all(bindings):
        raise ConfigurationError("Misconfigured action. Helm variable names must not be empty.")
    if len(set(bindings)) != len(bindings):
        raise ConfigurationError(f"Misconfigured action. Helm variable names must be distinct, got {list(bindings)}.")

    context = DeploymentContext(
        name=name,
        chart_url=chart_url,
        namespace=namespace,
        bindings=bindings,
        chart_version=_optional(chart_version),
        environment=_optional(environment),
        tag=_optional(tag),
        prefix=_optional(prefix),
        kubeconfig=_optional(kubeconfig) or DEFAULT_KUBECONFIG,
        values_file=Path(values_file) if values_file else Path(DEFAULT_VALUES_FILE),
        dry_run=dry_run,
    )
    ic(context)
    return context
