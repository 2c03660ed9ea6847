"""Data models for helm-deployer.

This module provides type-safe data structures for the application,
replacing the loosely-typed JSON payloads handed over by CI with
immutable records.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple


class DeploymentStatus(int, Enum):
    """Outcome of a deployment run.

    Inherits from int so that members double as process exit codes
    at the CLI boundary.
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    VARIABLE_ERROR = 123
    INSTALL_ERROR = 223


class ValueBindings(NamedTuple):
    """Value paths under which the chart expects each list.

    Attributes:
        secrets: Value path for secret entries.
        configs: Value path for config (variable) entries.
        env_vars: Value path for environment variable entries.

    """

    secrets: str
    configs: str
    env_vars: str


@dataclass(frozen=True, slots=True)
class NamedValue:
    """A secret or variable destined for the chart.

    Attributes:
        key: The key the chart sees for this entry.
        value: The raw value.
        use_file: Whether the value must be embedded verbatim in a values file.

    """

    key: str
    value: str
    use_file: bool = False


@dataclass(frozen=True, slots=True)
class EnvVarEntry:
    """A runtime environment variable for the deployed workload."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class DeploymentContext:
    """Resolved configuration for a single deployment run.

    Attributes:
        name: Release name, also the chart name entries are matched against.
        chart_url: Chart reference passed to helm.
        namespace: Target namespace.
        bindings: Value paths for secrets, configs and env vars.
        chart_version: Optional chart version.
        environment: Optional target environment (kube context and key prefix).
        tag: Optional image tag.
        prefix: Optional global key prefix.
        kubeconfig: Path to the kubeconfig file.
        values_file: Path of the generated values file in file mode.
        dry_run: Print the command instead of running it.

    """

    name: str
    chart_url: str
    namespace: str
    bindings: ValueBindings
    chart_version: str | None = None
    environment: str | None = None
    tag: str | None = None
    prefix: str | None = None
    kubeconfig: str = ".kubeConfig"
    values_file: Path = Path(".helmValues.yaml")
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class DeploymentResult:
    """What a deployment run produced.

    Attributes:
        status: Tagged outcome of the run.
        output: Captured helm output, or the command in dry-run mode.
        message: Redacted error message for failed runs.
        trace: Redacted traceback for failed installs.

    """

    status: DeploymentStatus
    output: str = ""
    message: str = ""
    trace: str = ""

    @property
    def ok(self) -> bool:
        """Return True if the run succeeded."""
        return self.status is DeploymentStatus.SUCCESS
