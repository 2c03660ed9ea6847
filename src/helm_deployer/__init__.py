"""helm-deployer: Helm chart deployment helper for CI pipelines.

This package collects CI secrets, variables and environment variables,
turns them into a ``helm upgrade --install`` command and runs it,
redacting collected values from any error output.

Example usage:
    from helm_deployer import build_context, deploy

    context = build_context(name="app1", chart_url="oci://registry/app1", namespace="apps")
    result = deploy(context, secrets={}, variables={}, env_vars={})
"""

__version__ = "1.0.0"

from helm_deployer.cli import cli
from helm_deployer.config import build_context, parse_mapping
from helm_deployer.deployer import HelmDeployer, deploy
from helm_deployer.exceptions import (
    ConfigurationError,
    HelmDeployerError,
    InstallError,
    SecretParsingError,
    VariableParsingError,
)
from helm_deployer.models import (
    DeploymentContext,
    DeploymentResult,
    DeploymentStatus,
    EnvVarEntry,
    NamedValue,
    ValueBindings,
)

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Pipeline
    "HelmDeployer",
    "build_context",
    "deploy",
    "parse_mapping",
    # Models
    "DeploymentContext",
    "DeploymentResult",
    "DeploymentStatus",
    "EnvVarEntry",
    "NamedValue",
    "ValueBindings",
    # Exceptions
    "HelmDeployerError",
    "ConfigurationError",
    "SecretParsingError",
    "VariableParsingError",
    "InstallError",
]
