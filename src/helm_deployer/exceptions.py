"""Custom exceptions for helm-deployer.

This module defines the exception hierarchy used throughout the application
to separate configuration mistakes from data-quality issues and failed
installs, each of which ends the run with a different exit code.
"""


class HelmDeployerError(Exception):
    """Base exception for all helm-deployer errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all helm-deployer errors with a single
    except clause if desired.
    """

    pass


class ConfigurationError(HelmDeployerError):
    """Raised when the action is misconfigured.

    This can occur when:
    - A required setting (release name, chart URL, namespace) is missing
    - One of the JSON mappings is not a flat object of strings
    - The value bindings are empty or collide with each other
    """

    pass


class SecretParsingError(ConfigurationError):
    """Raised when a selected secret entry cannot be decoded.

    Secrets are treated as configuration: a malformed secret stops the
    whole run on the generic failure path.
    """

    def __init__(self, source_key: str, reason: str) -> None:
        self.source_key = source_key
        super().__init__(f"Misconfigured Github Secret: {source_key} ({reason}). Please correct and re-run.")


class VariableParsingError(HelmDeployerError):
    """Raised when a selected variable entry cannot be decoded.

    Unlike secrets, malformed variables are reported with their own exit
    code so the operator can tell the two apart in CI.
    """

    def __init__(self, source_key: str, reason: str) -> None:
        self.source_key = source_key
        super().__init__(f"Misconfigured Github Variable: {source_key} ({reason}). Please correct and re-run.")


class InstallError(HelmDeployerError):
    """Raised when the helm command fails.

    The message and trace carried by this exception are already redacted.
    """

    def __init__(self, message: str, trace: str = "") -> None:
        self.trace = trace
        super().__init__(message)
