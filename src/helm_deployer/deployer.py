"""Helm deployment facade.

This module provides the HelmDeployer class, which ties selection,
encoding, command assembly and execution together, and the deploy()
entry point that turns failures into tagged results.
"""

import contextlib
import re
import subprocess
import traceback
from collections.abc import Mapping

from icecream import ic

from helm_deployer import console
from helm_deployer.command import build_command, values_file
from helm_deployer.encoding import build_set_flags, build_values_document, escape_special_chars
from helm_deployer.exceptions import ConfigurationError, InstallError, VariableParsingError
from helm_deployer.models import DeploymentContext, DeploymentResult, DeploymentStatus
from helm_deployer.selection import collect_env_vars, requires_values_file, select_secrets, select_variables

REDACTED = "<REDACTED>"


class HelmDeployer:
    """Deploys a helm chart from CI-provided values.

    Secrets and variables are selected when the instance is created. Use
    it as a context manager so the values file written in file mode is
    removed whatever the outcome.

    Attributes:
        context: The deployment context.
        secrets: Selected secrets, in CI order.
        configs: Selected variables, in CI order.
        env_vars: Collected environment variables.
        use_file: Whether values are passed through a values file.

    """

    def __init__(
        self,
        context: DeploymentContext,
        *,
        secrets: Mapping[str, str],
        variables: Mapping[str, str],
        env_vars: Mapping[str, str],
    ) -> None:
        """Select the values that apply to the chart being deployed.

        Args:
            context: The deployment context.
            secrets: Raw secret name -> JSON payload mapping.
            variables: Raw variable name -> JSON payload mapping.
            env_vars: Environment variable name -> value mapping.

        Raises:
            SecretParsingError: If a matching secret payload is malformed.
            VariableParsingError: If a matching variable payload is malformed.

        """
        self.context = context
        selection = {
            "prefix": context.prefix,
            "environment": context.environment,
            "dry_run": context.dry_run,
        }
        self.secrets = select_secrets(secrets, context.name, **selection)
        self.configs = select_variables(variables, context.name, **selection)
        self.env_vars = collect_env_vars(env_vars)
        self.use_file: bool = requires_values_file(self.secrets, self.configs)
        ic(len(self.secrets), len(self.configs), len(self.env_vars), self.use_file)

        self._resources = contextlib.ExitStack()
        self._command: str | None = None
        self._redaction_pattern: re.Pattern[str] | None = None

    def __enter__(self) -> "HelmDeployer":
        """Enter context manager.

        Returns:
            The HelmDeployer instance.

        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Exit context manager and remove the values file, if any."""
        self.close()

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return (
            f"HelmDeployer(name={self.context.name!r}, namespace={self.context.namespace!r}, "
            f"use_file={self.use_file!r})"
        )

    def close(self) -> None:
        """Release resources acquired while building the command."""
        self._resources.close()

    def print_summary(self) -> None:
        """Print the deployment target and what will be passed to the chart."""
        console.summary_panel(
            "Helm Deployment",
            {
                "Release": self.context.name,
                "Chart": self.context.chart_url,
                "Version": self.context.chart_version or "latest",
                "Namespace": self.context.namespace,
                "Context": self.context.environment or "current",
                "Mode": "values file" if self.use_file else "--set flags",
                "Secrets": str(len(self.secrets)),
                "Variables": str(len(self.configs)),
                "Env vars": str(len(self.env_vars)),
            },
        )

    def build_command(self) -> str:
        """Build the helm command, writing the values file in file mode.

        The values file is written even on dry runs so the printed command
        references a real file. It lives until close() is called.

        Returns:
            The helm command.

        """
        if self._command is not None:
            return self._command

        bindings = self.context.bindings
        if self.use_file:
            document = build_values_document(self.secrets, self.configs, self.env_vars, bindings, self.use_file)
            path = self._resources.enter_context(values_file(document, self.context.values_file))
            self._command = build_command(self.context, values_file=path)
        else:
            flags = build_set_flags(self.secrets, self.configs, self.env_vars, bindings)
            self._command = build_command(self.context, set_flags=flags)
        return self._command

    def _redaction_candidates(self) -> list[str]:
        candidates: set[str] = set()
        for entry in (*self.secrets, *self.configs, *self.env_vars):
            if not entry.value:
                continue
            escaped = escape_special_chars(entry.value)
            candidates.update({entry.value, escaped, escaped.replace("'", "'\"'\"'")})
        return sorted(candidates, key=len, reverse=True)

    def sanitize(self, text: str) -> str:
        """Replace every collected value in text with a redaction marker.

        Escaped, shell-quoted and raw forms are all replaced. Matching is a
        single pass, longest form first, so markers are never rewritten.

        Args:
            text: Text that may contain values, such as an error message.

        Returns:
            The redacted text.

        """
        if self._redaction_pattern is None:
            candidates = self._redaction_candidates()
            if not candidates:
                return text
            self._redaction_pattern = re.compile("|".join(re.escape(c) for c in candidates))
        return self._redaction_pattern.sub(REDACTED, text)

    def _install_error(self, err: subprocess.CalledProcessError | OSError) -> InstallError:
        message = f"Error while trying to install helmchart: {err}"
        output = getattr(err, "output", None)
        if output:
            message = f"{message}\n{output.rstrip()}"
        trace = "".join(traceback.format_exception(err))
        return InstallError(self.sanitize(message), trace=self.sanitize(trace))

    def install(self) -> str:
        """Run the helm command.

        Returns:
            The combined stdout and stderr of helm.

        Raises:
            InstallError: If helm exits non-zero or cannot be started.
                Its message and trace are redacted.

        """
        command = self.build_command()
        console.action(
            f"Installing {console.highlight(self.context.chart_url)} as {console.highlight(self.context.name)}"
        )
        try:
            with console.spinner("Running helm upgrade..."):
                completed = subprocess.run(
                    command,
                    shell=True,
                    check=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                )
        except (subprocess.CalledProcessError, OSError) as err:
            # The original exception text is not redacted, so it is not chained.
            raise self._install_error(err) from None
        return completed.stdout

    def execute(self) -> DeploymentResult:
        """Run the deployment, or print the command on a dry run.

        Returns:
            SUCCESS with the helm output (the command on a dry run), or
            INSTALL_ERROR with a redacted message and trace.

        """
        command = self.build_command()

        if self.context.dry_run:
            console.info("This is a Dry Run. Install command to be run:")
            console.command(command)
            return DeploymentResult(DeploymentStatus.SUCCESS, output=command)

        try:
            output = self.install()
        except InstallError as err:
            return DeploymentResult(DeploymentStatus.INSTALL_ERROR, message=str(err), trace=err.trace)
        return DeploymentResult(DeploymentStatus.SUCCESS, output=output)


def deploy(
    context: DeploymentContext,
    *,
    secrets: Mapping[str, str],
    variables: Mapping[str, str],
    env_vars: Mapping[str, str],
) -> DeploymentResult:
    """Select, encode and deploy in one pass.

    Args:
        context: The deployment context.
        secrets: Raw secret name -> JSON payload mapping.
        variables: Raw variable name -> JSON payload mapping.
        env_vars: Environment variable name -> value mapping.

    Returns:
        The tagged result of the run.

    """
    if context.dry_run:
        console.info("Executing Dry Run...")

    try:
        with HelmDeployer(context, secrets=secrets, variables=variables, env_vars=env_vars) as deployer:
            deployer.print_summary()
            return deployer.execute()
    except VariableParsingError as err:
        return DeploymentResult(DeploymentStatus.VARIABLE_ERROR, message=str(err))
    except ConfigurationError as err:
        return DeploymentResult(DeploymentStatus.CONFIG_ERROR, message=str(err))
