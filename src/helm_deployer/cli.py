#!/usr/bin/env python
"""Command-line interface for helm-deployer.

This module provides the main CLI entry point. Every option can be
supplied through the environment variable CI sets for it, which is how
the tool is normally driven from a workflow step.
"""

import sys

import click
from icecream import ic

from helm_deployer import __version__, console
from helm_deployer.config import (
    DEFAULT_CONFIG_MAP_VARIABLE_NAME,
    DEFAULT_ENV_VAR_VARIABLE_NAME,
    DEFAULT_KUBECONFIG,
    DEFAULT_SECRET_VARIABLE_NAME,
    DEFAULT_VALUES_FILE,
    build_context,
    parse_mapping,
)
from helm_deployer.deployer import deploy
from helm_deployer.exceptions import ConfigurationError
from helm_deployer.models import DeploymentResult, DeploymentStatus


def report(result: DeploymentResult, *, dry_run: bool) -> None:
    """Print the outcome of a deployment run.

    Args:
        result: The result returned by deploy().
        dry_run: Whether the run was a dry run.

    """
    if result.ok:
        if not dry_run and result.output:
            click.echo(result.output)
        console.success("Dry run complete" if dry_run else "Helm chart installed")
        return

    console.error(result.message)
    if result.trace:
        console.muted(result.trace)


def _dry_run_requested(ctx: click.Context, param: click.Parameter, value: str | None) -> bool:
    """Only the exact string ``true`` requests a dry run; anything else is a real run."""
    return value == "true"


@click.command(help="Deploy a helm chart with values collected from CI secrets and variables")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option(
    "--dry-run",
    envvar="DRY_RUN",
    default="false",
    callback=_dry_run_requested,
    help="print the helm command instead of running it when set to 'true'",
)
@click.option("--name", envvar="NAME", help="release name, also the chart entries must target")
@click.option("--chart-url", envvar="HELM_CHART_URL", help="chart reference to install")
@click.option("--chart-version", envvar="HELM_CHART_VERSION", help="chart version to install")
@click.option("--namespace", envvar="NAMESPACE", help="namespace to install into")
@click.option("--environment", envvar="DEPLOYMENT_ENVIRONMENT", help="kube context and key prefix segment")
@click.option("--tag", envvar="TAG", help="image tag passed as image.tag")
@click.option("--secrets", envvar="GITHUB_SECRETS", default="{}", help="JSON object of CI secrets")
@click.option("--variables", envvar="GITHUB_VARIABLES", default="{}", help="JSON object of CI variables")
@click.option("--env-vars", envvar="ENVIRONMENT_VARIABLES", default="{}", help="JSON object of workload env vars")
@click.option("--prefix", envvar="GITHUB_SECRET_VARIABLE_PREFIX", help="global key prefix segment")
@click.option(
    "--secret-variable-name",
    envvar="HELM_SECRET_VARIABLE_NAME",
    default=DEFAULT_SECRET_VARIABLE_NAME,
    help="value path for secrets",
)
@click.option(
    "--config-map-variable-name",
    envvar="HELM_CONFIG_MAP_VARIABLE_NAME",
    default=DEFAULT_CONFIG_MAP_VARIABLE_NAME,
    help="value path for variables",
)
@click.option(
    "--env-var-variable-name",
    envvar="HELM_ENV_VAR_VARIABLE_NAME",
    default=DEFAULT_ENV_VAR_VARIABLE_NAME,
    help="value path for env vars",
)
@click.option("--kubeconfig", envvar="KUBECONFIG_PATH", default=DEFAULT_KUBECONFIG, help="kubeconfig file")
@click.option("--values-file", envvar="HELM_VALUES_FILE", default=DEFAULT_VALUES_FILE, help="values file path")
def cli(
    version: bool,
    debug: bool,
    dry_run: bool,
    name: str | None,
    chart_url: str | None,
    chart_version: str | None,
    namespace: str | None,
    environment: str | None,
    tag: str | None,
    secrets: str,
    variables: str,
    env_vars: str,
    prefix: str | None,
    secret_variable_name: str,
    config_map_variable_name: str,
    env_var_variable_name: str,
    kubeconfig: str,
    values_file: str,
) -> None:
    """Process CLI arguments and run the deployment.

    Exits with the status of the run: 0 on success or dry run, 123 for a
    malformed variable, 223 when helm fails and 1 for configuration errors.
    """
    if debug:
        ic.enable()
    else:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    try:
        context = build_context(
            name=name,
            chart_url=chart_url,
            namespace=namespace,
            chart_version=chart_version,
            environment=environment,
            tag=tag,
            prefix=prefix,
            secret_variable_name=secret_variable_name,
            config_map_variable_name=config_map_variable_name,
            env_var_variable_name=env_var_variable_name,
            kubeconfig=kubeconfig,
            values_file=values_file,
            dry_run=dry_run,
        )
        raw_secrets = parse_mapping(secrets, "GITHUB_SECRETS")
        raw_variables = parse_mapping(variables, "GITHUB_VARIABLES")
        raw_env_vars = parse_mapping(env_vars, "ENVIRONMENT_VARIABLES")
    except ConfigurationError as e:
        console.error(str(e))
        sys.exit(DeploymentStatus.CONFIG_ERROR.value)

    result = deploy(context, secrets=raw_secrets, variables=raw_variables, env_vars=raw_env_vars)
    report(result, dry_run=dry_run)
    sys.exit(result.status.value)


if __name__ == "__main__":
    cli()
