"""Tests for deployer.py module."""

import subprocess
from dataclasses import replace

import pytest
import yaml

from helm_deployer.deployer import REDACTED, HelmDeployer, deploy
from helm_deployer.exceptions import InstallError, SecretParsingError
from helm_deployer.models import DeploymentStatus


class TestDeployFlagMode:
    """End-to-end tests for flag mode."""

    def test_single_secret(self, context, db_pass_secret, mock_subprocess, mock_console):  # noqa: ARG002
        """Test one escaped secret is passed as a pair of --set flags."""
        result = deploy(context, secrets=db_pass_secret, variables={}, env_vars={})

        assert result.status is DeploymentStatus.SUCCESS
        assert result.status == 0
        assert result.output == "Release \"app1\" has been upgraded.\n"

        command = mock_subprocess.call_args[0][0]
        assert "--set secrets[0].key='dbPass'" in command
        assert r"--set secrets[0].value='p@ss\,word'" in command
        assert "-f " not in command
        assert mock_subprocess.call_args.kwargs["shell"] is True
        assert mock_subprocess.call_args.kwargs["stderr"] == subprocess.STDOUT
        assert not context.values_file.exists()

    def test_flag_count(self, context, payload, mock_subprocess, mock_console):  # noqa: ARG002
        """Test 2 x entries --set flags plus image tag and an optional version."""
        context = replace(context, chart_version="1.0.0")
        secrets = {"DEPLOYMENT_PROD_A": payload("app1", "a", "1")}
        variables = {
            "DEPLOYMENT_PROD_B": payload("app1", "b", "2"),
            "DEPLOYMENT_PROD_C": payload("app1", "c", "3"),
        }
        env_vars = {"LOG_LEVEL": "info"}

        deploy(context, secrets=secrets, variables=variables, env_vars=env_vars)

        command = mock_subprocess.call_args[0][0]
        value_flags = [line for line in command.split(" \\\n  ") if line.startswith("--set ") and "image.tag" not in line]
        assert len(value_flags) == 2 * 4
        assert command.count("--version 1.0.0") == 1


class TestDeployFileMode:
    """End-to-end tests for file mode."""

    def test_single_use_file_secret(self, context, payload, mock_subprocess, mock_console):  # noqa: ARG002
        """Test a useFile secret is written raw to a values file that is removed afterwards."""
        secrets = {"DEPLOYMENT_PROD_DB_PASS": payload("app1", "dbPass", "p@ss,word", use_file=True)}
        seen = {}

        def run(command, **kwargs):
            seen["command"] = command
            seen["text"] = context.values_file.read_text()
            return mock_subprocess.return_value

        mock_subprocess.side_effect = run

        result = deploy(context, secrets=secrets, variables={}, env_vars={})

        assert result.ok
        assert f"-f {context.values_file}" in seen["command"]
        assert "--set secrets" not in seen["command"]
        assert "value: |" in seen["text"]
        assert yaml.safe_load(seen["text"])["secrets"] == [{"key": "dbPass", "value": "p@ss,word"}]
        assert not context.values_file.exists()

    def test_mode_applies_to_every_list(self, context, payload, mock_subprocess, mock_console):  # noqa: ARG002
        """Test one useFile variable moves secrets and env vars into the file too."""
        secrets = {"DEPLOYMENT_PROD_HOST": payload("app1", "host", "db.local")}
        variables = {"DEPLOYMENT_PROD_CERT": payload("app1", "cert", "a\nb\n", use_file=True)}
        env_vars = {"URL": "https://x.y"}
        seen = {}

        def run(command, **kwargs):
            seen["document"] = yaml.safe_load(context.values_file.read_text())
            return mock_subprocess.return_value

        mock_subprocess.side_effect = run

        deploy(context, secrets=secrets, variables=variables, env_vars=env_vars)

        assert seen["document"] == {
            "secrets": [{"key": "host", "value": r"db\.local"}],
            "configMaps": [{"key": "cert", "value": "a\nb\n"}],
            "envVars": [{"name": "URL", "value": r"https://x\.y"}],
        }


class TestDryRun:
    """Tests for dry-run mode."""

    def test_never_executes(self, context, db_pass_secret, mock_subprocess, mock_console):  # noqa: ARG002
        """Test the command is returned instead of run."""
        result = deploy(replace(context, dry_run=True), secrets=db_pass_secret, variables={}, env_vars={})

        mock_subprocess.assert_not_called()
        assert result.status is DeploymentStatus.SUCCESS
        assert result.output.startswith("helm upgrade app1")
        assert "--set secrets[0].key='dbPass'" in result.output

    def test_file_mode_still_cleans_up(self, context, payload, mock_subprocess, mock_console):  # noqa: ARG002
        """Test the values file written for a dry run is removed."""
        context = replace(context, dry_run=True)
        secrets = {"DEPLOYMENT_PROD_DB_PASS": payload("app1", "dbPass", "p@ss,word", use_file=True)}

        with HelmDeployer(context, secrets=secrets, variables={}, env_vars={}) as deployer:
            result = deployer.execute()
            assert context.values_file.exists()

        mock_subprocess.assert_not_called()
        assert f"-f {context.values_file}" in result.output
        assert not context.values_file.exists()


class TestInstallFailure:
    """Tests for failed installs."""

    @staticmethod
    def _fail(command, **kwargs):
        raise subprocess.CalledProcessError(1, command, output="Error: UPGRADE FAILED: bad value p@ss\\,word\n")

    def test_redacted_and_reported(self, context, db_pass_secret, mock_subprocess, mock_console):  # noqa: ARG002
        """Test the escaped secret is scrubbed from message and trace."""
        mock_subprocess.side_effect = self._fail

        result = deploy(context, secrets=db_pass_secret, variables={}, env_vars={})

        assert result.status is DeploymentStatus.INSTALL_ERROR
        assert result.status == 223
        assert REDACTED in result.message
        assert "UPGRADE FAILED" in result.message
        assert r"p@ss\,word" not in result.message
        assert "p@ss,word" not in result.message
        assert r"p@ss\,word" not in result.trace
        assert "CalledProcessError" in result.trace

    def test_values_file_removed_on_failure(self, context, payload, mock_subprocess, mock_console):  # noqa: ARG002
        """Test file mode cleanup also happens when helm fails."""
        mock_subprocess.side_effect = self._fail
        secrets = {"DEPLOYMENT_PROD_DB_PASS": payload("app1", "dbPass", "p@ss,word", use_file=True)}

        result = deploy(context, secrets=secrets, variables={}, env_vars={})

        assert result.status is DeploymentStatus.INSTALL_ERROR
        assert not context.values_file.exists()

    def test_os_error(self, context, db_pass_secret, mock_subprocess, mock_console):  # noqa: ARG002
        """Test helm failing to start is an install failure."""
        mock_subprocess.side_effect = OSError("cannot exec")

        result = deploy(context, secrets=db_pass_secret, variables={}, env_vars={})

        assert result.status is DeploymentStatus.INSTALL_ERROR
        assert "cannot exec" in result.message

    def test_install_raises_install_error(self, context, db_pass_secret, mock_subprocess, mock_console):  # noqa: ARG002
        """Test install() raises a redacted InstallError without chaining the original."""
        mock_subprocess.side_effect = self._fail

        with HelmDeployer(context, secrets=db_pass_secret, variables={}, env_vars={}) as deployer:
            with pytest.raises(InstallError) as exc_info:
                deployer.install()

        assert exc_info.value.__cause__ is None
        assert exc_info.value.__suppress_context__ is True
        assert r"p@ss\,word" not in str(exc_info.value)


class TestSelectionFailures:
    """Tests for malformed entries."""

    def test_malformed_variable(self, context, mock_subprocess, mock_console):  # noqa: ARG002
        """Test a malformed variable ends the run with its own status."""
        result = deploy(context, secrets={}, variables={"DEPLOYMENT_PROD_X": "{"}, env_vars={})

        assert result.status is DeploymentStatus.VARIABLE_ERROR
        assert result.status == 123
        assert "DEPLOYMENT_PROD_X" in result.message
        mock_subprocess.assert_not_called()

    def test_malformed_secret(self, context, mock_subprocess, mock_console):  # noqa: ARG002
        """Test a malformed secret is a configuration error."""
        result = deploy(context, secrets={"DEPLOYMENT_PROD_X": "{"}, variables={}, env_vars={})

        assert result.status is DeploymentStatus.CONFIG_ERROR
        mock_subprocess.assert_not_called()

    def test_constructor_raises(self, context):
        """Test HelmDeployer surfaces secret errors to library callers."""
        with pytest.raises(SecretParsingError):
            HelmDeployer(context, secrets={"DEPLOYMENT_PROD_X": "[]"}, variables={}, env_vars={})


class TestSanitize:
    """Tests for value redaction."""

    def test_every_collected_value(self, context, payload):
        """Test secrets, variables and env vars are all redacted, every occurrence."""
        deployer = HelmDeployer(
            context,
            secrets={"DEPLOYMENT_PROD_A": payload("app1", "a", "s3cret.value")},
            variables={"DEPLOYMENT_PROD_B": payload("app1", "b", "config-value")},
            env_vars={"TOKEN": "tok{en}"},
        )

        text = r"s3cret\.value and s3cret.value, config-value twice config-value, tok\{en\}"

        assert deployer.sanitize(text) == f"{REDACTED} and {REDACTED}, {REDACTED} twice {REDACTED}, {REDACTED}"

    def test_longest_form_wins(self, context, payload):
        """Test overlapping values do not leave partial secrets behind."""
        deployer = HelmDeployer(
            context,
            secrets={
                "DEPLOYMENT_PROD_A": payload("app1", "a", "abc"),
                "DEPLOYMENT_PROD_B": payload("app1", "b", "abcdef"),
            },
            variables={},
            env_vars={},
        )

        assert deployer.sanitize("xabcdefx") == f"x{REDACTED}x"

    def test_shell_quoted_form(self, context, payload):
        """Test values with single quotes are redacted as they appear in the command."""
        deployer = HelmDeployer(
            context,
            secrets={"DEPLOYMENT_PROD_A": payload("app1", "a", "it's.secret")},
            variables={},
            env_vars={},
        )

        assert deployer.sanitize("value='it'\"'\"'s\\.secret'") == f"value='{REDACTED}'"

    def test_empty_values_ignored(self, context):
        """Test empty values do not redact everything."""
        deployer = HelmDeployer(context, secrets={}, variables={}, env_vars={"EMPTY": ""})

        assert deployer.sanitize("nothing to hide") == "nothing to hide"
