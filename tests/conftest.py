"""Shared test fixtures for helm-deployer tests."""

import json
from unittest.mock import MagicMock, patch

import pytest

from helm_deployer.models import DeploymentContext, ValueBindings


def _payload(chart: str, key: str, value: str, use_file: bool | None = None) -> str:
    """Build a JSON payload the way CI stores it."""
    entry = {"chart": chart, "key": key, "value": value}
    if use_file is not None:
        entry["useFile"] = use_file
    return json.dumps(entry)


@pytest.fixture
def bindings():
    """Value bindings used by most tests."""
    return ValueBindings(secrets="secrets", configs="configMaps", env_vars="envVars")


@pytest.fixture
def context(bindings, tmp_path):
    """Deployment context for chart app1 in prod."""
    return DeploymentContext(
        name="app1",
        chart_url="oci://registry.example.com/charts/app1",
        namespace="apps",
        bindings=bindings,
        environment="prod",
        tag="1.2.3",
        values_file=tmp_path / ".helmValues.yaml",
    )


@pytest.fixture
def db_pass_secret():
    """A single flag-mode secret for app1 in prod."""
    return {"DEPLOYMENT_PROD_DB_PASS": _payload("app1", "dbPass", "p@ss,word", use_file=False)}


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="Release \"app1\" has been upgraded.\n", stderr=None)
        yield mock


@pytest.fixture
def mock_console():
    """Silence console output."""
    with patch("helm_deployer.console.console") as mock:
        yield mock


@pytest.fixture
def payload():
    """Factory for JSON payloads in the CI storage format."""
    return _payload
