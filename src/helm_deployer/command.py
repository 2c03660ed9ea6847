"""Helm command assembly.

This module builds the ``helm upgrade --install`` command line and owns
the lifetime of the generated values file used in file mode.
"""

import contextlib
import shlex
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from icecream import ic

from helm_deployer.encoding import render_values_document
from helm_deployer.models import DeploymentContext

_LINE_SEPARATOR = " \\\n  "


def build_command(
    context: DeploymentContext,
    *,
    set_flags: Sequence[str] = (),
    values_file: Path | None = None,
) -> str:
    """Build the helm install command.

    Args:
        context: The deployment context.
        set_flags: Encoded ``--set`` flags, used in flag mode.
        values_file: Path of the values file. When given, the command
            references the file and ``set_flags`` is ignored.

    Returns:
        The command, one argument group per continuation line.

    """
    parts: list[str] = [
        f"helm upgrade {shlex.quote(context.name)}",
        f"--kubeconfig {shlex.quote(context.kubeconfig)}",
    ]
    if context.environment:
        parts.append(f"--kube-context {shlex.quote(context.environment)}")
    parts.extend(
        [
            "--install",
            "--create-namespace",
            f"--namespace {shlex.quote(context.namespace)}",
        ]
    )
    if context.tag:
        parts.append(f"--set image.tag={shlex.quote(context.tag)}")

    if values_file is not None:
        parts.append(f"-f {shlex.quote(str(values_file))}")
    else:
        parts.extend(set_flags)
        if context.chart_version:
            parts.append(f"--version {shlex.quote(context.chart_version)}")

    parts.append(shlex.quote(context.chart_url))
    return _LINE_SEPARATOR.join(parts)


@contextmanager
def values_file(document: dict[str, Any], path: Path) -> Generator[Path, None, None]:
    """Write a values document for the duration of a block.

    The file is removed on every exit path, including failures inside
    the block.

    Args:
        document: The values document.
        path: Where to write the file.

    Yields:
        The path of the written file.

    """
    try:
        path.write_text(render_values_document(document), encoding="utf-8")
        ic(path)
        yield path
    finally:
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
