"""Machine-readable output.

Every command prints exactly one JSON document on stdout. Diagnostics go
through logging (stderr, enabled with --debug) so stdout stays parseable.
"""

from typing import Any

import click


def machine_output(message: Any = "", *, nl: bool = True) -> None:
    """Print machine-readable output (stdout)."""
    click.echo(message, nl=nl)
