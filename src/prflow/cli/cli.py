import json
import logging
from pathlib import Path

import click

from prflow.cli.commands.commits import get_commit_contents_cmd, get_commit_messages_cmd
from prflow.cli.commands.create_branch import create_branch_cmd
from prflow.cli.commands.detect_branches import detect_branches_cmd
from prflow.cli.commands.prepare_pr import prepare_pr_cmd
from prflow.cli.commands.rewrite import replace_commit_messages_cmd, squash_commits_cmd
from prflow.cli.commands.submit_pr import submit_pr_cmd
from prflow.cli.commands.update_pr_by_link import update_pr_by_link_cmd
from prflow.config import ConfigError
from prflow.context import create_context
from prflow.output import machine_output

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="prflow")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if started in this directory",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, cwd: Path | None) -> None:
    """Prepare, submit and tidy up pull requests. Every command prints JSON."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_context((cwd or Path.cwd()).resolve())
        except ConfigError as e:
            machine_output(
                json.dumps(
                    {
                        "success": False,
                        "error_type": "invalid-config",
                        "message": str(e),
                        "details": {},
                    },
                    indent=2,
                )
            )
            raise SystemExit(1) from e


cli.add_command(create_branch_cmd)
cli.add_command(detect_branches_cmd)
cli.add_command(get_commit_contents_cmd)
cli.add_command(get_commit_messages_cmd)
cli.add_command(prepare_pr_cmd)
cli.add_command(replace_commit_messages_cmd)
cli.add_command(squash_commits_cmd)
cli.add_command(submit_pr_cmd)
cli.add_command(update_pr_by_link_cmd)


def main() -> None:
    """CLI entry point used by the `prflow` console script."""
    cli()
