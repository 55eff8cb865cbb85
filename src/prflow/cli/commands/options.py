"""Options shared by the branch-pair commands."""

import click

target_branch_option = click.option(
    "--target-branch",
    "-t",
    required=True,
    help="Branch the PR merges into (the base of the commit range)",
)
current_branch_option = click.option(
    "--current-branch",
    "-c",
    default=None,
    help="Branch with the changes (default: the checked-out branch)",
)
