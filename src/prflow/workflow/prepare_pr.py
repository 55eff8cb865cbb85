"""prepare-pr: gather everything needed to write a PR title and body."""

import logging
from collections.abc import Iterator
from pathlib import Path

from prflow.card_links import find_card_links, infer_card_link
from prflow.changes import RefNotFound, generate_change_bundle
from prflow.context import PrflowContext
from prflow.gateway.git.abc import VcsCommandFailed
from prflow.gateway.github.api import GitHubApiError
from prflow.gateway.github.types import PrDetails
from prflow.scratch import write_scratch_file
from prflow.workflow.types import PreparePrResult, WorkflowError, numbered, workflow_error

logger = logging.getLogger(__name__)

PR_TEMPLATE_NAME = "pull_request_template.md"


def find_pr_template(repo_root: Path) -> str | None:
    """Repository-relative path of the PR template, matched case-insensitively."""
    github_dir = repo_root / ".github"
    if not github_dir.is_dir():
        return None
    for entry in sorted(github_dir.iterdir()):
        if entry.is_file() and entry.name.lower() == PR_TEMPLATE_NAME:
            return f".github/{entry.name}"
    return None


def _pr_content(details: PrDetails) -> Iterator[str]:
    yield "Title: "
    yield details.title
    yield "\n\n"
    yield details.body


def _dedupe(links: list[str]) -> list[str]:
    return list(dict.fromkeys(link for link in links if link))


def prepare_pr(
    ctx: PrflowContext,
    repo_root: Path,
    target_branch: str,
    current_branch: str,
    card_link: str | None = None,
) -> PreparePrResult | WorkflowError:
    """Collect the PR template, existing PR content, card links and change bundle.

    When the target branch only exists on the remote, a local branch is
    created from it.
    """
    pr_template = find_pr_template(repo_root)
    remote = ctx.config.remote

    existing: PrDetails | None = None
    card_links: list[str] = []
    pr_content_file: Path | None = None
    try:
        prs = ctx.github.list_prs(repo_root, target_branch, current_branch)
        if prs:
            existing = ctx.github.view_pr(repo_root, prs[0].number)
    except (RuntimeError, GitHubApiError) as e:
        return workflow_error(
            "github-failed",
            f"Failed to look up an existing PR from '{current_branch}' into '{target_branch}': {e}",
        )
    if existing is not None:
        pr_content_file = write_scratch_file(
            repo_root, f"pr-content-{existing.number}.md", _pr_content(existing)
        )
        card_links.extend(find_card_links(f"{existing.title}\n{existing.body}", ctx.config))

    resolver = ctx.resolver
    local_exists = resolver.ref_exists(repo_root, target_branch, "local")
    remote_exists = resolver.ref_exists(repo_root, target_branch, "remote")
    if not local_exists and not remote_exists:
        return workflow_error(
            "ref-not-found",
            f"Target branch '{target_branch}' not found locally or on '{remote}'. "
            "Please verify the branch name.",
            ref=target_branch,
        )

    try:
        ctx.git.fetch(repo_root, remote, target_branch)
    except VcsCommandFailed as e:
        return workflow_error(
            "fetch-failed",
            f"Failed to fetch '{target_branch}' from '{remote}': {e}",
            ref=target_branch,
        )

    if not local_exists:
        try:
            ctx.git.create_branch(repo_root, target_branch, f"{remote}/{target_branch}")
        except VcsCommandFailed as e:
            return workflow_error(
                "vcs-command-failed",
                f"Failed to create local branch '{target_branch}' from "
                f"'{remote}/{target_branch}': {e}. Please create/update the branch manually.",
            )

    try:
        bundle = generate_change_bundle(
            ctx.git, resolver, ctx.time, repo_root, target_branch, current_branch
        )
    except RefNotFound as e:
        return workflow_error("ref-not-found", str(e), ref=e.ref)
    except VcsCommandFailed as e:
        return workflow_error("vcs-command-failed", f"Failed to collect changes: {e}")

    if card_link:
        card_links.append(card_link)
    inferred = infer_card_link(current_branch, ctx.config)
    if inferred:
        card_links.append(inferred)
    card_links = _dedupe(card_links)

    files_to_read = [str(bundle.path)]
    if pr_content_file is not None:
        files_to_read.append(str(pr_content_file))

    actions = ["Read filesToRead files for context"]
    if pr_template is not None:
        actions.append("Read prTemplate to use as PR body template")
    actions.append(
        "Generate PR title and body from the gathered information, including a summary "
        "for each card read and respecting the template structure"
    )
    if card_links:
        actions.append("Fetch card info for each card link before doing anything else")
    actions.append(
        "Show the title and full PR body to the user and ask for confirmation to proceed"
    )
    actions.append("Apply any requested changes and show title and body again until confirmed")
    actions.append("Run submit-pr")

    if existing is not None:
        outcome = f"Existing PR #{existing.number} will be updated."
    else:
        outcome = "A new PR will be created."
    logger.debug("prepared PR artifacts for %s -> %s", current_branch, target_branch)
    return PreparePrResult(
        success=True,
        pr_number=existing.number if existing is not None else None,
        pr_template=pr_template,
        files_to_read=files_to_read,
        card_links=card_links,
        next_actions=numbered(actions),
        message=f"Prepared PR artifacts. Changes file: '{bundle.path}'. {outcome}",
    )
