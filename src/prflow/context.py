"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from prflow.best_effort import best_effort
from prflow.config import PrflowConfig, load_config
from prflow.gateway.git.abc import Git
from prflow.gateway.git.real import RealGit
from prflow.gateway.github.abc import PrGateway
from prflow.gateway.github.factory import create_pr_gateway
from prflow.gateway.time.abc import Time
from prflow.gateway.time.real import RealTime
from prflow.refs import RefResolver
from prflow.rewrite.engine import HistoryRewriteEngine


@dataclass(frozen=True)
class PrflowContext:
    """Immutable context holding all dependencies for one invocation.

    Created at the CLI entry point (or by tests) and passed explicitly to every
    workflow operation. repo_root is None when cwd is not inside a repository.
    """

    git: Git
    github: PrGateway
    time: Time
    config: PrflowConfig
    cwd: Path
    repo_root: Path | None

    @property
    def resolver(self) -> RefResolver:
        return RefResolver(self.git, self.config.remote)

    @property
    def engine(self) -> HistoryRewriteEngine:
        return HistoryRewriteEngine(self.git, self.resolver, self.config, self.time)

    @staticmethod
    def for_test(
        git: Git | None = None,
        github: PrGateway | None = None,
        time: Time | None = None,
        config: PrflowConfig | None = None,
        cwd: Path | None = None,
        repo_root: Path | None = None,
    ) -> "PrflowContext":
        """Create a context backed by fakes, with sensible defaults.

        Example:
            >>> git = FakeGit(current_branch="feature")
            >>> ctx = PrflowContext.for_test(git=git)
        """
        from prflow.gateway.git.fake import FakeGit
        from prflow.gateway.github.fake import FakePrGateway
        from prflow.gateway.time.fake import FakeTime

        resolved_root = repo_root if repo_root is not None else Path("/repo")
        return PrflowContext(
            git=git if git is not None else FakeGit(repo_root=resolved_root),
            github=github if github is not None else FakePrGateway(),
            time=time if time is not None else FakeTime(),
            config=config if config is not None else PrflowConfig(),
            cwd=cwd if cwd is not None else resolved_root,
            repo_root=resolved_root,
        )


def create_context(cwd: Path) -> PrflowContext:
    """Create the production context for a working directory.

    Raises:
        ConfigError: If the repository has an invalid configuration file
    """
    git: Git = RealGit()
    repo_root = best_effort(
        lambda: git.get_repository_root(cwd), description=f"find repository containing {cwd}"
    )
    config = load_config(repo_root) if repo_root is not None else PrflowConfig()
    return PrflowContext(
        git=git,
        github=create_pr_gateway(config, git, repo_root if repo_root is not None else cwd),
        time=RealTime(),
        config=config,
        cwd=cwd,
        repo_root=repo_root,
    )
