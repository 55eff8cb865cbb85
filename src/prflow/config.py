"""Repository configuration: branch schema, branch-type mapping, card links.

Configuration is read once per invocation and passed explicitly to whatever
needs it (resolver, rewrite engine, workflow operations).

Example `.prflow/config.toml`:

    remote = "origin"

    [branches]
    production = "main"
    homologation = "staging"
    development = "develop"

    [branch_mapping.hotfix]
    origin = "production"
    target = "production"

    [card_links]
    # Branch -> card URL inference (Python re.sub syntax)
    infer_pattern = '^\\w+/(\\d+)-.*$'
    infer_replacement = 'https://tracker.example.com/cards/\\1'
    # URLs recognised as card links inside an existing PR's title/body
    website_pattern = 'https://tracker\\.example\\.com/cards/\\d+'

    [github]
    backend = "cli"   # or "api"
    api_url = "https://api.github.com"

Repositories without a config.toml may still carry a legacy `branches.ini`
with `KEY_BRANCH=value` lines (see _INI_KEYS).
"""

import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

SchemaKey = Literal["production", "homologation", "development"]
BranchType = Literal["feat", "fix", "hotfix", "release"]
GitHubBackend = Literal["cli", "api"]

BRANCH_TYPES: tuple[BranchType, ...] = ("feat", "fix", "hotfix", "release")
CONFIG_RELATIVE_PATH = Path(".prflow") / "config.toml"
LEGACY_INI_NAME = "branches.ini"

_SCHEMA_KEYS: tuple[SchemaKey, ...] = ("production", "homologation", "development")

# Legacy ini keys -> schema slot. Type-oriented keys map to the slot those
# branch types are cut from.
_INI_KEYS: dict[str, SchemaKey] = {
    "PRODUCTION": "production",
    "HOTFIX": "production",
    "HOMOLOGATION": "homologation",
    "FEAT": "homologation",
    "BUGFIX": "homologation",
    "RELEASE": "homologation",
    "DEVELOPMENT": "development",
    "DEV": "development",
}
_INI_LINE_RE = re.compile(r"^\s*([A-Za-z]+)_BRANCH\s*=\s*(.+?)\s*$")


class ConfigError(ValueError):
    """Raised when a configuration file is present but invalid."""


@dataclass(frozen=True)
class BranchSchema:
    """Long-lived branches of the repository. All of them are protected."""

    production: str = "main"
    homologation: str = "staging"
    development: str = "develop"

    def get(self, key: SchemaKey) -> str:
        return getattr(self, key)

    def values(self) -> tuple[str, ...]:
        return (self.production, self.homologation, self.development)


@dataclass(frozen=True)
class BranchMappingItem:
    """Where a branch type is cut from (origin) and merged into (target)."""

    origin: SchemaKey
    target: SchemaKey


def _default_branch_mapping() -> dict[BranchType, BranchMappingItem]:
    return {
        "feat": BranchMappingItem(origin="homologation", target="homologation"),
        "fix": BranchMappingItem(origin="homologation", target="homologation"),
        "hotfix": BranchMappingItem(origin="production", target="production"),
        "release": BranchMappingItem(origin="homologation", target="production"),
    }


@dataclass(frozen=True)
class PrflowConfig:
    """Immutable per-repository configuration."""

    branch_schema: BranchSchema = field(default_factory=BranchSchema)
    branch_mapping: dict[BranchType, BranchMappingItem] = field(
        default_factory=_default_branch_mapping
    )
    remote: str = "origin"
    github_backend: GitHubBackend = "cli"
    github_api_url: str = "https://api.github.com"
    card_link_infer_pattern: re.Pattern[str] | None = None
    card_link_infer_replacement: str | None = None
    card_link_website_pattern: re.Pattern[str] | None = None

    def protected_branches(self) -> frozenset[str]:
        """Branches whose history must never be rewritten."""
        return frozenset(self.branch_schema.values())

    def is_protected(self, branch: str) -> bool:
        return branch in self.protected_branches()

    def base_branch_for(self, branch_type: BranchType) -> str:
        """Branch that new branches of the given type are cut from."""
        return self.branch_schema.get(self.branch_mapping[branch_type].origin)

    def target_branch_for(self, branch_type: BranchType) -> str:
        """Branch that branches of the given type are merged into."""
        return self.branch_schema.get(self.branch_mapping[branch_type].target)


def load_config(repo_root: Path) -> PrflowConfig:
    """Load configuration for a repository, falling back to defaults.

    Lookup order: `.prflow/config.toml`, then legacy `branches.ini`, then
    built-in defaults.

    Raises:
        ConfigError: If a config file exists but contains invalid values
    """
    toml_path = repo_root / CONFIG_RELATIVE_PATH
    if toml_path.exists():
        try:
            data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {toml_path}: {e}") from e
        return parse_config(data)

    ini_path = repo_root / LEGACY_INI_NAME
    if ini_path.exists():
        return PrflowConfig(branch_schema=parse_branches_ini(ini_path.read_text(encoding="utf-8")))

    return PrflowConfig()


def parse_config(data: dict) -> PrflowConfig:
    """Build a PrflowConfig from parsed TOML data."""
    config = PrflowConfig()

    branches = data.get("branches", {})
    unknown = set(branches) - set(_SCHEMA_KEYS)
    if unknown:
        raise ConfigError(f"Unknown [branches] keys: {', '.join(sorted(unknown))}")
    schema = BranchSchema(**{k: str(v) for k, v in branches.items()})

    mapping = dict(config.branch_mapping)
    for branch_type, item in data.get("branch_mapping", {}).items():
        if branch_type not in BRANCH_TYPES:
            raise ConfigError(f"Unknown branch type in [branch_mapping]: {branch_type}")
        origin = item.get("origin", mapping[branch_type].origin)
        target = item.get("target", mapping[branch_type].target)
        for value in (origin, target):
            if value not in _SCHEMA_KEYS:
                raise ConfigError(f"Invalid schema key '{value}' for branch type {branch_type}")
        mapping[branch_type] = BranchMappingItem(origin=origin, target=target)

    github = data.get("github", {})
    backend = github.get("backend", config.github_backend)
    if backend not in ("cli", "api"):
        raise ConfigError(f"Invalid github backend '{backend}' (expected 'cli' or 'api')")

    card_links = data.get("card_links", {})

    return replace(
        config,
        branch_schema=schema,
        branch_mapping=mapping,
        remote=str(data.get("remote", config.remote)),
        github_backend=backend,
        github_api_url=str(github.get("api_url", config.github_api_url)),
        card_link_infer_pattern=_compile_optional(card_links.get("infer_pattern")),
        card_link_infer_replacement=card_links.get("infer_replacement"),
        card_link_website_pattern=_compile_optional(card_links.get("website_pattern")),
    )


def parse_branches_ini(content: str) -> BranchSchema:
    """Parse a legacy branches.ini file into a BranchSchema.

    Unknown keys and malformed lines are skipped.
    """
    values: dict[SchemaKey, str] = {}
    for line in content.splitlines():
        match = _INI_LINE_RE.match(line)
        if match is None:
            continue
        slot = _INI_KEYS.get(match.group(1).upper())
        if slot is None:
            continue
        # First key wins so FEAT_BRANCH beats a later RELEASE_BRANCH
        values.setdefault(slot, match.group(2))
    return BranchSchema(**values)


def _compile_optional(pattern: str | None) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid regular expression '{pattern}': {e}") from e
