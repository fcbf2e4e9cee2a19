from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any


ALL_YEARS = "all"


@dataclass(frozen=True)
class GitHubCredentials:
    """Token and endpoints used for every GitHub request.

    Passed explicitly to the client functions instead of living in
    module-level state.
    """

    token: str
    api_base_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    timeout: float = 15.0

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "gitinsights",
        }


@dataclass(frozen=True)
class CommitRecord:
    """Commits of one repository folded into one calendar day."""

    date: str
    count: int


@dataclass(frozen=True)
class Repository:
    id: int
    name: str
    full_name: str = ""
    description: str | None = None
    language: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    size: int = 0
    created_at: str = ""
    updated_at: str | None = None
    pushed_at: str | None = None
    fork: bool = False
    commits: tuple[CommitRecord, ...] = ()
    languages: dict[str, int] = field(default_factory=dict)
    pulls: int = 0

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Repository":
        """Build a repository from a raw GitHub REST payload.

        Missing or mistyped fields fall back to empty values.
        """

        def _int(key: str) -> int:
            value = payload.get(key)
            return value if isinstance(value, int) and not isinstance(value, bool) else 0

        def _str(key: str) -> str | None:
            value = payload.get(key)
            return value if isinstance(value, str) else None

        raw_id = payload.get("id")
        return cls(
            id=raw_id if isinstance(raw_id, int) else 0,
            name=_str("name") or "",
            full_name=_str("full_name") or "",
            description=_str("description"),
            language=_str("language"),
            stargazers_count=_int("stargazers_count"),
            forks_count=_int("forks_count"),
            size=_int("size"),
            created_at=_str("created_at") or "",
            updated_at=_str("updated_at"),
            pushed_at=_str("pushed_at"),
            fork=payload.get("fork") is True,
        )


@dataclass(frozen=True)
class RepositoryFetchResult:
    """Outcome of loading languages, commits and pulls for one repository.

    On failure `repository` keeps empty defaults and `error` holds the reason,
    so "no activity" and "fetch failed" stay distinguishable.
    """

    repository: Repository
    details_loaded: bool
    error: str | None = None


@dataclass(frozen=True)
class StreakStats:
    current_streak: int = 0
    longest_streak: int = 0
    total_commits: int = 0
