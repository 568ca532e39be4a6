from datetime import datetime, timedelta, timezone

import pytest

from code_finder.config import Settings
from code_finder.datasources.base import RawHit, RepositoryMetadata


def make_hit(repo: str, path: str = "src/sort.py") -> RawHit:
    return RawHit(
        {
            "repo_full_name": repo,
            "file_path": path,
            "file_url": f"https://github.com/{repo}/blob/main/{path}",
        }
    )


def make_metadata(stars: int, days_ago: int = 1, default_branch: str | None = None) -> RepositoryMetadata:
    updated = datetime.now(timezone.utc) - timedelta(days=days_ago)
    return RepositoryMetadata(
        {
            "stars": stars,
            "last_updated": updated.isoformat().replace("+00:00", "Z"),
            "default_branch": default_branch,
            "available": True,
        }
    )


class FakeGitHub:
    """In-memory stand-in for the search, metadata and content providers."""

    def __init__(self, hits=None, metadata=None, contents=None, search_error=None):
        self.hits = list(hits or [])
        # repo -> RepositoryMetadata, or an exception to raise
        self.metadata = metadata or {}
        # (repo, path, ref) -> text
        self.contents = contents or {}
        self.search_error = search_error
        self.search_calls = []
        self.metadata_calls = []
        self.content_calls = []

    async def search_code(self, query, per_page=10, sort="indexed", order="desc"):
        self.search_calls.append({"query": query, "per_page": per_page, "sort": sort, "order": order})
        if self.search_error is not None:
            raise self.search_error
        return list(self.hits)

    async def get_metadata(self, repo_full_name):
        self.metadata_calls.append(repo_full_name)
        value = self.metadata.get(repo_full_name)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return RepositoryMetadata.unavailable()
        return value

    async def get_content(self, repo_full_name, path, ref):
        self.content_calls.append((repo_full_name, path, ref))
        return self.contents.get((repo_full_name, path, ref))


@pytest.fixture
def settings():
    return Settings(GITHUB_TOKEN="test-token", FETCH_CONCURRENCY=1)
