from typing import List, Optional, Protocol

UNKNOWN_UPDATED = "Unknown"


class RawHit(dict):
    """Lightweight mapping for one unprocessed code search match."""

    repo_full_name: str
    file_path: str
    file_url: str


class RepositoryMetadata(dict):
    """Lightweight mapping to hold the repository fields the scorer needs."""

    stars: int
    last_updated: str
    default_branch: Optional[str]
    available: bool

    @classmethod
    def unavailable(cls) -> "RepositoryMetadata":
        return cls(
            {
                "stars": 0,
                "last_updated": UNKNOWN_UPDATED,
                "default_branch": None,
                "available": False,
            }
        )


class CodeSearchProvider(Protocol):
    async def search_code(
        self, query: str, per_page: int = 10, sort: str | None = "indexed", order: str = "desc"
    ) -> List[RawHit]:
        ...


class MetadataProvider(Protocol):
    async def get_metadata(self, repo_full_name: str) -> RepositoryMetadata:
        ...


class ContentProvider(Protocol):
    async def get_content(self, repo_full_name: str, path: str, ref: str) -> Optional[str]:
        ...
