import asyncio
from typing import List, Optional

from loguru import logger

from ..config import Settings, get_settings
from ..datasources.base import (
    UNKNOWN_UPDATED,
    CodeSearchProvider,
    ContentProvider,
    MetadataProvider,
    RawHit,
    RepositoryMetadata,
)
from ..schemas import ScoredResult, SearchRequest
from .scoring import compute_score
from .snippets import extract_relevant_snippet

UNKNOWN_LANGUAGE = "Unknown"


class SearchPipeline:
    """
    Turns a search request into a ranked list of scored snippets.

    Hits are enriched in provider order, in batches of ``fetch_concurrency``.
    Once ``max_results`` hits survive filtering, later hits are never looked
    at, so the final ranking only covers the earliest surviving hits.
    """

    def __init__(
        self,
        search_provider: CodeSearchProvider,
        metadata_provider: MetadataProvider,
        content_provider: ContentProvider,
        settings: Optional[Settings] = None,
    ):
        self.search_provider = search_provider
        self.metadata_provider = metadata_provider
        self.content_provider = content_provider
        self.settings = settings or get_settings()

    async def run(self, request: SearchRequest) -> List[ScoredResult]:
        search_query = request.search_query
        per_page = min(request.max_results * 2, self.settings.github_per_page_max)
        logger.info(f"[pipeline] searching for {search_query!r}, per_page={per_page}")

        # errors from the search call itself are fatal to the request
        hits = await self.search_provider.search_code(search_query, per_page=per_page, sort="indexed", order="desc")
        if not hits:
            logger.info("[pipeline] no raw hits")
            return []
        logger.info(f"[pipeline] processing {len(hits)} raw hits")

        results: List[ScoredResult] = []
        batch_size = max(self.settings.fetch_concurrency, 1)
        for start in range(0, len(hits), batch_size):
            batch = hits[start : start + batch_size]
            processed = await asyncio.gather(*(self.process_hit(hit, request) for hit in batch))
            for result in processed:
                if result is None:
                    continue
                results.append(result)
                if len(results) >= request.max_results:
                    break
            if len(results) >= request.max_results:
                break

        # list.sort is stable, ties keep provider order
        results.sort(key=lambda r: r.match_score, reverse=True)
        logger.info(f"[pipeline] returning {len(results)} results")
        return results

    async def process_hit(self, hit: RawHit, request: SearchRequest) -> Optional[ScoredResult]:
        repo_name = hit["repo_full_name"]
        file_path = hit["file_path"]

        metadata = await self.fetch_metadata(repo_name)
        if not metadata.get("available", True) and not self.settings.keep_hits_without_metadata:
            logger.debug(f"[pipeline] skip {repo_name}: metadata unavailable")
            return None
        stars = metadata.get("stars") or 0
        if stars < request.min_stars:
            logger.debug(f"[pipeline] skip {repo_name}: {stars} stars < {request.min_stars}")
            return None

        content = await self.fetch_content(repo_name, file_path, metadata.get("default_branch"))
        if not content:
            logger.debug(f"[pipeline] skip {repo_name}/{file_path}: content not found")
            return None

        draft = ScoredResult(
            repo_name=repo_name,
            repo_url=f"https://github.com/{repo_name}",
            file_path=file_path,
            file_url=hit.get("file_url") or "",
            code_snippet=extract_relevant_snippet(content, request.query, request.context_lines),
            stars=stars,
            last_updated=metadata.get("last_updated") or UNKNOWN_UPDATED,
            language=request.language or UNKNOWN_LANGUAGE,
        )
        return draft.model_copy(update={"match_score": compute_score(draft, request.query)})

    async def fetch_metadata(self, repo_name: str) -> RepositoryMetadata:
        try:
            return await self.metadata_provider.get_metadata(repo_name)
        except Exception as exc:
            logger.warning(f"[pipeline] metadata for {repo_name} failed: {type(exc).__name__}: {exc}")
            return RepositoryMetadata.unavailable()

    def content_refs(self, default_branch: Optional[str]) -> List[str]:
        primary = default_branch or self.settings.primary_ref
        alternate = self.settings.fallback_ref if primary != self.settings.fallback_ref else self.settings.primary_ref
        return [primary] if alternate == primary else [primary, alternate]

    async def fetch_content(self, repo_name: str, file_path: str, default_branch: Optional[str] = None) -> Optional[str]:
        for ref in self.content_refs(default_branch):
            try:
                content = await self.content_provider.get_content(repo_name, file_path, ref)
            except Exception as exc:
                logger.warning(f"[pipeline] contents {repo_name}/{file_path}@{ref} failed: {type(exc).__name__}: {exc}")
                content = None
            if content is not None:
                return content
        return None
