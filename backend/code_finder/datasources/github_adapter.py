import base64
import binascii
from typing import List, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from ..config import Settings, get_settings
from ..errors import (
    CodeFinderError,
    InvalidRequest,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimited,
)
from .base import UNKNOWN_UPDATED, CodeSearchProvider, ContentProvider, MetadataProvider, RawHit, RepositoryMetadata


def status_error(exc: httpx.HTTPStatusError) -> CodeFinderError:
    """Map a failed GitHub response onto the service error taxonomy."""
    response = exc.response
    status = response.status_code
    body = response.text
    if status == 401:
        return UpstreamAuthError(details=body)
    if status == 429:
        return UpstreamRateLimited(details=body)
    if status == 403:
        if response.headers.get("X-RateLimit-Remaining") == "0" or "rate limit" in body.lower():
            return UpstreamRateLimited(details=body)
        return UpstreamAuthError(details=body)
    if status == 422:
        return InvalidRequest("Invalid search query", details=body)
    return UpstreamError(details=f"GitHub {status}: {body}")


class GitHubAdapter(CodeSearchProvider, MetadataProvider, ContentProvider):
    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "GitHub-Code-Finder",
        }
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        self.headers = headers
        self.timeout = self.settings.github_timeout_seconds
        client_kwargs = {
            "base_url": str(self.settings.github_base_url),
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        elif self.settings.github_proxy:
            # http(s):// and socks5:// proxy URLs are passed through as-is
            client_kwargs["proxy"] = self.settings.github_proxy
        self.client = httpx.AsyncClient(**client_kwargs)

    async def search_code(
        self, query: str, per_page: int = 10, sort: str | None = "indexed", order: str = "desc"
    ) -> List[RawHit]:
        if not self.settings.github_token:
            # code search is not available to anonymous clients
            raise UpstreamAuthError("GitHub token not configured", details="Set GITHUB_TOKEN to enable code search")
        params = {"q": query, "per_page": per_page}
        if sort:
            params["sort"] = sort
            params["order"] = order
        try:
            resp = await self.client.get("/search/code", params=params, headers=self.headers, timeout=self.timeout)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(f"[github] code search failed with {exc.response.status_code}")
            raise status_error(exc) from exc
        except httpx.RequestError as exc:
            raise UpstreamError(details=f"GitHub request error: {type(exc).__name__} {repr(exc)}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(details="GitHub returned a non-JSON search response") from exc
        if not isinstance(data, dict):
            raise UpstreamError(details="GitHub returned an unexpected search response")

        results: List[RawHit] = []
        for item in data.get("items", []):
            full_name = (item.get("repository") or {}).get("full_name")
            if not full_name or not item.get("path"):
                continue
            results.append(
                RawHit(
                    {
                        "repo_full_name": full_name,
                        "file_path": item.get("path"),
                        "file_url": item.get("html_url") or "",
                    }
                )
            )
        return results

    async def get_metadata(self, repo_full_name: str) -> RepositoryMetadata:
        """Fetch stars and last update; never raises, falls back to unavailable defaults."""
        try:
            resp = await self.client.get(f"/repos/{repo_full_name}", headers=self.headers, timeout=self.timeout)
            resp.raise_for_status()
            item = resp.json()
            if not isinstance(item, dict):
                raise ValueError("repository response is not an object")
        except httpx.HTTPStatusError as exc:
            logger.warning(f"[github] repository info for {repo_full_name} failed: {exc.response.status_code}")
            return RepositoryMetadata.unavailable()
        except (httpx.RequestError, ValueError) as exc:
            logger.warning(f"[github] repository info for {repo_full_name} failed: {type(exc).__name__}")
            return RepositoryMetadata.unavailable()

        return RepositoryMetadata(
            {
                "stars": item.get("stargazers_count") or 0,
                "last_updated": item.get("updated_at") or UNKNOWN_UPDATED,
                "default_branch": item.get("default_branch"),
                "available": True,
            }
        )

    async def get_content(self, repo_full_name: str, path: str, ref: str) -> Optional[str]:
        """Return the decoded text of a file at ``ref``, or None if it cannot be read."""
        try:
            resp = await self.client.get(
                f"/repos/{repo_full_name}/contents/{quote(path)}",
                params={"ref": ref},
                headers=self.headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.debug(f"[github] contents {repo_full_name}/{path}@{ref}: {exc.response.status_code}")
            return None
        except (httpx.RequestError, ValueError) as exc:
            logger.warning(f"[github] contents {repo_full_name}/{path}@{ref}: {type(exc).__name__}")
            return None

        # directories come back as a list
        if not isinstance(data, dict) or data.get("encoding") != "base64" or not data.get("content"):
            return None
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            logger.debug(f"[github] contents {repo_full_name}/{path}@{ref} is not UTF-8 text")
            return None
