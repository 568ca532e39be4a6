from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import InvalidRequest

DEFAULT_MAX_RESULTS = 10
DEFAULT_MIN_STARS = 0
DEFAULT_CONTEXT_LINES = 5


def _coerce_int(value: Any, default: int, minimum: int) -> int:
    # absent, null, non-numeric or out-of-range values fall back to the default
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value)
    except OverflowError:
        return default
    except (TypeError, ValueError):
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default
    return number if number >= minimum else default


class SearchRequest(BaseModel):
    query: str
    language: Optional[str] = None
    max_results: int = DEFAULT_MAX_RESULTS
    min_stars: int = DEFAULT_MIN_STARS
    context_lines: int = DEFAULT_CONTEXT_LINES

    @field_validator("query", mode="before")
    @classmethod
    def _require_query(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Query parameter is required")
        return value.strip()

    @field_validator("language", mode="before")
    @classmethod
    def _blank_language(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    @field_validator("max_results", mode="before")
    @classmethod
    def _max_results(cls, value: Any) -> int:
        return _coerce_int(value, DEFAULT_MAX_RESULTS, minimum=1)

    @field_validator("min_stars", mode="before")
    @classmethod
    def _min_stars(cls, value: Any) -> int:
        return _coerce_int(value, DEFAULT_MIN_STARS, minimum=0)

    @field_validator("context_lines", mode="before")
    @classmethod
    def _context_lines(cls, value: Any) -> int:
        return _coerce_int(value, DEFAULT_CONTEXT_LINES, minimum=0)

    @classmethod
    def from_payload(cls, payload: Any) -> "SearchRequest":
        """Build a request from a decoded JSON body, raising InvalidRequest."""
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")
        query = payload.get("query")
        if not isinstance(query, str) or not query.strip():
            raise InvalidRequest("Query parameter is required")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRequest("Invalid search request", details=str(exc)) from exc

    @property
    def search_query(self) -> str:
        if self.language:
            return f"{self.query} language:{self.language}"
        return self.query


class ScoredResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    repo_name: str
    repo_url: str
    file_path: str
    file_url: str
    code_snippet: str
    stars: int
    last_updated: str  # ISO-8601 or "Unknown"
    language: str
    match_score: float = 0.0


class SearchResponse(BaseModel):
    results: List[ScoredResult]


class ExportRequest(BaseModel):
    results: List[ScoredResult]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
