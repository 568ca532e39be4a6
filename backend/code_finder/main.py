import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from pydantic import ValidationError

from .config import get_settings
from .datasources.github_adapter import GitHubAdapter
from .errors import CodeFinderError, InvalidRequest
from .schemas import ErrorResponse, ExportRequest, SearchRequest, SearchResponse
from .services.export import EXPORT_FILENAME, format_results_as_text
from .services.pipeline import SearchPipeline

settings = get_settings()

logger.remove()
logger.add(sys.stderr, level=settings.log_level.upper())

app = FastAPI(title="GitHub Code Finder", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

github = GitHubAdapter(settings)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_pipeline() -> SearchPipeline:
    return SearchPipeline(github, github, github, settings)


def error_body(error: str, details: str | None = None) -> dict:
    return ErrorResponse(error=error, details=details).model_dump(exclude_none=True)


@app.exception_handler(CodeFinderError)
async def handle_code_finder_error(request: Request, exc: CodeFinderError):
    if exc.status_code >= 500:
        logger.error(f"[api] {request.url.path} failed: {exc.message} {exc.details or ''}")
    else:
        logger.warning(f"[api] {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"[api] unexpected error on {request.url.path}")
    details = None if settings.is_production else "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=error_body("Internal Server Error", details))


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidRequest("Invalid JSON body", details=str(exc)) from exc


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search(request: Request, pipeline: SearchPipeline = Depends(get_pipeline)):
    body = SearchRequest.from_payload(await read_json(request))
    logger.info(
        f"[api] search query={body.query!r} language={body.language} "
        f"max_results={body.max_results} min_stars={body.min_stars}"
    )
    results = await pipeline.run(body)
    return SearchResponse(results=results)


@app.post("/export", response_class=PlainTextResponse, responses={400: {"model": ErrorResponse}})
async def export(request: Request):
    try:
        body = ExportRequest.model_validate(await read_json(request))
    except ValidationError as exc:
        raise InvalidRequest("Invalid results payload", details=str(exc)) from exc
    if not body.results:
        raise InvalidRequest("No results to export")
    return PlainTextResponse(
        format_results_as_text(body.results),
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8020)
