from typing import Optional


class CodeFinderError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class InvalidRequest(CodeFinderError):
    status_code = 400
    message = "Invalid request"


class UpstreamAuthError(CodeFinderError):
    status_code = 401
    message = "GitHub API authentication failed"


class UpstreamRateLimited(CodeFinderError):
    status_code = 429
    message = "GitHub API rate limit exceeded. Please try again later."


class UpstreamError(CodeFinderError):
    """GitHub failed in a way that is neither auth nor rate limiting."""

    status_code = 500
    message = "GitHub API error"
