from typing import Iterable

from ..schemas import ScoredResult

EXPORT_FILENAME = "github-code-search-results.txt"

_RULE = "----------------------"


def format_results_as_text(results: Iterable[ScoredResult]) -> str:
    """Render a result set as the downloadable plain-text report."""
    parts = ["GitHub Code Search Results\n", "========================\n\n"]
    for index, result in enumerate(results, start=1):
        parts.append(f"Result #{index} - Score: {result.match_score:.2f}\n")
        parts.append(f"[Repository: {result.repo_name}] ({result.stars}⭐)\n")
        parts.append(f"File: {result.file_path}\n")
        parts.append(f"URL: {result.file_url}\n")
        parts.append(f"Last updated: {result.last_updated}\n")
        parts.append(f"Language: {result.language}\n")
        parts.append(f"{_RULE}\n")
        parts.append(f"{result.code_snippet}\n")
        parts.append(f"{_RULE}\n\n")
    return "".join(parts)
