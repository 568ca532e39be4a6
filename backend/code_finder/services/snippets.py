import re
from typing import List, Optional

NO_CONTENT = "No content available"

# keywords too common to anchor a snippet on
STOPWORDS = {"function", "class", "def", "const", "var", "let"}

SMALL_FILE_LINES = 50
HEAD_LINES = 20

_LANGUAGE_QUALIFIER = re.compile(r"language:\S+", re.IGNORECASE)


def clean_query(query: str) -> str:
    """Lower-case the query and drop any ``language:<tag>`` qualifiers."""
    return " ".join(_LANGUAGE_QUALIFIER.sub(" ", query or "").lower().split())


def literal_query(query: str) -> str:
    """The query without language qualifiers, lower-cased, inner spacing kept."""
    return _LANGUAGE_QUALIFIER.sub("", query or "").strip().lower()


def match_terms(query: str) -> List[str]:
    return [term for term in clean_query(query).split() if len(term) > 2 and term not in STOPWORDS]


def extract_relevant_snippet(content: Optional[str], query: str, context_lines: int = 5) -> str:
    """
    Return the lines around the first line matching the query.

    Falls back to the whole query as a literal, then to the whole file for
    small files, then to the head of the file.
    """
    if not content:
        return NO_CONTENT

    lines = content.split("\n")
    lowered = [line.lower() for line in lines]

    terms = match_terms(query)
    match_lines = [i for i, line in enumerate(lowered) if any(term in line for term in terms)]

    if not match_lines:
        whole = literal_query(query)
        if whole:
            match_lines = [i for i, line in enumerate(lowered) if whole in line]

    if not match_lines:
        if len(lines) <= SMALL_FILE_LINES:
            return content
        return "\n".join(lines[:HEAD_LINES])

    first = match_lines[0]
    context = max(context_lines, 0)
    start = max(0, first - context)
    end = min(len(lines), first + context + 1)
    return "\n".join(lines[start:end])
