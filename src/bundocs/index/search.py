"""Regular-expression search over indexed documents."""

from __future__ import annotations

import logging
import re
from typing import Iterator, List

from bundocs.config import DEFAULT_SEARCH_LIMIT
from bundocs.errors import InvalidPatternError, InvalidQueryError
from bundocs.index.builder import DocumentIndex
from bundocs.models import IndexedResource, SearchResult
from bundocs.utils.files import DocumentTooLargeError, read_document

LOGGER = logging.getLogger(__name__)

# JavaScript flag letters; ``g`` and ``u`` are always in effect.
FLAG_MAP = {
    "g": 0,
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
}


def normalize_flags(flags: str | None) -> str:
    """Drop unknown flag letters, deduplicate, and force global matching."""
    letters = dict.fromkeys(letter for letter in (flags or "") if letter in FLAG_MAP)
    letters.setdefault("g")
    return "".join(letters)


def compile_pattern(pattern: str | None, flags: str | None = None) -> re.Pattern[str]:
    if pattern is None:
        raise InvalidPatternError("A search pattern is required")
    options = 0
    for letter in normalize_flags(flags):
        options |= FLAG_MAP[letter]
    try:
        return re.compile(pattern, options)
    except re.error as exc:
        raise InvalidPatternError(f"Invalid regular expression: {pattern} ({exc})") from exc


def count_matches(regex: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in regex.finditer(text))


class Searcher:
    """Counts pattern matches per document and ranks by match count."""

    def __init__(self, index: DocumentIndex, *, max_document_bytes: int | None = None) -> None:
        self.index = index
        self.max_document_bytes = max_document_bytes

    def search(
        self,
        pattern: str | None,
        *,
        path: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        flags: str | None = None,
    ) -> List[SearchResult]:
        if limit < 1:
            raise InvalidQueryError(f"limit must be a positive integer, got {limit}")
        regex = compile_pattern(pattern, flags)
        prefix = (path or "").lstrip("/")

        results: List[SearchResult] = []
        for resource in self._candidates(prefix):
            if resource.file_path is None:
                continue
            try:
                text = read_document(resource.file_path, max_bytes=self.max_document_bytes)
            except DocumentTooLargeError as exc:
                LOGGER.debug("Skipping oversized %s: %s", resource.slug, exc)
                continue
            except (OSError, UnicodeDecodeError) as exc:
                LOGGER.debug("Skipping unreadable %s: %s", resource.slug, exc)
                continue
            match_count = count_matches(regex, text)
            if match_count > 0:
                results.append(SearchResult(uri=resource.uri, match_count=match_count))

        results.sort(key=lambda result: result.match_count, reverse=True)
        return results[:limit]

    def _candidates(self, prefix: str) -> Iterator[IndexedResource]:
        for resource in self.index.documents():
            if resource.slug.startswith(prefix):
                yield resource
