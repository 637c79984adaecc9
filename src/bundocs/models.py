"""Core bundocs data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Origin = Literal["manifest", "guide", "ecosystem"]


@dataclass(frozen=True, slots=True)
class CorpusLocation:
    """Resolved documentation directory for one Bun version."""

    path: Path
    version: str
    source: Literal["local", "cache"]


@dataclass(frozen=True, slots=True)
class IndexedResource:
    """One addressable unit of the documentation index."""

    uri: str
    slug: str
    name: str
    description: str
    mime_type: str
    is_directory: bool = False
    file_path: Path | None = None
    origin: Origin = "manifest"

    def to_listing(self) -> dict[str, str]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


@dataclass(slots=True)
class SearchResult:
    uri: str
    match_count: int

    def to_dict(self) -> dict[str, object]:
        return {"uri": self.uri, "matchCount": self.match_count}
