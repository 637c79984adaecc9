"""Resolve addressable paths to directory listings or document contents."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Literal, Tuple, Union

from bundocs.index.builder import DIRECTORY_MIME_TYPE, DocumentIndex
from bundocs.models import IndexedResource
from bundocs.utils.files import DocumentTooLargeError, read_document
from bundocs.utils.text import normalize_path

LOGGER = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"

NotFoundKind = Literal["missing", "disabled", "external", "too_large", "unreadable"]


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    path: str
    entries: Tuple[IndexedResource, ...]

    def render(self) -> Tuple[str, str]:
        payload = {"path": self.path, "entries": [entry.to_listing() for entry in self.entries]}
        return DIRECTORY_MIME_TYPE, json.dumps(payload, indent=2)


@dataclass(frozen=True, slots=True)
class Document:
    resource: IndexedResource
    text: str

    @property
    def mime_type(self) -> str:
        return self.resource.mime_type

    def render(self) -> Tuple[str, str]:
        return self.mime_type, self.text


@dataclass(frozen=True, slots=True)
class NotFound:
    path: str
    reason: str
    kind: NotFoundKind = "missing"

    def render(self) -> Tuple[str, str]:
        return "text/plain", self.reason


ReadResult = Union[DirectoryListing, Document, NotFound]


class ResourceResolver:
    """Answers browse and read requests against a built index."""

    def __init__(self, index: DocumentIndex, *, max_document_bytes: int | None = None) -> None:
        self.index = index
        self.max_document_bytes = max_document_bytes

    def resolve(self, path: str) -> ReadResult:
        slug = normalize_path(self.index.slug_for(path))
        if not slug:
            return DirectoryListing(path="", entries=tuple(self.index.root_entries()))

        resource = self._lookup(slug)
        if resource is None:
            return self._not_found(slug)
        if resource.is_directory:
            return DirectoryListing(path=resource.slug, entries=tuple(self.index.children(resource.slug)))
        return self._read(resource)

    def _lookup(self, slug: str) -> IndexedResource | None:
        resource = self.index.get(slug)
        if resource is None and slug.endswith(DOCUMENT_SUFFIX):
            resource = self.index.get(slug[: -len(DOCUMENT_SUFFIX)])
        return resource

    def _not_found(self, slug: str) -> NotFound:
        base = slug[: -len(DOCUMENT_SUFFIX)] if slug.endswith(DOCUMENT_SUFFIX) else slug
        reason = self.index.unavailable_reason(base)
        if reason is None:
            return NotFound(path=slug, reason=f"[Page not found: {slug}]")
        kind: NotFoundKind = "disabled" if reason.startswith("[Page disabled") else "external"
        return NotFound(path=slug, reason=reason, kind=kind)

    def _read(self, resource: IndexedResource) -> ReadResult:
        if resource.file_path is None:
            return NotFound(path=resource.slug, reason=f"[File not found: {resource.slug}]")
        try:
            text = read_document(resource.file_path, max_bytes=self.max_document_bytes)
        except FileNotFoundError:
            return NotFound(path=resource.slug, reason=f"[File not found: {resource.slug}]")
        except DocumentTooLargeError as exc:
            return NotFound(
                path=resource.slug,
                reason=f"[Document too large: {resource.slug} ({exc.size} bytes, limit {exc.limit})]",
                kind="too_large",
            )
        except UnicodeDecodeError:
            return NotFound(
                path=resource.slug,
                reason=f"[Unreadable document: {resource.slug} is not valid UTF-8]",
                kind="unreadable",
            )
        except OSError as exc:
            LOGGER.error("Unable to read %s: %s", resource.file_path, exc)
            return NotFound(path=resource.slug, reason=f"[File error: {exc}]", kind="unreadable")
        return Document(resource=resource, text=text)
