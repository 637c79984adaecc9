"""Build the in-memory documentation index."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping

from bundocs.config import AppConfig
from bundocs.errors import ManifestError
from bundocs.index.manifest import NavigationManifest, NavPage, load_manifest
from bundocs.models import IndexedResource
from bundocs.utils.files import (
    DocumentTooLargeError,
    guess_mime_type,
    iter_markdown_paths,
    iter_subdirectories,
    read_document,
)
from bundocs.utils.text import preview, split_front_matter, titlecase_stem

LOGGER = logging.getLogger(__name__)

DIRECTORY_MIME_TYPE = "application/json"
DIRECTORY_LABEL = "Directory"


@dataclass(slots=True)
class BuildStats:
    indexed: int = 0
    disabled: int = 0
    external: int = 0
    missing: List[str] = field(default_factory=list)


class DocumentIndex:
    """Immutable mapping of URI to :class:`IndexedResource`."""

    def __init__(
        self,
        resources: Mapping[str, IndexedResource],
        *,
        scheme: str,
        corpus_dir: Path,
        unavailable: Mapping[str, str] | None = None,
        guides_slug: str | None = None,
        stats: BuildStats | None = None,
    ) -> None:
        self._resources = MappingProxyType(dict(resources))
        self._unavailable = MappingProxyType(dict(unavailable or {}))
        self.scheme = scheme
        self.corpus_dir = corpus_dir
        self.guides_slug = guides_slug
        self.stats = stats or BuildStats()

    @property
    def prefix(self) -> str:
        return f"{self.scheme}://"

    def uri_for(self, slug: str) -> str:
        return f"{self.prefix}{slug}"

    def slug_for(self, uri: str) -> str:
        return uri[len(self.prefix) :] if uri.startswith(self.prefix) else uri

    def get(self, slug: str) -> IndexedResource | None:
        return self._resources.get(self.uri_for(slug))

    def unavailable_reason(self, slug: str) -> str | None:
        """Message for pages known to the manifest but not served locally."""
        return self._unavailable.get(slug)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[IndexedResource]:
        return iter(self._resources.values())

    def __contains__(self, uri: object) -> bool:
        return uri in self._resources

    def documents(self) -> List[IndexedResource]:
        return [resource for resource in self if not resource.is_directory]

    def is_root_visible(self, resource: IndexedResource) -> bool:
        if resource.origin == "guide":
            return resource.slug == self.guides_slug
        return True

    def root_entries(self) -> List[IndexedResource]:
        return [resource for resource in self if self.is_root_visible(resource)]

    def children(self, slug: str) -> List[IndexedResource]:
        """Entries exactly one path segment below ``slug``, ordered by key."""
        prefix = f"{slug}/"
        matches = [
            resource
            for resource in self
            if resource.slug.startswith(prefix) and "/" not in resource.slug[len(prefix) :]
        ]
        return sorted(matches, key=lambda resource: resource.uri)


class IndexBuilder:
    """Combines the navigation manifest with the guide and ecosystem trees."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()

    def build(self, corpus_dir: Path) -> DocumentIndex:
        manifest_path = self.config.find_manifest(corpus_dir)
        if manifest_path is None:
            raise ManifestError(f"No navigation manifest in {corpus_dir}")
        manifest = load_manifest(manifest_path)

        resources: Dict[str, IndexedResource] = {}
        unavailable: Dict[str, str] = {}
        stats = BuildStats()

        self._ingest_manifest(manifest, corpus_dir, resources, unavailable, stats)
        guides_slug = self._crawl_guides(corpus_dir, resources)
        self._crawl_ecosystem(corpus_dir, resources)

        if stats.missing:
            LOGGER.warning(
                "%d manifest pages have no backing file: %s",
                len(stats.missing),
                ", ".join(stats.missing),
            )
        LOGGER.info(
            "Indexed %d resources from %s (%d pages, %d disabled, %d external)",
            len(resources),
            corpus_dir,
            stats.indexed,
            stats.disabled,
            stats.external,
        )
        return DocumentIndex(
            resources,
            scheme=self.config.scheme,
            corpus_dir=corpus_dir,
            unavailable=unavailable,
            guides_slug=guides_slug,
            stats=stats,
        )

    def _uri(self, slug: str) -> str:
        return f"{self.config.scheme}://{slug}"

    def _insert(self, resources: Dict[str, IndexedResource], resource: IndexedResource) -> None:
        existing = resources.setdefault(resource.uri, resource)
        if existing is not resource:
            LOGGER.debug("Keeping %s entry for %s", existing.origin, resource.uri)

    def _ingest_manifest(
        self,
        manifest: NavigationManifest,
        corpus_dir: Path,
        resources: Dict[str, IndexedResource],
        unavailable: Dict[str, str],
        stats: BuildStats,
    ) -> None:
        for section, page in manifest.pages():
            if page.disabled:
                stats.disabled += 1
                unavailable[page.slug] = f"[Page disabled: {page.title}]"
                continue
            if page.href:
                stats.external += 1
                unavailable[page.slug] = f"[External link: {page.href}]"
                continue

            file_path = self._page_file(corpus_dir, page)
            if file_path is None:
                stats.missing.append(page.slug)
                continue

            stats.indexed += 1
            self._insert(
                resources,
                IndexedResource(
                    uri=self._uri(page.slug),
                    slug=page.slug,
                    name=page.title,
                    description=_compose_description(section, page.description or ""),
                    mime_type="text/markdown",
                    file_path=file_path,
                    origin="manifest",
                ),
            )

    @staticmethod
    def _page_file(corpus_dir: Path, page: NavPage) -> Path | None:
        for candidate in (corpus_dir / f"{page.slug}.md", corpus_dir / page.slug / "index.md"):
            if candidate.is_file():
                return candidate
        return None

    def _crawl_guides(self, corpus_dir: Path, resources: Dict[str, IndexedResource]) -> str | None:
        root = corpus_dir / self.config.guides_dir
        if not root.is_dir():
            return None

        root_slug = self.config.guides_dir
        self._insert(resources, self._directory_resource(root, root_slug, default_name="Guides"))

        for directory in iter_subdirectories(root):
            slug = f"{root_slug}/{directory.relative_to(root).as_posix()}"
            self._insert(resources, self._directory_resource(directory, slug))

        for path in iter_markdown_paths(root):
            slug = f"{root_slug}/{path.relative_to(root).with_suffix('').as_posix()}"
            try:
                text = read_document(path, max_bytes=self.config.max_document_bytes)
            except (OSError, UnicodeDecodeError, DocumentTooLargeError) as exc:
                LOGGER.warning("Skipping guide %s: %s", path, exc)
                continue
            front_matter, body = split_front_matter(text)
            self._insert(
                resources,
                IndexedResource(
                    uri=self._uri(slug),
                    slug=slug,
                    name=front_matter.get("name") or path.stem,
                    description=front_matter.get("description")
                    or preview(body, max_chars=self.config.preview_chars),
                    mime_type=guess_mime_type(path),
                    file_path=path,
                    origin="guide",
                ),
            )
        return root_slug

    def _directory_resource(
        self, directory: Path, slug: str, *, default_name: str | None = None
    ) -> IndexedResource:
        name = default_name or directory.name
        description = DIRECTORY_LABEL
        metadata_path = directory / self.config.directory_metadata_name
        if metadata_path.is_file():
            try:
                metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                LOGGER.warning("Ignoring unreadable %s: %s", metadata_path, exc)
            else:
                if isinstance(metadata, dict):
                    name = str(metadata.get("name") or name)
                    description = str(metadata.get("description") or description)
        return IndexedResource(
            uri=self._uri(slug),
            slug=slug,
            name=name,
            description=description,
            mime_type=DIRECTORY_MIME_TYPE,
            is_directory=True,
            origin="guide",
        )

    def _crawl_ecosystem(self, corpus_dir: Path, resources: Dict[str, IndexedResource]) -> None:
        root = corpus_dir / self.config.ecosystem_dir
        for path in iter_markdown_paths(root, recursive=False):
            slug = f"{self.config.ecosystem_dir}/{path.stem}"
            try:
                text = read_document(path, max_bytes=self.config.max_document_bytes)
            except (OSError, UnicodeDecodeError, DocumentTooLargeError) as exc:
                LOGGER.warning("Skipping ecosystem page %s: %s", path, exc)
                continue
            self._insert(
                resources,
                IndexedResource(
                    uri=self._uri(slug),
                    slug=slug,
                    name=titlecase_stem(path.stem),
                    description=preview(text, max_chars=self.config.preview_chars),
                    mime_type=guess_mime_type(path),
                    file_path=path,
                    origin="ecosystem",
                ),
            )


def _compose_description(section: str, description: str) -> str:
    if section and description:
        return f"{section} / {description}"
    return description or section
