"""Tests for the navigation index builder."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundocs.config import AppConfig
from bundocs.errors import ManifestError
from bundocs.index.builder import DocumentIndex, IndexBuilder

from conftest import write


def _slugs(resources) -> list[str]:
    return [resource.slug for resource in resources]


class TestManifestIngestion:
    """Step 1: pages from the navigation manifest."""

    def test_indexes_backed_pages(self, index: DocumentIndex, docs_dir: Path) -> None:
        resource = index.get("api/websockets")

        assert resource is not None
        assert resource.uri == "buncument://api/websockets"
        assert resource.name == "WebSockets"
        assert resource.mime_type == "text/markdown"
        assert resource.file_path == docs_dir / "api/websockets.md"
        assert resource.origin == "manifest"

    def test_falls_back_to_index_md(self, index: DocumentIndex, docs_dir: Path) -> None:
        resource = index.get("runtime")

        assert resource is not None
        assert resource.file_path == docs_dir / "runtime/index.md"

    def test_description_composition(self, index: DocumentIndex) -> None:
        assert index.get("index").description == "Intro / Bun is an all-in-one toolkit."
        assert index.get("api/websockets").description == "APIs"
        assert index.get("api/sqlite").description == "APIs / Use bun:sqlite"

    def test_description_without_section(self, tmp_path: Path) -> None:
        write(tmp_path / "nav.json", json.dumps({"items": [
            {"type": "page", "slug": "a", "title": "A", "description": "Only page"},
            {"type": "page", "slug": "b", "title": "B"},
        ]}))
        write(tmp_path / "a.md", "a")
        write(tmp_path / "b.md", "b")

        index = IndexBuilder().build(tmp_path)

        assert index.get("a").description == "Only page"
        assert index.get("b").description == ""

    def test_skips_disabled_external_and_missing(self, index: DocumentIndex) -> None:
        assert index.get("api/disabled") is None
        assert index.get("old-api") is None
        assert index.get("api/missing") is None

        assert index.stats.disabled == 1
        assert index.stats.external == 1
        assert index.stats.missing == ["api/missing"]
        assert index.stats.indexed == 4

    def test_remembers_unavailable_pages(self, index: DocumentIndex) -> None:
        assert index.unavailable_reason("api/disabled") == "[Page disabled: Hidden]"
        assert index.unavailable_reason("old-api") == "[External link: https://example.com]"
        assert index.unavailable_reason("api/websockets") is None

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="No navigation manifest"):
            IndexBuilder().build(tmp_path)

    def test_malformed_manifest_is_fatal(self, tmp_path: Path) -> None:
        write(tmp_path / "nav.json", "[1, 2")

        with pytest.raises(ManifestError):
            IndexBuilder().build(tmp_path)


class TestGuideCrawl:
    """Step 2: the recursive guides subtree."""

    def test_root_placeholder(self, index: DocumentIndex) -> None:
        guides = index.get("guides")

        assert guides is not None
        assert guides.is_directory
        assert guides.file_path is None
        assert guides.mime_type == "application/json"
        assert guides.name == "Guides"

    def test_directory_metadata(self, index: DocumentIndex) -> None:
        http = index.get("guides/http")
        nested = index.get("guides/http/nested")

        assert (http.name, http.description) == ("HTTP", "HTTP guides")
        assert (nested.name, nested.description) == ("nested", "Directory")
        assert nested.is_directory

    def test_front_matter_overrides(self, index: DocumentIndex) -> None:
        server = index.get("guides/http/server")

        assert server.name == "Write a simple HTTP server"
        assert server.description == "Use Bun.serve"
        assert server.is_directory is False

    def test_first_line_fallback(self, index: DocumentIndex) -> None:
        deep = index.get("guides/http/nested/deep")
        read_file = index.get("guides/read-file")

        assert (deep.name, deep.description) == ("deep", "# Deep guide")
        assert (read_file.name, read_file.description) == ("read-file", "# Read a file")

    def test_preview_is_truncated(self, docs_dir: Path) -> None:
        index = IndexBuilder(AppConfig(preview_chars=6)).build(docs_dir)

        assert index.get("guides/read-file").description == "# Read"
        assert index.get("ecosystem/react").description == "Bun su"

    def test_bad_directory_metadata_is_ignored(self, docs_dir: Path) -> None:
        write(docs_dir / "guides/http/index.json", "{broken")

        index = IndexBuilder().build(docs_dir)

        assert index.get("guides/http").name == "http"

    def test_no_guides_directory(self, tmp_path: Path) -> None:
        write(tmp_path / "nav.json", '{"items": []}')

        index = IndexBuilder().build(tmp_path)

        assert len(index) == 0
        assert index.guides_slug is None


class TestEcosystemCrawl:
    """Step 3: the flat ecosystem subtree."""

    def test_flat_entries(self, index: DocumentIndex) -> None:
        hono = index.get("ecosystem/hono-server")

        assert hono.name == "Hono Server"
        assert hono.description == "# Hono"
        assert hono.origin == "ecosystem"
        assert index.get("ecosystem/sub/ignored") is None


class TestPrecedence:
    def test_manifest_wins_over_crawl(self, docs_dir: Path) -> None:
        nav = json.loads((docs_dir / "nav.json").read_text())
        nav["items"].append({"type": "page", "slug": "ecosystem/react", "title": "React (manifest)"})
        write(docs_dir / "nav.json", json.dumps(nav))

        index = IndexBuilder().build(docs_dir)

        react = index.get("ecosystem/react")
        assert react.name == "React (manifest)"
        assert react.origin == "manifest"


class TestDocumentIndex:
    """Query helpers on the built index."""

    def test_root_entries(self, index: DocumentIndex) -> None:
        assert _slugs(index.root_entries()) == [
            "index",
            "api/websockets",
            "api/sqlite",
            "runtime",
            "guides",
            "ecosystem/hono-server",
            "ecosystem/react",
        ]

    def test_children_are_direct_and_sorted(self, index: DocumentIndex) -> None:
        assert _slugs(index.children("guides")) == ["guides/http", "guides/read-file"]
        assert _slugs(index.children("guides/http")) == ["guides/http/nested", "guides/http/server"]

    def test_documents_exclude_directories(self, index: DocumentIndex) -> None:
        assert all(not resource.is_directory for resource in index.documents())
        assert "guides/http/server" in _slugs(index.documents())

    def test_uri_helpers(self, index: DocumentIndex) -> None:
        assert index.uri_for("api/sqlite") == "buncument://api/sqlite"
        assert index.slug_for("buncument://api/sqlite") == "api/sqlite"
        assert index.slug_for("api/sqlite") == "api/sqlite"
        assert "buncument://api/sqlite" in index

    def test_index_is_read_only(self, index: DocumentIndex) -> None:
        with pytest.raises(TypeError):
            index._resources["buncument://x"] = None  # type: ignore[index]
