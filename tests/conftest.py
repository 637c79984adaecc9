"""Shared fixtures: a small Bun-style documentation tree on disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundocs.config import AppConfig
from bundocs.index.builder import DocumentIndex, IndexBuilder

NAV_ITEMS = [
    {"type": "divider", "title": "Intro"},
    {"type": "page", "slug": "index", "title": "What is Bun?", "description": "Bun is an all-in-one toolkit."},
    {"type": "divider", "title": "APIs"},
    {"type": "page", "slug": "api/websockets", "title": "WebSockets"},
    {"type": "page", "slug": "api/sqlite", "title": "SQLite", "description": "Use bun:sqlite"},
    {"type": "page", "slug": "old-api", "title": "Old API", "href": "https://example.com"},
    {"type": "page", "slug": "api/disabled", "title": "Hidden", "disabled": True},
    {"type": "page", "slug": "api/missing", "title": "Missing"},
    {"type": "page", "slug": "runtime", "title": "Runtime"},
]


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    write(root / "nav.json", json.dumps({"items": NAV_ITEMS}))
    write(root / "index.md", "# What is Bun?\nBun is an all-in-one toolkit.\n")
    write(root / "api/websockets.md", "# WebSockets\nUse Bun.serve...")
    write(root / "api/sqlite.md", "# SQLite\nbun:sqlite is fast.\n")
    write(root / "api/disabled.md", "# Hidden\nWebSocket internals\n")
    write(root / "runtime/index.md", "# Runtime\nThe Bun runtime.\n")

    write(root / "guides/http/index.json", json.dumps({"name": "HTTP", "description": "HTTP guides"}))
    write(
        root / "guides/http/server.md",
        "---\nname: Write a simple HTTP server\ndescription: Use Bun.serve\n---\n\nStart a WebSocket server.\n",
    )
    write(root / "guides/http/nested/deep.md", "# Deep guide\ntext\n")
    write(root / "guides/read-file.md", "\n\n# Read a file\nUse Bun.file to read files.\n")

    write(root / "ecosystem/react.md", "Bun supports JSX and React out of the box.\n")
    write(root / "ecosystem/hono-server.md", "# Hono\nHono works with Bun.serve.\n")
    write(root / "ecosystem/sub/ignored.md", "# Not indexed\n")
    return root


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def index(docs_dir: Path, config: AppConfig) -> DocumentIndex:
    return IndexBuilder(config).build(docs_dir)
