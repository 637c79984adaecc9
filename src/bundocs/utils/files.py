"""Utility helpers for working with files."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Iterator

from bundocs.errors import BundocsError

MARKDOWN_SUFFIXES = (".md", ".mdx")


class DocumentTooLargeError(BundocsError):
    """A document exceeds the configured read guard."""

    def __init__(self, path: Path, size: int, limit: int) -> None:
        super().__init__(f"{path} is {size} bytes (limit {limit})")
        self.path = path
        self.size = size
        self.limit = limit


def iter_markdown_paths(root: Path, *, recursive: bool = True) -> Iterator[Path]:
    """Yield markdown files under ``root`` in sorted order."""
    if not root.is_dir():
        return
    candidates = root.rglob("*") if recursive else root.iterdir()
    for path in sorted(candidates):
        if path.is_file() and path.suffix.lower() == ".md":
            yield path


def iter_subdirectories(root: Path) -> Iterator[Path]:
    """Yield every directory below ``root`` (excluding ``root``) in sorted order."""
    if not root.is_dir():
        return
    yield from sorted(path for path in root.rglob("*") if path.is_dir())


def guess_mime_type(path: Path) -> str:
    if path.suffix.lower() in MARKDOWN_SUFFIXES:
        return "text/markdown"
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "text/plain"


def read_document(path: Path, *, max_bytes: int | None = None) -> str:
    """Read a document as UTF-8 text without newline translation.

    Raises :class:`DocumentTooLargeError` when the file exceeds ``max_bytes``
    and :class:`UnicodeDecodeError` when it is not valid UTF-8.
    """
    if max_bytes is not None:
        size = path.stat().st_size
        if size > max_bytes:
            raise DocumentTooLargeError(path, size, max_bytes)
    return path.read_bytes().decode("utf-8")
