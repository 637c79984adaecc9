"""Application configuration defaults."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from bundocs.errors import VersionDetectionError

LOGGER = logging.getLogger(__name__)

DEFAULT_REPO_URL = "https://github.com/oven-sh/bun.git"
DEFAULT_SCHEME = "buncument"
DEFAULT_SEARCH_LIMIT = 30

_VERSION_RE = re.compile(r"^v?(\d+\.\d+\.\d+\S*)$")


def _get_default_cache_root() -> Path:
    return Path.home() / ".cache" / "bundocs"


def detect_bun_version() -> str:
    """Ask the installed ``bun`` binary for its version."""
    try:
        result = subprocess.run(
            ["bun", "--version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except FileNotFoundError as exc:
        raise VersionDetectionError(
            "bun executable not found; pass --bun-version or set BUNDOCS_BUN_VERSION"
        ) from exc
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        raise VersionDetectionError(f"Unable to run 'bun --version': {exc}") from exc

    match = _VERSION_RE.match(result.stdout.strip())
    if match is None:
        raise VersionDetectionError(f"Unexpected bun version output: {result.stdout!r}")
    return match.group(1)


@dataclass(slots=True)
class AppConfig:
    cache_root: Path | None = None
    local_docs_dir: Path = Path("node_modules/bun-types/docs")
    repo_url: str = DEFAULT_REPO_URL
    tag_template: str = "bun-v{version}"
    docs_subdir: str = "docs"
    manifest_names: tuple[str, ...] = ("nav.json", "nav.ts")
    guides_dir: str = "guides"
    ecosystem_dir: str = "ecosystem"
    directory_metadata_name: str = "index.json"
    preview_chars: int = 100
    max_document_bytes: int = 2 * 1024 * 1024
    search_limit: int = DEFAULT_SEARCH_LIMIT
    scheme: str = DEFAULT_SCHEME

    def __post_init__(self) -> None:
        if self.cache_root is None:
            self.cache_root = _get_default_cache_root()

    def resolve_cache_root(self) -> Path:
        if self.cache_root is None:
            self.cache_root = _get_default_cache_root()
        return Path(self.cache_root).expanduser()

    def cache_dir_for(self, version: str) -> Path:
        return self.resolve_cache_root() / version / self.docs_subdir

    def resolve_local_docs_dir(self, base_dir: Path | None = None) -> Path:
        path = Path(self.local_docs_dir).expanduser()
        if path.is_absolute() or base_dir is None:
            return path
        return base_dir / path

    def find_manifest(self, corpus_dir: Path) -> Path | None:
        """Return the first manifest file present in ``corpus_dir``."""
        for name in self.manifest_names:
            candidate = corpus_dir / name
            if candidate.is_file():
                return candidate
        return None
