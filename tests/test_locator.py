"""Tests for the corpus locator."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from bundocs.config import AppConfig
from bundocs.corpus.locator import CorpusLocator, version_candidates
from bundocs.errors import CorpusNotFoundError, FetchError, IncompatibleCorpusError

from conftest import write


class FakeFetcher:
    """Records fetch calls and writes a manifest for accepted versions."""

    def __init__(self, accept: set[str] | None = None, *, with_manifest: bool = True) -> None:
        self.accept = accept
        self.with_manifest = with_manifest
        self.calls: List[str] = []

    def fetch(self, version: str, target: Path) -> None:
        self.calls.append(version)
        if self.accept is not None and version not in self.accept:
            raise FetchError(f"no tag for {version}")
        target.mkdir(parents=True, exist_ok=True)
        if self.with_manifest:
            write(target / "nav.json", '{"items": []}')


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(cache_root=tmp_path / "cache", local_docs_dir=Path("local-docs"))


class TestVersionCandidates:
    def test_plain_release(self) -> None:
        assert version_candidates("1.1.30") == ["1.1.30"]

    def test_prerelease_with_build_metadata(self) -> None:
        assert version_candidates("1.2.0-canary.5+a1b2c3") == [
            "1.2.0-canary.5+a1b2c3",
            "1.2.0-canary.5",
            "1.2.0",
        ]

    def test_build_metadata_only(self) -> None:
        assert version_candidates("1.2.0+abc") == ["1.2.0+abc", "1.2.0"]


class TestCorpusLocator:
    """Test CorpusLocator.locate."""

    def test_local_directory_wins(self, tmp_path: Path, config: AppConfig) -> None:
        write(tmp_path / "local-docs/nav.ts", "export default { items: [] }")
        fetcher = FakeFetcher()

        location = CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert location.source == "local"
        assert location.path == (tmp_path / "local-docs").resolve()
        assert fetcher.calls == []
        assert not (tmp_path / "cache").exists()

    def test_local_directory_without_manifest_is_ignored(
        self, tmp_path: Path, config: AppConfig
    ) -> None:
        (tmp_path / "local-docs").mkdir()
        fetcher = FakeFetcher()

        location = CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert location.source == "cache"
        assert fetcher.calls == ["1.1.30"]

    def test_cache_hit(self, tmp_path: Path, config: AppConfig) -> None:
        write(tmp_path / "cache/1.1.30/docs/nav.json", '{"items": []}')
        fetcher = FakeFetcher()

        location = CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert location.path == (tmp_path / "cache/1.1.30/docs").resolve()
        assert location.version == "1.1.30"
        assert fetcher.calls == []

    def test_cache_miss_downloads(self, tmp_path: Path, config: AppConfig) -> None:
        fetcher = FakeFetcher()

        location = CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert fetcher.calls == ["1.1.30"]
        assert (location.path / "nav.json").is_file()

    def test_stale_cache_is_replaced(self, tmp_path: Path, config: AppConfig) -> None:
        stale = write(tmp_path / "cache/1.1.30/docs/old.md", "stale")
        fetcher = FakeFetcher()

        CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert fetcher.calls == ["1.1.30"]
        assert not stale.exists()

    def test_manifest_still_missing_is_fatal(self, tmp_path: Path, config: AppConfig) -> None:
        write(tmp_path / "cache/1.1.30/docs/old.md", "stale")
        fetcher = FakeFetcher(with_manifest=False)

        with pytest.raises(IncompatibleCorpusError, match="1.1.30") as excinfo:
            CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.1.30")

        assert fetcher.calls == ["1.1.30"]
        assert excinfo.value.version == "1.1.30"

    def test_falls_back_to_release_version(self, tmp_path: Path, config: AppConfig) -> None:
        fetcher = FakeFetcher(accept={"1.2.0"})

        location = CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.2.0-canary.5+abc")

        assert fetcher.calls == ["1.2.0-canary.5+abc", "1.2.0-canary.5", "1.2.0"]
        assert location.path == (tmp_path / "cache/1.2.0-canary.5+abc/docs").resolve()

    def test_all_candidates_fail(self, tmp_path: Path, config: AppConfig) -> None:
        fetcher = FakeFetcher(accept=set())

        with pytest.raises(CorpusNotFoundError, match="no tag for 1.2.0") as excinfo:
            CorpusLocator(config, fetcher, base_dir=tmp_path).locate("1.2.0+abc")

        assert fetcher.calls == ["1.2.0+abc", "1.2.0"]
        assert isinstance(excinfo.value.__cause__, FetchError)
