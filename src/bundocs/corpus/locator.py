"""Resolve the documentation directory for the running Bun version."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import List

from bundocs.config import AppConfig
from bundocs.corpus.fetch import DocsFetcher, GitDocsFetcher
from bundocs.errors import CorpusNotFoundError, FetchError, IncompatibleCorpusError
from bundocs.models import CorpusLocation

LOGGER = logging.getLogger(__name__)

_RELEASE_RE = re.compile(r"^\d+\.\d+\.\d+")


def version_candidates(version: str) -> List[str]:
    """Progressively shorter forms of ``version`` to try as release tags.

    ``1.2.3-canary.4+abc`` yields the exact string, the string without build
    metadata and finally the bare release ``1.2.3``.
    """
    candidates = [version]
    without_build = version.split("+", 1)[0]
    candidates.append(without_build)
    release = _RELEASE_RE.match(without_build)
    if release:
        candidates.append(release.group(0))
    return list(dict.fromkeys(candidate for candidate in candidates if candidate))


class CorpusLocator:
    """Finds a local documentation tree or downloads one into the cache."""

    def __init__(
        self,
        config: AppConfig,
        fetcher: DocsFetcher | None = None,
        *,
        base_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or GitDocsFetcher(
            config.repo_url,
            tag_template=config.tag_template,
            docs_subdir=config.docs_subdir,
        )
        self.base_dir = base_dir

    def locate(self, version: str) -> CorpusLocation:
        local_dir = self.config.resolve_local_docs_dir(self.base_dir or Path.cwd())
        if local_dir.is_dir():
            if self.config.find_manifest(local_dir) is not None:
                LOGGER.debug("Using local documentation at %s", local_dir)
                return CorpusLocation(path=local_dir.resolve(), version=version, source="local")
            LOGGER.warning("Ignoring %s: no navigation manifest found", local_dir)

        cache_dir = self.config.cache_dir_for(version)
        if self.config.find_manifest(cache_dir) is None:
            if cache_dir.exists():
                LOGGER.warning("Navigation manifest missing in %s, re-downloading docs", cache_dir)
                shutil.rmtree(cache_dir)
            self._fetch(version, cache_dir)
            if self.config.find_manifest(cache_dir) is None:
                raise IncompatibleCorpusError(version, str(cache_dir))

        return CorpusLocation(path=cache_dir.resolve(), version=version, source="cache")

    def _fetch(self, version: str, target: Path) -> None:
        last_error: FetchError | None = None
        for candidate in version_candidates(version):
            try:
                self.fetcher.fetch(candidate, target)
            except FetchError as exc:
                LOGGER.warning("Fetching docs for %s failed: %s", candidate, exc)
                last_error = exc
                continue
            if candidate != version:
                LOGGER.info("Using documentation of %s for Bun %s", candidate, version)
            return
        raise CorpusNotFoundError(
            f"No documentation available for Bun {version}: {last_error}"
        ) from last_error
