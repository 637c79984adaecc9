"""Download Bun documentation for a release tag with a sparse git checkout."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

from bundocs.config import DEFAULT_REPO_URL
from bundocs.errors import FetchError

LOGGER = logging.getLogger(__name__)


class DocsFetcher(Protocol):
    def fetch(self, version: str, target: Path) -> None:
        """Populate ``target`` with the documentation of ``version`` or raise FetchError."""


class GitDocsFetcher:
    """Fetches the ``docs/`` subtree of a tagged release.

    The checkout happens in a private temporary directory beside ``target``
    and is moved into place only once complete, so ``target`` is either fully
    populated or untouched.
    """

    def __init__(
        self,
        repo_url: str = DEFAULT_REPO_URL,
        *,
        tag_template: str = "bun-v{version}",
        docs_subdir: str = "docs",
        git: str = "git",
    ) -> None:
        self.repo_url = repo_url
        self.tag_template = tag_template
        self.docs_subdir = docs_subdir
        self.git = git

    def tag_for(self, version: str) -> str:
        return self.tag_template.format(version=version)

    def fetch(self, version: str, target: Path) -> None:
        tag = self.tag_for(version)
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_dir = Path(tempfile.mkdtemp(prefix=".tmp-", dir=target.parent))
        checkout = temp_dir / "repo"
        try:
            LOGGER.info("Downloading Bun documents for %s", tag)
            self._run(
                [
                    self.git,
                    "clone",
                    "--filter=blob:none",
                    "--sparse",
                    "--depth",
                    "1",
                    "--branch",
                    tag,
                    self.repo_url,
                    str(checkout),
                ]
            )
            self._run([self.git, "sparse-checkout", "set", self.docs_subdir], cwd=checkout)

            source = checkout / self.docs_subdir
            if not source.is_dir():
                raise FetchError(f"Documentation not found in tag {tag}")

            if target.exists():
                shutil.rmtree(target)
            os.replace(source, target)
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def _run(self, command: Sequence[str], cwd: Path | None = None) -> None:
        try:
            subprocess.run(
                list(command),
                cwd=cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as exc:
            raise FetchError(f"{self.git} executable not found") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise FetchError(f"Failed to download docs: {detail}") from exc
