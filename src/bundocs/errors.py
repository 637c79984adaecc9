"""Exception hierarchy for bundocs."""

from __future__ import annotations


class BundocsError(Exception):
    """Base class for all bundocs errors."""


class VersionDetectionError(BundocsError):
    """The Bun version could not be determined."""


class FetchError(BundocsError):
    """Downloading documentation for a version failed."""


class CorpusNotFoundError(BundocsError):
    """No documentation could be obtained for any version candidate."""


class IncompatibleCorpusError(BundocsError):
    """Documentation was fetched but carries no navigation manifest."""

    def __init__(self, version: str, directory: str) -> None:
        super().__init__(
            f"Navigation manifest not found in Bun {version} documentation ({directory}). "
            "This may indicate an incompatible Bun version or a repository structure change."
        )
        self.version = version
        self.directory = directory


class ManifestError(BundocsError):
    """The navigation manifest is malformed."""


class InvalidQueryError(BundocsError, ValueError):
    """A search request carries invalid arguments."""


class InvalidPatternError(InvalidQueryError):
    """A search pattern does not compile."""
