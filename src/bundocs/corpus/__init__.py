"""Locating and fetching documentation corpora."""
