"""Text helpers for markdown previews, front matter and slug paths."""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import yaml

LOGGER = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"


def split_front_matter(text: str) -> Tuple[Dict[str, str], str]:
    """Separate a leading ``---`` delimited key/value block from the body.

    Returns an empty mapping and the untouched text when no complete block is
    present or when the block is not a mapping.
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text

    for end, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONT_MATTER_DELIMITER:
            break
    else:
        return {}, text

    block = "\n".join(lines[1:end])
    body = "\n".join(lines[end + 1 :])
    try:
        data: Any = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        LOGGER.debug("Ignoring unparsable front matter: %s", exc)
        return {}, body

    if not isinstance(data, dict):
        return {}, body
    return {str(key): str(value) for key, value in data.items() if value is not None}, body


def first_content_line(text: str) -> str:
    """Return the first non-empty line of ``text``, stripped."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def preview(text: str, *, max_chars: int = 100) -> str:
    """First content line truncated to ``max_chars`` characters."""
    return first_content_line(text)[:max_chars]


def titlecase_stem(stem: str) -> str:
    """Turn a file stem such as ``react-router`` into ``React Router``."""
    words = stem.replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def normalize_path(path: str) -> str:
    """Strip surrounding separators and collapse repeated ones."""
    return "/".join(segment for segment in path.split("/") if segment)
