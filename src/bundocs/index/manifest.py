"""Navigation manifest schema and deserializers.

The manifest is an ordered list of section dividers and pages. It is read from
``nav.json`` or, for upstream Bun checkouts, from ``nav.ts``. The TypeScript
file is never executed: a small tokenizer evaluates the literal array bound to
``items`` together with the ``page(...)`` and ``divider(...)`` helper calls.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Annotated, Any, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from bundocs.errors import ManifestError

LOGGER = logging.getLogger(__name__)


class NavPage(BaseModel):
    type: Literal["page"] = "page"
    slug: str = Field(min_length=1)
    title: str
    description: Optional[str] = None
    disabled: bool = False
    href: Optional[str] = None


class NavDivider(BaseModel):
    type: Literal["divider"] = "divider"
    title: str


NavItem = Annotated[Union[NavPage, NavDivider], Field(discriminator="type")]


class NavigationManifest(BaseModel):
    items: List[NavItem]

    @model_validator(mode="after")
    def _unique_slugs(self) -> "NavigationManifest":
        seen: set[str] = set()
        for item in self.items:
            if isinstance(item, NavPage):
                if item.slug in seen:
                    raise ValueError(f"duplicate slug: {item.slug}")
                seen.add(item.slug)
        return self

    def pages(self) -> Iterator[tuple[str, NavPage]]:
        """Yield ``(section, page)`` pairs in manifest order."""
        section = ""
        for item in self.items:
            if isinstance(item, NavDivider):
                section = item.title
            else:
                yield section, item


def load_manifest(path: Path) -> NavigationManifest:
    """Parse and validate the manifest at ``path``."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Unable to read {path}: {exc}") from exc

    if path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"{path.name}: invalid JSON: {exc}") from exc
    else:
        data = {"items": parse_nav_ts(text)}

    try:
        manifest = NavigationManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"{path.name}: {exc}") from exc

    LOGGER.debug("Loaded %d navigation items from %s", len(manifest.items), path)
    return manifest


# --- nav.ts literal reader -------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    (?P<skip>\s+|//[^\n]*|/\*.*?\*/)
  | (?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<name>[A-Za-z_$][\w$]*)
  | (?P<spread>\.\.\.)
  | (?P<punct>[()\[\]{}:,+])
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_CONSTANTS = {"true": True, "false": False, "null": None, "undefined": None}


def _unescape(body: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape.startswith("u{"):
            return chr(int(escape[2:-1], 16))
        if escape[0] in "ux" and len(escape) > 1:
            return chr(int(escape[1:], 16))
        if escape == "\n":
            return ""
        return _SIMPLE_ESCAPES.get(escape, escape)

    return _ESCAPE_RE.sub(replace, body)


def _tokenize(text: str) -> List[tuple[str, str]]:
    tokens = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup or "other"
        if kind != "skip":
            tokens.append((kind, match.group()))
    return tokens


class _LiteralReader:
    """Evaluates the restricted literal grammar found in ``nav.ts``."""

    def __init__(self, tokens: List[tuple[str, str]], start: int) -> None:
        self.tokens = tokens
        self.pos = start

    def peek(self) -> tuple[str, str]:
        if self.pos >= len(self.tokens):
            raise ManifestError("nav.ts: unexpected end of file")
        return self.tokens[self.pos]

    def expect(self, value: str) -> None:
        kind, token = self.peek()
        if token != value:
            raise ManifestError(f"nav.ts: expected {value!r}, found {token!r}")
        self.pos += 1

    def accept(self, value: str) -> bool:
        if self.pos < len(self.tokens) and self.tokens[self.pos][1] == value:
            self.pos += 1
            return True
        return False

    def value(self) -> Any:
        result = self._term()
        while self.accept("+"):
            right = self._term()
            if not isinstance(result, str) or not isinstance(right, str):
                raise ManifestError("nav.ts: '+' is only supported between strings")
            result += right
        return result

    def _term(self) -> Any:
        kind, token = self.peek()
        if kind == "string":
            self.pos += 1
            body = token[1:-1]
            if token[0] == "`" and "${" in body:
                raise ManifestError("nav.ts: template interpolation is not supported")
            return _unescape(body)
        if kind == "number":
            self.pos += 1
            return float(token) if "." in token else int(token)
        if token == "[":
            return self.array()
        if token == "{":
            return self._object()
        if kind == "name":
            self.pos += 1
            if token in _CONSTANTS:
                return _CONSTANTS[token]
            if self.accept("("):
                return self._call(token)
        raise ManifestError(f"nav.ts: unsupported expression near {token!r}")

    def array(self) -> List[Any]:
        self.expect("[")
        items: List[Any] = []
        while not self.accept("]"):
            items.append(self.value())
            if not self.accept(","):
                self.expect("]")
                break
        return items

    def _object(self) -> dict[str, Any]:
        self.expect("{")
        result: dict[str, Any] = {}
        while not self.accept("}"):
            kind, token = self.peek()
            if kind == "string":
                key = _unescape(token[1:-1])
            elif kind == "name":
                key = token
            else:
                raise ManifestError(f"nav.ts: unsupported object key {token!r}")
            self.pos += 1
            self.expect(":")
            result[key] = self.value()
            if not self.accept(","):
                self.expect("}")
                break
        return result

    def _arguments(self) -> List[Any]:
        args: List[Any] = []
        while not self.accept(")"):
            args.append(self.value())
            if not self.accept(","):
                self.expect(")")
                break
        return args

    def _call(self, name: str) -> dict[str, Any]:
        args = self._arguments()
        if name == "divider" and len(args) == 1:
            return {"type": "divider", "title": args[0]}
        if name == "page" and 2 <= len(args) <= 3:
            props = args[2] if len(args) == 3 else {}
            if not isinstance(props, dict):
                raise ManifestError("nav.ts: page() props must be an object literal")
            item = {key: value for key, value in props.items() if value is not None}
            item.update(type="page", slug=args[0], title=args[1])
            return item
        raise ManifestError(f"nav.ts: unsupported call {name}() with {len(args)} arguments")


def parse_nav_ts(text: str) -> List[Any]:
    """Extract the raw navigation items from the source of ``nav.ts``."""
    tokens = _tokenize(text)
    for index in range(len(tokens) - 2):
        if tokens[index][1] == "items" and tokens[index + 1][1] == ":" and tokens[index + 2][1] == "[":
            return _LiteralReader(tokens, index + 2).array()
    raise ManifestError("nav.ts: no 'items' array found")
