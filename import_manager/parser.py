"""
Tree-sitter front end for JavaScript sources.

Uses tree-sitter >= 0.22 API with the tree-sitter-javascript language package.
Tree-sitter reports UTF-8 byte offsets; everything above this module works
with character offsets, so every parse comes with an ``OffsetMap``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import tree_sitter as ts
import tree_sitter_javascript as tsjs

from .errors import SourceSyntaxError

logger = logging.getLogger(__name__)

# Cache Language/Parser objects to avoid repeated construction
_LANG_CACHE: dict[str, ts.Language] = {}
_PARSER_CACHE: dict[str, ts.Parser] = {}


def _get_ts_language() -> ts.Language:
    """Return the tree_sitter.Language object for JavaScript."""
    if "javascript" not in _LANG_CACHE:
        _LANG_CACHE["javascript"] = ts.Language(tsjs.language())
    return _LANG_CACHE["javascript"]


def _get_ts_parser() -> ts.Parser:
    """Return a tree-sitter Parser configured for JavaScript."""
    if "javascript" not in _PARSER_CACHE:
        _PARSER_CACHE["javascript"] = ts.Parser(_get_ts_language())
        logger.debug("Created tree-sitter parser for javascript")
    return _PARSER_CACHE["javascript"]


# ---------------------------------------------------------------------------
# Offsets
# ---------------------------------------------------------------------------

class OffsetMap:
    """Convert UTF-8 byte offsets of *text* into character offsets."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.data = text.encode("utf-8", errors="surrogatepass")
        self._table: list[int] | None = None
        if len(self.data) != len(text):
            table = [0] * (len(self.data) + 1)
            pos = 0
            for index, ch in enumerate(text):
                width = len(ch.encode("utf-8", errors="surrogatepass"))
                for k in range(width):
                    table[pos + k] = index
                pos += width
            table[pos] = len(text)
            self._table = table

    def char(self, byte_offset: int) -> int:
        if self._table is None:
            return byte_offset
        return self._table[byte_offset]

    def span(self, node) -> tuple[int, int]:
        """Character ``(start, end)`` of a tree-sitter node."""
        return self.char(node.start_byte), self.char(node.end_byte)

    def text_of(self, node) -> str:
        start, end = self.span(node)
        return self.text[start:end]

    def line_col(self, char_offset: int) -> tuple[int, int]:
        """1-based line and column of a character offset."""
        line = self.text.count("\n", 0, char_offset) + 1
        line_start = self.text.rfind("\n", 0, char_offset) + 1
        return line, char_offset - line_start + 1


@dataclass
class ParsedSource:
    tree: ts.Tree
    offsets: OffsetMap

    @property
    def root(self):
        return self.tree.root_node


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _first_error(node):
    """Return the first ERROR or MISSING node below *node*, or None."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def parse_source(text: str, filename: str = "") -> ParsedSource:
    """
    Parse JavaScript *text* and return the tree with its offset map.

    Raises
    ------
    SourceSyntaxError
        If the tree contains any ERROR or MISSING node.  Tree-sitter
        recovers from errors, but a partial tree is never used.
    """
    offsets = OffsetMap(text)
    tree = _get_ts_parser().parse(offsets.data)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        start = offsets.char(bad.start_byte)
        line, column = offsets.line_col(start)
        if bad.is_missing:
            message = f"Unexpected end of statement, missing '{bad.type}'"
        else:
            snippet = offsets.text_of(bad).strip().splitlines()
            token = snippet[0][:40] if snippet else ""
            message = f"Unexpected token {token!r}" if token else "Unexpected input"
        raise SourceSyntaxError(message, filename=filename, line=line, column=column)
    return ParsedSource(tree=tree, offsets=offsets)
