"""Grammar-level parse of generated TypeScript/TSX using tree-sitter"""

import logging
from functools import lru_cache
from typing import List

import tree_sitter_typescript
from tree_sitter import Language, Parser

logger = logging.getLogger(__name__)

MAX_SNIPPET_LENGTH = 40


@lru_cache(maxsize=None)
def _language(dialect: str) -> Language:
    if dialect == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_typescript.language_typescript())


def dialect_for_path(path: str) -> str:
    return "typescript" if path.endswith(".ts") else "tsx"


def _snippet(source: bytes, start: int, end: int) -> str:
    text = source[start:end].decode("utf-8", errors="replace").strip()
    text = text.split("\n", 1)[0]
    if len(text) > MAX_SNIPPET_LENGTH:
        text = text[:MAX_SNIPPET_LENGTH] + "..."
    return text


def parse_diagnostics(text: str, path: str = "Main.tsx") -> List[str]:
    """
    Parse the candidate and return one diagnostic per ERROR/MISSING node.

    Diagnostics carry 1-based line:column positions. An empty list means the
    text parsed cleanly.
    """
    # Parser objects are not shared between threads; build one per call
    parser = Parser(_language(dialect_for_path(path)))
    source = text.encode("utf-8")
    tree = parser.parse(source)

    root = tree.root_node
    if not root.has_error:
        return []

    diagnostics = []
    stack = [root]
    while stack:
        node = stack.pop()
        row, column = node.start_point
        if node.is_missing:
            diagnostics.append(f"line {row + 1}:{column + 1}: missing '{node.type}'")
            continue
        if node.is_error or node.type == "ERROR":
            snippet = _snippet(source, node.start_byte, node.end_byte)
            diagnostics.append(f"line {row + 1}:{column + 1}: unexpected syntax near '{snippet}'")
            continue
        if node.has_error:
            # Children in reverse so diagnostics come out in source order
            stack.extend(reversed(node.children))

    if not diagnostics:
        diagnostics.append("line 1:1: source could not be parsed")
    logger.debug(f"[TSX Parser] {path}: {len(diagnostics)} diagnostics")
    return diagnostics
