"""
Text Repair Layer

Normalizes transcription noise the model introduces before anything is
validated or persisted:
- argument keys with doubled characters ("compponentName")
- tool names with character runs or doubled separators ("write__file")
- generated TSX with doubled keyword/identifier characters and extra closing tags

Every function here is pure and idempotent.
"""

import re
import logging
from typing import Dict, Any, Iterable, List, Optional, Tuple

from ..core.config import MAX_KEY_REPAIR_DEPTH

logger = logging.getLogger(__name__)


# Argument keys the tool catalog declares
DEFAULT_ARGUMENT_KEYS = frozenset({
    "path", "content", "edits", "startLine", "endLine", "newContent",
    "componentName", "importPath", "durationInFrames", "fps", "width", "height",
    "message", "totalDuration", "entryFile", "brandName", "logo", "colors",
    "style", "font", "what", "why", "file", "packages", "url", "filename",
    "category", "title", "scenes", "section", "note", "status", "directory",
    "summary", "name", "description",
})

# Container elements whose closing tags are counted against openings
CONTAINER_TAGS = (
    "AbsoluteFill", "Series.Sequence", "Sequence", "Series", "Loop", "Freeze",
    "TransitionSeries", "div", "span", "section", "p", "h1", "h2", "h3",
)

# Elements always written self-closing; never balance-checked
SELF_CLOSING_TAGS = frozenset({
    "Img", "Audio", "Video", "OffthreadVideo", "IFrame", "img", "br", "hr", "input",
})

# Leading keyword characters the generator tends to double ("iimport")
KEYWORDS = ("import", "export", "const", "return", "function", "from", "default", "interface")

# Framework identifiers the generator corrupts internally ("AbsoluteFilll")
FRAMEWORK_IDENTIFIERS = (
    "AbsoluteFill", "Sequence", "Series", "Composition", "OffthreadVideo",
    "useCurrentFrame", "useVideoConfig", "interpolate", "interpolateColors",
    "spring", "staticFile", "Easing", "Img", "Audio", "Video", "React",
)


def _keyword_pattern(word: str) -> "re.Pattern":
    first, rest = re.escape(word[0]), re.escape(word[1:])
    return re.compile(rf"\b{first}{{2,}}{rest}\b")


def _identifier_pattern(word: str) -> "re.Pattern":
    # Each character may appear once or doubled; clean text maps onto itself
    body = "".join(f"{re.escape(ch)}{{1,2}}" for ch in word)
    return re.compile(rf"\b{body}\b")


def _build_substitution_table() -> List[Tuple["re.Pattern", str]]:
    table = [(_keyword_pattern(word), word) for word in KEYWORDS]
    table += [(_identifier_pattern(word), word) for word in FRAMEWORK_IDENTIFIERS]
    return table


SUBSTITUTION_TABLE = _build_substitution_table()

_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*[ \t]*\n")
_FENCE_CLOSE = re.compile(r"\n```\s*$")


def opening_tag_pattern(tag: str) -> "re.Pattern":
    """Opening occurrences of a tag, self-closing forms included"""
    return re.compile(rf"<{re.escape(tag)}(?=[\s/>])")


def closing_tag_pattern(tag: str) -> "re.Pattern":
    return re.compile(rf"</{re.escape(tag)}\s*>")


def count_tag(text: str, tag: str) -> Tuple[int, int]:
    """Return (openings, closings) for a tag"""
    return (len(opening_tag_pattern(tag).findall(text)),
            len(closing_tag_pattern(tag).findall(text)))


def _remove_span(text: str, start: int, end: int) -> str:
    """Remove text[start:end], dropping the whole line when nothing else is on it"""
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)

    if (text[line_start:start] + text[end:line_end]).strip():
        return text[:start] + text[end:]

    if line_end < len(text):
        return text[:line_start] + text[line_end + 1:]
    # Last line: take the preceding newline with it
    return text[:max(line_start - 1, 0)]


def strip_code_fences(text: str) -> str:
    """Strip a markdown fence the model sometimes wraps around whole files"""
    if not _FENCE_OPEN.match(text):
        return text
    text = _FENCE_OPEN.sub("", text, count=1)
    return _FENCE_CLOSE.sub("\n", text)


def collapse_extra_closing_tags(text: str, tags: Iterable[str] = CONTAINER_TAGS) -> str:
    """Delete the last unmatched closing tag per container until closings <= openings"""
    for tag in tags:
        close_re = closing_tag_pattern(tag)
        while True:
            openings, closings = count_tag(text, tag)
            if closings <= openings:
                break
            matches = list(close_re.finditer(text))
            if not matches:
                break
            last = matches[-1]
            logger.debug(f"[Text Repair] Removing extra </{tag}> ({closings} closings vs {openings} openings)")
            text = _remove_span(text, last.start(), last.end())
    return text


def _repair_pass(text: str) -> str:
    text = strip_code_fences(text)
    for pattern, replacement in SUBSTITUTION_TABLE:
        text = pattern.sub(replacement, text)
    return collapse_extra_closing_tags(text)


def repair_source(text: str) -> str:
    """
    Apply the substitution table then collapse extra closing tags, until stable.

    Removing a closing tag can join fragments into a new doubled keyword
    ("i</div>import"), so passes repeat until nothing changes. Every change
    shortens the text, which bounds the number of passes by its length.
    """
    if not text:
        return text
    for _ in range(len(text) + 1):
        repaired = _repair_pass(text)
        if repaired == text:
            break
        text = repaired
    return text


def _search_doubled(candidate: str, allowed: frozenset, depth: int, max_depth: int) -> Optional[str]:
    if candidate in allowed:
        return candidate
    if depth >= max_depth:
        return None
    for i in range(len(candidate) - 1):
        if candidate[i] == candidate[i + 1]:
            found = _search_doubled(candidate[:i] + candidate[i + 1:], allowed, depth + 1, max_depth)
            if found:
                return found
    return None


_CHARACTER_RUN = re.compile(r"(.)\1{2,}")
_DOUBLED_SEPARATOR = re.compile(r"([_\-.])\1+")


class TextRepairer:
    """Repairs argument keys and tool names against injected allow-lists"""

    def __init__(self, allowed_keys: Iterable[str] = DEFAULT_ARGUMENT_KEYS,
                 max_depth: int = MAX_KEY_REPAIR_DEPTH):
        self.allowed_keys = frozenset(allowed_keys)
        self.max_depth = max_depth

    def repair_key(self, key: str) -> str:
        """Return the allow-listed key reachable by removing doubled characters, else the key"""
        repaired = _search_doubled(key, self.allowed_keys, 0, self.max_depth)
        if repaired and repaired != key:
            logger.info(f"[Text Repair] Argument key '{key}' -> '{repaired}'")
        return repaired or key

    def repair_args(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Repair keys recursively through nested objects and lists of objects"""
        repaired = {}
        for key, value in args.items():
            repaired[self.repair_key(key)] = self._repair_value(value)
        return repaired

    def _repair_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.repair_args(value)
        if isinstance(value, list):
            return [self._repair_value(item) for item in value]
        return value

    def repair_tool_name(self, name: str, catalog: Iterable[str]) -> Optional[str]:
        """Resolve a possibly corrupted tool name; None when it matches nothing"""
        catalog = frozenset(catalog)
        normalized = _CHARACTER_RUN.sub(r"\1\1", name.strip())
        normalized = _DOUBLED_SEPARATOR.sub(r"\1", normalized)
        if normalized in catalog:
            if normalized != name:
                logger.info(f"[Text Repair] Tool name '{name}' -> '{normalized}'")
            return normalized
        resolved = _search_doubled(normalized, catalog, 0, self.max_depth)
        if resolved:
            logger.info(f"[Text Repair] Tool name '{name}' -> '{resolved}'")
        return resolved
