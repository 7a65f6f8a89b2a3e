"""
Validation Pipeline

Structural checks followed by an authoritative tree-sitter parse. The
heuristic checks run first so the model gets actionable messages; the parse
is the source of truth.

Known gap: tag balance only flags closings > openings. An element that is
opened and never closed is left to the grammar parse.
"""

import re
import json
import logging
from typing import List

from ..core.models import ValidationReport
from .text_repair import CONTAINER_TAGS, SELF_CLOSING_TAGS, count_tag
from .tsx_parser import parse_diagnostics

logger = logging.getLogger(__name__)

BRACKET_PAIRS = (("(", ")", "parentheses"), ("{", "}", "braces"), ("[", "]", "brackets"))
BRACKET_TOLERANCE = 1

_IMPORT_MARKER = re.compile(r"^\s*import\s", re.MULTILINE)
_EXPORT_MARKER = re.compile(r"\bexport\b")
_ATTRIBUTE_LINE = re.compile(r"^\s*([A-Za-z_][\w-]*)=(?!=)\s*[{\"'`]")
_DECLARATION_START = re.compile(r"^(const|let|var|function|import|export|type|interface|class)\b")

SOURCE_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")


def check_required_markers(text: str, path: str) -> List[str]:
    findings = []
    if not _IMPORT_MARKER.search(text):
        findings.append(f"[{path}] Missing import statement (components must import from 'remotion' or 'react')")
    if not _EXPORT_MARKER.search(text):
        findings.append(f"[{path}] Missing export (the component must be exported)")
    return findings


def check_tag_balance(text: str, path: str) -> List[str]:
    """Flag containers with more closing tags than openings, one finding per tag"""
    findings = []
    for tag in CONTAINER_TAGS:
        if tag in SELF_CLOSING_TAGS:
            continue
        openings, closings = count_tag(text, tag)
        if closings > openings:
            extra = closings - openings
            findings.append(
                f"[{path}] <{tag}>: {closings} closing tags but only {openings} openings "
                f"({extra} extra </{tag}>)"
            )
    return findings


def check_bracket_balance(text: str, path: str) -> List[str]:
    findings = []
    for opener, closer, label in BRACKET_PAIRS:
        opened, closed = text.count(opener), text.count(closer)
        if abs(opened - closed) > BRACKET_TOLERANCE:
            findings.append(
                f"[{path}] Unbalanced {label}: {opened} '{opener}' vs {closed} '{closer}'"
            )
    return findings


def _is_statement_level(line: str) -> bool:
    stripped = line.strip()
    if stripped.endswith(";") or stripped.endswith("*/"):
        return True
    return bool(_DECLARATION_START.match(stripped)) and "<" not in stripped


def check_orphaned_attributes(text: str, path: str) -> List[str]:
    """Attribute-like lines that follow statement-level code instead of an open element"""
    findings = []
    previous = None
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        match = _ATTRIBUTE_LINE.match(line)
        if match and previous is not None and _is_statement_level(previous):
            findings.append(
                f"[{path}] line {number}: attribute '{match.group(1)}=' appears outside an element "
                f"(probable structural break)"
            )
        previous = line
    return findings


class SyntaxValidator:
    """Runs the ordered checks for one candidate text"""

    def validate(self, text: str, path: str) -> ValidationReport:
        report = ValidationReport(path=path)

        if path.endswith(".json"):
            try:
                json.loads(text)
            except json.JSONDecodeError as e:
                report.add(f"[{path}] line {e.lineno}:{e.colno}: invalid JSON ({e.msg})")
            return report

        if not path.endswith(SOURCE_EXTENSIONS):
            return report

        checks = (
            check_required_markers,
            check_tag_balance,
            check_bracket_balance,
            check_orphaned_attributes,
        )
        for check in checks:
            for message in check(text, path):
                report.add(message)

        for diagnostic in parse_diagnostics(text, path):
            report.add(f"[{path}] {diagnostic}")

        if report.ok:
            logger.debug(f"[Validator] {path} passed")
        else:
            logger.info(f"[Validator] {path}: {len(report.findings)} findings")
        return report
