"""Static analysis helpers used to build memory file entries"""

import re
from typing import List, Optional

from ..core.config import ENTRY_FILE, PLAN_FILE, SCENES_DIR, COMPONENTS_DIR

IMPORT_PATTERN = re.compile(r"import\s+.*?from\s+['\"]\.\.?/(.*?)['\"]")
ASSET_REF_PATTERN = re.compile(r"staticFile\s*\(\s*[`'\"](.*?)[`'\"]\s*\)")
COMPONENT_PATTERN = re.compile(r"export\s+(?:const|function)\s+(\w+)")
DURATION_PATTERN = re.compile(r"durationInFrames=\{(\d+)\}")
COLOR_PATTERN = re.compile(r"(?:backgroundColor|color|background)\s*:\s*['\"]?(#[0-9a-fA-F]{3,8})")

# Export detection for registration, most specific first
EXPORT_CONST_PATTERN = re.compile(r"export\s+const\s+(\w+)\s*[=:]")
EXPORT_FUNCTION_PATTERN = re.compile(r"export\s+function\s+(\w+)")
EXPORT_DEFAULT_PATTERN = re.compile(r"export\s+default\s+(?:function\s+)?(\w+)")

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")
AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a")
VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov")

# Summary markers, in display order
STRUCTURAL_MARKERS = (
    ("Series", ("<Series",)),
    ("Sequence", ("<Sequence",)),
    ("Audio", ("<Audio",)),
    ("Img", ("<Img", "<img")),
    ("spring", ("spring(",)),
    ("interpolate", ("interpolate(",)),
)


def extract_imports(content: str) -> List[str]:
    """Relative import targets ('./scenes/Intro' -> 'scenes/Intro')"""
    return IMPORT_PATTERN.findall(content)


def extract_asset_refs(content: str) -> List[str]:
    """staticFile() references, keeping the '<category>/<file>' tail"""
    refs = []
    for full_path in ASSET_REF_PATTERN.findall(content):
        parts = full_path.split("/")
        refs.append("/".join(parts[-2:]) if len(parts) >= 2 else full_path)
    return refs


def extract_colors(content: str) -> List[str]:
    return COLOR_PATTERN.findall(content)


def detect_exported_symbol(content: str) -> Optional[str]:
    for pattern in (EXPORT_CONST_PATTERN, EXPORT_FUNCTION_PATTERN, EXPORT_DEFAULT_PATTERN):
        match = pattern.search(content)
        if match:
            return match.group(1)
    return None


def summarize(content: str) -> str:
    """One-line summary: symbol | line count | structural markers | durations"""
    parts = []
    component = COMPONENT_PATTERN.search(content)
    if component:
        parts.append(component.group(1))
    line_count = content.count("\n") + 1
    parts.append(f"{line_count}L")

    for label, needles in STRUCTURAL_MARKERS:
        if any(needle in content for needle in needles):
            parts.append(label)

    durations = DURATION_PATTERN.findall(content)
    if durations:
        parts.append("durations: " + "+".join(f"{d}f" for d in durations))
    return " | ".join(parts)


def infer_role(path: str) -> str:
    if path in (ENTRY_FILE, ENTRY_FILE.lower()):
        return "entry"
    if path.startswith(f"{SCENES_DIR}/"):
        return "scene"
    if path.startswith(f"{COMPONENTS_DIR}/"):
        return "component"
    if path == PLAN_FILE or path.endswith(".json"):
        return "config"
    return "other"


def asset_category(filename: str) -> Optional[str]:
    lowered = filename.lower()
    if lowered.endswith(IMAGE_EXTENSIONS):
        return "images"
    if lowered.endswith(AUDIO_EXTENSIONS):
        return "audio"
    if lowered.endswith(VIDEO_EXTENSIONS):
        return "video"
    return None
