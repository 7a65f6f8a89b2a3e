"""
Project workspace on the local filesystem

Layout under <projects_root>/<project_id>:
    src/             entry file, Root.tsx, PreviewEntry.tsx, PLAN.md
    src/scenes/      generated scene components
    src/components/  shared components
    assets/<images|audio|video>/
    memory/BRAIN.json

Tool paths are relative to the project root. Bare code paths ("Main.tsx",
"scenes/Intro.tsx") are mapped into src/.
"""

import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import List, Optional

from ..core.config import (
    SOURCE_DIR, SCENES_DIR, COMPONENTS_DIR, ASSETS_DIR, MEMORY_DIR, ASSET_CATEGORIES,
    ENTRY_FILE, ROOT_DESCRIPTOR_FILE, ACTIVATION_RECORD_FILE,
)
from ..core.errors import SafetyRejection

logger = logging.getLogger(__name__)

TOP_LEVEL_DIRS = (SOURCE_DIR, ASSETS_DIR, MEMORY_DIR)
SYSTEM_FILES = frozenset({ROOT_DESCRIPTOR_FILE, ACTIVATION_RECORD_FILE})
CODE_EXTENSIONS = (".tsx", ".ts")
TRACKED_EXTENSIONS = CODE_EXTENSIONS + (".md", ".json")


class ProjectWorkspace:
    """Path-confined file access for one project"""

    def __init__(self, root, project_id: str):
        self.project_id = project_id
        self.root = Path(root).resolve()
        self.src = self.root / SOURCE_DIR

    def ensure_layout(self):
        for sub in (SCENES_DIR, COMPONENTS_DIR):
            (self.src / sub).mkdir(parents=True, exist_ok=True)
        for category in ASSET_CATEGORIES:
            (self.root / ASSETS_DIR / category).mkdir(parents=True, exist_ok=True)
        (self.root / MEMORY_DIR).mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------

    @staticmethod
    def normalize(path: str) -> str:
        """Map a tool path onto a root-relative path"""
        cleaned = (path or "").strip().replace("\\", "/")
        while cleaned.startswith("./"):
            cleaned = cleaned[2:]
        cleaned = cleaned.lstrip("/")
        first = cleaned.split("/", 1)[0]
        if first not in TOP_LEVEL_DIRS:
            cleaned = f"{SOURCE_DIR}/{cleaned}" if cleaned else SOURCE_DIR
        return cleaned

    def resolve(self, path: str) -> Path:
        """Resolve a tool path, rejecting anything outside the project root"""
        full = (self.root / self.normalize(path)).resolve()
        if full != self.root and self.root not in full.parents:
            raise SafetyRejection(f"SAFETY REJECTION: path '{path}' is outside the project")
        return full

    def resolve_writable(self, path: str) -> Path:
        full = self.resolve(path)
        memory_root = self.root / MEMORY_DIR
        if full == memory_root or memory_root in full.parents:
            raise SafetyRejection(f"SAFETY REJECTION: '{path}' belongs to the agent memory store")
        if full.name in SYSTEM_FILES and full.parent == self.src:
            raise SafetyRejection(f"SAFETY REJECTION: '{full.name}' is managed by register_composition")
        return full

    def logical_path(self, full: Path) -> str:
        """Path used by memory and the model: src-relative for code, root-relative otherwise"""
        full = Path(full).resolve()
        if full == self.src or self.src in full.parents:
            return full.relative_to(self.src).as_posix()
        return full.relative_to(self.root).as_posix()

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def read_text(self, path: str) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def write_text(self, path: str, content: str, system: bool = False) -> Path:
        """Write via a temp file and rename so readers never see partial content"""
        full = self.resolve(path) if system else self.resolve_writable(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=str(full.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(temp_path, full)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        return full

    def write_bytes(self, path: str, data: bytes) -> Path:
        full = self.resolve_writable(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)
        return full

    def delete(self, path: str) -> Path:
        full = self.resolve_writable(path)
        full.unlink()
        return full

    def list_dir(self, path: str = "") -> List[str]:
        """Entries of a directory, directories suffixed with '/'"""
        full = self.resolve(path) if path else self.src
        if not full.is_dir():
            raise FileNotFoundError(f"ENOENT: no such directory '{path}'")
        entries = []
        for child in sorted(full.iterdir()):
            if child.name.endswith(".tmp"):
                continue
            entries.append(f"{child.name}/" if child.is_dir() else child.name)
        return entries

    # ------------------------------------------------------------------
    # Project queries
    # ------------------------------------------------------------------

    def _walk_src(self, extensions) -> List[str]:
        if not self.src.is_dir():
            return []
        found = []
        for child in sorted(self.src.rglob("*")):
            if not child.is_file() or not child.name.endswith(extensions):
                continue
            if child.name in SYSTEM_FILES and child.parent == self.src:
                continue
            found.append(self.logical_path(child))
        return found

    def source_files(self) -> List[str]:
        """Logical paths of every code file under src/, at any depth, managed descriptors excluded"""
        return self._walk_src(CODE_EXTENSIONS)

    def tracked_files(self) -> List[str]:
        """source_files() plus the markdown and JSON files memory keeps entries for"""
        return self._walk_src(TRACKED_EXTENSIONS)

    def scene_count(self) -> int:
        scenes = self.src / SCENES_DIR
        if not scenes.is_dir():
            return 0
        return sum(1 for child in scenes.iterdir() if child.is_file() and child.name.endswith(CODE_EXTENSIONS))

    def entry_exists(self, entry_file: str = ENTRY_FILE) -> bool:
        return (self.src / entry_file).is_file()

    def asset_files(self, category: str) -> List[str]:
        directory = self.root / ASSETS_DIR / category
        if not directory.is_dir():
            return []
        return [f"{category}/{child.name}" for child in sorted(directory.iterdir()) if child.is_file()]

    def mirror_source(self, destination) -> Optional[Path]:
        """Copy src/ to destination, replacing any previous mirror"""
        destination = Path(destination)
        if destination.exists():
            shutil.rmtree(destination)
        shutil.copytree(self.src, destination, ignore=shutil.ignore_patterns("*.tmp"))
        return destination
