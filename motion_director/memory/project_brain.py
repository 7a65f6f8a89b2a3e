"""
Project brain: two-tier durable memory for one project

Core memory (files, assets, brand, composition metadata, decisions) is small,
always injected into the prompt and rebuildable from the workspace via
reflect(). Recall memory (conversation, actions) is a capped rolling log with
FIFO eviction and is never reconstructed from disk.

Persisted to <project>/memory/BRAIN.json. Mutations only mark the brain dirty;
flush() writes at checkpoints (after successful tool calls, at teardown).
"""

import os
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..core.config import (
    BRAIN_VERSION, BRAIN_FILE, MEMORY_DIR, ASSET_CATEGORIES,
    MAX_DECISIONS, MAX_CONVERSATION, MAX_ACTIONS, CONVERSATION_CONTENT_LIMIT,
    ACTION_ERROR_LIMIT, CONTEXT_CONVERSATION_WINDOW, CONTEXT_ACTION_WINDOW,
    MAX_BRAND_COLORS, DEFAULT_TOTAL_DURATION, DEFAULT_FPS, ENTRY_FILE,
)
from . import code_analysis

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now().isoformat()


# ==============================================================================
# MEMORY RECORDS
# ==============================================================================

class FileEntry(BaseModel):
    role: str = "other"  # entry | scene | component | config | other
    summary: str = ""
    imports: List[str] = Field(default_factory=list)
    assets: List[str] = Field(default_factory=list)
    last_modified: str = Field(default_factory=_now)


class ProjectAssets(BaseModel):
    images: List[str] = Field(default_factory=list)
    audio: List[str] = Field(default_factory=list)
    video: List[str] = Field(default_factory=list)


class BrandIdentity(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    style: Optional[str] = None
    font: Optional[str] = None


class CompositionState(BaseModel):
    total_duration: int = DEFAULT_TOTAL_DURATION
    fps: int = DEFAULT_FPS
    entry_file: str = ENTRY_FILE


class Decision(BaseModel):
    what: str
    why: str = ""
    file: Optional[str] = None
    timestamp: str = Field(default_factory=_now)


class CoreMemory(BaseModel):
    files: Dict[str, FileEntry] = Field(default_factory=dict)
    assets: ProjectAssets = Field(default_factory=ProjectAssets)
    brand: BrandIdentity = Field(default_factory=BrandIdentity)
    composition: CompositionState = Field(default_factory=CompositionState)
    decisions: List[Decision] = Field(default_factory=list)


class ConversationMessage(BaseModel):
    role: str
    content: str
    timestamp: str = Field(default_factory=_now)


class ActionRecord(BaseModel):
    tool: str
    target_path: Optional[str] = None
    outcome: str = "success"  # success | error
    error: Optional[str] = None
    timestamp: str = Field(default_factory=_now)


class RecallMemory(BaseModel):
    conversation: List[ConversationMessage] = Field(default_factory=list)
    actions: List[ActionRecord] = Field(default_factory=list)


class BrainData(BaseModel):
    version: int = BRAIN_VERSION
    project_id: str = ""
    updated_at: str = Field(default_factory=_now)
    core: CoreMemory = Field(default_factory=CoreMemory)
    recall: RecallMemory = Field(default_factory=RecallMemory)


# ==============================================================================
# PROJECT BRAIN
# ==============================================================================

class ProjectBrain:
    """Durable memory for one project, mutated by exactly one turn loop"""

    def __init__(self, workspace):
        self.workspace = workspace
        self.project_id = workspace.project_id
        self.path = Path(workspace.root) / MEMORY_DIR / BRAIN_FILE
        self.data = BrainData(project_id=self.project_id)
        self.dirty = False

    @property
    def core(self) -> CoreMemory:
        return self.data.core

    @property
    def recall(self) -> RecallMemory:
        return self.data.recall

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def initialize(self):
        """Load the stored brain, or build a fresh one from the workspace"""
        if self.load():
            return
        logger.info(f"[Brain] No stored memory for {self.project_id}, reflecting workspace")
        self.data = BrainData(project_id=self.project_id)
        self.reflect()
        self.save()

    def load(self) -> bool:
        if not self.path.is_file():
            return False
        try:
            data = BrainData.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            corrupt = self.path.with_suffix(".json.corrupt")
            logger.warning(f"[Brain] Unreadable memory for {self.project_id} ({e}); moved to {corrupt.name}")
            os.replace(self.path, corrupt)
            return False
        if data.version != BRAIN_VERSION:
            logger.warning(f"[Brain] Memory version {data.version} != {BRAIN_VERSION}, rebuilding core")
            recall = data.recall
            self.data = BrainData(project_id=self.project_id, recall=recall)
            self.reflect()
            return True
        self.data = data
        self.dirty = False
        logger.info(f"[Brain] Loaded memory for {self.project_id}: {len(self.core.files)} files, "
                    f"{len(self.recall.conversation)} messages")
        return True

    def save(self):
        self.data.updated_at = _now()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.data.model_dump_json(indent=2))
            os.replace(temp_path, self.path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        self.dirty = False

    def flush(self) -> bool:
        """Save only when something changed since the last save"""
        if not self.dirty:
            return False
        self.save()
        return True

    def reset(self):
        """Forget everything, then rebuild core from the workspace"""
        self.data = BrainData(project_id=self.project_id)
        self.reflect()
        self.save()

    # ------------------------------------------------------------------
    # Core memory
    # ------------------------------------------------------------------

    def track(self, path: str, content: str):
        """Upsert the file entry for path and merge its asset references"""
        assets = code_analysis.extract_asset_refs(content)
        self.core.files[path] = FileEntry(
            role=code_analysis.infer_role(path),
            summary=code_analysis.summarize(content),
            imports=code_analysis.extract_imports(content),
            assets=assets,
        )
        for ref in assets:
            self.add_asset(ref)
        self.dirty = True

    def untrack(self, path: str):
        if self.core.files.pop(path, None) is not None:
            self.dirty = True

    def add_asset(self, ref: str):
        category, _, name = ref.rpartition("/")
        if category not in ASSET_CATEGORIES:
            category = code_analysis.asset_category(name)
        if not category:
            return
        bucket = getattr(self.core.assets, category)
        if name not in bucket:
            bucket.append(name)
            self.dirty = True

    def record_decision(self, what: str, why: str = "", file: Optional[str] = None):
        self.core.decisions.append(Decision(what=what, why=why, file=file))
        if len(self.core.decisions) > MAX_DECISIONS:
            self.core.decisions = self.core.decisions[-MAX_DECISIONS:]
        self.dirty = True

    def update_composition(self, total_duration: int = None, fps: int = None, entry_file: str = None):
        composition = self.core.composition
        if total_duration is not None:
            composition.total_duration = total_duration
        if fps is not None:
            composition.fps = fps
        if entry_file is not None:
            composition.entry_file = entry_file
        self.dirty = True

    def update_brand(self, **fields):
        brand = self.core.brand
        for key, value in fields.items():
            if value is not None and hasattr(brand, key):
                setattr(brand, key, value)
        self.dirty = True

    # ------------------------------------------------------------------
    # Recall memory
    # ------------------------------------------------------------------

    def record_conversation_turn(self, role: str, content: str):
        self.recall.conversation.append(
            ConversationMessage(role=role, content=(content or "")[:CONVERSATION_CONTENT_LIMIT])
        )
        if len(self.recall.conversation) > MAX_CONVERSATION:
            self.recall.conversation = self.recall.conversation[-MAX_CONVERSATION:]
        self.dirty = True

    def record_action(self, tool: str, target_path: Optional[str] = None,
                      success: bool = True, error: Optional[str] = None):
        self.recall.actions.append(ActionRecord(
            tool=tool,
            target_path=target_path,
            outcome="success" if success else "error",
            error=error[:ACTION_ERROR_LIMIT] if error else None,
        ))
        if len(self.recall.actions) > MAX_ACTIONS:
            self.recall.actions = self.recall.actions[-MAX_ACTIONS:]
        self.dirty = True

    # ------------------------------------------------------------------
    # Context rendering
    # ------------------------------------------------------------------

    def _static_file(self, category: str, name: str) -> str:
        return f"staticFile(`assets/{self.project_id}/{category}/{name}`)"

    def render_context(self) -> str:
        """Core in full plus the recent recall window, as one prompt block"""
        core = self.core
        composition = core.composition
        seconds = composition.total_duration / composition.fps if composition.fps else 0
        lines = [
            "## 🧠 PROJECT BRAIN",
            "",
            f"**Duration:** {composition.total_duration} frames ({seconds:g}s @ {composition.fps}fps)",
            f"**Entry:** {composition.entry_file}",
            "",
        ]

        if core.files:
            lines.append("### 📁 Files")
            for path, entry in core.files.items():
                line = f"- **{path}** [{entry.role}]: {entry.summary}"
                if entry.assets:
                    line += f" | Assets: {', '.join(entry.assets)}"
                if entry.imports:
                    line += f" | Imports: {', '.join(entry.imports)}"
                lines.append(line)
            lines.append("")

        assets = core.assets
        if assets.images or assets.audio or assets.video:
            lines.append("### 📦 Assets")
            for category in ASSET_CATEGORIES:
                names = getattr(assets, category)
                if names:
                    refs = ", ".join(self._static_file(category, name) for name in names)
                    lines.append(f"- **{category.capitalize()}:** {refs}")
            lines.append("")

        brand = core.brand
        if brand.name or brand.logo or brand.colors or brand.style or brand.font:
            lines.append("### 🎨 Brand")
            if brand.name:
                lines.append(f"- **Name:** {brand.name}")
            if brand.logo:
                lines.append(f"- **Logo:** {self._static_file('images', brand.logo)}")
            if brand.colors:
                lines.append(f"- **Colors:** {', '.join(brand.colors)}")
            if brand.style:
                lines.append(f"- **Style:** {brand.style}")
            if brand.font:
                lines.append(f"- **Font:** {brand.font}")
            lines.append("")

        if core.decisions:
            lines.append("### ⚖️ Design Decisions")
            for decision in core.decisions:
                line = f"- {decision.what}"
                if decision.why:
                    line += f" ({decision.why})"
                if decision.file:
                    line += f" [{decision.file}]"
                lines.append(line)
            lines.append("")

        recent_conversation = self.recall.conversation[-CONTEXT_CONVERSATION_WINDOW:]
        if recent_conversation:
            lines.append("### 💬 Recent Conversation")
            for message in recent_conversation:
                lines.append(f"[{message.role}]: {message.content}")
            lines.append("")

        recent_actions = self.recall.actions[-CONTEXT_ACTION_WINDOW:]
        if recent_actions:
            lines.append("### 🔧 Recent Actions")
            for action in recent_actions:
                icon = "✅" if action.outcome == "success" else "❌"
                line = f"{icon} {action.tool}"
                if action.target_path:
                    line += f" → {action.target_path}"
                if action.error:
                    line += f" ({action.error})"
                lines.append(line)

        return "\n".join(lines).strip()

    # ------------------------------------------------------------------
    # Reflection
    # ------------------------------------------------------------------

    def reflect(self):
        """Rescan the workspace and rebuild every core file entry and brand fact"""
        self.core.files = {}
        self.core.assets = ProjectAssets()

        contents = {}
        for path in self.workspace.tracked_files():
            try:
                contents[path] = self.workspace.read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[Brain] Skipping {path} during reflection: {e}")
                continue
            self.track(path, contents[path])

        for category in ASSET_CATEGORIES:
            for ref in self.workspace.asset_files(category):
                self.add_asset(ref)

        self._extract_brand(contents)
        self.dirty = True
        logger.info(f"[Brain] Reflection complete: {len(self.core.files)} files, "
                    f"{len(self.core.assets.images)} images, {len(self.core.assets.audio)} audio")

    def _extract_brand(self, contents: Dict[str, str]):
        brand = self.core.brand
        refs = [ref for entry in self.core.files.values() for ref in entry.assets]
        refs += [f"images/{name}" for name in self.core.assets.images]
        logo = next((ref for ref in refs if "logo" in ref.lower()), None)
        if logo:
            brand.logo = logo.rpartition("/")[2]

        colors = []
        for content in contents.values():
            for color in code_analysis.extract_colors(content):
                if color not in colors:
                    colors.append(color)
                if len(colors) >= MAX_BRAND_COLORS:
                    break
            if len(colors) >= MAX_BRAND_COLORS:
                break
        if colors:
            brand.colors = colors

    def stats(self) -> Dict[str, int]:
        return {
            "files": len(self.core.files),
            "decisions": len(self.core.decisions),
            "conversation": len(self.recall.conversation),
            "actions": len(self.recall.actions),
        }
