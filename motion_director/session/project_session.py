"""
One project's director session: workspace, memory, tools and the model chat
"""

import logging
from pathlib import Path
from typing import Optional

from ..core.config import PROJECTS_ROOT, ENGINE_ROOT, MAX_NUDGES, MAX_TOOL_ROUNDS, ENTRY_FILE
from ..core.llm import ModelBackend, get_llm
from ..core.models import TurnResult
from ..storage import ProjectWorkspace
from ..memory import ProjectBrain
from ..validation import SyntaxValidator
from ..agents.base import ProgressReporter
from ..agents.system.finalizer import Finalizer, PublicationSlot
from ..agents.system.director_agent import DirectorAgent
from ..agents.tools import ToolContext, ToolDispatcher, get_function_schemas
from ..agents.tools.tools_registry import get_tools_description
from ..prompts import (
    DIRECTOR_SYSTEM_PROMPT_TEMPLATE,
    PROJECT_BOOTSTRAP_TEMPLATE,
    PROJECT_BOOTSTRAP_ACK,
)

logger = logging.getLogger(__name__)


class ProjectSession:
    """Everything the turn loop needs for one project; separate projects share nothing"""

    def __init__(self, project_id: str, projects_root=None, backend: Optional[ModelBackend] = None,
                 reporter: Optional[ProgressReporter] = None, engine_root: Optional[str] = None,
                 max_nudges: int = MAX_NUDGES, max_tool_rounds: int = MAX_TOOL_ROUNDS):
        self.project_id = project_id
        self.workspace = ProjectWorkspace(Path(projects_root or PROJECTS_ROOT) / project_id, project_id)
        self.backend = backend or get_llm()
        self.reporter = reporter or ProgressReporter()
        self.engine_root = ENGINE_ROOT if engine_root is None else engine_root
        self.max_nudges = max_nudges
        self.max_tool_rounds = max_tool_rounds

        self.brain = ProjectBrain(self.workspace)
        self.slot = PublicationSlot()
        self.validator = SyntaxValidator()
        self.finalizer = Finalizer(self.workspace, self.brain, self.slot, self.validator, self.reporter)
        self.context = ToolContext(self.workspace, self.brain, self.validator, self.finalizer,
                                   self.reporter, engine_root=self.engine_root)
        self.dispatcher = ToolDispatcher(self.context)
        self.agent: Optional[DirectorAgent] = None

    def initialize(self):
        """Prepare the workspace, load memory and start the model chat"""
        logger.info(f"[Session] Opening project {self.project_id}")
        self.workspace.ensure_layout()
        self.brain.initialize()
        self._sync_engine()
        self._start_chat()
        self.reporter.log("info", f"📂 Switched context to project: {self.project_id}")

    def _sync_engine(self):
        """Mirror existing sources so the preview engine sees them immediately"""
        if not self.engine_root:
            return
        if not self.workspace.source_files():
            logger.info(f"[Session] No sources to mirror for {self.project_id}")
            return
        destination = Path(self.engine_root) / "projects" / self.project_id
        self.workspace.mirror_source(destination)
        logger.info(f"[Session] Mirrored sources to {destination}")

    def _start_chat(self):
        system_instruction = DIRECTOR_SYSTEM_PROMPT_TEMPLATE["template"].format(
            entry_file=ENTRY_FILE,
            tools_description=get_tools_description(),
        )
        files = self.workspace.source_files()
        bootstrap = PROJECT_BOOTSTRAP_TEMPLATE["template"].format(
            project_id=self.project_id,
            file_list=", ".join(files) if files else "none",
            memory_context=self.brain.render_context(),
        )
        chat = self.backend.start_chat(
            system_instruction,
            history=[("user", bootstrap), ("model", PROJECT_BOOTSTRAP_ACK)],
            function_declarations=get_function_schemas(),
        )
        self.agent = DirectorAgent(
            chat, self.dispatcher, self.brain, self.workspace, self.finalizer, self.slot, self.reporter,
            max_nudges=self.max_nudges, max_tool_rounds=self.max_tool_rounds,
        )

    def process_prompt(self, prompt: str) -> TurnResult:
        if self.agent is None:
            raise RuntimeError(f"Session for {self.project_id} is not initialized")
        return self.agent.run(prompt, self.project_id)

    def reset_session(self):
        """Clear project memory and restart the chat with a fresh bootstrap"""
        self.brain.reset()
        self.slot.discard()
        self._start_chat()
        self.reporter.log("info", "♻️ Project Session Reset.")

    def close(self):
        if self.brain.flush():
            logger.info(f"[Session] Memory flushed for {self.project_id}")
