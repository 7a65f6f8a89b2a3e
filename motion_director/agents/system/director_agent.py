"""
Director agent - the turn loop that drives one user request to completion

Each method below is a node or router of the workflow built in
core/workflow.py. The loop sends the request, runs every tool call the
model emits, echoes the outcomes back, nudges the model when it stops
before the entry file exists, and finishes through the Finalizer.
"""

import re
import time
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ...core.config import ENTRY_FILE, MAX_NUDGES, MAX_TOOL_ROUNDS
from ...core.errors import BackendError, SafetyRejection
from ...core.models import TurnResult
from ...core.state import TurnState
from ...core.workflow import build_director_workflow
from ...prompts import STAGNATION_NUDGE_TEMPLATE, USER_TURN_TEMPLATE
from ..base import emit_event, format_time

logger = logging.getLogger(__name__)

ATTACHMENT_PATTERN = re.compile(r"\[Context: User attached file (.*?) located at (.*?)\]")

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


class DirectorAgent:
    """Turn loop over one chat handle and one project's tools"""

    def __init__(self, chat, dispatcher, brain, workspace, finalizer, slot, reporter,
                 max_nudges: int = MAX_NUDGES, max_tool_rounds: int = MAX_TOOL_ROUNDS):
        self.chat = chat
        self.dispatcher = dispatcher
        self.brain = brain
        self.workspace = workspace
        self.finalizer = finalizer
        self.slot = slot
        self.reporter = reporter
        self.max_nudges = max_nudges
        self.max_tool_rounds = max_tool_rounds
        self._attachments: List[Tuple[bytes, str]] = []
        self.workflow = build_director_workflow(self)

    @property
    def entry_file(self) -> str:
        return self.brain.core.composition.entry_file or ENTRY_FILE

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def collect_attachments(self, prompt: str) -> List[Tuple[bytes, str]]:
        """Inline image data for every attached project image referenced in the prompt"""
        attachments = []
        for name, location in ATTACHMENT_PATTERN.findall(prompt):
            name, location = name.strip(), location.strip()
            mime_type = IMAGE_MIME_TYPES.get(Path(name).suffix.lower())
            if not mime_type:
                logger.info(f"[Turn Loop] Attachment {name} is not an image, passing reference only")
                continue
            for candidate in (location, f"assets/images/{name}"):
                try:
                    full = self.workspace.resolve(candidate)
                except SafetyRejection as e:
                    logger.warning(f"[Turn Loop] Ignoring attachment {name}: {e}")
                    continue
                if full.is_file():
                    attachments.append((full.read_bytes(), mime_type))
                    logger.info(f"[Turn Loop] Attached {name} ({mime_type})")
                    break
            else:
                logger.warning(f"[Turn Loop] Attachment {name} not found in project assets")
        return attachments

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def prepare_turn(self, state: TurnState) -> TurnState:
        emit_event("agent_started", {"agent": "director", "project_id": state["project_id"]})
        self.slot.begin_request()

        prompt = state["user_query"]
        self.brain.record_conversation_turn("user", prompt)
        self._attachments = self.collect_attachments(prompt)

        state["pending_message"] = USER_TURN_TEMPLATE["template"].format(
            prompt=prompt,
            memory_context=self.brain.render_context(),
        )
        logger.info(f"[Turn Loop] New request for {state['project_id']}: {prompt[:80]}")
        return state

    def await_model(self, state: TurnState) -> TurnState:
        attachments, self._attachments = self._attachments, []
        start_time = time.time()
        try:
            turn = self.chat.send(state["pending_message"], attachments or None)
        except BackendError as e:
            state["fatal_error"] = str(e)
            state["tool_calls"] = []
            return state

        logger.info(f"[Turn Loop] Model responded in {format_time(time.time() - start_time)} "
                    f"with {len(turn.tool_calls)} tool call(s)")
        state["pending_message"] = None
        state["model_text"] = turn.text
        state["tool_calls"] = turn.tool_calls
        if turn.text.strip():
            self.reporter.log("info", turn.text.strip())
            self.brain.record_conversation_turn("assistant", turn.text)
        return state

    def dispatch_tools(self, state: TurnState) -> TurnState:
        results = []
        for invocation in state["tool_calls"]:
            name, args = self.dispatcher.prepare(invocation)
            self.reporter.log("info", self.dispatcher.describe(name, args))

            outcome = self.dispatcher.dispatch(invocation, prepared=(name, args))
            results.append((invocation, outcome))
            self.brain.record_action(name or invocation.name, outcome.target_path,
                                     outcome.success, outcome.error_message)
            if outcome.success:
                self.brain.flush()
                self.reporter.log("success", f"{name} completed")
            else:
                self.reporter.log("warning", f"{name or invocation.name}: {outcome.error_message}")

        state["pending_message"] = results
        state["tool_calls_total"] += len(results)
        state["tool_rounds"] += 1
        return state

    def stagnation_check(self, state: TurnState) -> TurnState:
        state["stagnant"] = not self.workspace.entry_exists(self.entry_file)
        if state["stagnant"]:
            logger.info(f"[Turn Loop] No tool calls and {self.entry_file} is missing "
                        f"(nudges used {state['nudge_count']}/{state['max_nudges']})")
        return state

    def nudge(self, state: TurnState) -> TurnState:
        state["nudge_count"] += 1
        state["pending_message"] = STAGNATION_NUDGE_TEMPLATE["template"].format(
            entry_file=self.entry_file,
            scene_count=self.workspace.scene_count(),
            nudge_number=state["nudge_count"],
            max_nudges=state["max_nudges"],
        )
        self.reporter.log("warning", f"Entry file missing, sending corrective turn "
                                     f"{state['nudge_count']}/{state['max_nudges']}")
        return state

    def finalize(self, state: TurnState) -> TurnState:
        if state["tool_rounds"] >= state["max_tool_rounds"]:
            self.reporter.log("warning", f"Tool round ceiling ({state['max_tool_rounds']}) reached")

        outcome = self.finalizer.finalize()
        self.brain.flush()

        result = TurnResult(
            success=True,
            incomplete=outcome.incomplete,
            message=outcome.message if outcome.incomplete else (state["model_text"] or outcome.message),
            publication=outcome.publication,
            tool_calls=state["tool_calls_total"],
            nudges=state["nudge_count"],
        )
        state["result"] = result.model_dump()
        emit_event("agent_completed", {"agent": "director", "incomplete": outcome.incomplete})
        return state

    def report_failure(self, state: TurnState) -> TurnState:
        self.slot.discard()
        self.brain.flush()
        error = state["fatal_error"]
        self.reporter.log("error", f"Model request failed: {error}")

        result = TurnResult(
            success=False,
            error=error,
            tool_calls=state["tool_calls_total"],
            nudges=state["nudge_count"],
        )
        state["result"] = result.model_dump()
        emit_event("agent_failed", {"agent": "director", "error": error})
        return state

    # ------------------------------------------------------------------
    # Routers
    # ------------------------------------------------------------------

    def route_after_model(self, state: TurnState) -> str:
        if state.get("fatal_error"):
            return "report_failure"
        if state["tool_calls"]:
            return "dispatch_tools"
        return "stagnation_check"

    def route_after_tools(self, state: TurnState) -> str:
        if state["tool_rounds"] >= state["max_tool_rounds"]:
            return "finalize"
        return "await_model"

    def route_after_stagnation(self, state: TurnState) -> str:
        if state["stagnant"] and state["nudge_count"] < state["max_nudges"]:
            return "nudge"
        return "finalize"

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def recursion_limit(self) -> int:
        """Graph steps needed to reach a terminal node with every budget exhausted"""
        return 4 * (self.max_nudges + self.max_tool_rounds) + 20

    def run(self, prompt: str, project_id: Optional[str] = None) -> TurnResult:
        initial_state: TurnState = {
            "user_query": prompt,
            "project_id": project_id or self.workspace.project_id,
            "pending_message": None,
            "model_text": "",
            "tool_calls": [],
            "tool_rounds": 0,
            "nudge_count": 0,
            "max_nudges": self.max_nudges,
            "max_tool_rounds": self.max_tool_rounds,
            "tool_calls_total": 0,
            "stagnant": False,
            "fatal_error": None,
            "result": {},
        }
        start_time = time.time()
        final_state = self.workflow.invoke(initial_state, config={"recursion_limit": self.recursion_limit()})
        result = TurnResult.model_validate(final_state["result"])
        logger.info(f"[Turn Loop] Finished in {format_time(time.time() - start_time)}: success={result.success} "
                    f"incomplete={result.incomplete} tool_calls={result.tool_calls} nudges={result.nudges}")
        return result
