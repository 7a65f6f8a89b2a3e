"""Per-session collaborators handed to every tool call"""

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional

from ...core.errors import ToolTimeout

# Set by the dispatcher for each call; copied into the worker thread's context
current_call_cancelled: ContextVar[Optional[threading.Event]] = ContextVar("current_call_cancelled", default=None)


class ToolContext:
    """Workspace, memory and gate objects a tool may touch"""

    def __init__(self, workspace, brain, validator, finalizer, reporter, engine_root: str = ""):
        self.workspace = workspace
        self.brain = brain
        self.validator = validator
        self.finalizer = finalizer
        self.reporter = reporter
        self.engine_root = engine_root
        self.state_lock = threading.RLock()

    @property
    def project_id(self) -> str:
        return self.workspace.project_id

    @contextmanager
    def mutation(self):
        """
        Guard a change to the workspace, memory or publication slot.

        Holds the session's state lock, and refuses the change once the
        dispatcher has reported the running call as timed out.
        """
        with self.state_lock:
            cancelled = current_call_cancelled.get()
            if cancelled is not None and cancelled.is_set():
                raise ToolTimeout("Tool call was abandoned after its timeout; change discarded")
            yield
