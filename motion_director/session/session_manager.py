"""
Async front for director sessions

One project is active at a time. Switching projects chains onto the
in-flight initialization of the previous one instead of cancelling it, and
prompts run one at a time behind a lock. Blocking session work runs in a
worker thread.
"""

import asyncio
import logging
from typing import Callable, Optional

from ..core.models import TurnResult
from .project_session import ProjectSession

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the active ProjectSession and serializes access to it"""

    def __init__(self, session_factory: Optional[Callable[[str], ProjectSession]] = None):
        self.session_factory = session_factory or ProjectSession
        self.session: Optional[ProjectSession] = None
        self._init_task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def current_project_id(self) -> Optional[str]:
        return self.session.project_id if self.session else None

    async def switch_project(self, project_id: str):
        """Open project_id once any earlier initialization has finished"""
        previous_task = self._init_task

        async def _switch():
            if previous_task is not None:
                try:
                    await previous_task
                except Exception as e:
                    logger.warning(f"[SessionManager] Previous initialization failed: {type(e).__name__}: {e}")

            async with self._lock:
                old_session = self.session
                if old_session is not None:
                    await asyncio.to_thread(old_session.close)

                logger.info(f"[SessionManager] Switching to project {project_id}")
                session = self.session_factory(project_id)
                await asyncio.to_thread(session.initialize)
                self.session = session

        self._init_task = asyncio.ensure_future(_switch())
        await self._init_task

    async def process_prompt(self, prompt: str) -> TurnResult:
        if self._init_task is not None:
            await self._init_task
        async with self._lock:
            if self.session is None:
                return TurnResult(success=False, error="No active session. Please select a project first.")
            return await asyncio.to_thread(self.session.process_prompt, prompt)

    async def reset_session(self):
        if self._init_task is not None:
            await self._init_task
        async with self._lock:
            if self.session is not None:
                await asyncio.to_thread(self.session.reset_session)

    async def close(self):
        if self._init_task is not None:
            await self._init_task
        async with self._lock:
            if self.session is not None:
                await asyncio.to_thread(self.session.close)
                self.session = None
