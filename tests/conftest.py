"""Shared fixtures: temporary project workspaces and scripted model backends."""

from collections import deque

import pytest

from motion_director.agents.base import ProgressReporter
from motion_director.core.llm import ChatHandle, ModelBackend
from motion_director.core.models import ModelTurn, ToolInvocation
from motion_director.memory import ProjectBrain
from motion_director.session import ProjectSession
from motion_director.storage import ProjectWorkspace

PROJECT_ID = "a1b2c3d4-test-project"

CLEAN_TSX = """import React from 'react';
import { AbsoluteFill } from 'remotion';

export const Main: React.FC = () => {
  return (
    <AbsoluteFill style={{ backgroundColor: '#000' }}>
      <h1>Hello</h1>
    </AbsoluteFill>
  );
};
"""

# One extra </div>: rejected by the gate, repaired on write_file
EXTRA_CLOSING_TSX = """import React from 'react';
import { AbsoluteFill } from 'remotion';

export const Main: React.FC = () => {
  return (
    <AbsoluteFill>
      <div>Title</div>
      </div>
    </AbsoluteFill>
  );
};
"""


def call(name, **args):
    return ToolInvocation(name=name, args=args)


class ScriptedChat(ChatHandle):
    """Returns queued turns in order; an exception in the queue is raised instead"""

    def __init__(self, turns=None, default=None):
        self.turns = deque(turns or [])
        self.default = default if default is not None else ModelTurn()
        self.sent = []
        self.attachments = []

    def send(self, message, attachments=None):
        self.sent.append(message)
        self.attachments.append(attachments)
        if self.turns:
            turn = self.turns.popleft()
            if isinstance(turn, Exception):
                raise turn
            return turn
        return self.default


class ScriptedBackend(ModelBackend):
    """Hands out one ScriptedChat per start_chat and records how it was started"""

    def __init__(self, turns=None, default=None):
        self.turns = turns
        self.default = default
        self.chats = []
        self.starts = []

    @property
    def chat(self) -> ScriptedChat:
        return self.chats[-1]

    def start_chat(self, system_instruction, history=None, function_declarations=None):
        self.starts.append({
            "system_instruction": system_instruction,
            "history": history or [],
            "function_declarations": function_declarations or [],
        })
        chat = ScriptedChat(self.turns, self.default)
        self.chats.append(chat)
        return chat


class RecordingReporter(ProgressReporter):
    def __init__(self):
        self.events = []
        self.signals = []
        super().__init__(on_event=self.events.append, on_publish=self.signals.append)

    def messages(self, level=None):
        return [e.message for e in self.events if level is None or e.level == level]


@pytest.fixture
def workspace(tmp_path):
    ws = ProjectWorkspace(tmp_path / "projects" / PROJECT_ID, PROJECT_ID)
    ws.ensure_layout()
    return ws


@pytest.fixture
def brain(workspace):
    project_brain = ProjectBrain(workspace)
    project_brain.initialize()
    return project_brain


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def make_session(tmp_path, reporter):
    """Factory for initialized sessions over a scripted backend"""

    def _make(turns=None, default=None, engine_root="", max_nudges=3, max_tool_rounds=10):
        backend = ScriptedBackend(turns, default)
        session = ProjectSession(
            PROJECT_ID,
            projects_root=tmp_path / "projects",
            backend=backend,
            reporter=reporter,
            engine_root=str(engine_root) if engine_root else "",
            max_nudges=max_nudges,
            max_tool_rounds=max_tool_rounds,
        )
        session.initialize()
        return session, backend

    return _make


@pytest.fixture
def session(make_session):
    project_session, _ = make_session()
    return project_session
