"""Tests for ProjectSession bootstrap and the async SessionManager."""

import asyncio
import time

from conftest import CLEAN_TSX, ScriptedBackend

from motion_director.agents.tools import TOOL_REGISTRY
from motion_director.core.models import ModelTurn, TurnResult
from motion_director.session import ProjectSession, SessionManager


def test_initialize_bootstraps_chat(make_session):
    """The chat should start with the system prompt, project context and every tool."""
    session, backend = make_session()
    start = backend.starts[-1]

    assert "write_file" in start["system_instruction"]
    assert "Main.tsx" in start["system_instruction"]
    roles = [role for role, _ in start["history"]]
    assert roles == ["user", "model"]
    assert session.project_id in start["history"][0][1]
    assert len(start["function_declarations"]) == len(TOOL_REGISTRY)
    assert (session.workspace.root / "memory" / "BRAIN.json").exists()


def test_resumed_session_lists_existing_files(tmp_path):
    """Reopening a project should bootstrap with its existing files."""
    first = ProjectSession("p1", projects_root=tmp_path, backend=ScriptedBackend(), engine_root="")
    first.initialize()
    first.workspace.write_text("Main.tsx", CLEAN_TSX)
    first.close()

    backend = ScriptedBackend()
    second = ProjectSession("p1", projects_root=tmp_path, backend=backend, engine_root="")
    second.initialize()
    assert "Main.tsx" in backend.starts[-1]["history"][0][1]


def test_initialize_mirrors_existing_sources(tmp_path):
    """Existing sources should be mirrored to the engine when one is configured."""
    engine = tmp_path / "engine"
    seed = ProjectSession("p2", projects_root=tmp_path / "projects", backend=ScriptedBackend(), engine_root="")
    seed.initialize()
    seed.workspace.write_text("Main.tsx", CLEAN_TSX)

    session = ProjectSession("p2", projects_root=tmp_path / "projects", backend=ScriptedBackend(),
                             engine_root=str(engine))
    session.initialize()
    assert (engine / "projects" / "p2" / "Main.tsx").exists()


def test_reset_session_clears_memory_and_restarts_chat(make_session):
    session, backend = make_session(turns=[ModelTurn(text="hi")], max_nudges=0)
    session.process_prompt("hello")
    assert session.brain.recall.conversation

    session.reset_session()

    assert session.brain.recall.conversation == []
    assert len(backend.starts) == 2


def test_close_flushes_memory(make_session):
    session, _ = make_session()
    session.brain.record_decision("remember me")
    session.close()
    assert "remember me" in session.brain.path.read_text(encoding="utf-8")


class RecordingSession:
    """Stand-in session that records the order of lifecycle calls"""

    def __init__(self, project_id, log):
        self.project_id = project_id
        self.log = log

    def initialize(self):
        self.log.append(("init-start", self.project_id))
        time.sleep(0.05)
        self.log.append(("init-end", self.project_id))

    def process_prompt(self, prompt):
        self.log.append(("prompt", self.project_id))
        return TurnResult(success=True, message=self.project_id)

    def reset_session(self):
        self.log.append(("reset", self.project_id))

    def close(self):
        self.log.append(("close", self.project_id))


def test_switch_project_awaits_previous_initialization():
    """A second switch should wait for the first initialization, never interleave."""
    log = []
    manager = SessionManager(lambda project_id: RecordingSession(project_id, log))

    async def scenario():
        first = asyncio.ensure_future(manager.switch_project("alpha"))
        await asyncio.sleep(0.01)
        second = asyncio.ensure_future(manager.switch_project("beta"))
        await asyncio.sleep(0)
        result = await manager.process_prompt("hello")
        await asyncio.gather(first, second)
        return result

    result = asyncio.run(scenario())

    assert log == [
        ("init-start", "alpha"),
        ("init-end", "alpha"),
        ("close", "alpha"),
        ("init-start", "beta"),
        ("init-end", "beta"),
        ("prompt", "beta"),
    ]
    assert result.message == "beta"
    assert manager.current_project_id == "beta"


def test_prompts_are_serialized():
    """Concurrent prompts should run one at a time."""
    log = []
    active = []

    class SlowSession(RecordingSession):
        def process_prompt(self, prompt):
            active.append(prompt)
            assert len(active) == 1
            time.sleep(0.02)
            active.remove(prompt)
            return super().process_prompt(prompt)

    manager = SessionManager(lambda project_id: SlowSession(project_id, log))

    async def scenario():
        await manager.switch_project("alpha")
        return await asyncio.gather(*(manager.process_prompt(f"p{i}") for i in range(3)))

    results = asyncio.run(scenario())
    assert all(r.success for r in results)
    assert log.count(("prompt", "alpha")) == 3


def test_prompt_without_session():
    """Prompting before any project is opened should fail cleanly."""
    manager = SessionManager(lambda project_id: RecordingSession(project_id, []))
    result = asyncio.run(manager.process_prompt("hello"))
    assert not result.success
    assert "No active session" in result.error


def test_manager_reset_and_close():
    log = []
    manager = SessionManager(lambda project_id: RecordingSession(project_id, log))

    async def scenario():
        await manager.switch_project("alpha")
        await manager.reset_session()
        await manager.close()

    asyncio.run(scenario())
    assert log[-2:] == [("reset", "alpha"), ("close", "alpha")]
    assert manager.current_project_id is None


def test_interactive_runner(monkeypatch):
    """The stdin runner should route commands and prompts through the manager."""
    import io

    from motion_director import __main__ as runner

    log = []
    monkeypatch.setattr(runner, "SessionManager",
                        lambda: SessionManager(lambda project_id: RecordingSession(project_id, log)))
    out = io.StringIO()

    asyncio.run(runner.run("alpha", lines=["hello\n", "/switch beta\n", "again\n", "/quit\n", "ignored\n"], out=out))

    assert out.getvalue().splitlines() == ["alpha", "Switched to beta", "beta"]
    assert log[-1] == ("close", "beta")
    assert ("prompt", "alpha") in log
