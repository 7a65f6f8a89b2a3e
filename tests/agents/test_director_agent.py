"""Tests for the director turn loop: clean path, nudging, ceilings and fatal backends."""

import logging

from conftest import CLEAN_TSX, call

from motion_director.agents.system.finalizer import PublicationState
from motion_director.core.errors import BackendError
from motion_director.core.models import ModelTurn, ToolOutcome


def test_clean_path_publishes_once(make_session, reporter):
    """write_file, register_composition, then stop should publish exactly one signal."""
    session, backend = make_session(turns=[
        ModelTurn(text="Writing the entry file", tool_calls=[call("write_file", path="Main.tsx", content=CLEAN_TSX)]),
        ModelTurn(tool_calls=[call("register_composition", componentName="Main", importPath="Main",
                                   durationInFrames=150)]),
        ModelTurn(text="Your video is ready."),
    ])

    result = session.process_prompt("Make a hello world video")

    assert result.success
    assert not result.incomplete
    assert result.tool_calls == 2
    assert result.nudges == 0
    assert result.message == "Your video is ready."
    assert result.publication.exported_symbol == "Main"
    assert reporter.signals == [{"exportedSymbol": "Main", "importReference": "./Main", "ready": True}]
    assert session.workspace.exists("PreviewEntry.tsx")
    assert session.slot.state == PublicationState.ACTIVE


def test_tool_outcomes_are_echoed_back(make_session):
    """Every outcome should be sent to the model before its next turn."""
    session, backend = make_session(turns=[
        ModelTurn(tool_calls=[call("read_file", path="Nope.tsx"), call("list_files")]),
        ModelTurn(text="done"),
    ])
    session.process_prompt("look around")

    sent = backend.chat.sent
    assert isinstance(sent[0], str)
    echoed = sent[1]
    assert [invocation.name for invocation, _ in echoed] == ["read_file", "list_files"]
    assert all(isinstance(outcome, ToolOutcome) for _, outcome in echoed)
    assert echoed[0][1].success is False
    assert echoed[1][1].success is True


def test_user_turn_carries_memory_context(make_session):
    """The first message of a request should include the rendered memory."""
    session, backend = make_session(turns=[ModelTurn(text="ok")])
    session.brain.record_decision("Keep it minimal")
    session.process_prompt("Add a title card")

    first = backend.chat.sent[0]
    assert first.startswith("Add a title card")
    assert "Keep it minimal" in first


def test_bounded_nudge(make_session):
    """A model that never calls tools should get exactly max_nudges corrective turns."""
    session, backend = make_session(default=ModelTurn(text="I will think about it."), max_nudges=3)

    result = session.process_prompt("Make a video")

    assert len(backend.chat.sent) == 4
    assert result.success
    assert result.incomplete
    assert result.nudges == 3
    nudges = backend.chat.sent[1:]
    assert all("Main.tsx" in message for message in nudges)
    assert "Corrective turn 3 of 3" in nudges[-1]


def test_nudge_ceiling_from_default(make_session):
    """The default ceiling should be injectable and respected."""
    session, backend = make_session(default=ModelTurn(), max_nudges=0)
    result = session.process_prompt("Make a video")
    assert len(backend.chat.sent) == 1
    assert result.incomplete


def test_nudge_stops_once_entry_exists(make_session, reporter):
    """After a nudge the model can finish by writing the entry file."""
    session, backend = make_session(turns=[
        ModelTurn(text="Planning..."),
        ModelTurn(tool_calls=[call("write_file", path="Main.tsx", content=CLEAN_TSX)]),
        ModelTurn(text="Done"),
    ], max_nudges=5)

    result = session.process_prompt("Make a video")

    assert result.nudges == 1
    assert not result.incomplete
    # Never registered, so finalization falls back to the entry file
    assert len(reporter.signals) == 1


def test_tool_round_ceiling(make_session):
    """Consecutive tool rounds should stop at max_tool_rounds."""
    session, backend = make_session(default=ModelTurn(tool_calls=[call("list_files")]), max_tool_rounds=4)

    result = session.process_prompt("keep listing")

    assert len(backend.chat.sent) == 4
    assert result.tool_calls == 4
    assert result.incomplete


def test_backend_failure_is_fatal(make_session, reporter):
    """A failing model call should end the turn without activating anything."""
    session, backend = make_session(turns=[
        ModelTurn(tool_calls=[
            call("write_file", path="Main.tsx", content=CLEAN_TSX),
            call("register_composition", componentName="Main", importPath="Main", durationInFrames=150),
        ]),
        BackendError("ServiceUnavailable: 503 model overloaded"),
    ])

    result = session.process_prompt("Make a video")

    assert not result.success
    assert result.error == "ServiceUnavailable: 503 model overloaded"
    assert reporter.signals == []
    assert not session.workspace.exists("Root.tsx")
    assert not session.workspace.exists("PreviewEntry.tsx")
    assert session.slot.pending is None
    assert session.slot.state == PublicationState.WRITING
    assert any("503" in m for m in reporter.messages("error"))


def test_actions_recorded_in_memory(make_session):
    """Each tool call should be recorded as a recall action."""
    session, _ = make_session(turns=[
        ModelTurn(tool_calls=[call("write_file", path="Main.tsx", content=CLEAN_TSX),
                              call("read_file", path="Missing.tsx")]),
        ModelTurn(text="done"),
    ])
    session.process_prompt("go")

    actions = session.brain.recall.actions
    assert [(a.tool, a.outcome) for a in actions[-2:]] == [("write_file", "success"), ("read_file", "error")]
    roles = [m.role for m in session.brain.recall.conversation]
    assert roles[:1] == ["user"]
    assert "assistant" in roles


def test_second_request_can_republish(make_session, reporter):
    """A new request should start from WRITING and may publish again."""
    register = call("register_composition", componentName="Main", importPath="Main", durationInFrames=150)
    session, _ = make_session(turns=[
        ModelTurn(tool_calls=[call("write_file", path="Main.tsx", content=CLEAN_TSX), register]),
        ModelTurn(text="first"),
        ModelTurn(tool_calls=[register]),
        ModelTurn(text="second"),
    ])

    assert session.process_prompt("first").success
    assert session.process_prompt("second").success
    assert len(reporter.signals) == 2


def test_attached_image_sent_inline(make_session):
    """An attached project image should be sent with the user message."""
    session, backend = make_session(turns=[ModelTurn(text="nice logo")])
    session.workspace.write_bytes("assets/images/logo.png", b"\x89PNG-bytes")

    session.process_prompt(
        "Use my logo [Context: User attached file logo.png located at assets/images/logo.png]"
    )

    assert backend.chat.attachments[0] == [(b"\x89PNG-bytes", "image/png")]
    assert backend.chat.attachments[1] is None


def test_attachment_outside_project_ignored(make_session):
    session, backend = make_session(turns=[ModelTurn(text="ok")])
    session.process_prompt("See [Context: User attached file x.png located at ../../x.png]")
    assert backend.chat.attachments[0] is None


def test_register_then_deploy_invalid_file_changes_nothing(make_session, reporter, tmp_path):
    """Registering and deploying a file that fails validation should leave no visible trace."""
    engine = tmp_path / "engine"
    session, backend = make_session(engine_root=engine, turns=[
        ModelTurn(tool_calls=[
            call("write_file", path="Main.tsx", content=CLEAN_TSX.replace("export const", "const")),
            call("register_composition", componentName="Main", importPath="Main", durationInFrames=150),
            call("deploy_project", message="ship it"),
        ]),
        ModelTurn(text="All done."),
    ])

    result = session.process_prompt("Make a video")

    echoed = backend.chat.sent[1]
    assert [outcome.error_category for _, outcome in echoed] == ["validation_failure"] * 3
    assert result.incomplete
    assert not session.workspace.exists("Root.tsx")
    assert not session.workspace.exists("PreviewEntry.tsx")
    assert not (engine / "projects" / session.project_id).exists()
    assert reporter.signals == []
    assert session.slot.state == PublicationState.WRITING


def test_repairs_logged_once_per_call(make_session, caplog):
    """A corrupted key should be repaired, and logged, once per tool call."""
    session, _ = make_session(turns=[
        ModelTurn(tool_calls=[call("write_file", paath="Main.tsx", content=CLEAN_TSX)]),
        ModelTurn(text="done"),
    ])

    with caplog.at_level(logging.INFO):
        session.process_prompt("go")

    repairs = [record for record in caplog.records if "'paath' -> 'path'" in record.getMessage()]
    assert len(repairs) == 1
    assert session.workspace.exists("Main.tsx")
