"""Tests for the ToolDispatcher: repair, schema validation, failures and timeouts."""

import threading
import time

from conftest import CLEAN_TSX, call

from motion_director.agents.tools import ToolDispatcher
from motion_director.agents.tools.tools_registry import TOOL_REGISTRY
from motion_director.schemas.tool_args import ListFilesArgs


def test_write_file_success(session):
    """A valid write should succeed and be tracked in memory."""
    outcome = session.dispatcher.dispatch(call("write_file", path="Main.tsx", content=CLEAN_TSX))
    assert outcome.success, outcome.error_message
    assert outcome.payload["path"] == "Main.tsx"
    assert outcome.target_path == "Main.tsx"
    assert "Main.tsx" in session.brain.core.files


def test_corrupted_argument_key_is_repaired(session):
    """A doubled character in an argument key should be repaired before validation."""
    session.dispatcher.dispatch(call("write_file", path="Main.tsx", content=CLEAN_TSX))
    outcome = session.dispatcher.dispatch(
        call("register_composition", compponentName="Main", importPath="Main", durationInFrames=150)
    )
    assert outcome.success, outcome.error_message
    assert outcome.payload["exported_symbol"] == "Main"


def test_corrupted_tool_name_is_repaired(session):
    """A corrupted tool name should still reach the right handler."""
    outcome = session.dispatcher.dispatch(call("wriite_file", paath="Main.tsx", content=CLEAN_TSX))
    assert outcome.success, outcome.error_message


def test_unknown_tool(session):
    """An unresolvable tool name should be an unknown_tool failure."""
    outcome = session.dispatcher.dispatch(call("render_video", path="Main.tsx"))
    assert not outcome.success
    assert outcome.error_category == "unknown_tool"
    assert "render_video" in outcome.error_message


def test_invalid_arguments(session):
    """Schema violations should be reported as invalid_arguments."""
    outcome = session.dispatcher.dispatch(call("register_composition", componentName="Main", importPath="Main"))
    assert not outcome.success
    assert outcome.error_category == "invalid_arguments"
    assert "durationInFrames" in outcome.error_message or "duration_in_frames" in outcome.error_message


def test_missing_file(session):
    """Reading a missing file should be categorized as missing_resource."""
    outcome = session.dispatcher.dispatch(call("read_file", path="scenes/Nope.tsx"))
    assert not outcome.success
    assert outcome.error_category == "missing_resource"


def test_path_escape_is_safety_rejection(session):
    """Writes outside the project should be rejected."""
    outcome = session.dispatcher.dispatch(call("write_file", path="../../evil.tsx", content="x"))
    assert not outcome.success
    assert outcome.error_category == "safety_rejection"


def test_validation_failure_carries_findings(session):
    """A write that fails validation should report findings but keep the file."""
    broken = "const A = () => null;\n"
    outcome = session.dispatcher.dispatch(call("write_file", path="scenes/A.tsx", content=broken))
    assert not outcome.success
    assert outcome.error_category == "validation_failure"
    assert outcome.findings
    assert len(outcome.findings) <= 10
    assert session.workspace.exists("scenes/A.tsx")

    response = outcome.to_model_response()
    assert response["success"] is False
    assert response["findings"] == outcome.findings


def test_error_message_truncated(session):
    """Raw error details should be cut to 100 characters."""
    outcome = session.dispatcher.dispatch(call("read_file", path="scenes/" + "x" * 300 + ".tsx"))
    assert not outcome.success
    assert len(outcome.error_message) < 200


def test_tool_timeout(session):
    """A handler exceeding its timeout should produce a timeout outcome."""

    def slow_handler(ctx, args):
        time.sleep(0.5)
        return "late"

    registry = dict(TOOL_REGISTRY)
    registry["list_files"] = dict(TOOL_REGISTRY["list_files"], handler=slow_handler, timeout=0.05)
    dispatcher = ToolDispatcher(session.context, registry=registry)

    outcome = dispatcher.dispatch(call("list_files"))
    assert not outcome.success
    assert outcome.error_category == "timeout"


def test_timed_out_handler_cannot_change_state(session):
    """A handler still running after its timeout should not touch memory any more."""
    finished = threading.Event()

    def slow_handler(ctx, args):
        try:
            time.sleep(0.3)
            with ctx.mutation():
                ctx.brain.record_decision("late change")
        finally:
            finished.set()

    registry = dict(TOOL_REGISTRY)
    registry["list_files"] = dict(TOOL_REGISTRY["list_files"], handler=slow_handler, timeout=0.05)
    dispatcher = ToolDispatcher(session.context, registry=registry)
    before = len(session.brain.core.decisions)

    outcome = dispatcher.dispatch(call("list_files"))
    assert outcome.error_category == "timeout"
    assert finished.wait(2)
    assert len(session.brain.core.decisions) == before

    # Later calls still change state normally
    assert dispatcher.dispatch(call("record_decision", what="on time")).success
    assert session.brain.core.decisions[-1].what == "on time"


def test_describe_uses_action_label(session):
    """Progress lines should be filled from the repaired arguments."""
    dispatcher = session.dispatcher
    name, args = dispatcher.prepare(call("write_file", paath="scenes/Intro.tsx", content="x"))
    assert dispatcher.describe(name, args) == "🛠️ Designing: scenes/Intro.tsx"
    assert dispatcher.describe("list_files", {}) == "📂 Exploring workspace..."
    assert dispatcher.describe(None, {}) == "❓ Unrecognized tool request"


def test_list_files_args_default_directory():
    """list_files should default to the source directory."""
    assert ListFilesArgs().directory == ""
