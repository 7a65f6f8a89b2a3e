"""Tests for the publication state machine and the publish-time gate."""

import pytest

from conftest import CLEAN_TSX, EXTRA_CLOSING_TSX, call

from motion_director.agents.system.finalizer import PublicationSlot, PublicationState
from motion_director.core.errors import IllegalTransitionError, ValidationFailed
from motion_director.core.models import PublicationDescriptor


def _descriptor(symbol="Main"):
    return PublicationDescriptor(exported_symbol=symbol, import_reference=f"./{symbol}", total_duration=150)


def test_slot_happy_path():
    """WRITING -> VALIDATING -> PENDING -> ACTIVE should consume the descriptor once."""
    slot = PublicationSlot()
    slot.begin_validation()
    slot.stage(_descriptor())
    assert slot.state == PublicationState.PENDING

    active = slot.activate()
    assert active.exported_symbol == "Main"
    assert slot.state == PublicationState.ACTIVE
    assert slot.pending is None


def test_slot_activate_twice_is_illegal():
    """A second activation without a new registration should raise."""
    slot = PublicationSlot()
    slot.begin_validation()
    slot.stage(_descriptor())
    slot.activate()
    with pytest.raises(IllegalTransitionError):
        slot.activate()


def test_slot_cannot_activate_from_writing():
    """Activation requires a pending publication."""
    with pytest.raises(IllegalTransitionError):
        PublicationSlot().activate()


def test_slot_reject_returns_to_previous_state():
    """A failed gate should return to WRITING, or PENDING when something was already staged."""
    slot = PublicationSlot()
    slot.begin_validation()
    slot.reject()
    assert slot.state == PublicationState.WRITING

    slot.begin_validation()
    slot.stage(_descriptor("First"))
    slot.begin_validation()
    slot.reject()
    assert slot.state == PublicationState.PENDING
    assert slot.pending.exported_symbol == "First"


def test_slot_begin_request_after_activation():
    """A new request should move ACTIVE back to WRITING."""
    slot = PublicationSlot()
    slot.begin_validation()
    slot.stage(_descriptor())
    slot.activate()
    slot.begin_request()
    assert slot.state == PublicationState.WRITING


def test_slot_discard():
    """discard() should drop the pending descriptor."""
    slot = PublicationSlot()
    slot.begin_validation()
    slot.stage(_descriptor())
    slot.discard()
    assert slot.state == PublicationState.WRITING
    assert slot.pending is None


def test_register_clean_module_stages_publication(session):
    """Registering a valid module should stage the descriptor without writing any descriptor file."""
    session.workspace.write_text("Main.tsx", CLEAN_TSX)
    descriptor = session.finalizer.register("Main", "src/Main.tsx", 300, fps=30)

    assert descriptor.exported_symbol == "Main"
    assert descriptor.import_reference == "./Main"
    assert descriptor.composition_id == f"{session.project_id}:Main"
    assert session.slot.state == PublicationState.PENDING
    assert not session.workspace.exists("Root.tsx")
    assert not session.workspace.exists("PreviewEntry.tsx")
    assert session.brain.core.composition.total_duration == 300


def test_register_detects_real_symbol(session):
    """The exported symbol should be taken from the file, not the request."""
    session.workspace.write_text("Main.tsx", CLEAN_TSX.replace("Main", "Showcase"))
    descriptor = session.finalizer.register("Main", "Main", 150)
    assert descriptor.exported_symbol == "Showcase"


def test_register_resolves_index_module(session):
    """A directory import should resolve to its index.tsx."""
    session.workspace.write_text("components/Hero/index.tsx", CLEAN_TSX)
    descriptor = session.finalizer.register("Main", "./components/Hero", 150)
    assert descriptor.import_reference == "./components/Hero"


def test_register_invalid_module_leaves_state_untouched(session, reporter):
    """An invalid module should be rejected without touching Root.tsx or the signal."""
    session.workspace.write_text("Main.tsx", EXTRA_CLOSING_TSX)

    with pytest.raises(ValidationFailed) as excinfo:
        session.finalizer.register("Main", "Main", 150)

    assert excinfo.value.report is not None
    assert any("<div>:" in m for m in excinfo.value.report.messages())
    assert not session.workspace.exists("Root.tsx")
    assert session.slot.state == PublicationState.WRITING
    assert session.slot.pending is None
    assert reporter.signals == []


def test_register_missing_module(session):
    """Registering a module that does not exist should be a missing resource."""
    with pytest.raises(FileNotFoundError):
        session.finalizer.register("Main", "scenes/Nope", 150)
    assert session.slot.state == PublicationState.WRITING


def test_finalize_activates_pending(session, reporter):
    """finalize() should write the activation record and publish exactly once."""
    session.workspace.write_text("Main.tsx", CLEAN_TSX)
    session.finalizer.register("Main", "Main", 150)

    outcome = session.finalizer.finalize()

    assert outcome.activated
    assert reporter.signals == [{"exportedSymbol": "Main", "importReference": "./Main", "ready": True}]
    record = session.workspace.read_text("PreviewEntry.tsx")
    assert "import { Main as CurrentComp } from './Main';" in record
    root = session.workspace.read_text("Root.tsx")
    assert "import { Main as Main_a1b2c3d4 } from './Main';" in root
    assert "durationInFrames={150}" in root
    assert session.slot.state == PublicationState.ACTIVE
    assert session.slot.pending is None


def test_finalize_falls_back_to_entry_file(session, reporter):
    """An unregistered but valid entry file should be registered and activated."""
    session.workspace.write_text("Main.tsx", CLEAN_TSX)
    outcome = session.finalizer.finalize()
    assert outcome.activated
    assert len(reporter.signals) == 1


def test_finalize_without_entry_is_incomplete(session, reporter):
    """No entry file should produce an incomplete outcome and no signal."""
    outcome = session.finalizer.finalize()
    assert not outcome.activated
    assert outcome.incomplete
    assert "Main.tsx" in outcome.message
    assert reporter.signals == []


def test_finalize_fallback_with_invalid_entry(session, reporter):
    """An invalid entry file should not be activated by the fallback."""
    session.workspace.write_text("Main.tsx", EXTRA_CLOSING_TSX)
    outcome = session.finalizer.finalize()
    assert outcome.incomplete
    assert "<div>:" in outcome.message
    assert reporter.signals == []
    assert not session.workspace.exists("PreviewEntry.tsx")


def test_finalize_fallback_with_unreadable_entry(session, reporter):
    """An entry file that cannot be decoded should leave the turn incomplete, not crash."""
    session.workspace.write_bytes("Main.tsx", b"export const Main = () => '\xff\xfe';")
    outcome = session.finalizer.finalize()
    assert not outcome.activated
    assert outcome.incomplete
    assert "Could not publish Main.tsx" in outcome.message
    assert reporter.signals == []
    assert not session.workspace.exists("Root.tsx")


def test_missing_module_reported_as_missing_resource(session):
    """Through the dispatcher, an unknown module should be categorised as missing."""
    outcome = session.dispatcher.dispatch(call("register_composition", componentName="Main",
                                               importPath="scenes/Nope", durationInFrames=150))
    assert outcome.error_category == "missing_resource"
