"""
Finalization state machine

WRITING -> VALIDATING -> PENDING -> ACTIVE

register_composition runs the publish-time gate and stages a descriptor; the
root descriptor and the preview only change when the turn loop reaches its
terminal state and finalize() consumes the pending descriptor.
"""

import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel

from ...core.config import (
    ENTRY_FILE, ROOT_DESCRIPTOR_FILE, ACTIVATION_RECORD_FILE, SOURCE_DIR,
    DEFAULT_FPS, DEFAULT_WIDTH, DEFAULT_HEIGHT,
)
from ...core.errors import IllegalTransitionError, SafetyRejection, ValidationFailed
from ...core.models import PublicationDescriptor
from ...memory.code_analysis import detect_exported_symbol

logger = logging.getLogger(__name__)


class PublicationState(str, Enum):
    WRITING = "WRITING"
    VALIDATING = "VALIDATING"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"


ALLOWED_TRANSITIONS = {
    PublicationState.WRITING: {PublicationState.VALIDATING},
    PublicationState.VALIDATING: {PublicationState.WRITING, PublicationState.PENDING},
    PublicationState.PENDING: {PublicationState.VALIDATING, PublicationState.ACTIVE, PublicationState.WRITING},
    PublicationState.ACTIVE: {PublicationState.WRITING},
}


class PublicationSlot:
    """Session-owned pending publication with an explicit state tag"""

    def __init__(self):
        self.state = PublicationState.WRITING
        self.pending: Optional[PublicationDescriptor] = None
        self.active: Optional[PublicationDescriptor] = None

    def _transition(self, target: PublicationState):
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise IllegalTransitionError(f"Illegal publication transition {self.state.value} -> {target.value}")
        logger.debug(f"[Publication] {self.state.value} -> {target.value}")
        self.state = target

    def begin_request(self):
        """A new user request starts; a previous activation is no longer current"""
        if self.state == PublicationState.ACTIVE:
            self._transition(PublicationState.WRITING)

    def begin_validation(self):
        self._transition(PublicationState.VALIDATING)

    def reject(self):
        """Gate failed: fall back to the previously staged descriptor, if any"""
        self._transition(PublicationState.PENDING if self.pending else PublicationState.WRITING)

    def stage(self, descriptor: PublicationDescriptor):
        self._transition(PublicationState.PENDING)
        self.pending = descriptor

    def activate(self) -> PublicationDescriptor:
        """Consume the pending descriptor exactly once"""
        self._transition(PublicationState.ACTIVE)
        descriptor, self.pending = self.pending, None
        self.active = descriptor
        return descriptor

    def discard(self):
        if self.state == PublicationState.PENDING:
            self._transition(PublicationState.WRITING)
        self.pending = None


class FinalizeOutcome(BaseModel):
    activated: bool
    incomplete: bool = False
    message: str = ""
    publication: Optional[PublicationDescriptor] = None


# ==============================================================================
# ROOT DESCRIPTOR AND ACTIVATION RECORD
# ==============================================================================

ROOT_TEMPLATE = """import React from 'react';
import {{ Composition }} from 'remotion';
import {{ {symbol} as {alias} }} from '{import_reference}';

export const RemotionRoot: React.FC = () => {{
  return (
    <>
      <Composition
        id="{composition_id}"
        component={{{alias}}}
        durationInFrames={{{duration}}}
        fps={{{fps}}}
        width={{{width}}}
        height={{{height}}}
      />
    </>
  );
}};
"""

ACTIVATION_TEMPLATE = """import {{ {symbol} as CurrentComp }} from '{import_reference}';

export const CurrentComposition = CurrentComp;
export const compositionId = '{composition_id}';
export const durationInFrames = {duration};
export const fps = {fps};
export const width = {width};
export const height = {height};
"""


def _alias(symbol: str, project_id: str) -> str:
    prefix = "".join(ch if ch.isalnum() else "_" for ch in project_id.split("-")[0])
    return f"{symbol}_{prefix}" if prefix else symbol


class Finalizer:
    """Publish-time gate for registration plus terminal activation"""

    def __init__(self, workspace, brain, slot: PublicationSlot, validator, reporter):
        self.workspace = workspace
        self.brain = brain
        self.slot = slot
        self.validator = validator
        self.reporter = reporter

    def resolve_module(self, import_path: str) -> str:
        """Resolve an import path to the logical path of an existing module"""
        cleaned = (import_path or "").strip().replace("\\", "/")
        while cleaned.startswith("./"):
            cleaned = cleaned[2:]
        if cleaned.startswith(f"{SOURCE_DIR}/"):
            cleaned = cleaned[len(SOURCE_DIR) + 1:]
        for extension in (".tsx", ".ts"):
            if cleaned.endswith(extension):
                cleaned = cleaned[:-len(extension)]
        for candidate in (f"{cleaned}.tsx", f"{cleaned}/index.tsx"):
            if self.workspace.exists(candidate):
                return candidate
        raise FileNotFoundError(f"ENOENT: module '{import_path}' does not exist. Write it before registering.")

    def register(self, component_name: str, import_path: str, duration_in_frames: int,
                 fps: int = DEFAULT_FPS, width: int = DEFAULT_WIDTH,
                 height: int = DEFAULT_HEIGHT) -> PublicationDescriptor:
        """
        Validate the module and stage it for publication.

        No file is written here: Root.tsx and the activation record are both
        produced by finalize(). On failure the slot returns to its previous
        state.
        """
        self.slot.begin_validation()
        try:
            module_path = self.resolve_module(import_path)
            content = self.workspace.read_text(module_path)
            report = self.validator.validate(content, module_path)
            if not report.ok:
                raise ValidationFailed(f"{module_path} failed validation; registration rejected", report)

            symbol = detect_exported_symbol(content)
            if not symbol:
                raise ValidationFailed(f"{module_path} has no named export to register")
            if component_name and symbol != component_name:
                logger.info(f"[Finalizer] Requested '{component_name}' but {module_path} exports '{symbol}'")

            module_ref = str(PurePosixPath(module_path).with_suffix(""))
            if module_ref.endswith("/index"):
                module_ref = module_ref[:-len("/index")]
            descriptor = PublicationDescriptor(
                exported_symbol=symbol,
                import_reference=f"./{module_ref}",
                total_duration=duration_in_frames,
                composition_id=f"{self.workspace.project_id}:{symbol}",
                fps=fps,
                width=width,
                height=height,
            )
        except BaseException:
            self.slot.reject()
            raise

        self.slot.stage(descriptor)
        self.brain.update_composition(total_duration=duration_in_frames, fps=fps,
                                      entry_file=module_path if module_path == ENTRY_FILE else None)
        self.reporter.log("info", f"Registered {descriptor.composition_id}; activation deferred to completion")
        return descriptor

    def _write_root_descriptor(self, descriptor: PublicationDescriptor):
        content = ROOT_TEMPLATE.format(
            symbol=descriptor.exported_symbol,
            alias=_alias(descriptor.exported_symbol, self.workspace.project_id),
            import_reference=descriptor.import_reference,
            composition_id=descriptor.composition_id,
            duration=descriptor.total_duration,
            fps=descriptor.fps,
            width=descriptor.width,
            height=descriptor.height,
        )
        self.workspace.write_text(ROOT_DESCRIPTOR_FILE, content, system=True)

    def _write_activation_record(self, descriptor: PublicationDescriptor):
        content = ACTIVATION_TEMPLATE.format(
            symbol=descriptor.exported_symbol,
            import_reference=descriptor.import_reference,
            composition_id=descriptor.composition_id,
            duration=descriptor.total_duration,
            fps=descriptor.fps,
            width=descriptor.width,
            height=descriptor.height,
        )
        self.workspace.write_text(ACTIVATION_RECORD_FILE, content, system=True)

    def finalize(self) -> FinalizeOutcome:
        """Terminal transition: activate the pending publication or fall back to the entry file"""
        entry_file = self.brain.core.composition.entry_file or ENTRY_FILE

        if self.slot.pending is None:
            if not self.workspace.entry_exists(entry_file):
                message = f"{entry_file} was never created; the project is incomplete"
                self.reporter.log("warning", message)
                return FinalizeOutcome(activated=False, incomplete=True, message=message)

            logger.info(f"[Finalizer] {entry_file} exists but was not registered, registering it now")
            composition = self.brain.core.composition
            try:
                self.register(None, entry_file, composition.total_duration, fps=composition.fps)
            except (ValidationFailed, SafetyRejection, OSError, UnicodeDecodeError) as e:
                findings = e.report.messages() if getattr(e, "report", None) else []
                message = f"Could not publish {entry_file}: {e}"
                if findings:
                    message += "\n" + "\n".join(findings[:5])
                self.reporter.log("error", message)
                return FinalizeOutcome(activated=False, incomplete=True, message=message)

        # Root descriptor and activation record change together, only here
        self._write_root_descriptor(self.slot.pending)
        self._write_activation_record(self.slot.pending)
        descriptor = self.slot.activate()
        self.reporter.publish(descriptor.to_signal())
        self.reporter.log("success", f"Preview ready: {descriptor.exported_symbol} ({descriptor.total_duration} frames)")

        self.brain.reflect()
        self.brain.flush()
        return FinalizeOutcome(activated=True, message="Publication activated", publication=descriptor)
