"""
File tools: write, read, list, delete, line-range edit, asset listing

Source writes go through text repair, are tracked in memory and then
validated. A failing report does not undo the write; it is returned as a
validation failure so the model follows up with a corrective edit.
"""

import logging
from typing import Any, Dict

from ...core.config import ASSET_CATEGORIES, ASSETS_DIR
from ...core.errors import ValidationFailed
from ...schemas.tool_args import (
    WriteFileArgs, ReadFileArgs, ListFilesArgs, DeleteFileArgs, AtomicEditArgs, GetMyAssetsArgs,
)
from ...storage.workspace import CODE_EXTENSIONS, TRACKED_EXTENSIONS
from ...validation.text_repair import repair_source
from .context import ToolContext

logger = logging.getLogger(__name__)


def _is_source(logical: str) -> bool:
    return not logical.startswith(f"{ASSETS_DIR}/") and logical.endswith(TRACKED_EXTENSIONS)


def persist_source(ctx: ToolContext, path: str, content: str) -> Dict[str, Any]:
    """Repair, write, track and validate one file"""
    resolved = ctx.workspace.resolve_writable(path)
    logical = ctx.workspace.logical_path(resolved)

    repaired = repair_source(content) if logical.endswith(CODE_EXTENSIONS) else content
    if repaired != content:
        logger.info(f"[File Tools] Repaired generated text for {logical}")

    with ctx.mutation():
        ctx.workspace.write_text(path, repaired)
        if _is_source(logical):
            ctx.brain.track(logical, repaired)

    report = ctx.validator.validate(repaired, logical)
    if not report.ok:
        ctx.reporter.log("warning", f"⚠️ {logical} written with {len(report.findings)} problems")
        raise ValidationFailed(
            f"{logical} was written but failed validation ({len(report.findings)} findings). "
            f"Fix it with atomic_edit or rewrite it.",
            report,
        )

    ctx.reporter.log("info", f"✍️ Wrote {logical}")
    return {
        "path": logical,
        "lines": repaired.count("\n") + 1,
        "repaired": repaired != content,
    }


def write_file(ctx: ToolContext, args: WriteFileArgs) -> Dict[str, Any]:
    return persist_source(ctx, args.path, args.content)


def read_file(ctx: ToolContext, args: ReadFileArgs) -> str:
    """Return the file with 1-based line numbers for atomic_edit"""
    content = ctx.workspace.read_text(args.path)
    lines = content.split("\n")
    return "\n".join(f"{number:4d} | {line}" for number, line in enumerate(lines, start=1))


def list_files(ctx: ToolContext, args: ListFilesArgs) -> Dict[str, Any]:
    entries = ctx.workspace.list_dir(args.directory)
    return {"directory": args.directory or "src", "entries": entries}


def delete_file(ctx: ToolContext, args: DeleteFileArgs) -> Dict[str, Any]:
    with ctx.mutation():
        full = ctx.workspace.delete(args.path)
        logical = ctx.workspace.logical_path(full)
        ctx.brain.untrack(logical)
    ctx.reporter.log("info", f"🗑️ Deleted {logical}")
    return {"path": logical, "deleted": True}


def atomic_edit(ctx: ToolContext, args: AtomicEditArgs) -> Dict[str, Any]:
    """
    Replace line ranges in one pass.

    Edits are applied bottom-up so earlier line numbers stay valid; all ranges
    are checked before anything is changed.
    """
    content = ctx.workspace.read_text(args.path)
    lines = content.split("\n")

    edits = sorted(args.edits, key=lambda edit: edit.start_line, reverse=True)
    previous_start = None
    for edit in edits:
        if edit.start_line > edit.end_line or edit.end_line > len(lines):
            raise ValueError(
                f"Invalid range {edit.start_line}-{edit.end_line}; the file has {len(lines)} lines. "
                f"Use read_file to get current line numbers."
            )
        if previous_start is not None and edit.end_line >= previous_start:
            raise ValueError(f"Edits overlap at lines {edit.start_line}-{edit.end_line}")
        previous_start = edit.start_line

    for edit in edits:
        lines[edit.start_line - 1:edit.end_line] = edit.new_content.split("\n")

    result = persist_source(ctx, args.path, "\n".join(lines))
    result["edits_applied"] = len(edits)
    return result


def get_my_assets(ctx: ToolContext, args: GetMyAssetsArgs) -> Dict[str, Any]:
    """Uploaded assets with the staticFile() reference to use in code"""
    categories = [args.category] if args.category else list(ASSET_CATEGORIES)
    assets = {}
    for category in categories:
        assets[category] = [
            {
                "file": ref.split("/", 1)[1],
                "reference": f"staticFile(`assets/{ctx.project_id}/{ref}`)",
            }
            for ref in ctx.workspace.asset_files(category)
        ]
    return {"assets": assets}
