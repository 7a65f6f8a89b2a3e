"""Publish-time tools: register_composition, deploy_project, validate_syntax"""

import os
import logging
from typing import Any, Dict

from ...core.config import ENTRY_FILE
from ...core.errors import SafetyRejection, ValidationFailed
from ...core.models import ValidationReport
from ...schemas.tool_args import RegisterCompositionArgs, DeployProjectArgs, ValidateSyntaxArgs
from .context import ToolContext

logger = logging.getLogger(__name__)

FINDINGS_PER_FILE = 5


def register_composition(ctx: ToolContext, args: RegisterCompositionArgs) -> Dict[str, Any]:
    with ctx.mutation():
        descriptor = ctx.finalizer.register(
            args.component_name,
            args.import_path,
            args.duration_in_frames,
            fps=args.fps,
            width=args.width,
            height=args.height,
        )
    return {
        "composition_id": descriptor.composition_id,
        "exported_symbol": descriptor.exported_symbol,
        "import_reference": descriptor.import_reference,
        "status": "pending: the preview activates when you finish this turn",
    }


def _validate_sources(ctx: ToolContext, paths) -> Dict[str, ValidationReport]:
    reports = {}
    for path in paths:
        reports[path] = ctx.validator.validate(ctx.workspace.read_text(path), path)
    return reports


def validate_syntax(ctx: ToolContext, args: ValidateSyntaxArgs) -> Dict[str, Any]:
    """Check one file or the whole project without changing anything"""
    if args.path:
        logical = ctx.workspace.logical_path(ctx.workspace.resolve(args.path))
        paths = [logical]
    else:
        paths = ctx.workspace.source_files()
    reports = _validate_sources(ctx, paths)
    failing = {path: report.messages(FINDINGS_PER_FILE) for path, report in reports.items() if not report.ok}
    return {
        "valid": not failing,
        "checked": len(paths),
        "errors": failing,
    }


def deploy_project(ctx: ToolContext, args: DeployProjectArgs) -> Dict[str, Any]:
    """
    Publish-time gate over every source file.

    Rejected outright when any file fails validation; the engine mirror is
    only written after the whole project passes.
    """
    entry_file = ctx.brain.core.composition.entry_file or ENTRY_FILE
    if not ctx.workspace.entry_exists(entry_file):
        raise SafetyRejection(f"SAFETY REJECTION: {entry_file} does not exist yet; nothing to deploy")

    reports = _validate_sources(ctx, ctx.workspace.source_files())
    failing = [report for report in reports.values() if not report.ok]
    if failing:
        combined = ValidationReport(path="project")
        for report in failing:
            combined.findings.extend(report.findings)
        raise ValidationFailed(
            f"Deploy rejected: {len(failing)} of {len(reports)} files failed validation",
            combined,
        )

    mirrored = None
    with ctx.mutation():
        if ctx.engine_root:
            destination = os.path.join(ctx.engine_root, "projects", ctx.project_id)
            mirrored = str(ctx.workspace.mirror_source(destination))
            logger.info(f"[Deploy] Mirrored {ctx.project_id} to {mirrored}")
        ctx.brain.reflect()
    ctx.reporter.log("success", f"🚀 Deployed {len(reports)} files" + (f": {args.message}" if args.message else ""))
    return {"deployed_files": len(reports), "mirror": mirrored, "message": args.message}
