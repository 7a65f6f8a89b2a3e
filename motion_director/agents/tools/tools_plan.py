"""Project plan tools backed by src/PLAN.md"""

import re
from datetime import datetime
from typing import Any, Dict

from ...core.config import PLAN_FILE
from ...schemas.tool_args import CreateProjectPlanArgs, ReadProjectPlanArgs, UpdateProjectPlanArgs
from .context import ToolContext
from .tools_files import persist_source

PROGRESS_HEADER = "## Progress Log"


def create_project_plan(ctx: ToolContext, args: CreateProjectPlanArgs) -> Dict[str, Any]:
    total = sum(scene.duration_in_frames for scene in args.scenes)
    lines = [f"# {args.title}", ""]
    if args.style:
        lines += [f"**Style:** {args.style}", ""]
    lines += [
        "## Scenes",
        "| # | Scene | Frames | Status | Description |",
        "|---|-------|--------|--------|-------------|",
    ]
    for index, scene in enumerate(args.scenes, start=1):
        lines.append(f"| {index} | {scene.name} | {scene.duration_in_frames} | todo | {scene.description} |")
    lines += ["", f"**Total:** {total} frames", "", PROGRESS_HEADER, ""]

    result = persist_source(ctx, PLAN_FILE, "\n".join(lines))
    with ctx.mutation():
        ctx.brain.update_composition(total_duration=total)
        if args.style:
            ctx.brain.update_brand(style=args.style)
    result.update({"scenes": len(args.scenes), "total_duration": total})
    return result


def read_project_plan(ctx: ToolContext, args: ReadProjectPlanArgs) -> str:
    if not ctx.workspace.exists(PLAN_FILE):
        raise FileNotFoundError(f"ENOENT: {PLAN_FILE} has not been created; call create_project_plan first")
    return ctx.workspace.read_text(PLAN_FILE)


def update_project_plan(ctx: ToolContext, args: UpdateProjectPlanArgs) -> Dict[str, Any]:
    content = read_project_plan(ctx, ReadProjectPlanArgs())

    # | n | <section> | frames | <status> | description |
    row = re.compile(rf"^(\|\s*\d+\s*\|\s*{re.escape(args.section)}\s*\|\s*\d+\s*\|\s*)(\w+)(\s*\|)", re.MULTILINE)
    content, updated_rows = row.subn(rf"\g<1>{args.status}\g<3>", content)

    entry = f"- [{datetime.now().strftime('%Y-%m-%d %H:%M')}] {args.section} ({args.status}): {args.note}"
    if PROGRESS_HEADER not in content:
        content = content.rstrip("\n") + f"\n\n{PROGRESS_HEADER}\n"
    content = content.rstrip("\n") + "\n" + entry + "\n"

    persist_source(ctx, PLAN_FILE, content)
    return {"section": args.section, "status": args.status, "table_updated": bool(updated_rows)}
