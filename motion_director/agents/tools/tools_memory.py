"""Memory tools: composition/brand log updates and design decisions"""

from typing import Any, Dict

from ...schemas.tool_args import UpdateLogArgs, RecordDecisionArgs
from .context import ToolContext


def update_log(ctx: ToolContext, args: UpdateLogArgs) -> Dict[str, Any]:
    brain = ctx.brain
    with ctx.mutation():
        if args.total_duration is not None or args.fps is not None or args.entry_file is not None:
            brain.update_composition(total_duration=args.total_duration, fps=args.fps, entry_file=args.entry_file)
        brain.update_brand(name=args.brand_name, logo=args.logo, colors=args.colors,
                           style=args.style, font=args.font)
        if args.note:
            brain.record_decision(args.note, "progress note")
    return {
        "composition": brain.core.composition.model_dump(),
        "brand": brain.core.brand.model_dump(),
    }


def record_decision(ctx: ToolContext, args: RecordDecisionArgs) -> Dict[str, Any]:
    with ctx.mutation():
        ctx.brain.record_decision(args.what, args.why, args.file)
    return {"recorded": args.what, "decisions": len(ctx.brain.core.decisions)}
