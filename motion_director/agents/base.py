"""
Shared utilities for the director agent: progress events and error humanizing
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from ..core.config import ERROR_MESSAGE_LIMIT
from ..core.errors import SafetyRejection, ValidationFailed, ToolTimeout, UnknownTool
from ..core.models import ProgressEvent

logger = logging.getLogger(__name__)

LOG_LEVELS = ("info", "success", "warning", "error")


def emit_event(event_type: str, data: Any = None, agent_name: str = "director"):
    """
    Emit a streaming event using LangGraph's StreamWriter when available.

    Args:
        event_type: Type of event to emit
        data: Event data to include
        agent_name: Agent name attached to the event
    """
    try:
        from langgraph.config import get_stream_writer
        writer = get_stream_writer()
        writer({
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            "agent": agent_name,
            "data": data
        })
    except Exception as e:
        # Only expected when called outside a LangGraph run (e.g. finalization from a test)
        logger.debug(f"[emit_event] Streaming unavailable for event_type={event_type}: {type(e).__name__}: {e}")


def format_time(seconds: float) -> str:
    """Format time in seconds to minutes and seconds"""
    minutes = int(seconds // 60)
    remaining_seconds = seconds % 60
    if minutes > 0:
        return f"{minutes}m {remaining_seconds:.1f}s"
    else:
        return f"{remaining_seconds:.1f}s"


class ProgressReporter:
    """Delivers progress logs and the publication signal to the caller"""

    def __init__(self, on_event: Optional[Callable[[ProgressEvent], None]] = None,
                 on_publish: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.on_event = on_event
        self.on_publish = on_publish

    def log(self, level: str, message: str):
        if level not in LOG_LEVELS:
            level = "info"
        event = ProgressEvent(level=level, message=message)
        log_method = logger.error if level == "error" else logger.warning if level == "warning" else logger.info
        log_method(f"[Progress] {message}")
        emit_event("agent_log", {"level": level, "message": message})
        if self.on_event:
            self.on_event(event)

    def publish(self, signal: Dict[str, Any]):
        emit_event("publication_ready", signal)
        if self.on_publish:
            self.on_publish(signal)


def _truncate(message: str, limit: int = ERROR_MESSAGE_LIMIT) -> str:
    message = " ".join(str(message).split())
    return message if len(message) <= limit else message[:limit] + "..."


def categorize_error(error: Exception) -> str:
    """Map an exception to a failure category echoed to the model"""
    if isinstance(error, FileNotFoundError):
        return "missing_resource"
    if isinstance(error, FileExistsError):
        return "already_exists"
    if isinstance(error, PermissionError):
        return "permission_denied"
    if isinstance(error, SafetyRejection):
        return "safety_rejection"
    if isinstance(error, ValidationFailed):
        return "validation_failure"
    if isinstance(error, ToolTimeout):
        return "timeout"
    if isinstance(error, ValidationError):
        return "invalid_arguments"
    if isinstance(error, UnknownTool):
        return "unknown_tool"
    return "tool_error"


def humanize_error(error: Exception) -> str:
    """Short, actionable description of a tool failure"""
    category = categorize_error(error)
    detail = _truncate(error)
    if category == "missing_resource":
        return f"File not found. Check the path or create the file first. ({detail})"
    if category == "already_exists":
        return f"File already exists. Use atomic_edit or write_file to change it. ({detail})"
    if category == "permission_denied":
        return f"Permission denied for this path. ({detail})"
    if category == "safety_rejection":
        return f"Safety rejection: {detail}"
    if category == "validation_failure":
        return f"Validation failure: {detail}"
    if category == "timeout":
        return f"Timed out: {detail}"
    if category == "invalid_arguments":
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in error.errors()[:5])
        return f"Invalid arguments ({fields}). Check the tool schema."
    if category == "unknown_tool":
        return f"Unknown tool: {detail}"
    return f"Tool error: {detail}"
