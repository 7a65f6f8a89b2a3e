"""Per-project director sessions"""

from .project_session import ProjectSession
from .session_manager import SessionManager

__all__ = ["ProjectSession", "SessionManager"]
