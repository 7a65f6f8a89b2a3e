"""Project workspace storage"""

from .workspace import ProjectWorkspace

__all__ = ["ProjectWorkspace"]
