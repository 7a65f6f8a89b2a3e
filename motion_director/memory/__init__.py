"""Durable per-project memory"""

from .project_brain import ProjectBrain, BrainData

__all__ = ["ProjectBrain", "BrainData"]
