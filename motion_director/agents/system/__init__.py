"""System agents - the director turn loop and publication finalization"""

from .finalizer import Finalizer, FinalizeOutcome, PublicationSlot, PublicationState
from .director_agent import DirectorAgent

__all__ = ["Finalizer", "FinalizeOutcome", "PublicationSlot", "PublicationState", "DirectorAgent"]
