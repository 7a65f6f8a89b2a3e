"""Generated-text repair and validation gate"""

from .text_repair import TextRepairer, repair_source, DEFAULT_ARGUMENT_KEYS
from .syntax_validator import SyntaxValidator

__all__ = ["TextRepairer", "repair_source", "DEFAULT_ARGUMENT_KEYS", "SyntaxValidator"]
