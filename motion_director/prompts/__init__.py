"""Prompt templates for the director agent"""

from .director import (
    DIRECTOR_SYSTEM_PROMPT_TEMPLATE,
    PROJECT_BOOTSTRAP_TEMPLATE,
    PROJECT_BOOTSTRAP_ACK,
    STAGNATION_NUDGE_TEMPLATE,
    USER_TURN_TEMPLATE,
)

__all__ = [
    'DIRECTOR_SYSTEM_PROMPT_TEMPLATE',
    'PROJECT_BOOTSTRAP_TEMPLATE',
    'PROJECT_BOOTSTRAP_ACK',
    'STAGNATION_NUDGE_TEMPLATE',
    'USER_TURN_TEMPLATE',
]
