"""State definition for the director turn loop workflow"""

from typing import List, Dict, Any, TypedDict, Optional, Union, Tuple
from .models import ToolInvocation, ToolOutcome


class TurnState(TypedDict):
    # Current interaction
    user_query: str
    project_id: str

    # Next message for the backend: user text or tool results from the last batch
    pending_message: Union[str, List[Tuple[ToolInvocation, ToolOutcome]], None]

    # Latest model response
    model_text: str
    tool_calls: List[ToolInvocation]

    # Loop budgets
    tool_rounds: int  # Model turns that requested tools
    nudge_count: int  # Corrective turns sent so far
    max_nudges: int
    max_tool_rounds: int
    tool_calls_total: int
    stagnant: bool  # No tool calls while the entry file is missing

    # Terminal reporting
    fatal_error: Optional[str]
    result: Dict[str, Any]  # Serialized TurnResult
