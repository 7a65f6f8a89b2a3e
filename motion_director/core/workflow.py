"""Workflow builder and routing for the director turn loop"""

import logging
from langgraph.graph import StateGraph, END
from .state import TurnState

logger = logging.getLogger(__name__)


def build_director_workflow(agent):
    """Build the turn loop graph over a DirectorAgent's nodes and routers

    prepare_turn -> await_model -> dispatch_tools -> await_model ...
                               \\-> stagnation_check -> nudge -> await_model
                                                    \\-> finalize
                               \\-> report_failure
    """
    workflow = StateGraph(TurnState)

    # Add nodes
    workflow.add_node("prepare_turn", agent.prepare_turn)
    workflow.add_node("await_model", agent.await_model)
    workflow.add_node("dispatch_tools", agent.dispatch_tools)
    workflow.add_node("stagnation_check", agent.stagnation_check)
    workflow.add_node("nudge", agent.nudge)
    workflow.add_node("finalize", agent.finalize)
    workflow.add_node("report_failure", agent.report_failure)

    # Entry point
    workflow.set_entry_point("prepare_turn")
    workflow.add_edge("prepare_turn", "await_model")

    workflow.add_conditional_edges(
        "await_model",
        agent.route_after_model,
        {
            "dispatch_tools": "dispatch_tools",
            "stagnation_check": "stagnation_check",
            "report_failure": "report_failure",
        }
    )

    # Tool outcomes go back to the model until the round ceiling is hit
    workflow.add_conditional_edges(
        "dispatch_tools",
        agent.route_after_tools,
        {
            "await_model": "await_model",
            "finalize": "finalize",
        }
    )

    workflow.add_conditional_edges(
        "stagnation_check",
        agent.route_after_stagnation,
        {
            "nudge": "nudge",
            "finalize": "finalize",
        }
    )
    workflow.add_edge("nudge", "await_model")

    # Terminal nodes
    workflow.add_edge("finalize", END)
    workflow.add_edge("report_failure", END)

    compiled_workflow = workflow.compile()
    logger.debug("[Workflow] Director workflow compiled")
    return compiled_workflow
