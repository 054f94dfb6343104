"""LangGraph workflow definition for session evaluation."""
from typing import Literal

from langgraph.graph import END, StateGraph

from rehearsal.models import EvaluationState


def route_on_failure(next_node: str):
    """Build a router that diverts to the fallback node once a reason is set."""

    def route(state: EvaluationState) -> str:
        if state.get("reason"):
            return "fallback"
        return next_node

    route.__name__ = f"route_to_{next_node}"
    return route


def route_after_judge(state: EvaluationState) -> Literal["parse", "fallback"]:
    """Only a non-empty model answer is worth parsing."""
    if state.get("reason") or not state.get("raw_response"):
        return "fallback"
    return "parse"


def create_evaluation_workflow(nodes):
    """
    Create the evaluation workflow.

    Graph Structure:
        load_session ──► build_prompt ──► judge ──► parse ──► persist ──► END
             │                              │         │
             └──────────────┬───────────────┴─────────┘
                            ▼
                        fallback ──► END

    `nodes` supplies one async callable per stage (see EvaluationNodes).
    Any stage that sets `reason` in the state routes to the fallback node.
    """
    workflow = StateGraph(EvaluationState)

    workflow.add_node("load_session", nodes.load_session)
    workflow.add_node("build_prompt", nodes.build_prompt)
    workflow.add_node("judge", nodes.judge)
    workflow.add_node("parse", nodes.parse)
    workflow.add_node("persist", nodes.persist)
    workflow.add_node("fallback", nodes.fallback)

    workflow.set_entry_point("load_session")

    workflow.add_conditional_edges(
        "load_session",
        route_on_failure("build_prompt"),
        {
            "build_prompt": "build_prompt",
            "fallback": "fallback",
        }
    )
    workflow.add_edge("build_prompt", "judge")
    workflow.add_conditional_edges(
        "judge",
        route_after_judge,
        {
            "parse": "parse",
            "fallback": "fallback",
        }
    )
    workflow.add_conditional_edges(
        "parse",
        route_on_failure("persist"),
        {
            "persist": "persist",
            "fallback": "fallback",
        }
    )
    workflow.add_edge("persist", END)
    workflow.add_edge("fallback", END)

    return workflow.compile()
