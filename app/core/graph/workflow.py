from langgraph.graph import StateGraph, END

from app.core.graph.state import UnlockState

# --- EDGES ---

def stop_on_error(next_node: str):
    def route(state: UnlockState):
        if state.get("error"):
            return END
        return next_node
    return route

def replan_on_conflict(state: UnlockState):
    if state.get("replan"):
        return "plan_chapter"
    return "commit_progress"

# --- GRAPH ---

def build_unlock_graph(nodes):
    """
    Compile the unlock pipeline.

    `nodes` provides one callable per step (the GenerationEngine). Resolution
    and numbering steps may end the run early by setting `error`. A chapter
    whose number was taken meanwhile goes back to planning; otherwise every
    remaining step runs.
    """
    workflow = StateGraph(UnlockState)

    workflow.add_node("resolve_profile", nodes.resolve_profile_node)
    workflow.add_node("resolve_tasks", nodes.resolve_tasks_node)
    workflow.add_node("plan_chapter", nodes.plan_chapter_node)
    workflow.add_node("build_request", nodes.build_request_node)
    workflow.add_node("generate", nodes.generate_node)
    workflow.add_node("persist", nodes.persist_node)
    workflow.add_node("commit_progress", nodes.commit_progress_node)
    workflow.add_node("notify", nodes.notify_node)

    workflow.set_entry_point("resolve_profile")

    workflow.add_conditional_edges(
        "resolve_profile",
        stop_on_error("resolve_tasks"),
        {
            "resolve_tasks": "resolve_tasks",
            END: END
        }
    )

    workflow.add_conditional_edges(
        "resolve_tasks",
        stop_on_error("plan_chapter"),
        {
            "plan_chapter": "plan_chapter",
            END: END
        }
    )

    workflow.add_conditional_edges(
        "plan_chapter",
        stop_on_error("build_request"),
        {
            "build_request": "build_request",
            END: END
        }
    )

    workflow.add_edge("build_request", "generate")
    workflow.add_edge("generate", "persist")
    workflow.add_conditional_edges(
        "persist",
        replan_on_conflict,
        {
            "plan_chapter": "plan_chapter",
            "commit_progress": "commit_progress"
        }
    )

    workflow.add_edge("commit_progress", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()
