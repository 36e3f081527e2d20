from langgraph.graph import END

from app.core.graph.state import UnlockState
from app.core.graph.workflow import build_unlock_graph, stop_on_error


class RecordingNodes:
    """Node callables that record the order they ran in."""

    def __init__(self, fail_at=None, conflicts=0):
        self.fail_at = fail_at
        self.conflicts = conflicts
        self.ran = []

    def _node(self, name, update):
        def run(state: UnlockState) -> UnlockState:
            self.ran.append(name)
            if name == self.fail_at:
                return {"error": f"{name} failed"}
            if name == "persist" and self.conflicts:
                self.conflicts -= 1
                return {"persisted": False, "replan": True}
            return update
        return run

    def __getattr__(self, attr):
        if not attr.endswith("_node"):
            raise AttributeError(attr)
        name = attr[:-len("_node")]
        updates = {
            "generate": {"chapter": "chapter"},
            "persist": {"persisted": True, "replan": False},
            "commit_progress": {"progress_committed": True},
            "notify": {"notified": True},
        }
        return self._node(name, updates.get(name, {"error": None}))


FULL_RUN = [
    "resolve_profile", "resolve_tasks", "plan_chapter", "build_request",
    "generate", "persist", "commit_progress", "notify",
]


def test_stop_on_error_routes_to_end():
    route = stop_on_error("next")
    assert route({"error": "boom"}) == END
    assert route({"error": None}) == "next"
    assert route({}) == "next"


def test_full_run_visits_every_step():
    nodes = RecordingNodes()
    final = build_unlock_graph(nodes).invoke({"child_id": 1, "task_record_ids": [1]})

    assert nodes.ran == FULL_RUN
    assert final["notified"] is True
    assert final["persisted"] is True


def test_missing_tasks_end_the_run():
    nodes = RecordingNodes(fail_at="resolve_tasks")
    final = build_unlock_graph(nodes).invoke({"child_id": 1, "task_record_ids": []})

    assert nodes.ran == ["resolve_profile", "resolve_tasks"]
    assert final["error"] == "resolve_tasks failed"
    assert "chapter" not in final


def test_planning_error_ends_the_run():
    nodes = RecordingNodes(fail_at="plan_chapter")
    build_unlock_graph(nodes).invoke({"child_id": 1})

    assert nodes.ran == FULL_RUN[:3]


def test_taken_slot_goes_back_to_planning():
    nodes = RecordingNodes(conflicts=1)
    final = build_unlock_graph(nodes).invoke({"child_id": 1, "task_record_ids": [1]})

    replanned = ["plan_chapter", "build_request", "generate", "persist"]
    assert nodes.ran == FULL_RUN[:6] + replanned + ["commit_progress", "notify"]
    assert final["persisted"] is True
