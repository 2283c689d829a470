"""End-to-end executor session: discover, pull, report, finish."""

from datetime import datetime

import pytest

pytestmark = pytest.mark.integration

OTHER_OWNER = "owner-b"
OTHER_TOKEN = "kwilt_pat_owner_b_0123456789abcdef"


def test_list_tasks_scenario_response_shape(seed, rpc):
    seed.pat()
    target = seed.target()
    seed.handoff(
        "task-42",
        target,
        status="READY",
        handed_off_at=datetime(2026, 4, 1, 9, 0),
        created_at=datetime(2026, 4, 1, 8, 0),
        updated_at=datetime(2026, 4, 1, 9, 0),
    )

    envelope = rpc(
        "tools/call",
        {"name": "kwilt.list_tasks", "arguments": {"execution_target_id": target.id}},
        request_id="req-7",
    )
    assert envelope == {
        "jsonrpc": "2.0",
        "id": "req-7",
        "result": {
            "content": [
                {
                    "type": "json",
                    "json": [
                        {
                            "task_id": "task-42",
                            "execution_target_id": target.id,
                            "status": "READY",
                            "handed_off": True,
                            "handed_off_at": "2026-04-01T09:00:00Z",
                            "updated_at": "2026-04-01T09:00:00Z",
                            "created_at": "2026-04-01T08:00:00Z",
                        }
                    ],
                }
            ]
        },
    }


def test_full_executor_session(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.activity("task-1", {"title": "Add dark mode"})
    seed.handoff("task-1", target, acceptance_criteria=["toggle persists"])

    targets, _ = call_tool("kwilt.list_execution_targets", {})
    assert [t["id"] for t in targets] == [target.id]

    context, _ = call_tool("kwilt.get_repo_context", {"execution_target_id": target.id})
    assert context["playbook"] == {"verification": ["npm test"]}

    tasks, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id})
    assert [t["task_id"] for t in tasks] == ["task-1"]

    call_tool("kwilt.set_status", {"task_id": "task-1", "status": "IN_PROGRESS"})
    call_tool("kwilt.set_status", {"task_id": "task-1", "status": "BLOCKED", "reason": "Need design tokens"})

    packet, _ = call_tool("kwilt.get_task", {"task_id": "task-1"})
    assert packet["title"] == "Add dark mode"
    assert packet["status"] == "BLOCKED"
    assert packet["blocked_reason"] == "Need design tokens"

    call_tool("kwilt.set_status", {"task_id": "task-1", "status": "IN_PROGRESS"})
    packet, _ = call_tool("kwilt.get_task", {"task_id": "task-1"})
    assert packet["status"] == "IN_PROGRESS"
    assert packet["blocked_reason"] is None

    result, _ = call_tool(
        "kwilt.post_progress",
        {
            "task_id": "task-1",
            "message": "Implemented toggle",
            "percent": 90,
            "artifacts": [{"type": "diff_summary", "content": "+ThemeToggle.tsx"}],
        },
    )
    assert result == {"ok": True, "artifacts_written": 1}

    call_tool("kwilt.attach_artifact", {"task_id": "task-1", "artifact": {"type": "pr_url", "content": "https://example.com/pr/1"}})
    call_tool("kwilt.set_status", {"task_id": "task-1", "status": "DONE"})

    tasks, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id})
    assert tasks == []

    done, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id, "status": "DONE"})
    assert [t["task_id"] for t in done] == ["task-1"]


@pytest.mark.security
@pytest.mark.parametrize(
    "tool, arguments",
    [
        ("kwilt.get_task", {"task_id": "task-1"}),
        ("kwilt.post_progress", {"task_id": "task-1", "message": "hi"}),
        ("kwilt.attach_artifact", {"task_id": "task-1", "artifact": {"type": "notes", "content": "x"}}),
        ("kwilt.set_status", {"task_id": "task-1", "status": "DONE"}),
    ],
)
def test_other_owner_cannot_touch_task(seed, call_tool, tool, arguments):
    seed.pat()
    seed.pat(owner_id=OTHER_OWNER, token=OTHER_TOKEN)
    target = seed.target()
    seed.handoff("task-1", target)

    _, error = call_tool(tool, arguments, token=OTHER_TOKEN)
    assert error == {"code": 404, "message": "Task not found"}

    _, error = call_tool(tool, {**arguments, "execution_target_id": target.id}, token=OTHER_TOKEN)
    assert error == {"code": 404, "message": "Task not found for execution target"}
