"""list_tasks / get_task / set_status through the MCP endpoint."""

from datetime import datetime

import pytest

from kwilt_mcp.db.models import ActivityHandoff, McpAuditLog

pytestmark = pytest.mark.integration

OTHER_OWNER = "owner-b"
OTHER_TOKEN = "kwilt_pat_owner_b_0123456789abcdef"

AMBIGUOUS = "Task handed off to multiple execution targets; specify execution_target_id"


def _handoff(db, activity_id, target_id):
    db.expire_all()
    return (
        db.query(ActivityHandoff)
        .filter(
            ActivityHandoff.activity_id == activity_id,
            ActivityHandoff.execution_target_id == target_id,
        )
        .one()
    )


# -- list_tasks ---------------------------------------------------------------


def test_list_tasks_defaults_to_open_statuses_oldest_first(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-recent", target, status="IN_PROGRESS", updated_at=datetime(2026, 3, 1))
    seed.handoff("t-stale", target, status="READY", updated_at=datetime(2026, 2, 1))
    seed.handoff("t-done", target, status="DONE", updated_at=datetime(2026, 1, 1))
    seed.handoff("t-blocked", target, status="BLOCKED", blocked_reason="creds", updated_at=datetime(2026, 2, 15))
    seed.handoff("t-hidden", target, handed_off=False, handed_off_at=None)

    payload, error = call_tool("kwilt.list_tasks", {"execution_target_id": target.id})
    assert error is None
    assert [t["task_id"] for t in payload] == ["t-stale", "t-blocked", "t-recent"]
    first = payload[0]
    assert first["execution_target_id"] == target.id
    assert first["status"] == "READY"
    assert first["handed_off"] is True
    assert first["updated_at"] == "2026-02-01T00:00:00Z"


def test_list_tasks_status_filter_accepts_string_or_list(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-ready", target)
    seed.handoff("t-done", target, status="DONE")

    payload, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id, "status": "DONE"})
    assert [t["task_id"] for t in payload] == ["t-done"]

    payload, _ = call_tool(
        "kwilt.list_tasks", {"execution_target_id": target.id, "status": ["DONE", "READY"]}
    )
    assert {t["task_id"] for t in payload} == {"t-ready", "t-done"}


def test_list_tasks_limit_is_clamped(seed, call_tool):
    seed.pat()
    target = seed.target()
    for i in range(3):
        seed.handoff(f"t-{i}", target)

    payload, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id, "limit": -4})
    assert len(payload) == 1
    payload, _ = call_tool("kwilt.list_tasks", {"execution_target_id": target.id, "limit": 500})
    assert len(payload) == 3


def test_list_tasks_requires_target(seed, call_tool):
    seed.pat()
    _, error = call_tool("kwilt.list_tasks", {})
    assert error == {"code": -32602, "message": "Missing execution_target_id"}


@pytest.mark.parametrize("flag", [False, None, 0])
def test_list_tasks_rejects_non_handed_off_view(seed, call_tool, flag):
    seed.pat()
    target = seed.target()
    _, error = call_tool(
        "kwilt.list_tasks", {"execution_target_id": target.id, "handed_off_to_cursor": flag}
    )
    assert error == {"code": -32602, "message": "handed_off_to_cursor must be true"}


def test_list_tasks_accepts_explicit_handed_off_view(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)
    payload, error = call_tool(
        "kwilt.list_tasks", {"execution_target_id": target.id, "handed_off_to_cursor": True}
    )
    assert error is None
    assert [t["task_id"] for t in payload] == ["t-1"]


@pytest.mark.security
def test_list_tasks_is_scoped_to_owner(seed, call_tool):
    seed.pat()
    seed.pat(owner_id=OTHER_OWNER, token=OTHER_TOKEN)
    target = seed.target()
    seed.handoff("t-1", target)

    payload, error = call_tool("kwilt.list_tasks", {"execution_target_id": target.id}, token=OTHER_TOKEN)
    assert error is None
    assert payload == []


# -- get_task -----------------------------------------------------------------


def test_get_task_returns_work_packet(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.activity("t-1", {"title": "Fix login redirect"})
    seed.handoff(
        "t-1",
        target,
        problem_statement="Users land on a blank page after login",
        desired_outcome="Redirect to the dashboard",
        acceptance_criteria=["redirects to /today"],
        do_not_change=["auth provider config"],
        perf_or_security_notes="No tokens in logs",
        relevant_files_hint=["src/auth/redirect.ts"],
    )

    packet, error = call_tool("kwilt.get_task", {"task_id": "t-1"})
    assert error is None
    assert packet["task_id"] == "t-1"
    assert packet["title"] == "Fix login redirect"
    assert packet["status"] == "READY"
    assert packet["priority"] is None
    assert packet["execution_target_id"] == target.id
    assert packet["intent"] == {
        "problem_statement": "Users land on a blank page after login",
        "desired_outcome": "Redirect to the dashboard",
    }
    assert packet["definition_of_done"] == {
        "acceptance_criteria": ["redirects to /today"],
        "verification_steps": [],
    }
    assert packet["constraints"] == {
        "do_not_change": ["auth provider config"],
        "perf_or_security_notes": "No tokens in logs",
        "performance_or_security_notes": "No tokens in logs",
    }
    assert packet["context"] == {
        "links": [],
        "relevant_files_hint": ["src/auth/redirect.ts"],
        "examples": [],
    }


def test_get_task_title_override_wins(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.activity("t-1", {"title": "From the app"})
    seed.handoff("t-1", target, title_override="Executor title")

    packet, _ = call_tool("kwilt.get_task", {"task_id": "t-1"})
    assert packet["title"] == "Executor title"


def test_get_task_without_snapshot_is_untitled(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)

    packet, _ = call_tool("kwilt.get_task", {"task_id": "t-1"})
    assert packet["title"] == "Untitled"


def test_get_task_requires_task_id(seed, call_tool):
    seed.pat()
    _, error = call_tool("kwilt.get_task", {"task_id": 12})
    assert error == {"code": -32602, "message": "Missing task_id"}


def test_get_task_not_handed_off_is_not_found(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target, handed_off=False, handed_off_at=None)

    _, error = call_tool("kwilt.get_task", {"task_id": "t-1"})
    assert error == {"code": 404, "message": "Task not found"}


def test_get_task_for_wrong_target(seed, call_tool):
    seed.pat()
    target = seed.target()
    other = seed.target(display_name="second")
    seed.handoff("t-1", target)

    _, error = call_tool("kwilt.get_task", {"task_id": "t-1", "execution_target_id": other.id})
    assert error == {"code": 404, "message": "Task not found for execution target"}


def test_get_task_ambiguous_without_target(seed, call_tool):
    seed.pat()
    first = seed.target(display_name="first")
    second = seed.target(display_name="second")
    seed.handoff("t-1", first)
    seed.handoff("t-1", second)

    _, error = call_tool("kwilt.get_task", {"task_id": "t-1"})
    assert error == {"code": 404, "message": AMBIGUOUS}

    packet, error = call_tool("kwilt.get_task", {"task_id": "t-1", "execution_target_id": second.id})
    assert error is None
    assert packet["execution_target_id"] == second.id


@pytest.mark.security
def test_get_task_other_owner_is_not_found(seed, call_tool):
    seed.pat()
    seed.pat(owner_id=OTHER_OWNER, token=OTHER_TOKEN)
    target = seed.target()
    seed.handoff("t-1", target)

    _, error = call_tool("kwilt.get_task", {"task_id": "t-1"}, token=OTHER_TOKEN)
    assert error == {"code": 404, "message": "Task not found"}


def test_get_task_business_error_is_audited(seed, call_tool, db):
    seed.pat()
    call_tool("kwilt.get_task", {"task_id": "missing"})

    db.expire_all()
    row = db.query(McpAuditLog).one()
    assert row.tool_name == "kwilt.get_task"
    assert row.activity_id == "missing"
    assert row.summary == "error=Task not found"


def test_get_task_success_is_audited_with_target(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)
    call_tool("kwilt.get_task", {"task_id": "t-1"})

    db.expire_all()
    row = db.query(McpAuditLog).one()
    assert row.execution_target_id == target.id
    assert row.activity_id == "t-1"


# -- set_status ---------------------------------------------------------------


def test_set_status_blocked_then_unblocked(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)

    payload, error = call_tool(
        "kwilt.set_status", {"task_id": "t-1", "status": "BLOCKED", "reason": "Need API key"}
    )
    assert error is None
    assert payload == {"ok": True}
    row = _handoff(db, "t-1", target.id)
    assert row.status == "BLOCKED"
    assert row.blocked_reason == "Need API key"

    call_tool("kwilt.set_status", {"task_id": "t-1", "status": "IN_PROGRESS"})
    row = _handoff(db, "t-1", target.id)
    assert row.status == "IN_PROGRESS"
    assert row.blocked_reason is None


def test_set_status_reason_is_dropped_for_non_blocked(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target, status="BLOCKED", blocked_reason="old")

    call_tool("kwilt.set_status", {"task_id": "t-1", "status": "DONE", "reason": "shipped"})
    row = _handoff(db, "t-1", target.id)
    assert row.status == "DONE"
    assert row.blocked_reason is None


def test_set_status_done_is_not_terminal(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target, status="DONE")

    _, error = call_tool("kwilt.set_status", {"task_id": "t-1", "status": "READY"})
    assert error is None
    assert _handoff(db, "t-1", target.id).status == "READY"


def test_set_status_blocked_requires_reason(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)

    _, error = call_tool("kwilt.set_status", {"task_id": "t-1", "status": "BLOCKED", "reason": "  "})
    assert error["code"] == -32602
    assert _handoff(db, "t-1", target.id).status == "READY"


def test_set_status_rejects_unknown_status(seed, call_tool):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)

    _, error = call_tool("kwilt.set_status", {"task_id": "t-1", "status": "WAITING"})
    assert error == {"code": -32602, "message": "Invalid status"}


def test_set_status_requires_task_and_status(seed, call_tool):
    seed.pat()
    _, error = call_tool("kwilt.set_status", {"task_id": "t-1"})
    assert error == {"code": -32602, "message": "Missing task_id or status"}


def test_set_status_ambiguous_writes_nothing(seed, call_tool, db):
    seed.pat()
    first = seed.target(display_name="first")
    second = seed.target(display_name="second")
    seed.handoff("t-1", first)
    seed.handoff("t-1", second)

    _, error = call_tool("kwilt.set_status", {"task_id": "t-1", "status": "IN_PROGRESS"})
    assert error == {"code": 404, "message": AMBIGUOUS}
    assert _handoff(db, "t-1", first.id).status == "READY"
    assert _handoff(db, "t-1", second.id).status == "READY"


def test_set_status_updates_only_the_resolved_target(seed, call_tool, db):
    seed.pat()
    first = seed.target(display_name="first")
    second = seed.target(display_name="second")
    seed.handoff("t-1", first)
    seed.handoff("t-1", second)

    _, error = call_tool(
        "kwilt.set_status",
        {"task_id": "t-1", "status": "IN_PROGRESS", "execution_target_id": first.id},
    )
    assert error is None
    assert _handoff(db, "t-1", first.id).status == "IN_PROGRESS"
    assert _handoff(db, "t-1", second.id).status == "READY"


def test_set_status_audit_summary_includes_reason(seed, call_tool, db):
    seed.pat()
    target = seed.target()
    seed.handoff("t-1", target)
    reason = "x" * 300

    call_tool("kwilt.set_status", {"task_id": "t-1", "status": "BLOCKED", "reason": reason})

    db.expire_all()
    row = db.query(McpAuditLog).one()
    assert row.summary == "BLOCKED: " + "x" * 120
    assert row.execution_target_id == target.id
