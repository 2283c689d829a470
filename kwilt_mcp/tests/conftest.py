from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from kwilt_mcp.auth import hash_token
from kwilt_mcp.config import get_settings
from kwilt_mcp.core.time import utcnow
from kwilt_mcp.db import Base, dispose_engine, get_engine, get_session_local
from kwilt_mcp.db.models import (
    Activity,
    ActivityHandoff,
    ExecutionTarget,
    PersonalAccessToken,
)
from kwilt_mcp.main import create_app

OWNER = "owner-a"
OTHER_OWNER = "owner-b"
TOKEN = "kwilt_pat_owner_a_0123456789abcdef"
OTHER_TOKEN = "kwilt_pat_owner_b_0123456789abcdef"


@pytest.fixture()
def engine(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "kwilt_mcp.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("DATABASE_URL_POSTGRES", "")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield engine
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture()
def db(engine):
    session = get_session_local()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine):
    with TestClient(create_app()) as c:
        yield c


class Seeder:
    """Insert fixture rows directly, bypassing the MCP surface."""

    def __init__(self, db):
        self.db = db
        self._clock = datetime(2026, 1, 1, 12, 0, 0)

    def tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def pat(self, owner_id: str = OWNER, token: str = TOKEN, revoked: bool = False) -> PersonalAccessToken:
        row = PersonalAccessToken(
            owner_id=owner_id,
            label="test",
            token_hash=hash_token(token),
            revoked_at=utcnow() if revoked else None,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def target(self, owner_id: str = OWNER, **fields: Any) -> ExecutionTarget:
        now = self.tick()
        values = {
            "kind": "cursor_repo",
            "display_name": "kwilt-app repo",
            "config": {"repo_url": "https://github.com/example/kwilt-app", "branch": "main"},
            "requirements": {"node": ">=20"},
            "playbook": {"verification": ["npm test"]},
            "is_enabled": True,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        row = ExecutionTarget(owner_id=owner_id, **values)
        self.db.add(row)
        self.db.commit()
        return row

    def handoff(
        self,
        activity_id: str,
        target: ExecutionTarget,
        owner_id: str = OWNER,
        **fields: Any,
    ) -> ActivityHandoff:
        now = self.tick()
        values = {
            "status": "READY",
            "handed_off": True,
            "handed_off_at": now,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        row = ActivityHandoff(
            owner_id=owner_id,
            activity_id=activity_id,
            execution_target_id=target.id,
            **values,
        )
        self.db.add(row)
        self.db.commit()
        return row

    def activity(self, activity_id: str, data: dict, owner_id: str = OWNER) -> Activity:
        row = Activity(owner_id=owner_id, id=activity_id, data=data)
        self.db.add(row)
        self.db.commit()
        return row


@pytest.fixture()
def seed(db) -> Seeder:
    return Seeder(db)


@pytest.fixture()
def rpc(client):
    """POST one JSON-RPC request and return the decoded envelope."""

    def _rpc(method: str, params: Any = None, token: str = TOKEN, request_id: Any = 1) -> dict:
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            body["params"] = params
        res = client.post("/mcp", json=body, headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200, res.text
        return res.json()

    return _rpc


@pytest.fixture()
def call_tool(rpc):
    """Call a tool; returns ``(payload, error)`` with exactly one set."""

    def _call(name: str, arguments: Any = None, token: str = TOKEN) -> tuple[Any, Any]:
        params: dict[str, Any] = {"name": name}
        if arguments is not None:
            params["arguments"] = arguments
        envelope = rpc("tools/call", params, token=token)
        if "error" in envelope:
            return None, envelope["error"]
        content = envelope["result"]["content"]
        assert len(content) == 1 and content[0]["type"] == "json"
        return content[0]["json"], None

    return _call
