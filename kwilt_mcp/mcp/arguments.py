"""Typed argument models for MCP tools.

Executors send loosely typed JSON. Fields are coerced leniently (strings
trimmed, numbers floored, wrong types treated as absent); presence of
required fields is checked by each handler so the error message names the
missing argument.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from kwilt_mcp.core.coerce import as_int, as_string
from kwilt_mcp.core.exceptions import InvalidParamsError


def _as_string_list(value: Any) -> Optional[list[str]]:
    if isinstance(value, list):
        return [s for s in (as_string(v) for v in value) if s]
    single = as_string(value)
    return [single] if single else None


Text = Annotated[Optional[str], BeforeValidator(as_string)]
Count = Annotated[Optional[int], BeforeValidator(as_int)]
TextList = Annotated[Optional[list[str]], BeforeValidator(_as_string_list)]


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def parse(cls, raw: Any) -> "ToolArguments":
        """Validate ``params.arguments``; non-objects count as ``{}``."""
        try:
            return cls.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as exc:
            raise InvalidParamsError("Invalid arguments", data={"errors": exc.errors(include_url=False)}) from exc


class ListExecutionTargetsArgs(ToolArguments):
    kind: Text = None
    limit: Count = None


class ListTasksArgs(ToolArguments):
    execution_target_id: Text = None
    handed_off_to_cursor: Any = None
    status: TextList = None
    limit: Count = None

    @property
    def handed_off_view_rejected(self) -> bool:
        """True when the caller explicitly asked for a non-handed-off view."""
        return "handed_off_to_cursor" in self.model_fields_set and not self.handed_off_to_cursor


class GetTaskArgs(ToolArguments):
    task_id: Text = None
    execution_target_id: Text = None


class GetRepoContextArgs(ToolArguments):
    execution_target_id: Text = None


class PostProgressArgs(ToolArguments):
    task_id: Text = None
    message: Text = None
    percent: Any = None
    artifacts: Any = None
    execution_target_id: Text = None


class AttachArtifactArgs(ToolArguments):
    task_id: Text = None
    artifact: Any = None
    execution_target_id: Text = None


class SetStatusArgs(ToolArguments):
    task_id: Text = None
    status: Text = None
    reason: Text = None
    execution_target_id: Text = None
