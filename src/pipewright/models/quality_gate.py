"""Quality gate data models.

The webhook payload shape follows SonarQube's "Webhooks" documentation::

    {
        "taskId": "AVh21JS2JepAEhwQ-b3u",
        "status": "SUCCESS",
        "analysedAt": "2016-11-18T10:46:28+0100",
        "project": {"key": "myproject", "name": "My Project"},
        "qualityGate": {"name": "SonarQube way", "status": "OK", "conditions": [...]}
    }
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

PASSING_GATE_STATUSES = frozenset({"OK"})


def parse_sonar_datetime(value: Any) -> datetime | None:
    """Parse SonarQube timestamps such as ``2016-11-18T10:46:28+0100``."""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    try:
        return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))


class GateCondition(BaseModel):
    """A single metric condition evaluated by the gate."""

    metric: str
    operator: str | None = None
    status: str
    value: str | None = None
    error_threshold: str | None = Field(None, alias="errorThreshold")


class QualityGateResult(BaseModel):
    """Pass/fail judgment issued by the analysis service for one analysis."""

    passed: bool = Field(..., description="Whether the gate let the code through")
    status: str = Field(..., description="Raw gate status (OK, ERROR, ...)")
    analysed_at: datetime | None = Field(None, description="Source timestamp")
    project_key: str | None = Field(None, description="Analysed project key")
    task_id: str | None = Field(None, description="Compute engine task id")
    gate_name: str | None = Field(None, description="Name of the quality gate")
    conditions: list[GateCondition] = Field(default_factory=list)

    @field_validator("analysed_at", mode="before")
    @classmethod
    def _parse_analysed_at(cls, value: Any) -> datetime | None:
        return parse_sonar_datetime(value)

    @property
    def failed_conditions(self) -> list[GateCondition]:
        return [c for c in self.conditions if c.status not in PASSING_GATE_STATUSES]

    @classmethod
    def from_webhook(cls, payload: dict[str, Any]) -> "QualityGateResult":
        """Build a result from a SonarQube webhook payload.

        A failed background task (``status`` other than ``SUCCESS``) counts as
        a failing gate even when no ``qualityGate`` block is present.

        Raises:
            ValueError: If a block has the wrong JSON type
        """
        gate = _object(payload, "qualityGate")
        project = _object(payload, "project")
        conditions = gate.get("conditions") or []
        if not isinstance(conditions, list):
            raise ValueError("'qualityGate.conditions' must be a list")

        if payload.get("status", "SUCCESS") != "SUCCESS":
            gate_status = "ERROR"
        else:
            gate_status = gate.get("status") or "NONE"
        if not isinstance(gate_status, str):
            raise ValueError("'qualityGate.status' must be a string")

        return cls(
            passed=gate_status in PASSING_GATE_STATUSES,
            status=gate_status,
            analysed_at=payload.get("analysedAt"),
            project_key=project.get("key"),
            task_id=payload.get("taskId"),
            gate_name=gate.get("name"),
            conditions=[GateCondition.model_validate(c) for c in conditions],
        )


def _object(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be an object")
    return value
