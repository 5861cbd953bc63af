"""
Structured payloads parsed from reasoning output.

Each agent asks the reasoning capability for a JSON object of a known
shape. These models validate that object. Coercion is lenient: missing
optional fields take defaults, nulls become empty values, and malformed
entries inside a list are dropped instead of failing the whole payload.
"""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

_TASK_REF = re.compile(r"^(?:task-)?(\d+)$")


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class PlannedTask(BaseModel):
    """One task as proposed by the planner."""

    description: str = Field(min_length=1)
    priority: str = "medium"
    dependencies: list[int] = Field(default_factory=list)
    """Indices of tasks in the same batch this task depends on."""

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> str:
        return "medium" if value is None else str(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _dependencies(cls, value: Any) -> list[int]:
        indices = []
        for item in _as_list(value):
            if isinstance(item, bool):
                continue
            if isinstance(item, int):
                indices.append(item)
                continue
            match = _TASK_REF.match(str(item).strip())
            if match:
                indices.append(int(match.group(1)))
        return indices


class PlanPayload(BaseModel):
    """``{"tasks": [...]}``"""

    tasks: list[PlannedTask] = Field(default_factory=list)

    @field_validator("tasks", mode="before")
    @classmethod
    def _drop_malformed(cls, value: Any) -> list:
        return [
            item for item in _as_list(value)
            if isinstance(item, dict) and str(item.get("description") or "").strip()
        ]


class ReviewPayload(BaseModel):
    """``{"approved": bool, "feedback": str, "suggestions": [str]}``"""

    approved: bool = True
    feedback: str = ""
    suggestions: list[str] = Field(default_factory=list)

    @field_validator("approved", mode="before")
    @classmethod
    def _approved(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("suggestions", mode="before")
    @classmethod
    def _suggestions(cls, value: Any) -> list[str]:
        return [str(item) for item in _as_list(value)]


class ActionPayload(BaseModel):
    """``{"action": "ACTION_NAME", "params": {...}}``"""

    action: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _params(cls, value: Any) -> Any:
        return {} if value is None else value


class ResearchPayload(BaseModel):
    """``{"findings": [...], "sources": [...], "confidence": 0..1}``"""

    findings: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=lambda: ["context"])
    confidence: float = 0.5

    @field_validator("findings", mode="before")
    @classmethod
    def _findings(cls, value: Any) -> list[str]:
        return [str(item) for item in _as_list(value)]

    @field_validator("sources", mode="before")
    @classmethod
    def _sources(cls, value: Any) -> list[str]:
        if value is None:
            return ["context"]
        return [str(item) for item in _as_list(value)]

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.5
        if number != number:  # NaN
            return 0.5
        return min(1.0, max(0.0, number))


def normalize_dependencies(indices: list[int], batch_ids: list[str], own_index: int) -> list[str]:
    """Map batch indices to task ids, dropping out-of-range and self references."""
    resolved: list[str] = []
    for idx in indices:
        if idx == own_index or not 0 <= idx < len(batch_ids):
            continue
        task_id = batch_ids[idx]
        if task_id not in resolved:
            resolved.append(task_id)
    return resolved
