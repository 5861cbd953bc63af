"""
Workflow Data Model

Records shared by the orchestrator and its agents: tasks and plans,
reviews, research results, execution results, memory items, history
entries, inter-agent messages and the final workflow result.

All records are plain dataclasses. ``to_dict()`` produces JSON-safe
values (enum values, nested records flattened) for prompts, logs and
the compiled workflow output.
"""

import random
import string
import time
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def generate_id() -> str:
    """Generate a session-unique id: ``<epoch-ms>-<9 base36 chars>``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def to_jsonable(value: Any) -> Any:
    """Recursively convert records, enums and containers to JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


class AgentRole(str, Enum):
    """Roles participating in a workflow run."""

    ORCHESTRATOR = "orchestrator"
    PLANNER = "planner"
    REVIEWER = "reviewer"
    RESEARCHER = "researcher"
    EXECUTOR = "executor"


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    NEEDS_REVIEW = "needs_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskPriority(str, Enum):
    """Task priority. Higher rank is selected first among ready tasks."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]

    @classmethod
    def parse(cls, value: Any) -> "TaskPriority":
        """Parse a priority, falling back to MEDIUM for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM


class MessageType(str, Enum):
    """Kind of inter-agent message."""

    REQUEST = "request"
    RESPONSE = "response"
    NOTIFICATION = "notification"
    ERROR = "error"


@dataclass
class TaskResult:
    """Outcome attached to a task by the reviewer or the orchestrator."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    review_notes: Optional[str] = None


@dataclass
class Task:
    """
    One atomic unit of work in a plan.

    Created by the planner in a batch, mutated by the orchestrator and
    reviewer, and moved from pending to completed, never deleted.
    """

    id: str
    description: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: list[str] = field(default_factory=list)
    result: Optional[TaskResult] = None
    assigned_agent: Optional[AgentRole] = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class Plan:
    """An ordered batch of tasks produced to satisfy a goal."""

    id: str
    goal: str
    tasks: list[Task] = field(default_factory=list)
    estimated_steps: int = 0
    revision: int = 0
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class Review:
    """Approve/reject verdict on a plan or a task result."""

    subject_id: str
    approved: bool
    feedback: str
    suggestions: list[str] = field(default_factory=list)
    reviewed_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class ResearchResult:
    """Answer to a free-form research query. Confidence is advisory."""

    query: str
    findings: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    confidence: float = 0.5
    researched_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class ExecutedAction:
    """A single automation call made (or replayed) by the executor."""

    description: str
    success: bool
    result: Any = None
    type: str = "browser"
    replayed: bool = False
    timestamp: str = field(default_factory=now_iso)


@dataclass
class ExecutionResult:
    """
    Outcome of executing one task.

    ``attempted`` is False when no automation call was made at all
    (unparseable decision, unknown action, missing parameters).
    """

    task_id: str
    success: bool
    output: Any = None
    actions: list[ExecutedAction] = field(default_factory=list)
    attempted: bool = True
    executed_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class MemoryItem:
    """Keyed value shared between steps. Last write wins per key."""

    key: str
    value: Any
    source: AgentRole
    id: str = field(default_factory=generate_id)
    timestamp: float = field(default_factory=time.time)
    ttl: Optional[float] = None  # seconds

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.ttl is None:
            return False
        now = time.time() if now is None else now
        return now - self.timestamp > self.ttl


@dataclass
class ContextState:
    """Running session state visible to every agent."""

    is_logged_in: bool = False
    current_page: Optional[str] = None
    selected_entity: Optional[str] = None
    last_error: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "is_logged_in": self.is_logged_in,
            "current_page": self.current_page,
            "selected_entity": self.selected_entity,
            "last_error": self.last_error,
        }
        data.update(to_jsonable(self.extra))
        return data


@dataclass
class HistoryEntry:
    """Immutable audit record of one agent action."""

    agent: AgentRole
    action: str
    input: Any = None
    output: Any = None
    id: str = field(default_factory=generate_id)
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class AgentMessage:
    """Message passed between agents through the orchestrator."""

    sender: AgentRole
    recipient: AgentRole
    type: MessageType
    content: str
    payload: Any = None
    consumed: bool = False
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)


@dataclass
class WorkflowResult:
    """Structured result of one workflow run, returned to the caller."""

    success: bool
    session_id: str
    goal: str
    completed_tasks: int
    total_tasks: int
    duration_ms: int
    output: Any = None
    error: Optional[str] = None
    history: list[HistoryEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)
