"""
Shared Context Store

Holds the single mutable session record of a workflow run: goal, active
plan, pending and completed task queues, keyed memory, running state and
the append-only history log.

One ContextManager exists per run. The orchestrator owns it and hands the
same instance to every agent, so a write from one agent is visible to the
next step of the same iteration. There is no locking: the loop is
sequential and nothing else writes to it.

No operation here fails. Unknown task ids and memory keys are no-ops.
"""

import time
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

from .config import get_logger
from .models import (
    AgentRole,
    ContextState,
    HistoryEntry,
    MemoryItem,
    Plan,
    Task,
    TaskResult,
    TaskStatus,
    generate_id,
    now_iso,
)

logger = get_logger(__name__)

# Statuses eligible for selection by get_next_task()
SELECTABLE_STATUSES = (TaskStatus.PENDING, TaskStatus.APPROVED)

_STATE_FIELDS = {f.name for f in fields(ContextState)} - {"extra"}


@dataclass
class SharedContext:
    """The session record shared by all agents of one run."""

    goal: str
    session_id: str = field(default_factory=generate_id)
    current_plan: Optional[Plan] = None
    completed_tasks: list[Task] = field(default_factory=list)
    pending_tasks: list[Task] = field(default_factory=list)
    memory: list[MemoryItem] = field(default_factory=list)
    state: ContextState = field(default_factory=ContextState)
    history: list[HistoryEntry] = field(default_factory=list)


class ContextManager:
    """
    Store operations over a SharedContext.

    Usage:
        >>> ctx = ContextManager("Submit a home visit form")
        >>> ctx.set_memory("entities", [...], AgentRole.EXECUTOR)
        >>> ctx.get_memory("entities")
    """

    def __init__(self, goal: str):
        self._context = SharedContext(goal=goal)

    @property
    def context(self) -> SharedContext:
        """The live session record (by reference, not a copy)."""
        return self._context

    @property
    def goal(self) -> str:
        return self._context.goal

    @property
    def session_id(self) -> str:
        return self._context.session_id

    @property
    def state(self) -> ContextState:
        return self._context.state

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def update_state(
        self,
        updates: Mapping[str, Any],
        source: AgentRole = AgentRole.ORCHESTRATOR,
    ) -> None:
        """
        Merge fields into the running state and record a history entry.

        Known ContextState fields are set directly; anything else lands
        in ``state.extra``.
        """
        state = self._context.state
        for key, value in updates.items():
            if key in _STATE_FIELDS:
                setattr(state, key, value)
            else:
                state.extra[key] = value
        self.add_history(source, "state_update", dict(updates), state.to_dict())

    # ------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------

    def set_memory(
        self,
        key: str,
        value: Any,
        source: AgentRole,
        ttl: Optional[float] = None,
    ) -> None:
        """Store a value under key, replacing any previous item (last write wins)."""
        item = MemoryItem(key=key, value=value, source=source, ttl=ttl)
        memory = self._context.memory
        for idx, existing in enumerate(memory):
            if existing.key == key:
                memory[idx] = item
                return
        memory.append(item)

    def get_memory(self, key: str, default: Any = None) -> Any:
        """Read a memory value. Missing or expired keys return default."""
        now = time.time()
        for item in self._context.memory:
            if item.key == key:
                if item.is_expired(now):
                    return default
                return item.value
        return default

    def memory_snapshot(self) -> dict[str, Any]:
        """Flatten live memory items into a key -> value mapping."""
        now = time.time()
        return {
            item.key: item.value
            for item in self._context.memory
            if not item.is_expired(now)
        }

    # ------------------------------------------------------------------
    # Plan and tasks
    # ------------------------------------------------------------------

    def set_plan(self, plan: Plan) -> None:
        """
        Install plan as the active plan and reseed the pending queue.

        Tasks already in completed_tasks are kept there; every other task
        of the plan becomes pending in plan order. Previously pending tasks
        not in the new plan are discarded.
        """
        completed_ids = {t.id for t in self._context.completed_tasks}
        self._context.current_plan = plan
        self._context.pending_tasks = [
            t for t in plan.tasks
            if t.id not in completed_ids and t.status != TaskStatus.COMPLETED
        ]

    def get_task(self, task_id: str) -> Optional[Task]:
        """Find a task in either queue."""
        for task in self._context.pending_tasks:
            if task.id == task_id:
                return task
        for task in self._context.completed_tasks:
            if task.id == task_id:
                return task
        return None

    def update_task(self, task_id: str, **changes: Any) -> None:
        """Merge fields into a pending task and bump updated_at."""
        task = self._find_pending(task_id)
        if task is None:
            return
        for key, value in changes.items():
            if key == "status" and not isinstance(value, TaskStatus):
                value = TaskStatus(value)
            if hasattr(task, key):
                setattr(task, key, value)
            else:
                logger.debug("Ignoring unknown task field %r", key)
        task.updated_at = now_iso()

    def complete_task(self, task_id: str, result: Optional[TaskResult]) -> None:
        """Move a pending task to completed. A second call is a no-op."""
        pending = self._context.pending_tasks
        for idx, task in enumerate(pending):
            if task.id == task_id:
                task.status = TaskStatus.COMPLETED
                task.result = result
                task.updated_at = now_iso()
                self._context.completed_tasks.append(task)
                del pending[idx]
                return

    def get_next_task(self) -> Optional[Task]:
        """
        Select the next task to run.

        Candidates are pending tasks in ``pending`` or ``approved`` status
        whose dependencies have all completed. Dependencies on ids the
        session does not know are treated as met. The highest priority
        candidate wins; ties keep plan order.
        """
        best: Optional[Task] = None
        for task in self._context.pending_tasks:
            if task.status not in SELECTABLE_STATUSES:
                continue
            if not self._dependencies_met(task):
                continue
            if best is None or task.priority.rank > best.priority.rank:
                best = task
        return best

    def has_blocked_tasks(self) -> bool:
        """True if tasks remain pending but none of them can be selected."""
        return bool(self._context.pending_tasks) and self.get_next_task() is None

    def _dependencies_met(self, task: Task) -> bool:
        pending_ids = {t.id for t in self._context.pending_tasks}
        return all(dep not in pending_ids for dep in task.dependencies)

    def _find_pending(self, task_id: str) -> Optional[Task]:
        for task in self._context.pending_tasks:
            if task.id == task_id:
                return task
        return None

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        agent: AgentRole,
        action: str,
        input: Any = None,
        output: Any = None,
    ) -> None:
        """Append an audit entry."""
        self._context.history.append(
            HistoryEntry(agent=agent, action=action, input=input, output=output)
        )
