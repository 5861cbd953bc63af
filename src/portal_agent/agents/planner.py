"""
Planner Agent

Turns a goal into an ordered batch of tasks and installs it as the
session's active plan. Revisions replace the remaining tasks while
keeping every task already completed. Revisions made after a failure
also keep the failed tasks.

Planning never raises: a failed reasoning call or an unparseable answer
yields a plan with no tasks.
"""

from typing import Optional

from ..config import get_logger
from ..errors import ReasoningError
from ..models import AgentRole, Plan, Task, TaskPriority, TaskStatus, generate_id
from .base import BaseAgent
from .definitions import PLAN_REVISION_PROMPT, PLANNER_AGENT, format_action_vocabulary
from .payloads import PlanPayload, normalize_dependencies

logger = get_logger(__name__)


class PlannerAgent(BaseAgent):
    """
    Creates and revises task plans.

    Task ids are ``task-<index>`` for the initial plan and
    ``task-r<revision>-<index>`` for revisions, so ids stay unique across
    a session.
    """

    role = AgentRole.PLANNER

    def _build_plan_prompt(self, goal: str) -> str:
        state = self.context.state
        return "\n".join([
            f'Create a plan to achieve this goal: "{goal}"',
            "",
            "Current context:",
            f"- Logged in: {str(state.is_logged_in).lower()}",
            f"- Current page: {state.current_page or 'unknown'}",
            f"- Selected entity: {state.selected_entity or 'none'}",
            "",
            "Available actions:",
            format_action_vocabulary(numbered=True),
        ])

    async def _ask_for_tasks(self, prompt: str, system_prompt: str) -> Optional[PlanPayload]:
        try:
            response = await self.think(prompt, system_prompt)
        except ReasoningError as e:
            logger.warning("Planner reasoning failed, using an empty plan: %s", e)
            self.context.add_history(self.role, "plan_error", None, str(e))
            return None
        payload = self.parse_json(response, PlanPayload)
        if payload is None:
            logger.info("Planner response had no parseable task list")
        return payload

    @staticmethod
    def _materialize(payload: Optional[PlanPayload], id_prefix: str) -> list[Task]:
        planned = payload.tasks if payload else []
        ids = [f"{id_prefix}-{idx}" for idx in range(len(planned))]
        return [
            Task(
                id=ids[idx],
                description=item.description.strip(),
                status=TaskStatus.PENDING,
                priority=TaskPriority.parse(item.priority),
                dependencies=normalize_dependencies(item.dependencies, ids, idx),
            )
            for idx, item in enumerate(planned)
        ]

    async def create_plan(self, goal: str) -> Plan:
        """
        Plan the goal and install the result as the active plan.

        Args:
            goal: Natural-language objective

        Returns:
            The installed Plan, possibly with no tasks
        """
        self.context.add_history(self.role, "create_plan", {"goal": goal})

        payload = await self._ask_for_tasks(self._build_plan_prompt(goal), PLANNER_AGENT.system_prompt)
        tasks = self._materialize(payload, "task")

        plan = Plan(id=generate_id(), goal=goal, tasks=tasks, estimated_steps=len(tasks))
        self.context.set_plan(plan)
        self.context.add_history(self.role, "plan_created", None, plan.to_dict())
        logger.info("Created plan with %d tasks", len(tasks))
        return plan

    async def revise_plan(self, feedback: str, keep_failed: bool = False) -> Plan:
        """
        Replace the remaining tasks using reviewer or failure feedback.

        Completed tasks are carried into the new plan unchanged. If the
        reasoning call itself fails the current plan is kept.

        Args:
            feedback: Why the current plan needs to change
            keep_failed: Carry failed tasks into the new plan so they stay
                         pending and the run cannot report success

        Returns:
            The active Plan after revision
        """
        ctx = self.context.context
        current = ctx.current_plan
        revision = (current.revision if current else 0) + 1
        listing = "\n".join(
            f"- {t.description} ({t.status.value})" for t in (current.tasks if current else [])
        ) or "- (none)"

        self.context.add_history(self.role, "revise_plan", {"feedback": feedback, "revision": revision})

        prompt = f"Feedback: {feedback}\n\nPlease revise the remaining tasks."
        try:
            response = await self.think(prompt, PLAN_REVISION_PROMPT.format(tasks=listing))
        except ReasoningError as e:
            logger.warning("Plan revision failed, keeping current plan: %s", e)
            self.context.add_history(self.role, "plan_error", None, str(e))
            if current is None:
                return await self.create_plan(self.context.goal)
            return current

        tasks = self._materialize(self.parse_json(response, PlanPayload), f"task-r{revision}")
        failed = [t for t in ctx.pending_tasks if t.status == TaskStatus.FAILED] if keep_failed else []
        plan = Plan(
            id=generate_id(),
            goal=current.goal if current else self.context.goal,
            tasks=list(ctx.completed_tasks) + failed + tasks,
            estimated_steps=len(tasks),
            revision=revision,
        )
        self.context.set_plan(plan)
        self.context.add_history(self.role, "plan_revised", None, plan.to_dict())
        logger.info("Revised plan (revision %d) with %d new tasks", revision, len(tasks))
        return plan
