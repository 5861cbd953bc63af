"""
Reviewer Agent

Gates plans and task results. Review is fail-open: if the reasoning call
fails or its answer cannot be parsed, the subject is approved so a
provider hiccup never stalls the workflow.

The reviewer is the only writer of the ``approved`` and ``rejected``
task statuses.
"""

import json
from typing import Any, Optional

from ..config import get_logger
from ..errors import ReasoningError
from ..models import AgentRole, Plan, Review, Task, TaskResult, TaskStatus, to_jsonable
from .base import BaseAgent
from .definitions import PLAN_REVIEW_PROMPT, REVIEWER_AGENT
from .payloads import ReviewPayload

logger = get_logger(__name__)


class ReviewerAgent(BaseAgent):
    """Approves or rejects plans and task results."""

    role = AgentRole.REVIEWER

    async def _verdict(self, prompt: str, system_prompt: str) -> Optional[ReviewPayload]:
        try:
            response = await self.think(prompt, system_prompt)
        except ReasoningError as e:
            logger.warning("Review call failed, approving: %s", e)
            return None
        return self.parse_json(response, ReviewPayload)

    async def review_plan(self, plan: Plan) -> Review:
        """Ask for a verdict on a plan; approves when no verdict is available."""
        listing = "\n".join(f"{idx}. {t.description}" for idx, t in enumerate(plan.tasks, 1))
        prompt = f"Review this plan:\n\nGoal: {plan.goal}\nTasks:\n{listing}"

        self.context.add_history(self.role, "plan_review_start", {"plan_id": plan.id})
        payload = await self._verdict(prompt, PLAN_REVIEW_PROMPT)

        review = Review(
            subject_id=plan.id,
            approved=payload.approved if payload else True,
            feedback=(payload.feedback if payload else "") or "Plan approved",
            suggestions=payload.suggestions if payload else [],
        )
        self.context.add_history(self.role, "plan_review_complete", None, review.to_dict())
        return review

    async def review_task_result(self, task: Task, result: Any) -> Review:
        """
        Ask for a verdict on a task's execution output.

        Sets the task to ``approved`` or ``rejected`` and attaches the
        output and review notes as its result.
        """
        prompt = (
            "Review this task result:\n\n"
            f"Task: {task.description}\n"
            f"Result: {json.dumps(to_jsonable(result), default=str)}\n\n"
            f"Goal context: {self.context.goal}"
        )

        self.context.add_history(self.role, "review_start", {"task_id": task.id})
        payload = await self._verdict(prompt, REVIEWER_AGENT.system_prompt)

        review = Review(
            subject_id=task.id,
            approved=payload.approved if payload else True,
            feedback=(payload.feedback if payload else "") or "Review completed",
            suggestions=payload.suggestions if payload else [],
        )
        self.context.add_history(self.role, "review_complete", None, review.to_dict())

        self.context.update_task(
            task.id,
            status=TaskStatus.APPROVED if review.approved else TaskStatus.REJECTED,
            result=TaskResult(success=review.approved, data=result, review_notes=review.feedback),
        )
        return review
