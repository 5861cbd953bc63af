"""
Workflow Orchestrator

Drives one workflow run for a goal:

    plan -> review plan -> (research -> execute -> review result ->
    retry | advance) per task -> compile output

The loop is strictly sequential. It ends when no task is ready, the
iteration cap is reached or the wall-clock budget is spent. The budget is
checked before each iteration, so an in-flight call is never cancelled
but no new task starts after the deadline.

The caller always receives a WorkflowResult. Unexpected exceptions are
caught at the top level and reported with ``success=False``.
"""

import time
from typing import Any, Mapping, Optional, Union

from ..automation.capability import AutomationCapability
from ..config import CONFIG_KEY_ALIASES, WorkflowConfig, get_logger
from ..context import ContextManager, SharedContext
from ..errors import ConfigurationError
from ..llm.reasoning import ReasoningCapability
from ..models import (
    AgentMessage,
    AgentRole,
    ExecutionResult,
    MessageType,
    Task,
    TaskResult,
    TaskStatus,
    WorkflowResult,
    generate_id,
    to_jsonable,
)
from ..tui import (
    AgentConsole,
    action_spinner,
    get_console,
    print_action,
    print_completion,
    print_error,
    print_plan,
    print_result,
    print_thought,
)
from .definitions import get_all_agent_definitions
from .executor import ExecutorAgent
from .planner import PlannerAgent
from .researcher import ResearcherAgent
from .reviewer import ReviewerAgent

logger = get_logger(__name__)


class Orchestrator:
    """
    Coordinates the planner, reviewer, researcher and executor over one
    shared context.

    One Orchestrator is one session. Sessions in the same process do not
    share state, but the automation backend they are given is a single
    connection and must not be driven by two sessions at once.

    Usage:
        >>> orchestrator = Orchestrator(goal, reasoning, automation, {"retryLimit": 1})
        >>> result = await orchestrator.run()
    """

    def __init__(
        self,
        goal: str,
        reasoning: ReasoningCapability,
        automation: AutomationCapability,
        config: Union[WorkflowConfig, Mapping[str, Any], None] = None,
        console: Optional[AgentConsole] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            goal: Natural-language objective for the run
            reasoning: Capability every agent consults
            automation: Backend the executor drives
            config: WorkflowConfig, or a partial mapping of request keys
                    (``maxIterations``, ``timeout``, ...) over the defaults
            console: Console for verbose output (global console if None)
        """
        if isinstance(config, WorkflowConfig):
            self.config = config
        else:
            self.config = WorkflowConfig.from_mapping(config)

        self._context = ContextManager(goal)
        self.planner = PlannerAgent(self._context, reasoning)
        self.reviewer = ReviewerAgent(self._context, reasoning)
        self.researcher = ResearcherAgent(self._context, reasoning)
        self.executor = ExecutorAgent(self._context, reasoning, automation)

        self._messages: list[AgentMessage] = []
        self._retry_counts: dict[str, int] = {}
        self._replans = 0
        self._console = console

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def context_manager(self) -> ContextManager:
        return self._context

    def get_context(self) -> SharedContext:
        """The live session record, for monitoring and debugging."""
        return self._context.context

    def get_messages(self) -> list[AgentMessage]:
        """Messages exchanged between agents during the run."""
        return list(self._messages)

    def send_message(
        self,
        sender: AgentRole,
        recipient: AgentRole,
        type: MessageType,
        content: str,
        payload: Any = None,
    ) -> AgentMessage:
        message = AgentMessage(
            sender=sender,
            recipient=recipient,
            type=type,
            content=content,
            payload=payload,
        )
        self._messages.append(message)
        return message

    # ------------------------------------------------------------------
    # Verbose output
    # ------------------------------------------------------------------

    @property
    def console(self) -> AgentConsole:
        if self._console is None:
            self._console = get_console()
        return self._console

    def _spinner(self, message: str):
        if not self.config.verbose:
            return action_spinner(message, enabled=False)
        return action_spinner(message, console=self.console)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> WorkflowResult:
        """
        Execute the workflow.

        Returns:
            WorkflowResult; ``success`` is True when no task remains pending
        """
        start = time.monotonic()
        ctx = self._context.context
        logger.info("Starting workflow: %s (session %s)", ctx.goal, ctx.session_id)

        try:
            await self._plan()
            await self._execute_tasks(start)
        except Exception as e:
            logger.exception("Workflow error")
            if self.config.verbose:
                print_error(str(e), error_type=type(e).__name__, console=self.console)
            return WorkflowResult(
                success=False,
                session_id=ctx.session_id,
                goal=ctx.goal,
                completed_tasks=len(ctx.completed_tasks),
                total_tasks=self._total_tasks(),
                duration_ms=self._elapsed_ms(start),
                error=str(e) or type(e).__name__,
                history=list(ctx.history),
            )

        result = WorkflowResult(
            success=not ctx.pending_tasks,
            session_id=ctx.session_id,
            goal=ctx.goal,
            completed_tasks=len(ctx.completed_tasks),
            total_tasks=self._total_tasks(),
            duration_ms=self._elapsed_ms(start),
            output=self.compile_output(),
            history=list(ctx.history),
        )
        logger.info(
            "Workflow finished in %dms: %d/%d tasks completed",
            result.duration_ms, result.completed_tasks, result.total_tasks,
        )
        if self.config.verbose:
            print_completion(
                ctx.goal,
                success=result.success,
                completed=result.completed_tasks,
                total=result.total_tasks,
                duration_ms=result.duration_ms,
                console=self.console,
            )
        return result

    async def _plan(self) -> None:
        goal = self._context.goal
        with self._spinner("Planning..."):
            plan = await self.planner.create_plan(goal)
        if self.config.verbose:
            print_plan([t.to_dict() for t in plan.tasks], console=self.console)

        if not self.config.require_review:
            return

        with self._spinner("Reviewing plan..."):
            review = await self.reviewer.review_plan(plan)
        if review.approved:
            logger.info("Plan approved")
            return

        logger.info("Plan rejected: %s", review.feedback)
        if self.config.verbose:
            print_thought(review.feedback, title="[PLAN REJECTED]", console=self.console)
        # Single corrective pass, the revision is not reviewed again
        with self._spinner("Revising plan..."):
            plan = await self.planner.revise_plan(review.feedback)
        if self.config.verbose:
            print_plan([t.to_dict() for t in plan.tasks], title="[REVISED PLAN]", console=self.console)

    async def _execute_tasks(self, start: float) -> None:
        ctx = self._context
        iteration = 0

        while iteration < self.config.max_iterations:
            if self._elapsed_ms(start) > self.config.timeout_ms:
                logger.warning("Workflow timeout reached after %d iterations", iteration)
                ctx.add_history(AgentRole.ORCHESTRATOR, "timeout", None, {"iterations": iteration})
                break

            task = ctx.get_next_task()
            if task is None:
                if ctx.has_blocked_tasks():
                    logger.warning("Remaining tasks are blocked: %s", self._pending_summary())
                break

            iteration += 1
            logger.info("[Iteration %d] Task %s: %s", iteration, task.id, task.description)
            if self.config.verbose:
                print_thought(task.description, step=iteration, console=self.console)

            await self._run_task(task)

        if iteration >= self.config.max_iterations and ctx.get_next_task() is not None:
            logger.warning("Iteration limit (%d) reached", self.config.max_iterations)

    async def _run_task(self, task: Task) -> None:
        ctx = self._context
        ctx.update_task(task.id, status=TaskStatus.IN_PROGRESS, assigned_agent=AgentRole.EXECUTOR)

        snapshot = await self.researcher.gather_context(task)
        with self._spinner("Executing..."):
            execution = await self.executor.execute(task, snapshot)
        self._show_execution(execution)

        if self.config.require_review and execution.success:
            ctx.update_task(task.id, status=TaskStatus.NEEDS_REVIEW, assigned_agent=AgentRole.REVIEWER)
            with self._spinner("Reviewing result..."):
                review = await self.reviewer.review_task_result(task, execution.output)
            if not review.approved:
                self._handle_rejection(task, review.feedback)
                return
            logger.info("Review approved task %s", task.id)

        if execution.success:
            notes = task.result.review_notes if task.result else None
            ctx.complete_task(
                task.id,
                TaskResult(success=True, data=execution.output, review_notes=notes),
            )
            self._retry_counts.pop(task.id, None)
            logger.info("Task %s completed", task.id)
            return

        await self._handle_failure(task, execution)

    def _handle_rejection(self, task: Task, feedback: str) -> None:
        attempts = self._retry_counts.get(task.id, 0)
        if self.config.auto_retry and attempts < self.config.retry_limit:
            self._retry_counts[task.id] = attempts + 1
            logger.info(
                "Review rejected task %s, retrying (%d/%d): %s",
                task.id, attempts + 1, self.config.retry_limit, feedback,
            )
            self._context.update_task(task.id, status=TaskStatus.PENDING)
            return

        # Retry budget spent: the task stays rejected and is never completed
        logger.warning("Review rejected task %s, no retries left: %s", task.id, feedback)
        if self.config.verbose:
            print_result(feedback, success=False, title=f"[REJECTED {task.id}]", console=self.console)

    async def _handle_failure(self, task: Task, execution: ExecutionResult) -> None:
        error = str(execution.output) if execution.output is not None else "Task failed"
        self._context.update_task(
            task.id,
            status=TaskStatus.FAILED,
            result=TaskResult(success=False, data=execution.output, error=error),
        )
        logger.warning("Task %s failed: %s", task.id, error)
        self.send_message(
            AgentRole.EXECUTOR,
            AgentRole.PLANNER,
            MessageType.ERROR,
            f"Task {task.id} failed: {error}",
            execution.to_dict(),
        )

        if self.config.replan_on_failure and self._replans < self.config.max_replans:
            await self._replan_from_failures()

    async def _replan_from_failures(self) -> None:
        unread = [
            m for m in self._messages
            if m.recipient is AgentRole.PLANNER and m.type is MessageType.ERROR and not m.consumed
        ]
        if not unread:
            return
        for message in unread:
            message.consumed = True

        self._replans += 1
        feedback = "\n".join(m.content for m in unread)
        logger.info("Re-planning after failure (%d/%d)", self._replans, self.config.max_replans)
        with self._spinner("Re-planning..."):
            plan = await self.planner.revise_plan(feedback, keep_failed=True)
        if self.config.verbose:
            print_plan([t.to_dict() for t in plan.tasks], title="[REVISED PLAN]", console=self.console)

    def _show_execution(self, execution: ExecutionResult) -> None:
        if not self.config.verbose:
            return
        for action in execution.actions:
            print_action(action.description, replayed=action.replayed, console=self.console)
        summary = str(execution.output)[:200] if execution.output is not None else "OK"
        print_result(summary, success=execution.success, console=self.console)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def compile_output(self) -> dict[str, Any]:
        """
        Final output: running state, completed results, live memory and
        the status of every task left pending.
        """
        ctx = self._context.context
        return {
            "state": ctx.state.to_dict(),
            "results": [
                {"task": t.description, "result": to_jsonable(t.result)}
                for t in ctx.completed_tasks
            ],
            "memory": to_jsonable(self._context.memory_snapshot()),
            "pending": self._pending_summary(),
        }

    def _pending_summary(self) -> list[dict[str, Any]]:
        return [
            {"id": t.id, "task": t.description, "status": t.status.value}
            for t in self._context.context.pending_tasks
        ]

    def _total_tasks(self) -> int:
        plan = self._context.context.current_plan
        return len(plan.tasks) if plan else 0

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)


async def run_workflow(
    goal: str,
    reasoning: ReasoningCapability,
    automation: AutomationCapability,
    config: Union[WorkflowConfig, Mapping[str, Any], None] = None,
) -> WorkflowResult:
    """
    Run a workflow for a goal and return its result.

    Invalid configuration is reported as a failed result rather than
    raised.
    """
    try:
        orchestrator = Orchestrator(goal, reasoning, automation, config)
    except ConfigurationError as e:
        logger.error("Invalid workflow config: %s", e)
        return WorkflowResult(
            success=False,
            session_id=generate_id(),
            goal=goal,
            completed_tasks=0,
            total_tasks=0,
            duration_ms=0,
            error=str(e),
        )
    return await orchestrator.run()


def get_status() -> dict[str, Any]:
    """
    Describe the workflow interface: recognised config keys with their
    defaults and the fixed agent roster. No state is touched.
    """
    defaults = WorkflowConfig()
    return {
        "status": "ok",
        "description": "Agentic portal workflow",
        "usage": {
            "goal": "Your goal description (required)",
            "config": {
                key: {"field": name, "default": getattr(defaults, name)}
                for key, name in CONFIG_KEY_ALIASES.items()
            },
        },
        "agents": [
            {"role": role.value, "description": definition.description}
            for role, definition in get_all_agent_definitions().items()
        ],
    }
