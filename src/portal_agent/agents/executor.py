"""
Executor Agent

Maps one task to one automation action. The reasoning capability picks
the action and its parameters from the fixed vocabulary; the executor
validates the choice, calls the automation backend, applies the action's
side effects to the shared context and reports an ExecutionResult.

Retries of side-effecting actions (fill, submit) are deduplicated: a
successful call is recorded under (task id, action, canonical params)
and a repeat of the same call within the same task replays the recorded
outcome instead of touching the portal again.
"""

import json
from typing import Any, Optional

from ..automation.capability import (
    ActionOutcome,
    ActionType,
    AutomationCapability,
    SIDE_EFFECTING_ACTIONS,
    SubmitType,
)
from ..config import get_logger
from ..context import ContextManager
from ..errors import AutomationError, ReasoningError
from ..llm.reasoning import ReasoningCapability
from ..models import AgentRole, ExecutedAction, ExecutionResult, Task, to_jsonable
from .base import BaseAgent
from .definitions import EXECUTOR_AGENT
from .payloads import ActionPayload
from .researcher import ENTITIES_KEY, PAYLOAD_KEY, ResearchSnapshot

logger = get_logger(__name__)

# Legacy parameter names -> current names
PARAM_ALIASES = {
    "carerCode": "entity_code",
    "carer_code": "entity_code",
    "entityCode": "entity_code",
    "formData": "payload",
    "form_data": "payload",
    "submitType": "submit_type",
}

TARGET_PAGE = "target_form"

DedupeKey = tuple[str, ActionType, str]


def normalize_params(params: dict[str, Any]) -> dict[str, Any]:
    """Rename legacy parameter names; current names win on conflict."""
    normalized: dict[str, Any] = {}
    for key, value in params.items():
        name = PARAM_ALIASES.get(key, key)
        if name in normalized and name != key:
            continue
        normalized[name] = value
    return normalized


def canonical_params(params: dict[str, Any]) -> str:
    return json.dumps(to_jsonable(params), sort_keys=True, default=str)


class ExecutorAgent(BaseAgent):
    """Performs browser automation actions."""

    role = AgentRole.EXECUTOR

    def __init__(
        self,
        context: ContextManager,
        reasoning: ReasoningCapability,
        automation: AutomationCapability,
    ):
        super().__init__(context, reasoning)
        self.automation = automation
        self._completed_side_effects: dict[DedupeKey, ActionOutcome] = {}

    def _default_snapshot(self) -> ResearchSnapshot:
        return {
            "state": self.context.state.to_dict(),
            "entities": self.context.get_memory(ENTITIES_KEY),
            "payload": self.context.get_memory(PAYLOAD_KEY),
        }

    def _not_attempted(self, task: Task, reason: str) -> ExecutionResult:
        logger.warning("Task %s not executed: %s", task.id, reason)
        result = ExecutionResult(task_id=task.id, success=False, output=reason, attempted=False)
        self.context.add_history(self.role, "execute_complete", {"action": None}, result.to_dict())
        return result

    async def execute(self, task: Task, snapshot: Optional[ResearchSnapshot] = None) -> ExecutionResult:
        """
        Execute one task.

        Args:
            task: Task to execute
            snapshot: Researcher context; a minimal one is built if None

        Returns:
            ExecutionResult. ``attempted`` is False when no automation call
            was made (reasoning failure, unparseable decision, unknown
            action, missing parameter).
        """
        snapshot = snapshot if snapshot is not None else self._default_snapshot()
        prompt = (
            f"Execute this task: {task.description}\n\n"
            f"Context: {json.dumps(to_jsonable(snapshot), default=str)}"
        )

        self.context.add_history(self.role, "execute_start", {"task_id": task.id})

        try:
            response = await self.think(prompt, EXECUTOR_AGENT.system_prompt)
        except ReasoningError as e:
            return self._not_attempted(task, str(e))

        decision = self.parse_json(response, ActionPayload)
        if decision is None:
            return self._not_attempted(task, "No action could be determined")

        action = ActionType.parse(decision.action)
        if action is None:
            return self._not_attempted(task, f"Unknown action: {decision.action}")

        params = normalize_params(decision.params)
        missing = self._missing_param(action, params)
        if missing:
            return self._not_attempted(task, missing)

        outcome, replayed = await self._perform(task, action, params)

        executed = ExecutedAction(
            description=action.value,
            success=outcome.success,
            result=outcome.data,
            replayed=replayed,
        )
        result = ExecutionResult(
            task_id=task.id,
            success=outcome.success,
            output=outcome.data if outcome.success else (outcome.error or outcome.data),
            actions=[executed],
        )
        self.context.add_history(
            self.role,
            "execute_complete",
            {"action": action.value, "params": to_jsonable(params), "replayed": replayed},
            result.to_dict(),
        )
        return result

    @staticmethod
    def _missing_param(action: ActionType, params: dict[str, Any]) -> Optional[str]:
        if action is ActionType.SELECT_ENTITY:
            code = params.get("entity_code")
            if not isinstance(code, str) or not code.strip():
                return "Entity code required"
        if action is ActionType.FILL_TARGET and not isinstance(params.get("payload"), dict):
            return "Payload required"
        return None

    async def _perform(
        self,
        task: Task,
        action: ActionType,
        params: dict[str, Any],
    ) -> tuple[ActionOutcome, bool]:
        """Run or replay the action. Returns (outcome, replayed)."""
        key: Optional[DedupeKey] = None
        if action in SIDE_EFFECTING_ACTIONS:
            key = (task.id, action, canonical_params(params))
            recorded = self._completed_side_effects.get(key)
            if recorded is not None:
                logger.info("Replaying %s for task %s, portal not called again", action.value, task.id)
                return recorded, True

        try:
            outcome = await self._dispatch(action, params)
        except Exception as e:
            error = AutomationError(action.value, str(e) or type(e).__name__, original_error=e)
            logger.error("Executor error: %s", error)
            self.context.update_state({"last_error": str(error)}, AgentRole.EXECUTOR)
            return ActionOutcome(success=False, data=str(error), error=str(error)), False

        if not outcome.success and outcome.error:
            self.context.update_state({"last_error": outcome.error}, AgentRole.EXECUTOR)
        if key is not None and outcome.success:
            self._completed_side_effects[key] = outcome
        return outcome, False

    async def _dispatch(self, action: ActionType, params: dict[str, Any]) -> ActionOutcome:
        automation = self.automation

        if action is ActionType.LOGIN:
            outcome = await automation.login()
            self.context.update_state({"is_logged_in": outcome.success}, AgentRole.EXECUTOR)
            if outcome.data is None:
                outcome.data = {"is_logged_in": outcome.success}
            return outcome

        if action is ActionType.LIST_ENTITIES:
            outcome = await automation.list_entities()
            entities = outcome.data if isinstance(outcome.data, list) else []
            self.context.set_memory(ENTITIES_KEY, entities, AgentRole.EXECUTOR)
            return ActionOutcome(
                success=outcome.success and bool(entities),
                data=entities,
                error=outcome.error,
            )

        if action is ActionType.SELECT_ENTITY:
            code = params["entity_code"].strip()
            outcome = await automation.select_entity(code)
            if outcome.success:
                self.context.update_state({"selected_entity": code}, AgentRole.EXECUTOR)
            if outcome.data is None:
                outcome.data = {"selected_entity": code}
            return outcome

        if action is ActionType.NAVIGATE_TO_TARGET:
            outcome = await automation.navigate_to_target()
            if outcome.success:
                self.context.update_state({"current_page": TARGET_PAGE}, AgentRole.EXECUTOR)
            return outcome

        if action is ActionType.FILL_TARGET:
            payload = params["payload"]
            self.context.set_memory(PAYLOAD_KEY, payload, AgentRole.EXECUTOR)
            return await automation.fill_target(payload)

        if action is ActionType.SUBMIT_TARGET:
            submit_type = SubmitType.parse(params.get("submit_type"))
            return await automation.submit_target(submit_type)

        if action is ActionType.GET_STATE:
            outcome = await automation.get_state()
            if outcome.success and isinstance(outcome.data, dict) and outcome.data.get("url"):
                self.context.update_state({"current_page": outcome.data["url"]}, AgentRole.EXECUTOR)
            return outcome

        raise AutomationError(action.value, "no handler for action")
