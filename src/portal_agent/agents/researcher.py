"""
Researcher Agent

Assembles the context snapshot a task is executed with, and answers
free-form research queries against the session's memory and state.
"""

import json
from typing import Any

from ..config import get_logger
from ..errors import ReasoningError
from ..models import AgentRole, ResearchResult, Task, to_jsonable
from .base import BaseAgent
from .definitions import RESEARCHER_AGENT
from .payloads import ResearchPayload

logger = get_logger(__name__)

# Memory keys the executor works from
ENTITIES_KEY = "entities"
PAYLOAD_KEY = "payload"

# Completed tasks included in a snapshot
RECENT_RESULTS = 3

ResearchSnapshot = dict[str, Any]


class ResearcherAgent(BaseAgent):
    """Gathers context and information."""

    role = AgentRole.RESEARCHER

    async def gather_context(self, task: Task) -> ResearchSnapshot:
        """
        Snapshot what a task needs before execution.

        Pure read: no history entry, no state change. Absent data shows up
        as None or an empty list.
        """
        ctx = self.context.context
        state = ctx.state
        return {
            "task": {"id": task.id, "description": task.description},
            "is_logged_in": state.is_logged_in,
            "current_page": state.current_page,
            "selected_entity": state.selected_entity,
            "entities": self.context.get_memory(ENTITIES_KEY),
            "payload": self.context.get_memory(PAYLOAD_KEY),
            "previous_results": [
                {"task": t.description, "result": to_jsonable(t.result)}
                for t in ctx.completed_tasks[-RECENT_RESULTS:]
            ],
        }

    async def research(self, query: str) -> ResearchResult:
        """
        Answer a free-form query from memory, state and completed tasks.

        Falls back to no findings with confidence 0.5 when the reasoning
        call fails or its answer cannot be parsed.
        """
        ctx = self.context.context
        system_prompt = "\n".join([
            RESEARCHER_AGENT.system_prompt,
            "",
            "Available context:",
            f"- Memory items: {json.dumps(self.context.memory_snapshot(), default=str)}",
            f"- Current state: {json.dumps(ctx.state.to_dict(), default=str)}",
            f"- Completed tasks: {', '.join(t.description for t in ctx.completed_tasks)}",
        ])

        self.context.add_history(self.role, "research_start", {"query": query})
        try:
            response = await self.think(f"Research query: {query}", system_prompt)
        except ReasoningError as e:
            logger.warning("Research call failed: %s", e)
            response = ""

        payload = self.parse_json(response, ResearchPayload) or ResearchPayload()
        result = ResearchResult(
            query=query,
            findings=payload.findings,
            sources=payload.sources,
            confidence=payload.confidence,
        )
        self.context.add_history(self.role, "research_complete", None, result.to_dict())
        return result
