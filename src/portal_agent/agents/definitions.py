"""
Agent Definitions for the Workflow Roles

Each role has a one-line description (reported by the status endpoint)
and the system instructions it sends to the reasoning capability. The
executor's instructions enumerate the automation action vocabulary.
"""

from dataclasses import dataclass
from typing import Dict

from ..automation.capability import ACTION_DESCRIPTIONS, ActionType
from ..models import AgentRole


@dataclass(frozen=True)
class AgentDefinition:
    """Role description plus the system instructions used for reasoning calls."""

    role: AgentRole
    description: str
    system_prompt: str = ""


def format_action_vocabulary(numbered: bool = False) -> str:
    """Render the action vocabulary as a prompt list."""
    lines = []
    for idx, action in enumerate(ActionType, 1):
        prefix = f"{idx}." if numbered else "-"
        lines.append(f"{prefix} {action.value} - {ACTION_DESCRIPTIONS[action]}")
    return "\n".join(lines)


# ============================================================================
# AGENT DEFINITIONS
# ============================================================================

ORCHESTRATOR_AGENT = AgentDefinition(
    role=AgentRole.ORCHESTRATOR,
    description="Coordinates the workflow",
)

PLANNER_AGENT = AgentDefinition(
    role=AgentRole.PLANNER,
    description="Creates and revises task plans",
    system_prompt="""You are a Planning Agent. Your job is to break down goals into executable tasks.

Rules:
- Create clear, specific, sequential tasks
- Each task should be atomic (one action)
- Consider dependencies between tasks
- Prioritize tasks appropriately

Output format (JSON):
{
  "tasks": [
    {
      "description": "Task description",
      "priority": "high|medium|low",
      "dependencies": []
    }
  ]
}

"dependencies" lists the zero-based indices of tasks in the same list
that must finish first.""",
)

REVIEWER_AGENT = AgentDefinition(
    role=AgentRole.REVIEWER,
    description="Validates plans and results",
    system_prompt="""You are a Reviewer Agent. Your job is to validate task results.

Rules:
- Check if the result matches the task description
- Identify any errors or issues
- Provide clear feedback
- Be concise but thorough

Output format (JSON):
{
  "approved": true,
  "feedback": "Your feedback",
  "suggestions": ["suggestion 1", "suggestion 2"]
}""",
)

RESEARCHER_AGENT = AgentDefinition(
    role=AgentRole.RESEARCHER,
    description="Gathers context and information",
    system_prompt="""You are a Researcher Agent. Your job is to gather information from context and memory.

Output format (JSON):
{
  "findings": ["finding 1", "finding 2"],
  "sources": ["source 1"],
  "confidence": 0.0
}

"confidence" is a number between 0.0 and 1.0.""",
)

EXECUTOR_AGENT = AgentDefinition(
    role=AgentRole.EXECUTOR,
    description="Performs browser automation actions",
    system_prompt=f"""You are an Executor Agent. Determine the correct action to perform.

Available actions:
{format_action_vocabulary()}

Output format (JSON):
{{
  "action": "ACTION_NAME",
  "params": {{}}
}}""",
)

PLAN_REVIEW_PROMPT = """You are a Reviewer Agent. Review this plan for completeness and correctness.

Output format (JSON):
{
  "approved": true,
  "feedback": "Your feedback",
  "suggestions": ["suggestion 1"]
}"""

PLAN_REVISION_PROMPT = """You are a Planning Agent. Revise the plan based on feedback.

Current plan tasks:
{tasks}

Output the revised plan (remaining tasks only) in the same JSON format:
{{
  "tasks": [
    {{"description": "Task description", "priority": "high|medium|low", "dependencies": []}}
  ]
}}"""


_DEFINITIONS: Dict[AgentRole, AgentDefinition] = {
    definition.role: definition
    for definition in (
        ORCHESTRATOR_AGENT,
        PLANNER_AGENT,
        REVIEWER_AGENT,
        RESEARCHER_AGENT,
        EXECUTOR_AGENT,
    )
}


def get_agent_definition(role: AgentRole) -> AgentDefinition:
    """Get the definition for one role."""
    return _DEFINITIONS[role]


def get_all_agent_definitions() -> Dict[AgentRole, AgentDefinition]:
    """All role definitions, in roster order."""
    return dict(_DEFINITIONS)
