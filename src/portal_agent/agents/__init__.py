"""
Agent Orchestration Module

Implements the role agents of a portal workflow:
- Planner: Breaks a goal into tasks, revises the plan on feedback
- Reviewer: Approves or rejects plans and task results (fail-open)
- Researcher: Assembles the context snapshot a task runs with
- Executor: Maps a task to one automation action and performs it
- Orchestrator: Drives the plan / execute / review loop
"""

from .base import BaseAgent, extract_json
from .definitions import (
    AgentDefinition,
    EXECUTOR_AGENT,
    ORCHESTRATOR_AGENT,
    PLANNER_AGENT,
    RESEARCHER_AGENT,
    REVIEWER_AGENT,
    get_agent_definition,
    get_all_agent_definitions,
)
from .executor import ExecutorAgent
from .orchestrator import Orchestrator, get_status, run_workflow
from .planner import PlannerAgent
from .researcher import ResearcherAgent, ResearchSnapshot
from .reviewer import ReviewerAgent

__all__ = [
    # Base
    "BaseAgent",
    "extract_json",
    # Definitions
    "AgentDefinition",
    "EXECUTOR_AGENT",
    "ORCHESTRATOR_AGENT",
    "PLANNER_AGENT",
    "RESEARCHER_AGENT",
    "REVIEWER_AGENT",
    "get_agent_definition",
    "get_all_agent_definitions",
    # Agents
    "ExecutorAgent",
    "PlannerAgent",
    "ResearcherAgent",
    "ResearchSnapshot",
    "ReviewerAgent",
    # Orchestrator
    "Orchestrator",
    "get_status",
    "run_workflow",
]
