"""
Shared test doubles.

ScriptedReasoning fulfils the reasoning contract with canned answers
routed by the role instructions it receives. FakeAutomation fulfils the
automation contract in memory and records every call.
"""

import asyncio
import io
import json
from typing import Any, Callable, Union

import pytest
from rich.console import Console

from portal_agent.automation.capability import ActionOutcome, AutomationCapability, SubmitType
from portal_agent.context import ContextManager
from portal_agent.tui import TUIConfig, create_console


# Role instructions -> route name. Order matters: more specific first.
ROUTES = (
    ("Revise the plan", "revise"),
    ("Review this plan", "plan_review"),
    ("You are a Planning Agent", "plan"),
    ("You are a Reviewer Agent", "review"),
    ("You are an Executor Agent", "execute"),
    ("You are a Researcher Agent", "research"),
)

Script = Union[str, Exception, Callable[[str], str], list]


def as_json(payload: Any) -> str:
    return json.dumps(payload)


def action(name: str, **params: Any) -> str:
    """Executor answer choosing one action."""
    return as_json({"action": name, "params": params})


def plan(*descriptions: str, **extra: Any) -> str:
    """Planner answer with one task per description."""
    return as_json({"tasks": [{"description": d, "priority": "medium", "dependencies": []} for d in descriptions], **extra})


def verdict(approved: bool, feedback: str = "") -> str:
    return as_json({"approved": approved, "feedback": feedback, "suggestions": []})


class ScriptedReasoning:
    """
    ReasoningCapability double.

    Each route maps to a string, an exception to raise, a callable taking
    the user prompt, or a list consumed in order (the last entry repeats).
    """

    DEFAULTS = {
        "plan": as_json({"tasks": []}),
        "revise": as_json({"tasks": []}),
        "plan_review": verdict(True, "Plan approved"),
        "review": verdict(True, "Looks good"),
        "execute": action("GET_STATE"),
        "research": as_json({"findings": [], "sources": ["context"], "confidence": 0.5}),
    }

    def __init__(self, **scripts: Script):
        self.scripts: dict[str, Script] = {**self.DEFAULTS, **scripts}
        self.calls: list[tuple[str, str, str]] = []

    def route(self, system_instructions: str) -> str:
        for marker, name in ROUTES:
            if marker in system_instructions:
                return name
        raise AssertionError(f"Unroutable instructions: {system_instructions[:60]!r}")

    def count(self, route: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == route)

    def prompts(self, route: str) -> list[str]:
        return [prompt for name, _, prompt in self.calls if name == route]

    async def invoke(self, system_instructions: str, user_prompt: str) -> str:
        name = self.route(system_instructions)
        self.calls.append((name, system_instructions, user_prompt))

        script = self.scripts[name]
        if isinstance(script, list):
            script = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(script, Exception):
            raise script
        if callable(script):
            return script(user_prompt)
        return script


class FakeAutomation(AutomationCapability):
    """
    In-memory AutomationCapability.

    ``outcomes`` overrides the result of a method by name (an ActionOutcome
    or an exception to raise). ``delays`` adds a sleep in seconds.
    """

    def __init__(self, outcomes: dict[str, Any] = None, delays: dict[str, float] = None):
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, tuple]] = []
        self.closed = False
        self.entities = [
            {"code": "FCC-18", "name": "John Doe", "area": "London", "status": "Active"},
            {"code": "FCC-21", "name": "Jane Roe", "area": "Brighton", "status": "Active"},
        ]

    def called(self, name: str) -> int:
        return sum(1 for method, _ in self.calls if method == name)

    async def _respond(self, name: str, args: tuple, default: ActionOutcome) -> ActionOutcome:
        self.calls.append((name, args))
        if self.delays.get(name):
            await asyncio.sleep(self.delays[name])
        outcome = self.outcomes.get(name, default)
        if isinstance(outcome, Exception):
            raise outcome
        return ActionOutcome(success=outcome.success, data=outcome.data, error=outcome.error)

    async def login(self) -> ActionOutcome:
        return await self._respond("login", (), ActionOutcome(True))

    async def list_entities(self) -> ActionOutcome:
        return await self._respond("list_entities", (), ActionOutcome(True, data=list(self.entities)))

    async def select_entity(self, entity_code: str) -> ActionOutcome:
        return await self._respond("select_entity", (entity_code,), ActionOutcome(True))

    async def navigate_to_target(self) -> ActionOutcome:
        return await self._respond("navigate_to_target", (), ActionOutcome(True, data={"form_visible": True}))

    async def fill_target(self, payload: dict[str, Any]) -> ActionOutcome:
        return await self._respond("fill_target", (payload,), ActionOutcome(True, data={"filled": list(payload)}))

    async def submit_target(self, submit_type: SubmitType) -> ActionOutcome:
        return await self._respond("submit_target", (submit_type,), ActionOutcome(True, data="Form submitted successfully"))

    async def get_state(self) -> ActionOutcome:
        return await self._respond(
            "get_state", (), ActionOutcome(True, data={"url": "https://portal.test/#/home", "title": "Home"})
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def context():
    return ContextManager("Submit a draft home visit form for FCC-18")


@pytest.fixture
def automation():
    return FakeAutomation()


@pytest.fixture
def recording_console():
    """AgentConsole writing to an in-memory buffer."""
    return create_console(
        TUIConfig(show_timestamps=False),
        Console(file=io.StringIO(), record=True, width=100),
    )
