"""
Automation Capability

The fixed action vocabulary the executor may invoke, and the contract a
browser backend implements to perform those actions on the remote portal.

Actions are not idempotent: invoking FILL_TARGET or SUBMIT_TARGET twice may
produce duplicate effects on the remote system.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ActionType(str, Enum):
    """Actions the executor can choose from."""

    LOGIN = "LOGIN"
    LIST_ENTITIES = "LIST_ENTITIES"
    SELECT_ENTITY = "SELECT_ENTITY"
    NAVIGATE_TO_TARGET = "NAVIGATE_TO_TARGET"
    FILL_TARGET = "FILL_TARGET"
    SUBMIT_TARGET = "SUBMIT_TARGET"
    GET_STATE = "GET_STATE"

    @classmethod
    def parse(cls, name: Any) -> Optional["ActionType"]:
        """Resolve an action name (legacy names accepted). None if unknown."""
        if not isinstance(name, str):
            return None
        key = name.strip().upper().replace("-", "_").replace(" ", "_")
        key = LEGACY_ACTION_NAMES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


LEGACY_ACTION_NAMES = {
    "GET_CARERS": "LIST_ENTITIES",
    "SELECT_CARER": "SELECT_ENTITY",
    "NAVIGATE_TO_FORM": "NAVIGATE_TO_TARGET",
    "FILL_FORM": "FILL_TARGET",
    "SUBMIT_FORM": "SUBMIT_TARGET",
}

ACTION_DESCRIPTIONS = {
    ActionType.LOGIN: "Log into the portal",
    ActionType.LIST_ENTITIES: "Get the list of entities (e.g. carers)",
    ActionType.SELECT_ENTITY: "Select an entity (needs entity_code)",
    ActionType.NAVIGATE_TO_TARGET: "Go to the target form of the selected entity",
    ActionType.FILL_TARGET: "Fill the target form (needs payload object: field name or label -> value)",
    ActionType.SUBMIT_TARGET: "Submit the target form (needs submit_type: draft/submit/submit_and_lock)",
    ActionType.GET_STATE: "Check the current page",
}

# Actions whose repetition changes remote state
SIDE_EFFECTING_ACTIONS = frozenset({ActionType.FILL_TARGET, ActionType.SUBMIT_TARGET})


class SubmitType(str, Enum):
    """How a filled form is submitted."""

    DRAFT = "draft"
    SUBMIT = "submit"
    SUBMIT_AND_LOCK = "submit_and_lock"

    @property
    def button_label(self) -> str:
        return {
            "draft": "Save as Draft",
            "submit": "Submit",
            "submit_and_lock": "Submit & Lock",
        }[self.value]

    @classmethod
    def parse(cls, value: Any) -> "SubmitType":
        """Parse a submit type; unknown or missing values mean DRAFT."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.DRAFT
        key = value.strip()
        if key == "submitAndLock":
            return cls.SUBMIT_AND_LOCK
        try:
            return cls(key.lower())
        except ValueError:
            return cls.DRAFT


@dataclass
class ActionOutcome:
    """Result of one automation call."""

    success: bool
    data: Any = None
    error: Optional[str] = None


@dataclass
class Entity:
    """A selectable record listed by the portal (a carer in the legacy portal)."""

    code: str
    name: str
    area: str = ""
    status: str = ""
    approval_date: str = ""
    user_name: str = ""
    details: dict[str, Any] = field(default_factory=dict)


class AutomationCapability(ABC):
    """
    Contract for the browser-side backend.

    One method per ActionType. Implementations report expected failures
    through ``ActionOutcome(success=False)``; unexpected faults may raise
    and are caught by the executor.
    """

    @abstractmethod
    async def login(self) -> ActionOutcome:
        """Log into the portal."""

    @abstractmethod
    async def list_entities(self) -> ActionOutcome:
        """List entities; ``data`` is a list of entity dicts."""

    @abstractmethod
    async def select_entity(self, entity_code: str) -> ActionOutcome:
        """Open the entity with the given code."""

    @abstractmethod
    async def navigate_to_target(self) -> ActionOutcome:
        """Open the target form for the selected entity."""

    @abstractmethod
    async def fill_target(self, payload: dict[str, Any]) -> ActionOutcome:
        """Fill the open form with field label -> value pairs."""

    @abstractmethod
    async def submit_target(self, submit_type: SubmitType) -> ActionOutcome:
        """Submit the open form."""

    @abstractmethod
    async def get_state(self) -> ActionOutcome:
        """Report the current page; ``data`` has ``url`` and ``title``."""

    async def close(self) -> None:
        """Release backend resources."""
