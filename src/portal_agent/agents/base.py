"""
Agent base.

Every role shares one shape: hold the session context and the reasoning
capability, ask for a JSON answer, and parse it into a typed payload or
nothing. Parsing never raises; each caller chooses its own fallback.
"""

import json
import re
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ..config import get_logger
from ..context import ContextManager
from ..errors import ReasoningError
from ..llm.reasoning import ReasoningCapability
from ..models import AgentRole

logger = get_logger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```json\s*\n?(.*?)\n?\s*```", re.DOTALL)
_OUTER_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: Any) -> Optional[Any]:
    """
    Pull a JSON value out of free-form model output.

    Prefers a fenced ```json block, then the outermost ``{...}`` span.
    Returns None when nothing decodes.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        outer = _OUTER_OBJECT.search(text)
        if outer is None:
            return None
        candidate = outer.group(0)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


class BaseAgent:
    """
    Shared helper for the role agents.

    Attributes:
        role: Role tag written into history entries
        context: Session store shared with the other agents
        reasoning: Text-in/text-out decision capability
    """

    role: AgentRole

    def __init__(self, context: ContextManager, reasoning: ReasoningCapability):
        self.context = context
        self.reasoning = reasoning

    async def think(self, prompt: str, system_prompt: str) -> str:
        """
        Ask the reasoning capability.

        Raises:
            ReasoningError: The capability call failed
        """
        try:
            response = await self.reasoning.invoke(system_prompt, prompt)
        except ReasoningError:
            raise
        except Exception as e:
            raise ReasoningError(
                f"{self.role.value} reasoning call failed: {e}",
                original_error=e,
            ) from e
        return response if isinstance(response, str) else ""

    def parse_json(self, text: Any, model: type[PayloadT]) -> Optional[PayloadT]:
        """Parse model output into ``model``; None on any failure."""
        data = extract_json(text)
        if not isinstance(data, dict):
            if text:
                logger.debug("%s: no JSON object in response", self.role.value)
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.debug("%s: response did not match %s: %s", self.role.value, model.__name__, e)
            return None
