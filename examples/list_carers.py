#!/usr/bin/env python
"""
List Carers Example

Logs into the portal and reads the carer list. Review is switched off,
so each task completes as soon as its action succeeds.

Usage:
    python examples/list_carers.py

Requirements:
    - ANTHROPIC_API_KEY (or OPENAI_API_BASE + OPENAI_API_KEY) set
    - PORTAL_USERNAME / PORTAL_PASSWORD set
    - Portal agent installed: pip install -e .
"""

import asyncio
import json

from portal_agent.agents import run_workflow
from portal_agent.automation import PortalAutomation
from portal_agent.llm import LLMReasoning, create_provider_from_env


async def main():
    """Run the carer listing goal."""
    reasoning = LLMReasoning(create_provider_from_env())
    automation = PortalAutomation()

    goal = "Log into the portal and list all foster carers"
    print(f"Goal: {goal}\n")

    try:
        result = await run_workflow(goal, reasoning, automation, {"requireReview": False})
    finally:
        await automation.close()
        await reasoning.close()

    print(json.dumps(result.output, indent=2, default=str))


if __name__ == "__main__":
    asyncio.run(main())
