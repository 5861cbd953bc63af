#!/usr/bin/env python
"""
Draft Home Visit Example

Multi-step goal with review: the planner breaks the goal into login,
carer selection, navigation, form fill and draft save, and every result
is checked before the next task starts. Panels are rendered as the run
progresses.

Usage:
    python examples/draft_home_visit.py [CARER_CODE]

Requirements:
    - ANTHROPIC_API_KEY (or OPENAI_API_BASE + OPENAI_API_KEY) set
    - PORTAL_USERNAME / PORTAL_PASSWORD set
    - Portal agent installed: pip install -e .
"""

import asyncio
import sys

from portal_agent.agents import Orchestrator
from portal_agent.automation import BrowserConfig, BrowserController, PortalAutomation, PortalConfig
from portal_agent.config import WorkflowConfig
from portal_agent.llm import LLMReasoning, create_provider_from_env
from portal_agent.tui import print_error, print_result


async def main(carer_code: str):
    """Run the home visit goal for one carer."""
    reasoning = LLMReasoning(create_provider_from_env())
    automation = PortalAutomation(
        PortalConfig.from_env(),
        BrowserController(BrowserConfig(headless=False)),
    )
    config = WorkflowConfig(retry_limit=1, replan_on_failure=True, verbose=True)

    goal = (
        f"Create a Supervisory Home Visit for carer {carer_code}: visit date today, "
        "visit type Announced, notes 'Routine visit, no concerns'. Save it as a draft."
    )

    try:
        result = await Orchestrator(goal, reasoning, automation, config).run()
    finally:
        await automation.close()
        await reasoning.close()

    if result.error:
        print_error(result.error, error_type="WorkflowError")
    for pending in result.output["pending"] if result.output else []:
        print_result(f"{pending['id']}: {pending['task']}", success=False, title=f"[{pending['status'].upper()}]")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "FCC-18"))
