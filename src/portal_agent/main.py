"""
Portal Agent CLI Entry Point

Runs one workflow for a natural-language goal against the portal and
prints the WorkflowResult as JSON.

Usage:
    python -m portal_agent.main "Submit a draft home visit form for FCC-18"
    python -m portal_agent.main "List all carers" --no-review --headless
    python -m portal_agent.main --status
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from portal_agent.agents.orchestrator import Orchestrator, get_status
from portal_agent.automation import BrowserConfig, BrowserController, PortalAutomation, PortalConfig
from portal_agent.config import WorkflowConfig, configure_logging, get_logger
from portal_agent.errors import PortalAgentError
from portal_agent.llm import LLMReasoning, create_provider_from_env
from portal_agent.models import WorkflowResult
from portal_agent.tui import get_console, print_error

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Goal-driven automation of a web portal that has no API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    portal-agent "Log in and list all carers"
    portal-agent "Submit a draft home visit form for FCC-18" --verbose
    portal-agent "List carers" --no-review --headless --timeout-ms 60000
        """,
    )

    parser.add_argument(
        "goal",
        nargs="?",
        help="Natural language goal",
    )

    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum loop iterations (default: 15)",
    )

    parser.add_argument(
        "--no-review",
        action="store_true",
        help="Skip plan and result review",
    )

    parser.add_argument(
        "--no-retry",
        action="store_true",
        help="Do not retry tasks whose result was rejected",
    )

    parser.add_argument(
        "--retry-limit",
        type=int,
        default=None,
        help="Retries per rejected task (default: 2)",
    )

    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Wall-clock budget in ms (default: 300000)",
    )

    parser.add_argument(
        "--replan-on-failure",
        action="store_true",
        help="Revise the plan when a task fails",
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run browser in headless mode (for CI/CD)",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show THOUGHT/ACTION/RESULT panels while running",
    )

    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode with debug output",
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the workflow interface description and exit",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> WorkflowConfig:
    """Environment defaults overlaid with command line flags."""
    overrides: dict[str, Any] = {}
    if args.max_iterations is not None:
        overrides["max_iterations"] = args.max_iterations
    if args.no_review:
        overrides["require_review"] = False
    if args.no_retry:
        overrides["auto_retry"] = False
    if args.retry_limit is not None:
        overrides["retry_limit"] = args.retry_limit
    if args.timeout_ms is not None:
        overrides["timeout_ms"] = args.timeout_ms
    if args.replan_on_failure:
        overrides["replan_on_failure"] = True
    if args.verbose:
        overrides["verbose"] = True
    return WorkflowConfig.from_mapping(overrides, base=WorkflowConfig.from_env())


async def run_goal(goal: str, config: WorkflowConfig, headless: bool = False) -> WorkflowResult:
    """
    Run one workflow against the portal.

    Args:
        goal: Natural language goal
        config: Workflow configuration
        headless: Run browser in headless mode

    Returns:
        WorkflowResult of the run
    """
    browser_config = BrowserConfig.from_env()
    if headless:
        browser_config.headless = True

    reasoning = LLMReasoning(create_provider_from_env())
    automation = PortalAutomation(PortalConfig.from_env(), BrowserController(browser_config))

    try:
        orchestrator = Orchestrator(goal, reasoning, automation, config)
        return await orchestrator.run()
    finally:
        await automation.close()
        await reasoning.close()


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    configure_logging(level=logging.DEBUG if args.dev else None, verbose=args.dev)

    if args.status:
        print(json.dumps(get_status(), indent=2))
        return 0

    if not args.goal:
        print_error("A goal is required", error_type="UsageError", suggestion='portal-agent "Your goal"')
        return 2

    try:
        config = build_config(args)
        result = asyncio.run(run_goal(args.goal, config, headless=args.headless))
    except KeyboardInterrupt:
        get_console().print("\n[yellow]Workflow interrupted by user[/yellow]")
        return 130
    except (PortalAgentError, ValueError) as e:
        print_error(str(e), error_type=type(e).__name__)
        return 2

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
