"""
Live progress indicators.

Spinner shown while a reasoning or automation call is in flight.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from .console import AgentConsole, get_console


@contextmanager
def action_spinner(
    message: str,
    *,
    spinner: str = "dots",
    enabled: bool = True,
    console: Optional[AgentConsole] = None,
) -> Generator[None, None, None]:
    """
    Context manager that shows a spinner while an action is in progress.

    Args:
        message: Message to display next to spinner
        spinner: Spinner style (dots, line, arc, etc.)
        enabled: When False nothing is rendered
        console: Console to use (defaults to global console)

    Usage:
        with action_spinner("Planning..."):
            plan = await planner.create_plan(goal)
    """
    if not enabled:
        yield
        return

    console = console or get_console()
    with console.status(f"[{console.config.color_action}]{message}[/]", spinner=spinner):
        yield
