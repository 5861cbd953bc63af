"""
Rich TUI Interface Module

Terminal output for verbose workflow runs, built on the Rich library.

Components:
- AgentConsole: Main console wrapper with themed output
- TUIConfig: Configuration for colors and display options
- Block display functions for THOUGHT/ACTION/RESULT output
- Spinner shown while capability calls are in flight
"""

from portal_agent.tui.console import (
    AgentConsole,
    BlockType,
    TUIConfig,
    create_console,
    get_console,
)
from portal_agent.tui.blocks import (
    print_action,
    print_completion,
    print_error,
    print_plan,
    print_result,
    print_thought,
)
from portal_agent.tui.progress import action_spinner

__all__ = [
    # Console infrastructure
    "AgentConsole",
    "BlockType",
    "TUIConfig",
    "create_console",
    "get_console",
    # Blocks
    "print_action",
    "print_completion",
    "print_error",
    "print_plan",
    "print_result",
    "print_thought",
    # Progress
    "action_spinner",
]
