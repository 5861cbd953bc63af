"""
Rich TUI Console Setup

Provides the console the orchestrator renders agent progress through when
a workflow runs verbose. Colors are configured via environment variables.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

from rich.console import Console
from rich.panel import Panel
from rich.style import Style
from rich.theme import Theme


# Block types for agent output
BlockType = Literal["thought", "action", "result"]


@dataclass
class TUIConfig:
    """
    TUI configuration loaded from environment variables.

    Attributes:
        color_thought: Color for THOUGHT blocks (planning, review verdicts)
        color_action: Color for ACTION blocks (automation calls)
        color_result: Color for RESULT blocks (task outcomes)
        show_timestamps: Whether to display timestamps
    """

    color_thought: str = "blue"
    color_action: str = "green"
    color_result: str = "yellow"
    show_timestamps: bool = True

    @classmethod
    def from_env(cls) -> "TUIConfig":
        """Load configuration from environment variables."""
        return cls(
            color_thought=os.getenv("COLOR_THOUGHT", "blue"),
            color_action=os.getenv("COLOR_ACTION", "green"),
            color_result=os.getenv("COLOR_RESULT", "yellow"),
            show_timestamps=os.getenv("SHOW_TIMESTAMPS", "true").lower() == "true",
        )


def create_theme(config: TUIConfig) -> Theme:
    """Create a Rich theme from TUI configuration."""
    return Theme(
        {
            "thought": Style(color=config.color_thought, bold=True),
            "action": Style(color=config.color_action, bold=True),
            "result": Style(color=config.color_result, bold=True),
            "timestamp": Style(dim=True),
            "label": Style(bold=True),
        }
    )


class AgentConsole:
    """
    Rich console wrapper for workflow output.

    Renders THOUGHT, ACTION and RESULT panels with consistent styling
    and optional timestamps.
    """

    def __init__(self, config: Optional[TUIConfig] = None, console: Optional[Console] = None):
        """
        Initialize the agent console.

        Args:
            config: TUI configuration. If None, loads from environment.
            console: Underlying Rich console (e.g. one recording to a buffer)
        """
        self.config = config or TUIConfig.from_env()
        self._theme = create_theme(self.config)
        self.console = console or Console(theme=self._theme, stderr=True)

    def get_timestamp(self) -> str:
        """Formatted timestamp, or empty when disabled."""
        if self.config.show_timestamps:
            return datetime.now().strftime("%H:%M:%S")
        return ""

    def block_title(self, label: str) -> str:
        timestamp = self.get_timestamp()
        return f"{timestamp} {label}" if timestamp else label

    def color_for(self, block_type: BlockType) -> str:
        return {
            "thought": self.config.color_thought,
            "action": self.config.color_action,
            "result": self.config.color_result,
        }[block_type]

    def print_panel(self, renderable, block_type: BlockType, label: str, border: Optional[str] = None) -> None:
        """Print a renderable inside a titled, colored panel."""
        panel = Panel(
            renderable,
            title=self.block_title(label),
            title_align="left",
            border_style=border or self.color_for(block_type),
            padding=(0, 1),
        )
        self.console.print(panel)

    def print(self, *args, **kwargs) -> None:
        """Passthrough to underlying Rich console."""
        self.console.print(*args, **kwargs)

    def status(self, message: str, spinner: str = "dots"):
        """Create a status context for progress indication."""
        return self.console.status(message, spinner=spinner)


# Global console instance
_console: Optional[AgentConsole] = None


def get_console() -> AgentConsole:
    """Get or create the global console instance."""
    global _console
    if _console is None:
        _console = AgentConsole()
    return _console


def create_console(config: Optional[TUIConfig] = None, console: Optional[Console] = None) -> AgentConsole:
    """
    Create a new console instance with optional configuration.

    Args:
        config: TUI configuration. If None, loads from environment.
        console: Underlying Rich console to write to
    """
    return AgentConsole(config, console)
