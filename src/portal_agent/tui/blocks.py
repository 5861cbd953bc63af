"""
THOUGHT / ACTION / RESULT blocks.

Panels the orchestrator prints while a verbose workflow runs: plans and
review verdicts as THOUGHT, automation calls as ACTION, task outcomes and
the final summary as RESULT.
"""

from typing import Any, Optional

from rich.text import Text

from .console import AgentConsole, get_console


def _truncate(value: Any, limit: int) -> str:
    text = str(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def print_thought(
    content: str,
    *,
    title: Optional[str] = None,
    step: Optional[int] = None,
    console: Optional[AgentConsole] = None,
) -> None:
    """
    Print a THOUGHT block.

    Args:
        content: Reasoning or verdict text
        title: Custom title (overrides default "[THOUGHT]")
        step: Iteration number shown in the title
        console: Console to use (defaults to global console)
    """
    console = console or get_console()
    label = title or (f"[THOUGHT {step}]" if step is not None else "[THOUGHT]")
    console.print_panel(Text(content), "thought", label)


def print_plan(tasks: list[dict[str, Any]], *, title: str = "[PLAN]", console: Optional[AgentConsole] = None) -> None:
    """Print the task list of a plan as a THOUGHT block."""
    console = console or get_console()
    content = Text()
    if not tasks:
        content.append("(no tasks)", style="dim")
    for idx, task in enumerate(tasks, 1):
        content.append(f"{idx}. ", style="bold")
        content.append(task.get("description", ""))
        content.append(f"  [{task.get('priority', 'medium')}]", style="dim")
        if task.get("dependencies"):
            content.append(f"  after {', '.join(task['dependencies'])}", style="dim")
        if idx < len(tasks):
            content.append("\n")
    console.print_panel(content, "thought", title)


def print_action(
    action_name: str,
    params: Optional[dict[str, Any]] = None,
    *,
    replayed: bool = False,
    console: Optional[AgentConsole] = None,
) -> None:
    """
    Print an ACTION block for one automation call.

    Args:
        action_name: Action from the automation vocabulary
        params: Action parameters
        replayed: The outcome was replayed from an earlier attempt
        console: Console to use (defaults to global console)
    """
    console = console or get_console()

    content = Text()
    content.append("Action: ", style="bold")
    content.append(action_name, style=f"bold {console.config.color_action}")
    if replayed:
        content.append("  (replayed)", style="dim")

    if params:
        content.append("\n\nParams:\n", style="bold")
        for key, value in params.items():
            content.append(f"  {key}: ", style="dim")
            content.append(f"{_truncate(value, 80)}\n")

    console.print_panel(content, "action", "[ACTION]")


def print_result(
    content: str,
    *,
    success: bool = True,
    title: Optional[str] = None,
    console: Optional[AgentConsole] = None,
) -> None:
    """
    Print a RESULT block.

    Args:
        content: The result content to display
        success: Whether the step succeeded
        title: Custom title (overrides default "[RESULT]")
        console: Console to use (defaults to global console)
    """
    console = console or get_console()

    text = Text()
    text.append("OK " if success else "FAILED ", style="bold green" if success else "bold red")
    text.append(content)
    console.print_panel(text, "result", title or "[RESULT]")


def print_error(
    error_message: str,
    *,
    error_type: Optional[str] = None,
    suggestion: Optional[str] = None,
    console: Optional[AgentConsole] = None,
) -> None:
    """
    Print an error RESULT block.

    Args:
        error_message: The error message
        error_type: Type/category of error
        suggestion: Suggestion for resolution
        console: Console to use (defaults to global console)
    """
    console = console or get_console()

    content = Text()
    content.append("Error", style="bold red")
    if error_type:
        content.append(f" ({error_type})", style="dim red")
    content.append("\n\n")
    content.append(error_message)

    if suggestion:
        content.append("\n\n")
        content.append(suggestion, style="italic")

    console.print_panel(content, "result", "[RESULT]", border="red")


def print_completion(
    summary: str,
    *,
    success: bool = True,
    completed: Optional[int] = None,
    total: Optional[int] = None,
    duration_ms: Optional[int] = None,
    console: Optional[AgentConsole] = None,
) -> None:
    """
    Print the workflow summary.

    Args:
        summary: What the run accomplished
        success: Whether every task completed
        completed: Completed task count
        total: Total task count
        duration_ms: Run duration
        console: Console to use (defaults to global console)
    """
    console = console or get_console()

    content = Text()
    if success:
        content.append("Workflow complete\n\n", style="bold green")
    else:
        content.append("Workflow incomplete\n\n", style="bold red")
    content.append(summary)

    if completed is not None and total is not None:
        content.append("\n\nTasks: ", style="dim")
        content.append(f"{completed}/{total}")
    if duration_ms is not None:
        content.append("\nDuration: ", style="dim")
        content.append(f"{duration_ms / 1000:.1f}s")

    console.print_panel(content, "result", "[RESULT]", border=None if success else "red")
