"""
Unit tests for the THOUGHT / ACTION / RESULT panels.
"""

from portal_agent.tui import (
    TUIConfig,
    action_spinner,
    print_action,
    print_completion,
    print_error,
    print_plan,
    print_thought,
)


def rendered(console) -> str:
    return console.console.export_text()


def test_thought_title_carries_step(recording_console):
    print_thought("Log into the portal", step=3, console=recording_console)

    text = rendered(recording_console)
    assert "[THOUGHT 3]" in text
    assert "Log into the portal" in text


def test_plan_lists_tasks_with_dependencies(recording_console):
    print_plan(
        [
            {"id": "task-0", "description": "Log in", "priority": "high", "dependencies": []},
            {"id": "task-1", "description": "List carers", "priority": "medium", "dependencies": ["task-0"]},
        ],
        console=recording_console,
    )

    text = rendered(recording_console)
    assert "Log in" in text
    assert "after task-0" in text


def test_replayed_action_is_marked(recording_console):
    print_action("SUBMIT_TARGET", {"submit_type": "draft"}, replayed=True, console=recording_console)

    text = rendered(recording_console)
    assert "SUBMIT_TARGET" in text
    assert "(replayed)" in text
    assert "submit_type: draft" in text


def test_error_and_completion(recording_console):
    print_error("Carer not found", error_type="AutomationError", console=recording_console)
    print_completion("Draft saved", success=False, completed=4, total=6, duration_ms=2500, console=recording_console)

    text = rendered(recording_console)
    assert "Carer not found" in text
    assert "Workflow incomplete" in text
    assert "4/6" in text
    assert "2.5s" in text


def test_disabled_spinner_renders_nothing(recording_console):
    with action_spinner("Planning...", enabled=False, console=recording_console):
        pass

    assert rendered(recording_console) == ""


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SHOW_TIMESTAMPS", "false")

    assert TUIConfig.from_env().show_timestamps is False
