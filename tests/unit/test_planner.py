"""
Unit tests for the planner agent.
"""

import json

import pytest

from conftest import ScriptedReasoning, as_json, plan

from portal_agent.agents.planner import PlannerAgent
from portal_agent.models import TaskPriority, TaskResult, TaskStatus


class TestCreatePlan:
    @pytest.mark.asyncio
    async def test_materializes_tasks(self, context):
        reasoning = ScriptedReasoning(plan=as_json({"tasks": [
            {"description": "Log in", "priority": "high", "dependencies": []},
            {"description": "List carers", "priority": "medium", "dependencies": [0]},
            {"description": "Select FCC-18", "priority": "bogus", "dependencies": [1, 2, 9]},
        ]}))
        planner = PlannerAgent(context, reasoning)

        result = await planner.create_plan(context.goal)

        assert [t.id for t in result.tasks] == ["task-0", "task-1", "task-2"]
        assert all(t.status == TaskStatus.PENDING for t in result.tasks)
        assert result.tasks[0].priority == TaskPriority.HIGH
        assert result.tasks[2].priority == TaskPriority.MEDIUM
        assert result.tasks[1].dependencies == ["task-0"]
        assert result.tasks[2].dependencies == ["task-1"]
        assert result.estimated_steps == 3
        assert result.revision == 0

    @pytest.mark.asyncio
    async def test_installs_plan_as_active(self, context):
        planner = PlannerAgent(context, ScriptedReasoning(plan=plan("Log in", "List carers")))

        result = await planner.create_plan(context.goal)

        assert context.context.current_plan is result
        assert [t.id for t in context.context.pending_tasks] == ["task-0", "task-1"]
        actions = [h.action for h in context.context.history]
        assert actions == ["create_plan", "plan_created"]

    @pytest.mark.asyncio
    async def test_prompt_embeds_goal_state_and_vocabulary(self, context):
        context.update_state({"is_logged_in": True, "selected_entity": "FCC-18"})
        reasoning = ScriptedReasoning()

        await PlannerAgent(context, reasoning).create_plan(context.goal)

        prompt = reasoning.prompts("plan")[0]
        assert context.goal in prompt
        assert "Logged in: true" in prompt
        assert "Selected entity: FCC-18" in prompt
        for name in ("LOGIN", "LIST_ENTITIES", "SUBMIT_TARGET", "GET_STATE"):
            assert name in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        "I cannot help with that.",
        '{"tasks": "many"}',
        "```json\n{broken\n```",
        as_json({"tasks": []}),
    ])
    async def test_unparseable_answer_gives_empty_plan(self, context, response):
        result = await PlannerAgent(context, ScriptedReasoning(plan=response)).create_plan(context.goal)

        assert result.tasks == []
        assert context.context.pending_tasks == []

    @pytest.mark.asyncio
    async def test_reasoning_failure_gives_empty_plan(self, context):
        reasoning = ScriptedReasoning(plan=ConnectionError("provider down"))

        result = await PlannerAgent(context, reasoning).create_plan(context.goal)

        assert result.tasks == []
        assert "plan_error" in [h.action for h in context.context.history]


class TestRevisePlan:
    @pytest.mark.asyncio
    async def test_replaces_pending_and_keeps_completed(self, context):
        reasoning = ScriptedReasoning(
            plan=plan("Log in", "Pick the wrong carer"),
            revise=as_json({"tasks": [
                {"description": "Select FCC-18", "dependencies": []},
                {"description": "Open form", "dependencies": [0]},
            ]}),
        )
        planner = PlannerAgent(context, reasoning)
        await planner.create_plan(context.goal)
        context.complete_task("task-0", TaskResult(success=True))

        revised = await planner.revise_plan("Wrong carer selected")

        assert revised.revision == 1
        assert [t.id for t in revised.tasks] == ["task-0", "task-r1-0", "task-r1-1"]
        assert [t.id for t in context.context.pending_tasks] == ["task-r1-0", "task-r1-1"]
        assert [t.id for t in context.context.completed_tasks] == ["task-0"]
        assert context.get_task("task-r1-1").dependencies == ["task-r1-0"]
        assert revised.estimated_steps == 2

    @pytest.mark.asyncio
    async def test_revision_prompt_lists_tasks_and_feedback(self, context):
        reasoning = ScriptedReasoning(plan=plan("Log in"))
        planner = PlannerAgent(context, reasoning)
        await planner.create_plan(context.goal)

        await planner.revise_plan("Add a login check")

        system_prompt = [s for name, s, _ in reasoning.calls if name == "revise"][0]
        assert "- Log in (pending)" in system_prompt
        assert "Feedback: Add a login check" in reasoning.prompts("revise")[0]

    @pytest.mark.asyncio
    async def test_successive_revisions_have_unique_ids(self, context):
        reasoning = ScriptedReasoning(plan=plan("a"), revise=plan("b"))
        planner = PlannerAgent(context, reasoning)
        await planner.create_plan(context.goal)

        first = await planner.revise_plan("again")
        second = await planner.revise_plan("and again")

        assert first.tasks[0].id == "task-r1-0"
        assert second.tasks[0].id == "task-r2-0"

    @pytest.mark.asyncio
    async def test_reasoning_failure_keeps_current_plan(self, context):
        reasoning = ScriptedReasoning(plan=plan("Log in"), revise=TimeoutError("slow"))
        planner = PlannerAgent(context, reasoning)
        original = await planner.create_plan(context.goal)

        revised = await planner.revise_plan("feedback")

        assert revised is original
        assert [t.id for t in context.context.pending_tasks] == ["task-0"]

    @pytest.mark.asyncio
    async def test_keep_failed_carries_failed_tasks(self, context):
        reasoning = ScriptedReasoning(plan=plan("Log in", "List carers"), revise="sorry, no json")
        planner = PlannerAgent(context, reasoning)
        await planner.create_plan(context.goal)
        context.update_task("task-0", status=TaskStatus.FAILED)

        revised = await planner.revise_plan("Task task-0 failed: boom", keep_failed=True)

        assert [t.id for t in revised.tasks] == ["task-0"]
        assert [(t.id, t.status) for t in context.context.pending_tasks] == [("task-0", TaskStatus.FAILED)]

    @pytest.mark.asyncio
    async def test_history_records_revision(self, context):
        planner = PlannerAgent(context, ScriptedReasoning(plan=plan("a"), revise=plan("b")))
        await planner.create_plan(context.goal)

        await planner.revise_plan("fix it")

        revised_entry = [h for h in context.context.history if h.action == "plan_revised"][0]
        json.dumps(revised_entry.output)
        assert revised_entry.output["revision"] == 1
