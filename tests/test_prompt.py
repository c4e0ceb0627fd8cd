"""
Tests for prompt construction.
"""
from ai_project_planner.core.inputs import GenerationInput
from ai_project_planner.core.prompt import build_prompt

INPUT = GenerationInput(
    description="Build a mobile app for tracking \"daily\" habits",
    num_tasks=7,
    start_date="2024-05-01",
    end_date="2024-06-15"
)


class TestBuildPrompt:

    def test_prompt_is_deterministic(self):
        assert build_prompt(INPUT) == build_prompt(INPUT)

    def test_description_quoted_verbatim(self):
        assert f'"{INPUT.description}"' in build_prompt(INPUT)

    def test_task_count_and_dates_stated(self):
        prompt = build_prompt(INPUT)

        assert "exactly 7 tasks" in prompt
        assert "start on 2024-05-01 and end by 2024-06-15" in prompt

    def test_every_required_field_enumerated(self):
        prompt = build_prompt(INPUT)

        for field_name in ("title", "description", "status", "priority", "startDate",
                           "endDate", "tasks", "completed", "orderIndex", "parentId"):
            assert f'"{field_name}"' in prompt

    def test_json_only_instruction(self):
        assert "JSON only, no prose, no code fences" in build_prompt(INPUT)

    def test_different_inputs_differ(self):
        other = GenerationInput(INPUT.description, 8, INPUT.start_date, INPUT.end_date)
        assert build_prompt(other) != build_prompt(INPUT)

