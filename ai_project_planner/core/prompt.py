"""
Prompt construction for project generation.

build_prompt is pure: the same input always yields the same text, so a
stub model can be driven reproducibly in tests.
"""

from .inputs import GenerationInput

SYSTEM_MESSAGE = (
    "You are a project management assistant that creates detailed "
    "project plans with tasks."
)

JSON_SHAPE = """{
  "title": "Project Title",
  "description": "Project Description",
  "status": "not_started",
  "priority": "medium",
  "startDate": "YYYY-MM-DD",
  "endDate": "YYYY-MM-DD",
  "tasks": [
    {
      "title": "Task Title",
      "description": "Task Description",
      "status": "todo",
      "priority": "high",
      "startDate": "YYYY-MM-DD",
      "endDate": "YYYY-MM-DD",
      "completed": false,
      "orderIndex": 0,
      "parentId": null
    }
  ]
}"""


def build_prompt(data: GenerationInput) -> str:
    """Build the instruction sent to the model.

    The input must already be validated.
    """
    return f"""Create a detailed project plan based on the following description:
"{data.description}"

The project must have exactly {data.num_tasks} tasks, start on {data.start_date} and end by {data.end_date}.

For the project:
1. "title": a concise, professional title (under 50 characters)
2. "description": a well-structured description that preserves the original meaning
3. "status": one of "not_started", "in_progress", "completed", "on_hold" (use "not_started")
4. "priority": one of "low", "medium", "high"
5. "startDate": {data.start_date}
6. "endDate": {data.end_date}
7. "tasks": an array of exactly {data.num_tasks} tasks

For each task:
1. "title": a clear, specific title
2. "description": a detailed description
3. "status": one of "todo", "in_progress", "completed", "blocked" (use "todo")
4. "priority": one of "low", "medium", "high"
5. "startDate" and "endDate": dates in YYYY-MM-DD format between {data.start_date} and {data.end_date}
6. "completed": false
7. "orderIndex": the zero-based position of the task
8. "parentId": null

Return JSON only, no prose, no code fences. Your entire response must be a single valid JSON object with exactly this structure:
{JSON_SHAPE}
"""

