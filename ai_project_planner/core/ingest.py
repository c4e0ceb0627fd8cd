"""
Ingestion of the model's free-form reply.

Two parse phases, stopping at the first success:

1. Direct parse of the whole reply as JSON.
2. Extraction of the greedy first-``{`` to last-``}`` substring, parsed
   as-is and then again after straightening curly quotes and quoting
   bare object keys.

The parsed candidate is then validated all-or-nothing: a single bad field
in any task rejects the whole response. No partial project is returned.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ResponseFormatError, ResponseValidationError
from .inputs import is_iso_date

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 5000

BARE_KEY_PATTERN = re.compile(r'([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)')


class ProjectStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class GeneratedTask:
    """One validated task of a generated project."""
    title: str
    status: TaskStatus
    priority: Priority
    start_date: str
    end_date: str
    completed: bool
    order_index: int
    description: Optional[str] = None
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "completed": self.completed,
            "orderIndex": self.order_index,
            "parentId": self.parent_id,
        }


@dataclass(frozen=True)
class GeneratedProject:
    """A validated project ready for the project-creation collaborator."""
    title: str
    description: str
    status: ProjectStatus
    priority: Priority
    start_date: str
    end_date: str
    tasks: List[GeneratedTask]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the camelCase wire shape."""
        return {
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "tasks": [task.to_dict() for task in self.tasks],
        }


class IngestStatus(Enum):
    OK = "ok"
    PARSE_FAILED = "parse_failed"
    VALIDATION_FAILED = "validation_failed"


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting a model reply.

    project is set only when status is OK; reasons only when validation
    failed.
    """
    status: IngestStatus
    project: Optional[GeneratedProject] = None
    reasons: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == IngestStatus.OK

    def unwrap(self) -> GeneratedProject:
        """Return the project or raise the matching classified error."""
        if self.status == IngestStatus.PARSE_FAILED:
            raise ResponseFormatError("No JSON object could be recovered from the model reply")
        if self.status == IngestStatus.VALIDATION_FAILED:
            raise ResponseValidationError(self.reasons)
        return self.project


_NO_CANDIDATE = object()


def _loads(text: str):
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return _NO_CANDIDATE


def repair_json_text(text: str) -> str:
    """Best-effort repair: straighten curly quotes and quote bare keys."""
    text = text.replace('“', '"').replace('”', '"')
    text = text.replace('‘', "'").replace('’', "'")
    return BARE_KEY_PATTERN.sub(r'\1"\2"\3', text)


def extract_json_object(raw_text: str):
    """Parse the reply, falling back to brace extraction with repair.

    Returns:
        The parsed JSON value, or a sentinel when nothing parses
    """
    candidate = _loads(raw_text)
    if candidate is not _NO_CANDIDATE:
        return candidate

    start = raw_text.find('{')
    end = raw_text.rfind('}')
    if start == -1 or end <= start:
        return _NO_CANDIDATE

    snippet = raw_text[start:end + 1]
    candidate = _loads(snippet)
    if candidate is not _NO_CANDIDATE:
        logger.debug("Recovered JSON object from surrounding text")
        return candidate

    candidate = _loads(repair_json_text(snippet))
    if candidate is not _NO_CANDIDATE:
        logger.debug("Recovered JSON object after key repair")
    return candidate


def _check_text(data: Dict, key: str, path: str, reasons: List[str], required: bool = True) -> Optional[str]:
    value = data.get(key)
    if value is None:
        if required:
            reasons.append(f"{path}.{key} is required")
        return None
    if not isinstance(value, str):
        reasons.append(f"{path}.{key} must be a string")
        return None
    limit = MAX_TITLE_LENGTH if key == "title" else MAX_DESCRIPTION_LENGTH
    if required and not value.strip():
        reasons.append(f"{path}.{key} must not be empty")
    elif len(value) > limit:
        reasons.append(f"{path}.{key} must be at most {limit} characters")
    return value


def _check_enum(data: Dict, key: str, enum_cls, path: str, reasons: List[str]):
    value = data.get(key)
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        reasons.append(f"{path}.{key} must be one of: {allowed}")
        return None


def _check_date(data: Dict, key: str, path: str, reasons: List[str]) -> Optional[str]:
    value = data.get(key)
    if not is_iso_date(value):
        reasons.append(f"{path}.{key} must be a date in YYYY-MM-DD format")
        return None
    return value


def _validate_task(data, path: str, reasons: List[str]) -> Optional[GeneratedTask]:
    if not isinstance(data, dict):
        reasons.append(f"{path} must be an object")
        return None

    before = len(reasons)
    title = _check_text(data, "title", path, reasons)
    description = _check_text(data, "description", path, reasons, required=False)
    status = _check_enum(data, "status", TaskStatus, path, reasons)
    priority = _check_enum(data, "priority", Priority, path, reasons)
    start_date = _check_date(data, "startDate", path, reasons)
    end_date = _check_date(data, "endDate", path, reasons)

    completed = data.get("completed")
    if not isinstance(completed, bool):
        reasons.append(f"{path}.completed must be true or false")

    order_index = data.get("orderIndex")
    if isinstance(order_index, bool) or not isinstance(order_index, int):
        reasons.append(f"{path}.orderIndex must be an integer")
    elif order_index < 0:
        reasons.append(f"{path}.orderIndex must not be negative")

    parent_id = data.get("parentId")
    if parent_id is not None:
        if isinstance(parent_id, bool) or not isinstance(parent_id, (str, int)):
            reasons.append(f"{path}.parentId must be null or an identifier")
        else:
            parent_id = str(parent_id)

    if len(reasons) > before:
        return None

    return GeneratedTask(
        title=title,
        description=description,
        status=status,
        priority=priority,
        start_date=start_date,
        end_date=end_date,
        completed=completed,
        order_index=order_index,
        parent_id=parent_id
    )


def validate_project(data) -> IngestResult:
    """Validate a parsed candidate against every project and task rule."""
    if not isinstance(data, dict):
        return IngestResult(IngestStatus.VALIDATION_FAILED, reasons=["response must be a JSON object"])

    reasons = []
    title = _check_text(data, "title", "project", reasons)
    description = _check_text(data, "description", "project", reasons)
    status = _check_enum(data, "status", ProjectStatus, "project", reasons)
    priority = _check_enum(data, "priority", Priority, "project", reasons)
    start_date = _check_date(data, "startDate", "project", reasons)
    end_date = _check_date(data, "endDate", "project", reasons)

    tasks = []
    raw_tasks = data.get("tasks")
    if not isinstance(raw_tasks, list):
        reasons.append("project.tasks must be a list")
    elif not raw_tasks:
        reasons.append("project.tasks must not be empty")
    else:
        for index, raw_task in enumerate(raw_tasks):
            task = _validate_task(raw_task, f"tasks[{index}]", reasons)
            if task is not None:
                tasks.append(task)

    if reasons:
        return IngestResult(IngestStatus.VALIDATION_FAILED, reasons=reasons)

    return IngestResult(IngestStatus.OK, project=GeneratedProject(
        title=title,
        description=description,
        status=status,
        priority=priority,
        start_date=start_date,
        end_date=end_date,
        tasks=tasks
    ))


def ingest_response(raw_text: str) -> IngestResult:
    """Turn the model's raw reply into a validated project.

    Args:
        raw_text: Text content returned by the model

    Returns:
        IngestResult tagged OK, PARSE_FAILED or VALIDATION_FAILED
    """
    candidate = extract_json_object(raw_text or "")
    if candidate is _NO_CANDIDATE:
        logger.warning("Model reply contained no parseable JSON object")
        return IngestResult(IngestStatus.PARSE_FAILED)

    result = validate_project(candidate)
    if not result.ok:
        logger.warning("Model reply failed validation with %d issue(s)", len(result.reasons))
    return result
