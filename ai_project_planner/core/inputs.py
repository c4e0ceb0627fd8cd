"""
Generation input and its validation rules.

All rules are evaluated and every violation is reported together.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from ai_project_planner.config.loader import InputLimits

from .errors import InputValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class GenerationInput:
    """User request for an AI-generated project.

    start_date <= end_date is a precondition owned by the caller.
    """
    description: str
    num_tasks: int
    start_date: str
    end_date: str


def is_iso_date(value) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_generation_input(
    data: GenerationInput,
    limits: Optional[InputLimits] = None
) -> List[str]:
    """Collect every rule the input violates.

    Args:
        data: Input to validate
        limits: Bounds to apply; defaults when omitted

    Returns:
        List of violation messages, empty when the input is valid
    """
    limits = limits or InputLimits()
    violations = []

    if not isinstance(data.description, str):
        violations.append("Description must be text")
    else:
        length = len(data.description.strip())
        if length < limits.min_description_length:
            violations.append(
                f"Description must be at least {limits.min_description_length} characters"
            )
        elif length > limits.max_description_length:
            violations.append(
                f"Description must be at most {limits.max_description_length} characters"
            )

    if isinstance(data.num_tasks, bool) or not isinstance(data.num_tasks, int):
        violations.append("Number of tasks must be a whole number")
    elif not limits.min_tasks <= data.num_tasks <= limits.max_tasks:
        violations.append(
            f"Number of tasks must be between {limits.min_tasks} and {limits.max_tasks}"
        )

    if not is_iso_date(data.start_date):
        violations.append("Start date must be a valid date in YYYY-MM-DD format")
    if not is_iso_date(data.end_date):
        violations.append("End date must be a valid date in YYYY-MM-DD format")

    return violations


def require_valid_input(data: GenerationInput, limits: Optional[InputLimits] = None) -> None:
    """Raise InputValidationError listing every violation, if any."""
    violations = validate_generation_input(data, limits)
    if violations:
        raise InputValidationError(violations)
