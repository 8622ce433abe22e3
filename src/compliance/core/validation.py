"""Task form validation - no I/O dependencies."""

import re
from dataclasses import dataclass
from datetime import date

from .tasks import Recurrence

INDIAN_MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")

NAME_MIN = 3
NAME_MAX = 100
CLIENT_NAME_MAX = 100
DESCRIPTION_MAX = 500


class ValidationError(Exception):
    """Raised when task input fails validation."""

    def __init__(self, messages: list[str]):
        super().__init__("; ".join(messages))
        self.messages = messages


@dataclass
class TaskInput:
    """Raw task fields as entered in a form."""

    name: str
    category: str
    deadline: date | None
    recurrence: str = "one-time"
    description: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_email: str | None = None


def validate_task(data: TaskInput) -> list[str]:
    """Return validation messages for a task form, empty when valid."""
    errors = []

    name = data.name.strip()
    if len(name) < NAME_MIN:
        errors.append(f"Task name must be at least {NAME_MIN} characters")
    elif len(name) > NAME_MAX:
        errors.append(f"Task name cannot exceed {NAME_MAX} characters")

    if not data.category.strip():
        errors.append("Category is required")

    if data.deadline is None:
        errors.append("Deadline is required")

    if data.recurrence not in {r.value for r in Recurrence}:
        errors.append(f"Unknown recurrence: {data.recurrence}")

    if data.client_name and len(data.client_name) > CLIENT_NAME_MAX:
        errors.append(f"Client name cannot exceed {CLIENT_NAME_MAX} characters")

    if data.client_phone and not INDIAN_MOBILE_PATTERN.match(data.client_phone):
        errors.append("Invalid Indian mobile number (10 digits starting with 6-9)")

    if data.description and len(data.description) > DESCRIPTION_MAX:
        errors.append(f"Description cannot exceed {DESCRIPTION_MAX} characters")

    return errors
