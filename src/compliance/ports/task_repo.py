"""Task repository interface."""

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from compliance.core.tasks import ComplianceTask


@dataclass
class TaskFilter:
    """Query scope for reading tasks. Empty fields do not filter."""

    organization_ids: list[str] = field(default_factory=list)
    user_id: str | None = None
    completed: bool | None = None
    deadline_from: date | None = None
    deadline_to: date | None = None


class TaskRepository(Protocol):
    """Interface for reading and writing compliance tasks in any backend."""

    def read(self, task_filter: TaskFilter) -> list[ComplianceTask]:
        """Fetch tasks matching the filter, ordered by deadline."""
        ...

    def insert(self, task: ComplianceTask) -> ComplianceTask:
        """Store a new task. Returns it with its assigned id."""
        ...

    def update(self, task_id: str, changes: dict) -> None:
        """Apply a partial update to a task."""
        ...
