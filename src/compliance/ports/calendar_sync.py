"""Calendar sync interface."""

from typing import Protocol

from compliance.core.calendar import SyncAction, SyncResult
from compliance.core.tasks import ComplianceTask


class CalendarSync(Protocol):
    """Interface for mirroring tasks into an external calendar."""

    def sync(self, task: ComplianceTask, action: SyncAction) -> SyncResult:
        """Create, update or delete the event for a task."""
        ...
