"""Organization directory interface."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class Organization:
    """A tenant and its reminder automation settings."""

    id: str
    name: str = ""
    is_automation_enabled: bool = False
    reminder_time: str = ""  # HH:MM, UTC


class OrganizationDirectory(Protocol):
    """Interface for looking up organizations."""

    def scheduled_for(self, reminder_time: str) -> list[Organization]:
        """Organizations with automation enabled at this HH:MM (UTC)."""
        ...
