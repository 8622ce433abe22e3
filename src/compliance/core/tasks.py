"""Pure compliance task domain logic - no I/O dependencies."""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

REMINDER_WINDOW_DAYS = 5


class PredefinedCategory(Enum):
    """Built-in statutory categories with their own grouping and icons."""

    GST = "gst"
    INCOME_TAX = "income-tax"
    INSURANCE = "insurance"
    TRANSPORT = "transport"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    PredefinedCategory.GST: "GST",
    PredefinedCategory.INCOME_TAX: "Income Tax",
    PredefinedCategory.INSURANCE: "Insurance",
    PredefinedCategory.TRANSPORT: "Transport",
}


@dataclass(frozen=True)
class CustomCategory:
    """An organization-defined category outside the built-in set."""

    name: str

    @property
    def label(self) -> str:
        return self.name


Category = PredefinedCategory | CustomCategory


def parse_category(raw: str) -> Category:
    """Map a stored category id to a predefined category when it is one."""
    raw = raw.strip()
    try:
        return PredefinedCategory(raw.lower())
    except ValueError:
        return CustomCategory(raw)


def category_id(category: Category) -> str:
    """Storage id for a category."""
    if isinstance(category, PredefinedCategory):
        return category.value
    return category.name


class Recurrence(Enum):
    """How a completed task rolls over."""

    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class UrgencyLevel(Enum):
    """Urgency tier. Derived on read, never stored."""

    URGENT = "urgent"
    WARNING = "warning"
    UPCOMING = "upcoming"
    NORMAL = "normal"
    COMPLETED = "completed"


@dataclass
class Owner:
    """Profile of the user a task belongs to."""

    email: str
    full_name: str = ""
    notify_email: bool = True


@dataclass
class ComplianceTask:
    """A statutory deadline tracked for one user inside an organization."""

    id: str
    name: str
    category: Category
    deadline: date
    recurrence: Recurrence = Recurrence.ONE_TIME
    completed: bool = False
    completed_at: datetime | None = None
    description: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_email: str | None = None
    user_id: str | None = None
    organization_id: str | None = None
    google_event_id: str | None = None
    owner: Owner | None = field(default=None, compare=False)

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not Recurrence.ONE_TIME

    def days_until_deadline(self, today: date) -> int:
        return days_until_deadline(self.deadline, today)

    def urgency(self, today: date) -> UrgencyLevel:
        return urgency_level(self.deadline, self.completed, today)

    def urgency_message(self, today: date) -> str:
        return urgency_message(self.deadline, self.completed, today)

    @classmethod
    def from_api(cls, data: dict) -> "ComplianceTask":
        """Create a task from a `tasks` row (optionally joined with `profiles`)."""
        completed_at = None
        if data.get("completed_at"):
            completed_at = datetime.fromisoformat(data["completed_at"].replace("Z", "+00:00"))

        owner = None
        profile = data.get("profiles")
        if profile and profile.get("email"):
            owner = Owner(
                email=profile["email"],
                full_name=profile.get("full_name") or "",
                notify_email=bool(profile.get("notify_email", True)),
            )

        return cls(
            id=data["id"],
            name=data["name"],
            category=parse_category(data.get("category", "")),
            deadline=date.fromisoformat(data["deadline"].split("T")[0]),
            recurrence=Recurrence(data.get("recurrence") or "one-time"),
            completed=bool(data.get("completed", False)),
            completed_at=completed_at,
            description=data.get("description"),
            client_name=data.get("client_name"),
            client_phone=data.get("client_phone"),
            client_email=data.get("client_email"),
            user_id=data.get("user_id"),
            organization_id=data.get("organization_id"),
            google_event_id=data.get("google_event_id"),
            owner=owner,
        )

    def to_api(self) -> dict:
        """Row payload for inserting this task. The id is assigned by the store."""
        return {
            "name": self.name,
            "category": category_id(self.category),
            "deadline": self.deadline.isoformat(),
            "recurrence": self.recurrence.value,
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "description": self.description,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "client_email": self.client_email,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
        }


def _day(value: date | datetime) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until_deadline(deadline: date | datetime, today: date | datetime) -> int:
    """Whole days from start of today to start of the deadline day (negative if overdue)."""
    return (_day(deadline) - _day(today)).days


def urgency_level(deadline: date | datetime, completed: bool, today: date | datetime) -> UrgencyLevel:
    """
    Classify a task into an urgency tier.

    Overdue and due-within-a-day are both urgent.
    """
    if completed:
        return UrgencyLevel.COMPLETED

    days_left = days_until_deadline(deadline, today)
    if days_left < 0:
        return UrgencyLevel.URGENT
    if days_left <= 1:
        return UrgencyLevel.URGENT
    if days_left <= 3:
        return UrgencyLevel.WARNING
    if days_left <= REMINDER_WINDOW_DAYS:
        return UrgencyLevel.UPCOMING
    return UrgencyLevel.NORMAL


def urgency_message(deadline: date | datetime, completed: bool, today: date | datetime) -> str:
    """Human-readable text for the task's urgency tier."""
    if completed:
        return "Completed"

    days_left = days_until_deadline(deadline, today)
    if days_left < 0:
        return f"Overdue by {abs(days_left)} day(s)"
    if days_left == 0:
        return "Due today"
    if days_left == 1:
        return "Last day tomorrow"
    if days_left <= 3:
        return "Deadline approaching"
    if days_left <= REMINDER_WINDOW_DAYS:
        return "Upcoming deadline"
    return f"{days_left} days remaining"


def is_reminder_eligible(deadline: date | datetime, completed: bool, today: date | datetime) -> bool:
    """
    Whether a task falls inside the reminder window.

    Overdue tasks are left out: they stay urgent in the app but are not
    emailed again every day.
    """
    if completed:
        return False
    days_left = days_until_deadline(deadline, today)
    return 0 <= days_left <= REMINDER_WINDOW_DAYS


def sort_by_urgency(tasks: list[ComplianceTask]) -> list[ComplianceTask]:
    """
    Pending tasks first, then completed; each group by ascending deadline.

    Pure function - no I/O. Stable, so equal deadlines keep input order.
    """
    return sorted(tasks, key=lambda t: (t.completed, _day(t.deadline)))


def filter_by_category(tasks: list[ComplianceTask], category: str | Category | None) -> list[ComplianceTask]:
    """Filter tasks to one category. None or "all" keeps everything."""
    if category is None or category == "all":
        return tasks
    if isinstance(category, str):
        category = parse_category(category)
    return [t for t in tasks if t.category == category]


def group_by_urgency(tasks: list[ComplianceTask], today: date) -> dict[UrgencyLevel, list[ComplianceTask]]:
    """Bucket tasks by urgency tier, keeping input order inside each bucket."""
    groups: dict[UrgencyLevel, list[ComplianceTask]] = {level: [] for level in UrgencyLevel}
    for task in tasks:
        groups[task.urgency(today)].append(task)
    return groups


@dataclass
class TaskSummary:
    """Dashboard counters."""

    total: int
    urgent: int
    due_soon: int
    completed: int


def summarize(tasks: list[ComplianceTask], today: date) -> TaskSummary:
    """Count pending, urgent, due-soon and completed tasks."""
    pending = [t for t in tasks if not t.completed]
    return TaskSummary(
        total=len(pending),
        urgent=sum(1 for t in pending if t.urgency(today) is UrgencyLevel.URGENT),
        due_soon=sum(1 for t in pending if 0 < t.days_until_deadline(today) <= REMINDER_WINDOW_DAYS),
        completed=len(tasks) - len(pending),
    )


def add_months(d: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(d.day, last_day))


def next_deadline(current: date, recurrence: Recurrence) -> date | None:
    """
    Deadline of the next occurrence, or None for one-time tasks.

    Pure function - no I/O.
    """
    current = _day(current)
    match recurrence:
        case Recurrence.WEEKLY:
            return current + timedelta(weeks=1)
        case Recurrence.MONTHLY:
            return add_months(current, 1)
        case Recurrence.QUARTERLY:
            return add_months(current, 3)
        case Recurrence.YEARLY:
            return add_months(current, 12)
        case _:
            return None


def format_deadline(d: date) -> str:
    """Format a deadline like 05 Mar 2025."""
    return _day(d).strftime("%d %b %Y")


def default_tasks(today: date) -> list[ComplianceTask]:
    """Seed tasks for a new account: common Indian statutory deadlines."""
    return [
        ComplianceTask(
            id="",
            name="GSTR-3B Filing",
            category=PredefinedCategory.GST,
            deadline=today.replace(day=20),
            recurrence=Recurrence.MONTHLY,
            description="Monthly GST return filing",
        ),
        ComplianceTask(
            id="",
            name="GSTR-1 Filing",
            category=PredefinedCategory.GST,
            deadline=today.replace(day=11),
            recurrence=Recurrence.MONTHLY,
            description="Outward supplies return",
        ),
        ComplianceTask(
            id="",
            name="Advance Tax - Q4",
            category=PredefinedCategory.INCOME_TAX,
            deadline=date(today.year, 3, 15),
            recurrence=Recurrence.QUARTERLY,
            description="Fourth installment of advance tax",
        ),
        ComplianceTask(
            id="",
            name="TDS Return - Q3",
            category=PredefinedCategory.INCOME_TAX,
            deadline=date(today.year, 1, 31),
            recurrence=Recurrence.QUARTERLY,
            description="Quarterly TDS return filing",
        ),
        ComplianceTask(
            id="",
            name="Vehicle Insurance Renewal",
            category=PredefinedCategory.INSURANCE,
            deadline=add_months(today, 1),
            recurrence=Recurrence.YEARLY,
            description="Annual vehicle insurance renewal",
        ),
        ComplianceTask(
            id="",
            name="PUC Certificate Renewal",
            category=PredefinedCategory.TRANSPORT,
            deadline=add_months(today, 2),
            recurrence=Recurrence.YEARLY,
            description="Pollution Under Control certificate",
        ),
    ]
