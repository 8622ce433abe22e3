"""Task completion and recurrence rollover."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from .core.tasks import ComplianceTask, next_deadline
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Outcome of completing a task."""

    task: ComplianceTask
    successor: ComplianceTask | None = None
    rollover_error: str | None = None
    already_completed: bool = False


def build_successor(task: ComplianceTask) -> ComplianceTask | None:
    """
    The next pending occurrence of a recurring task, or None.

    Pure function - no I/O. The id is left empty for the store to assign.
    """
    deadline = next_deadline(task.deadline, task.recurrence)
    if deadline is None:
        return None
    return replace(
        task,
        id="",
        deadline=deadline,
        completed=False,
        completed_at=None,
        google_event_id=None,
    )


def complete_task(repo: TaskRepository, task: ComplianceTask, now: datetime) -> CompletionResult:
    """
    Mark a task completed and roll recurring tasks over.

    The completion write and the successor insert are separate steps: a failed
    completion write propagates, a failed successor insert is reported in the
    result and leaves the completion in place. Completing an already completed
    task spawns nothing.
    """
    if task.completed:
        logger.debug(f"Task {task.id} already completed, no rollover")
        return CompletionResult(task=task, already_completed=True)

    repo.update(task.id, {"completed": True, "completed_at": now.isoformat()})
    done = replace(task, completed=True, completed_at=now)

    successor = build_successor(task)
    if successor is None:
        return CompletionResult(task=done)

    try:
        created = repo.insert(successor)
    except Exception as e:
        logger.error(f"Rollover failed for task {task.id}: {e}")
        return CompletionResult(task=done, rollover_error=str(e))

    logger.info(f"Task {task.id} completed, next occurrence {created.id} due {created.deadline}")
    return CompletionResult(task=done, successor=created)


def reopen_task(repo: TaskRepository, task: ComplianceTask) -> ComplianceTask:
    """Mark a task pending again. Successors already spawned are left alone."""
    repo.update(task.id, {"completed": False, "completed_at": None})
    return replace(task, completed=False, completed_at=None)


def toggle_completion(repo: TaskRepository, task: ComplianceTask, now: datetime) -> CompletionResult:
    """Complete a pending task or reopen a completed one."""
    if task.completed:
        return CompletionResult(task=reopen_task(repo, task))
    return complete_task(repo, task, now)
