"""Tests for completion, rollover and reopen."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest

from compliance.adapters.memory import InMemoryTaskRepository
from compliance.core.tasks import ComplianceTask, PredefinedCategory, Recurrence
from compliance.lifecycle import build_successor, complete_task, reopen_task, toggle_completion
from compliance.ports.task_repo import TaskFilter


NOW = datetime(2024, 1, 25, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def repo():
    return InMemoryTaskRepository()


def add(repo, recurrence=Recurrence.MONTHLY, deadline=date(2024, 1, 31), **kwargs):
    return repo.insert(
        ComplianceTask(
            id="",
            name="GSTR-3B Filing",
            category=PredefinedCategory.GST,
            deadline=deadline,
            recurrence=recurrence,
            description="Monthly GST return filing",
            user_id="u1",
            organization_id="o1",
            **kwargs,
        )
    )


class TestBuildSuccessor:
    def test_copies_fields_with_next_deadline(self):
        task = ComplianceTask(
            id="t1",
            name="Advance Tax",
            category=PredefinedCategory.INCOME_TAX,
            deadline=date(2024, 6, 15),
            recurrence=Recurrence.QUARTERLY,
            completed=True,
            completed_at=NOW,
            description="Installment",
            google_event_id="evt",
        )
        successor = build_successor(task)
        assert successor.id == ""
        assert successor.name == "Advance Tax"
        assert successor.category is PredefinedCategory.INCOME_TAX
        assert successor.recurrence == Recurrence.QUARTERLY
        assert successor.description == "Installment"
        assert successor.deadline == date(2024, 9, 15)
        assert successor.completed is False
        assert successor.completed_at is None
        assert successor.google_event_id is None

    def test_one_time_has_none(self):
        task = ComplianceTask(id="t1", name="PAN", category=PredefinedCategory.INCOME_TAX, deadline=date(2024, 1, 1))
        assert build_successor(task) is None


class TestCompleteTask:
    def test_marks_completed(self, repo):
        task = add(repo, recurrence=Recurrence.ONE_TIME)
        result = complete_task(repo, task, NOW)

        stored = repo.tasks[task.id]
        assert stored.completed is True
        assert stored.completed_at == NOW
        assert result.task.completed_at == NOW
        assert result.successor is None
        assert len(repo.tasks) == 1

    def test_recurring_spawns_successor(self, repo):
        task = add(repo)
        result = complete_task(repo, task, NOW)

        assert result.successor is not None
        assert result.successor.deadline == date(2024, 2, 29)
        assert result.successor.id != task.id
        assert len(repo.tasks) == 2
        assert repo.tasks[task.id].completed is True
        assert repo.tasks[result.successor.id].completed is False

    def test_second_completion_spawns_nothing(self, repo):
        task = add(repo)
        first = complete_task(repo, task, NOW)
        second = complete_task(repo, first.task, NOW)

        assert second.already_completed is True
        assert second.successor is None
        assert len(repo.tasks) == 2

    def test_stale_copy_of_completed_task_still_guarded(self, repo):
        task = add(repo)
        complete_task(repo, task, NOW)
        # Re-read the stored copy, as a second request would
        stored = repo.read(TaskFilter(completed=True))[0]
        complete_task(repo, stored, NOW)

        assert len(repo.tasks) == 2

    def test_rollover_failure_keeps_completion(self, repo):
        task = add(repo)
        failing = MagicMock(wraps=repo)
        failing.insert.side_effect = RuntimeError("insert rejected")

        result = complete_task(failing, task, NOW)

        assert repo.tasks[task.id].completed is True
        assert result.task.completed is True
        assert result.successor is None
        assert result.rollover_error == "insert rejected"
        assert len(repo.tasks) == 1

    def test_completion_write_failure_propagates(self, repo):
        task = add(repo)
        failing = MagicMock(wraps=repo)
        failing.update.side_effect = ConnectionError("store down")

        with pytest.raises(ConnectionError):
            complete_task(failing, task, NOW)

        failing.insert.assert_not_called()


class TestReopenTask:
    def test_clears_completed_at(self, repo):
        task = add(repo)
        done = complete_task(repo, task, NOW).task

        reopened = reopen_task(repo, done)

        assert reopened.completed is False
        assert reopened.completed_at is None
        assert repo.tasks[task.id].completed is False
        assert repo.tasks[task.id].completed_at is None

    def test_keeps_spawned_successor(self, repo):
        task = add(repo)
        result = complete_task(repo, task, NOW)

        reopen_task(repo, result.task)

        assert result.successor.id in repo.tasks
        assert len(repo.tasks) == 2


class TestToggleCompletion:
    def test_toggle_completes_then_reopens(self, repo):
        task = add(repo, recurrence=Recurrence.ONE_TIME)
        done = toggle_completion(repo, task, NOW)
        assert done.task.completed is True

        reopened = toggle_completion(repo, done.task, NOW)
        assert reopened.task.completed is False
        assert reopened.task.completed_at is None
