"""Tests for task form validation."""

from datetime import date

import pytest

from compliance.core.validation import TaskInput, validate_task


def make_input(**kwargs):
    defaults = dict(name="GSTR-3B Filing", category="gst", deadline=date(2025, 1, 20))
    defaults.update(kwargs)
    return TaskInput(**defaults)


def test_valid():
    assert validate_task(make_input(recurrence="monthly", client_phone="9876543210")) == []


def test_name_length_after_strip():
    assert validate_task(make_input(name="  ab  ")) == ["Task name must be at least 3 characters"]
    assert validate_task(make_input(name="x" * 101)) == ["Task name cannot exceed 100 characters"]
    assert validate_task(make_input(name="x" * 100)) == []


def test_required_fields():
    errors = validate_task(make_input(category=" ", deadline=None))
    assert errors == ["Category is required", "Deadline is required"]


def test_unknown_recurrence():
    assert validate_task(make_input(recurrence="daily")) == ["Unknown recurrence: daily"]


@pytest.mark.parametrize("phone", ["5876543210", "987654321", "98765432100", "98765abcde"])
def test_invalid_phone(phone):
    assert validate_task(make_input(client_phone=phone)) == [
        "Invalid Indian mobile number (10 digits starting with 6-9)"
    ]


def test_optional_lengths():
    errors = validate_task(make_input(client_name="c" * 101, description="d" * 501))
    assert errors == [
        "Client name cannot exceed 100 characters",
        "Description cannot exceed 500 characters",
    ]
