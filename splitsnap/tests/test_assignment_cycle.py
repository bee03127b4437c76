"""Tests for click-to-cycle assignments."""

import pytest

from splitsnap.domain.assignment_cycle import next_assignment, parse_assignment
from splitsnap.domain.bill import Assignment, CandidateItem
from splitsnap.domain.errors import InvalidManualEntry


def test_cycle_order() -> None:
    assert next_assignment(Assignment.SHARED) == Assignment.PERSON_A
    assert next_assignment(Assignment.PERSON_A) == Assignment.PERSON_B
    assert next_assignment(Assignment.PERSON_B) == Assignment.SHARED


@pytest.mark.parametrize("start", list(Assignment))
def test_three_steps_return_to_start(start: Assignment) -> None:
    state = start
    for _ in range(3):
        state = next_assignment(state)
    assert state == start


def test_new_items_start_shared() -> None:
    assert CandidateItem(cents=100).assignment == Assignment.SHARED


def test_with_assignment_keeps_identity() -> None:
    item = CandidateItem(cents=100)
    moved = item.with_assignment(Assignment.PERSON_B)

    assert moved.id == item.id
    assert moved.cents == item.cents
    assert item.assignment == Assignment.SHARED


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("a", Assignment.PERSON_A),
        ("A", Assignment.PERSON_A),
        ("person_a", Assignment.PERSON_A),
        ("person-b", Assignment.PERSON_B),
        ("b", Assignment.PERSON_B),
        ("shared", Assignment.SHARED),
        (" Both ", Assignment.SHARED),
        ("s", Assignment.SHARED),
    ],
)
def test_parse_assignment_aliases(label: str, expected: Assignment) -> None:
    assert parse_assignment(label) == expected


def test_parse_assignment_unknown_label() -> None:
    with pytest.raises(InvalidManualEntry, match="Unknown assignment"):
        parse_assignment("c")
