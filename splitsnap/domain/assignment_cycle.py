"""Click-to-cycle transitions for item assignments."""

from splitsnap.domain.bill import Assignment
from splitsnap.domain.errors import InvalidManualEntry

_NEXT = {
    Assignment.SHARED: Assignment.PERSON_A,
    Assignment.PERSON_A: Assignment.PERSON_B,
    Assignment.PERSON_B: Assignment.SHARED,
}

_ALIASES = {
    "a": Assignment.PERSON_A,
    "person_a": Assignment.PERSON_A,
    "person1": Assignment.PERSON_A,
    "b": Assignment.PERSON_B,
    "person_b": Assignment.PERSON_B,
    "person2": Assignment.PERSON_B,
    "s": Assignment.SHARED,
    "shared": Assignment.SHARED,
    "both": Assignment.SHARED,
}


def next_assignment(state: Assignment) -> Assignment:
    """Return the next state: shared -> A -> B -> shared."""
    return _NEXT[state]


def parse_assignment(label: str) -> Assignment:
    """Parse a user-facing assignment label (``a``, ``b``, ``shared``, ``both``...)."""
    key = label.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return _ALIASES[key]
    except KeyError:
        raise InvalidManualEntry(f"Unknown assignment {label!r}; use a, b or shared") from None
