"""
Canonical workflow types (``warehouse_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document status state machines (purchase orders,
pick requests, sales orders).  Statuses are stored as strings; a Workflow
is the explicit transition table that decides whether an action is legal
from the current status and what the next status is.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Imports only the exception module.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* At most one transition per (from_state, action) pair.
"""

from __future__ import annotations

from dataclasses import dataclass

from warehouse_kernel.exceptions import InvalidStatusTransitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in states of {self.name}"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Transition {t.from_state}->{t.to_state} references unknown state"
                )
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(f"Duplicate transition {key} in {self.name}")
            seen.add(key)

    def find(self, current: str, action: str) -> Transition | None:
        """Return the transition for ``action`` from ``current``, if any."""
        for t in self.transitions:
            if t.from_state == current and t.action == action:
                return t
        return None

    def allows(self, current: str, action: str) -> bool:
        return self.find(current, action) is not None

    def next_state(self, entity_id: str, current: str, action: str) -> str:
        """
        Resolve the status that ``action`` moves ``entity_id`` to.

        Raises:
            InvalidStatusTransitionError: No transition for (current, action).
        """
        transition = self.find(current, action)
        if transition is None:
            raise InvalidStatusTransitionError(self.name, entity_id, current, action)
        return transition.to_state
