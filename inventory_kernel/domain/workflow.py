"""
Document lifecycle state machine (``inventory_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the Draft / Posted / Voided lifecycle shared by every
posting document type.  Defined once here; document services consult
``DOCUMENT_WORKFLOW`` instead of re-deriving the transitions per type.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``posted`` and ``voided`` are terminal: no transition leaves them.
* Line edits are allowed only in states listed in ``editable_states``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"
    VOIDED = "voided"


class DocumentAction(str, Enum):
    POST = "post"
    VOID = "void"
    EDIT = "edit"


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only: the document service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition.

    ``appends_movements=True`` marks the single transition that writes to the
    movement ledger.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    appends_movements: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()
    editable_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action!r} references "
                    "an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    "cannot have outgoing transitions"
                )

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allows_edit(self, state: str) -> bool:
        return state in self.editable_states


HAS_LINES_GUARD = Guard(
    "has_lines", "Document must have at least one line before posting"
)
LINES_TRACKED_GUARD = Guard(
    "lines_tracked", "Every line passes serial / batch tracking validation"
)

DOCUMENT_WORKFLOW = Workflow(
    name="posting_document",
    description=(
        "Shared lifecycle for stock adjustments, transfers, goods receipts, "
        "supplier returns, direct dispatches, direct purchases and material "
        "requisitions. Posting is the only way to append ledger entries; "
        "posted documents are corrected by a new compensating document, "
        "never by voiding."
    ),
    initial_state=DocumentStatus.DRAFT.value,
    states=(
        DocumentStatus.DRAFT.value,
        DocumentStatus.POSTED.value,
        DocumentStatus.VOIDED.value,
    ),
    transitions=(
        Transition(
            DocumentStatus.DRAFT.value,
            DocumentStatus.POSTED.value,
            DocumentAction.POST.value,
            guard=HAS_LINES_GUARD,
            appends_movements=True,
        ),
        Transition(
            DocumentStatus.DRAFT.value,
            DocumentStatus.VOIDED.value,
            DocumentAction.VOID.value,
        ),
    ),
    terminal_states=(
        DocumentStatus.POSTED.value,
        DocumentStatus.VOIDED.value,
    ),
    editable_states=(DocumentStatus.DRAFT.value,),
)
