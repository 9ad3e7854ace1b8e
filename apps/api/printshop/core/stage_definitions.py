"""Canonical department pipeline definitions and ordering."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, TypeVar


DESIGN = "Design/Customer Service"
BILLING = "Billing"
PRINTING = "Printing"
FINISHING = "Finishing"
READY_FOR_DELIVERY = "Ready for Delivery"
DELIVERED = "Delivered"

# Pipeline order; the first entry is where every job starts, the last one ends it
DEPARTMENT_ORDER = [
    DESIGN,
    BILLING,
    PRINTING,
    FINISHING,
    READY_FOR_DELIVERY,
    DELIVERED,
]

ENTRY_STAGE = DEPARTMENT_ORDER[0]
TERMINAL_STAGE = DEPARTMENT_ORDER[-1]

DEFAULT_DESCRIPTIONS = {
    DESIGN: "Client intake, artwork and proof approval",
    BILLING: "Quotes, invoices and payment confirmation",
    PRINTING: "Press and large-format output",
    FINISHING: "Cutting, binding, lamination and mounting",
    READY_FOR_DELIVERY: "Packed and waiting for pickup or dispatch",
    DELIVERED: "Handed over to the client",
}

_RANK = {name: index for index, name in enumerate(DEPARTMENT_ORDER)}


class NamedStage(Protocol):
    name: str


T = TypeVar("T", bound=NamedStage)


def stage_rank(name: str | None) -> int:
    """Rank of a department name in the pipeline; unknown names rank last."""
    if name is None:
        return len(DEPARTMENT_ORDER)
    return _RANK.get(name, len(DEPARTMENT_ORDER))


def sort_by_pipeline(departments: Iterable[T]) -> list[T]:
    """
    Sort departments by canonical pipeline order.

    Unknown names go after every known one. The sort is stable, so unknown
    departments keep the order they were loaded in.
    """
    return sorted(departments, key=lambda dep: stage_rank(dep.name))


def is_terminal(name: str | None) -> bool:
    return name == TERMINAL_STAGE


def index_of(name: str | None, departments: Sequence[NamedStage]) -> int:
    """Position of a department name in an ordered list, or -1."""
    for index, dep in enumerate(departments):
        if dep.name == name:
            return index
    return -1


def get_default_department_defs() -> list[dict[str, str]]:
    """Generate the six default department rows."""
    return [
        {"name": name, "description": DEFAULT_DESCRIPTIONS.get(name, "")}
        for name in DEPARTMENT_ORDER
    ]
