# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Scheduling policies that split a fixed daily capacity across the open
#   tickets of one simulation: equal working (WIP cap), oldest first,
#   shortest first, oldest-then-shortest and age-weighted shortest first.
#
# Design notes:
#   - Keep pure functions to ease testing (policy -> decision); the only side
#     effect is Ticket.burn() on the tickets handed in.
#   - Each ticket is burned exactly once per day. Equal working plans both of
#     its passes first, then applies the per-ticket total in one call.
#   - Sorted orders work on a copy of the list; the caller's population keeps
#     insertion order, which "oldest first" relies on.
#   - Ties fall back to ticket id (arrival order).
#
# Usage:
#   from wipsim.policies import Policy
#   spent = Policy.SHORTEST_FIRST.allocate(day, sim.tickets, capacity=8)
# -----------------------------------------------------------------------------

from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple
from .entities import Ticket

def _burn_in_order(day: int, ordered: Sequence[Ticket], capacity: int) -> Dict[int, int]:
    # single greedy pass: every ticket is offered whatever capacity is left
    spent: Dict[int, int] = {}
    hours_left = capacity
    for t in ordered:
        before = hours_left
        hours_left = t.burn(day, hours_left, hours_left)
        spent[t.tid] = before - hours_left
    return spent

def equal_working(day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int) -> Dict[int, int]:
    """
    Work every open ticket up to `wip_cap` hours, then hand any capacity left
    over to the tickets in arrival order with no cap.
    """
    plan: List[int] = []
    hours_left = capacity
    for t in tickets:
        h = max(0, min(wip_cap, t.remaining(day), hours_left))
        plan.append(h)
        hours_left -= h
    if hours_left > 0:
        for i, t in enumerate(tickets):
            extra = max(0, min(t.remaining(day) - plan[i], hours_left))
            plan[i] += extra
            hours_left -= extra
            if hours_left <= 0:
                break

    spent: Dict[int, int] = {}
    hours_left = capacity
    for t, h in zip(tickets, plan):
        before = hours_left
        hours_left = t.burn(day, hours_left, h)
        spent[t.tid] = before - hours_left
    return spent

def oldest_first(day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int) -> Dict[int, int]:
    return _burn_in_order(day, tickets, capacity)

def shortest_first(day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int) -> Dict[int, int]:
    ordered = sorted(tickets, key=lambda t: (t.remaining(day), t.tid))
    return _burn_in_order(day, ordered, capacity)

def oldest_shortest_first(day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int) -> Dict[int, int]:
    ordered = sorted(tickets, key=lambda t: (t.start_day, t.remaining(day), t.tid))
    return _burn_in_order(day, ordered, capacity)

def age_weight(ticket: Ticket, day: int) -> int:
    """Remaining hours divided (integer division) by days open, today included."""
    age = day + 1 - ticket.start_day   # >= 1 since start_day <= day
    return ticket.remaining(day) // age

def age_weighted_shortest_first(day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int) -> Dict[int, int]:
    ordered = sorted(tickets, key=lambda t: (age_weight(t, day), t.tid))
    return _burn_in_order(day, ordered, capacity)

_Allocator = Callable[[int, Sequence[Ticket], int, int], Dict[int, int]]

class Policy(Enum):
    """Closed set of scheduling strategies compared by the simulation set."""
    EQUAL_WORKING = "equal_working"
    OLDEST_FIRST = "oldest_first"
    SHORTEST_FIRST = "shortest_first"
    OLDEST_SHORTEST_FIRST = "oldest_shortest_first"
    AGE_WEIGHTED_SHORTEST_FIRST = "age_weighted_shortest_first"

    @property
    def label(self) -> str:
        return _LABELS[self]

    def allocate(self, day: int, tickets: Sequence[Ticket], capacity: int, wip_cap: int = 2) -> Dict[int, int]:
        """
        Burn down `tickets` for `day` and return hours spent per ticket id.

        Every ticket gets its carry-forward for day + 1 written, including
        finished ones (which receive 0 hours).
        """
        return _ALLOCATORS[self](day, tickets, capacity, wip_cap)

    @classmethod
    def from_name(cls, name: str) -> "Policy":
        try:
            return cls(name)
        except ValueError:
            known = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown policy {name!r}; expected one of: {known}") from None

_LABELS: Dict[Policy, str] = {
    Policy.EQUAL_WORKING: "Equal working",
    Policy.OLDEST_FIRST: "Oldest first",
    Policy.SHORTEST_FIRST: "Shortest first",
    Policy.OLDEST_SHORTEST_FIRST: "Oldest, shortest first",
    Policy.AGE_WEIGHTED_SHORTEST_FIRST: "Age weighted, shortest first",
}

_ALLOCATORS: Dict[Policy, _Allocator] = {
    Policy.EQUAL_WORKING: equal_working,
    Policy.OLDEST_FIRST: oldest_first,
    Policy.SHORTEST_FIRST: shortest_first,
    Policy.OLDEST_SHORTEST_FIRST: oldest_shortest_first,
    Policy.AGE_WEIGHTED_SHORTEST_FIRST: age_weighted_shortest_first,
}

DEFAULT_POLICIES: Tuple[Policy, ...] = tuple(Policy)
