# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definition for the WIP simulation: Ticket, one unit of work with
#   its per-day remaining-effort trajectory.
#
# Design notes:
#   - remaining_by_day is indexed by simulation day; the slot for day+1 is
#     written every day the ticket is present (carry-forward), so a
#     trajectory never has holes after start_day.
#   - burn() is the only mutation; policies differ in ordering and in how
#     many hours they offer per ticket, never in how work is applied.
#
# Usage:
#   from wipsim.entities import Ticket
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import List

@dataclass
class Ticket:
    start_day: int
    effort: int                      # total hours, fixed at creation
    remaining_by_day: List[int] = field(default_factory=list)
    end_day: int = 0                 # last day with nonzero work
    lead_time: int = 0               # end_day + 1 - start_day, frozen at zero remaining
    tid: int = -1                    # arena index inside the owning Simulation

    @classmethod
    def new(cls, start_day: int, effort: int, total_days: int) -> "Ticket":
        """Create a ticket arriving on start_day for a horizon of total_days."""
        remaining = [0] * total_days
        remaining[start_day] = effort
        return cls(start_day=start_day, effort=effort, remaining_by_day=remaining)

    def clone(self) -> "Ticket":
        return copy.deepcopy(self)

    def remaining(self, day: int) -> int:
        return self.remaining_by_day[day]

    def is_done(self, day: int) -> bool:
        return day >= self.start_day and self.remaining_by_day[day] == 0

    def burn(self, day: int, hours_available: int, hours_offered: int) -> int:
        """
        Burn down this ticket on `day` and return the capacity left for the day.

        Parameters
        ----------
        day : int
            Current simulation day; day + 1 must be inside the horizon.
        hours_available : int
            Capacity still unspent today across all tickets.
        hours_offered : int
            Upper bound on the hours this call may spend on this ticket.

        Returns
        -------
        int
            hours_available minus the hours actually worked.
        """
        remain = self.remaining_by_day[day]
        if remain > 0 and hours_available > 0:
            hours = min(remain, hours_offered, hours_available)
            if hours > 0:
                remain -= hours
                hours_available -= hours
                self.end_day = day
                self.lead_time = day + 1 - self.start_day
        # carry-forward happens whether or not work was done
        self.remaining_by_day[day + 1] = remain
        return hours_available
