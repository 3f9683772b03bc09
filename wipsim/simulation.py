# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Day-by-day driver. A Simulation is one policy's ticket population; a
#   SimulationSet replays one arrival sequence against every policy so the
#   lead times are directly comparable.
#
# Design notes:
#   - Each Simulation owns its own arena of Tickets (list index = ticket id).
#     New arrivals are cloned into every arena; nothing is shared by reference.
#   - Burn-down is skipped on the last day: there is no day+1 slot to write.
#   - Replications and reporting live outside, in experiments/.
#
# Usage:
#   from wipsim.simulation import run_simulation
#   simset = run_simulation(cfg)
#   simset.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from .entities import Ticket
from .policies import Policy, DEFAULT_POLICIES
from .arrivals import generate_arrivals
from .metrics import LeadTimeStats, lead_time_stats, summarize

logger = logging.getLogger(__name__)

class Simulation:
    """One policy's full ticket population and its burn-down history.

    Attributes
    ----------
    tickets : list[Ticket]
        Arena of tickets in insertion (arrival) order; tickets[i].tid == i.
    hours_by_day : list[dict[int, int]]
        Hours worked per ticket id, one dict per burned-down day.
    """
    def __init__(self, policy: Policy, days: int, capacity: int, wip_cap: int = 2):
        self.policy = policy
        self.days = days
        self.capacity = capacity
        self.wip_cap = wip_cap
        self.tickets: List[Ticket] = []
        self.hours_by_day: List[Dict[int, int]] = []

    @property
    def name(self) -> str:
        return self.policy.label

    def add_tickets(self, tickets: Iterable[Ticket]):
        for t in tickets:
            cp = t.clone()
            cp.tid = len(self.tickets)
            self.tickets.append(cp)

    def burndown(self, day: int) -> Dict[int, int]:
        spent = self.policy.allocate(day, self.tickets, self.capacity, self.wip_cap)
        self.hours_by_day.append(spent)
        return spent

    def wip_by_day(self) -> List[int]:
        """Number of tickets with nonzero remaining effort on each day."""
        wip = [0] * self.days
        for t in self.tickets:
            for d in range(t.start_day, self.days):
                if t.remaining_by_day[d] > 0:
                    wip[d] += 1
        return wip

    def lead_time_stats(self) -> LeadTimeStats:
        return lead_time_stats(self.tickets)

    def summary(self) -> Dict:
        return summarize(self)

class SimulationSet:
    """All policies run over the identical arrival sequence."""
    def __init__(self, days: int, capacity: int, wip_cap: int = 2,
                 policies: Sequence[Policy] = DEFAULT_POLICIES):
        if days < 0:
            raise ValueError(f"days must be >= 0, got {days}")
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.days = days
        self.capacity = capacity
        self.wip_cap = wip_cap
        self.simulations: List[Simulation] = [
            Simulation(p, days, capacity, wip_cap) for p in policies
        ]
        self.arrivals_by_day: List[List[int]] = [[] for _ in range(days)]

    def __iter__(self):
        return iter(self.simulations)

    def __getitem__(self, policy: Policy) -> Simulation:
        for sim in self.simulations:
            if sim.policy is policy:
                return sim
        raise KeyError(policy)

    def add_tickets(self, day: int, efforts: Sequence[int]):
        """Create today's tickets and add an independent copy to every simulation."""
        new = [Ticket.new(day, e, self.days) for e in efforts]
        self.arrivals_by_day[day].extend(efforts)
        for sim in self.simulations:
            sim.add_tickets(new)

    def burndown(self, day: int):
        for sim in self.simulations:
            sim.burndown(day)

    def run(self, arrivals: Iterable[Tuple[int, int]]) -> "SimulationSet":
        """
        Drive every simulation over the whole horizon.

        Parameters
        ----------
        arrivals : iterable of (day, effort)
            Arrival sequence; tickets of the same day keep their given order.
        """
        per_day: Dict[int, List[int]] = defaultdict(list)
        for day, effort in arrivals:
            if not 0 <= day < self.days:
                raise ValueError(f"arrival day {day} outside horizon [0, {self.days})")
            if effort < 1:
                raise ValueError(f"ticket effort must be >= 1, got {effort}")
            per_day[day].append(effort)

        logger.info("Simulating %d days for %d policies", self.days, len(self.simulations))
        for d in range(self.days):
            self.add_tickets(d, per_day.get(d, []))
            # burn down on all days except the last one
            if d < self.days - 1:
                self.burndown(d)
        logger.info("Simulation finished: %d tickets", self.ticket_count())
        return self

    def ticket_count(self) -> int:
        return sum(len(a) for a in self.arrivals_by_day)

    def mean_count_per_day(self) -> float:
        return self.ticket_count() / self.days if self.days else 0.0

    def mean_effort_per_day(self) -> float:
        total = sum(sum(a) for a in self.arrivals_by_day)
        return total / self.days if self.days else 0.0

    def summary(self) -> Dict[str, Dict]:
        return {sim.policy.value: sim.summary() for sim in self.simulations}

def build_simulation_set(cfg: Dict) -> SimulationSet:
    cap = cfg["capacity"]
    return SimulationSet(
        days=cfg["sim"]["days"],
        capacity=cap["daily_hours"],
        wip_cap=cap["wip_cap_hours_per_ticket"],
        policies=tuple(Policy.from_name(name) for name in cfg["policies"]),
    )

def run_simulation(cfg: Dict, rng: Optional[random.Random] = None) -> SimulationSet:
    """Generate one arrival sequence from the configured seed and run all policies."""
    if rng is None:
        rng = random.Random(cfg["sim"].get("seed", 0))
    arrivals = generate_arrivals(cfg, rng)
    return build_simulation_set(cfg).run(arrivals)
