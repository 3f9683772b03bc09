# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Summarize a finished ticket population: mean / population stdev of lead
#   time and the mean+stdev bound, plus per-policy KPI dicts.
#
# Design notes:
#   - An empty population has no lead-time statistics; lead_time_stats raises
#     EmptyPopulationError instead of returning NaN.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#
# Usage:
#   stats = lead_time_stats(sim.tickets); summarize(sim)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from typing import Any, Dict, NamedTuple, Sequence
from .entities import Ticket

class EmptyPopulationError(ValueError):
    """Lead-time statistics are undefined: the population holds no tickets."""

class LeadTimeStats(NamedTuple):
    mean: float
    stdev: float
    mean_plus_stdev: float

def lead_time_stats(tickets: Sequence[Ticket]) -> LeadTimeStats:
    n = len(tickets)
    if n == 0:
        raise EmptyPopulationError("no tickets, lead time statistics undefined")
    total = 0.0
    total_sq = 0.0
    for t in tickets:
        lt = float(t.lead_time)
        total += lt
        total_sq += lt * lt
    mean = total / n
    # population variance; clamp tiny negative values from float round-off
    var = max(total_sq / n - mean * mean, 0.0)
    stdev = math.sqrt(var)
    return LeadTimeStats(mean, stdev, mean + stdev)

def summarize(sim) -> Dict[str, Any]:
    """
    Build the KPI dict for one Simulation.

    Lead-time fields are None when the population is empty. Tickets still
    open on the last day count toward the statistics with the lead time of
    their last worked day.
    """
    tickets = sim.tickets
    last_day = sim.days - 1
    completed = sum(1 for t in tickets if last_day >= 0 and t.is_done(last_day))
    try:
        stats = lead_time_stats(tickets)
        mean, stdev, bound = stats.mean, stats.stdev, stats.mean_plus_stdev
    except EmptyPopulationError:
        mean = stdev = bound = None
    wip = sim.wip_by_day()
    return {
        "policy": sim.policy.value,
        "name": sim.name,
        "tickets": len(tickets),
        "completed": completed,
        "open_at_end": len(tickets) - completed,
        "lead_time_mean": mean,
        "lead_time_stdev": stdev,
        "lead_time_mean_plus_stdev": bound,
        "lead_time_max": max((t.lead_time for t in tickets), default=None),
        "effort_total": sum(t.effort for t in tickets),
        "hours_worked": sum(sum(day.values()) for day in sim.hours_by_day),
        # open tickets per day over the whole horizon
        "wip_mean": sum(wip) / len(wip) if wip else 0.0,
        "wip_max": max(wip, default=0),
    }
