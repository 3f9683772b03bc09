"""
experiments/scenarios.py

Holds scenario definitions (config overrides) to sweep during experiments.
Add arrival rates, effort distributions, capacity and policy lists here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

HIGH_LOAD = {
    "name": "high_load",
    "overrides": {
        # ~1.3 tickets/day at 6h mean effort is close to the 8h daily capacity
        "arrivals": {
            "mean_per_day": 1.3,
        },
    },
}

BIG_TICKETS = {
    "name": "big_tickets",
    "overrides": {
        "arrivals": {
            "mean_effort": 7.0,
            "stddev_effort": 4.0,
        },
    },
}

LONG_RUN = {
    "name": "long_run",
    "overrides": {
        "sim": {
            "days": 100,
        },
    },
}

SCENARIOS = [BASELINE, HIGH_LOAD, BIG_TICKETS, LONG_RUN]
