"""
wipsim package initializer.

This package contains the day-by-day burn-down engine, the ticket entity,
the scheduling policies, arrival generation, configuration and lead-time
metrics used to compare work-in-progress policies.
"""
__all__ = [
    "entities", "policies", "arrivals",
    "metrics", "config", "simulation",
]
