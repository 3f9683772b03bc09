# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Generate exogenous ticket arrivals: per day a gaussian ticket count and a
#   gaussian integer effort per ticket, both rounded and floored.
#
# Design notes:
#   - The generator handle (random.Random) is passed in explicitly, so runs
#     are reproducible from a seed and never touch the global RNG state.
#   - Arrivals are generated once per run and replayed against every policy;
#     the output is a flat list of (day, effort) tuples in arrival order.
#
# Usage:
#   rng = random.Random(seed)
#   arrivals = generate_arrivals(cfg, rng)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

Arrival = Tuple[int, int]   # (arrival day, effort hours)

def random_value_int(rng: random.Random, mean: float, stddev: float, lowest: int) -> int:
    # gaussian draw rounded to the nearest integer, never below `lowest`
    value = int(round(rng.gauss(mean, stddev)))
    return value if value >= lowest else lowest

def generate_day(
    rng: random.Random,
    day: int,
    mean_count: float,
    stddev_count: float,
    mean_effort: float,
    stddev_effort: float,
    min_effort: int,
) -> List[int]:
    """
    Draw the tickets arriving on `day`.

    Returns
    -------
    list[int]
        Effort in hours of each new ticket (possibly empty).
    """
    count = random_value_int(rng, mean_count, stddev_count, 0)
    efforts = [random_value_int(rng, mean_effort, stddev_effort, min_effort) for _ in range(count)]
    logger.debug("day %d: %d new tickets, efforts %s", day, count, efforts)
    return efforts

def generate_arrivals(cfg: Dict, rng: random.Random) -> List[Arrival]:
    """Generate the whole arrival sequence for cfg['sim']['days'] days."""
    days = cfg["sim"]["days"]
    arr_cfg = cfg["arrivals"]
    arrivals: List[Arrival] = []
    for d in range(days):
        efforts = generate_day(
            rng,
            d,
            arr_cfg["mean_per_day"],
            arr_cfg["stddev_per_day"],
            arr_cfg["mean_effort"],
            arr_cfg["stddev_effort"],
            arr_cfg["min_effort"],
        )
        arrivals.extend((d, e) for e in efforts)
    return arrivals
