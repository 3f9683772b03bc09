import math

import pytest

from wipsim.entities import Ticket
from wipsim.metrics import EmptyPopulationError, LeadTimeStats, lead_time_stats
from wipsim.policies import Policy
from wipsim.simulation import SimulationSet


def _with_lead_times(values):
    tickets = []
    for lt in values:
        t = Ticket.new(0, 1, 2)
        t.lead_time = lt
        tickets.append(t)
    return tickets


def test_population_mean_and_stdev():
    stats = lead_time_stats(_with_lead_times([1, 2, 3]))
    assert isinstance(stats, LeadTimeStats)
    assert stats.mean == pytest.approx(2.0)
    assert stats.stdev == pytest.approx(math.sqrt(2.0 / 3.0))
    assert stats.mean_plus_stdev == pytest.approx(2.0 + math.sqrt(2.0 / 3.0))


def test_identical_lead_times_have_zero_stdev():
    stats = lead_time_stats(_with_lead_times([3] * 7))
    assert stats == LeadTimeStats(3.0, 0.0, 3.0)


def test_empty_population_signals_no_data():
    with pytest.raises(EmptyPopulationError):
        lead_time_stats([])
    assert issubclass(EmptyPopulationError, ValueError)


def test_stats_are_idempotent():
    simset = SimulationSet(days=6, capacity=8)
    simset.run([(0, 5), (0, 10), (1, 7), (3, 2)])
    for sim in simset:
        assert sim.lead_time_stats() == sim.lead_time_stats()
        assert sim.summary() == sim.summary()


def test_summary_counts():
    simset = SimulationSet(days=3, capacity=8, policies=(Policy.SHORTEST_FIRST,))
    simset.run([(0, 10), (0, 5), (2, 4)])
    summary = simset.summary()["shortest_first"]
    assert summary["name"] == "Shortest first"
    assert summary["tickets"] == 3
    assert summary["completed"] == 2
    assert summary["open_at_end"] == 1
    # lead times 2, 1 and 0 (last-day arrival never worked)
    assert summary["lead_time_mean"] == pytest.approx(1.0)
    assert summary["lead_time_max"] == 2
    assert summary["effort_total"] == 19
    assert summary["hours_worked"] == 15
    # open tickets per day: 2, 1, 1
    assert summary["wip_mean"] == pytest.approx(4 / 3)
    assert summary["wip_max"] == 2
