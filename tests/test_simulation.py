import pytest

from wipsim.metrics import EmptyPopulationError
from wipsim.policies import Policy
from wipsim.simulation import SimulationSet, build_simulation_set, run_simulation


def _busy_cfg(cfg, seed, days=40):
    cfg["sim"]["days"] = days
    cfg["sim"]["seed"] = seed
    cfg["arrivals"]["mean_per_day"] = 1.5
    return cfg


def test_tickets_are_not_aliased_between_policies():
    simset = SimulationSet(days=4, capacity=8)
    simset.run([(0, 12), (1, 3)])
    firsts = [sim.tickets[0] for sim in simset]
    assert len({id(t) for t in firsts}) == len(firsts)
    assert len({id(t.remaining_by_day) for t in firsts}) == len(firsts)
    assert all(t.tid == 0 for t in firsts)


def test_arrivals_are_recorded_per_day():
    simset = SimulationSet(days=3, capacity=8)
    simset.run([(0, 4), (2, 5), (0, 2)])
    assert simset.arrivals_by_day == [[4, 2], [], [5]]
    assert simset.ticket_count() == 3
    assert simset.mean_count_per_day() == pytest.approx(1.0)
    assert simset.mean_effort_per_day() == pytest.approx(11 / 3)


def test_last_day_is_not_burned_down():
    simset = SimulationSet(days=2, capacity=8, policies=(Policy.OLDEST_FIRST,))
    simset.run([(0, 3), (1, 2)])
    sim = simset[Policy.OLDEST_FIRST]
    assert len(sim.hours_by_day) == 1
    assert sim.tickets[1].remaining_by_day == [0, 2]
    assert sim.tickets[1].lead_time == 0


def test_run_rejects_arrivals_outside_horizon():
    with pytest.raises(ValueError, match="outside horizon"):
        SimulationSet(days=3, capacity=8).run([(3, 4)])
    with pytest.raises(ValueError, match="effort"):
        SimulationSet(days=3, capacity=8).run([(0, 0)])


def test_negative_setup_rejected():
    with pytest.raises(ValueError):
        SimulationSet(days=-1, capacity=8)
    with pytest.raises(ValueError):
        SimulationSet(days=3, capacity=-8)


def test_wip_by_day():
    simset = SimulationSet(days=4, capacity=8, policies=(Policy.OLDEST_FIRST,))
    simset.run([(0, 12), (0, 3), (2, 1)])
    # day2 only the late arrival is still open
    sim = simset[Policy.OLDEST_FIRST]
    assert sim.tickets[0].remaining_by_day == [12, 4, 0, 0]
    assert sim.tickets[1].remaining_by_day == [3, 3, 0, 0]
    assert sim.tickets[2].remaining_by_day == [0, 0, 1, 0]
    assert sim.wip_by_day() == [2, 2, 1, 0]


def test_zero_arrivals_gives_empty_populations(cfg):
    cfg["arrivals"]["mean_per_day"] = -5.0
    cfg["arrivals"]["stddev_per_day"] = 0.0
    simset = run_simulation(cfg)
    for sim in simset:
        assert sim.tickets == []
        with pytest.raises(EmptyPopulationError):
            sim.lead_time_stats()
        assert sim.summary()["lead_time_mean"] is None


def test_build_simulation_set_follows_config(cfg):
    cfg["policies"] = ["shortest_first", "equal_working"]
    cfg["capacity"]["daily_hours"] = 6
    simset = build_simulation_set(cfg)
    assert [sim.policy for sim in simset] == [Policy.SHORTEST_FIRST, Policy.EQUAL_WORKING]
    assert all(sim.capacity == 6 for sim in simset)


def test_runs_are_deterministic(cfg):
    cfg = _busy_cfg(cfg, seed=7)
    first = run_simulation(cfg)
    second = run_simulation(cfg)
    for a, b in zip(first, second):
        assert [t.remaining_by_day for t in a.tickets] == [t.remaining_by_day for t in b.tickets]
        assert [t.lead_time for t in a.tickets] == [t.lead_time for t in b.tickets]
        assert a.summary() == b.summary()


def test_all_policies_see_the_same_arrivals(cfg):
    simset = run_simulation(_busy_cfg(cfg, seed=3))
    starts = {tuple((t.start_day, t.effort) for t in sim.tickets) for sim in simset}
    assert len(starts) == 1


@pytest.mark.parametrize("seed", range(8))
def test_burn_down_invariants(cfg, seed):
    cfg = _busy_cfg(cfg, seed)
    capacity = cfg["capacity"]["daily_hours"]
    wip_cap = cfg["capacity"]["wip_cap_hours_per_ticket"]
    simset = run_simulation(cfg)
    days = simset.days
    for sim in simset:
        for d, spent in enumerate(sim.hours_by_day):
            open_tickets = [t for t in sim.tickets if t.start_day <= d]
            assert sum(spent.values()) <= capacity
            for t in open_tickets:
                assert spent[t.tid] == t.remaining(d) - t.remaining(d + 1)
            open_work = sum(t.remaining(d) for t in open_tickets)
            if open_work >= capacity:
                assert sum(spent.values()) == capacity
            else:
                assert all(t.remaining(d + 1) == 0 for t in open_tickets)
            if sim.policy is Policy.EQUAL_WORKING:
                first_pass = sum(min(wip_cap, t.remaining(d)) for t in open_tickets)
                if first_pass >= capacity:
                    assert all(h <= wip_cap for h in spent.values())
        for t in sim.tickets:
            traj = t.remaining_by_day[t.start_day:]
            assert traj[0] == t.effort
            assert all(x >= y for x, y in zip(traj, traj[1:]))
            if t.is_done(days - 1):
                finish = t.start_day + t.lead_time
                assert t.remaining(finish) == 0
                assert t.remaining(finish - 1) > 0
                assert t.end_day == finish - 1



@pytest.mark.parametrize("days", [0, 1])
def test_degenerate_horizons(days):
    arrivals = [(0, 4), (0, 2)] if days else []
    simset = SimulationSet(days=days, capacity=8).run(arrivals)
    assert simset.mean_count_per_day() == (2.0 if days else 0.0)
    for sim in simset:
        assert sim.hours_by_day == []
        assert all(t.lead_time == 0 for t in sim.tickets)
        summary = sim.summary()
        assert summary["wip_max"] == (2 if days else 0)
        assert summary["completed"] == 0
