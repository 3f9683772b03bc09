"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs the five WIP policies over shared arrival sequences and reports lead
times: a detailed trace for the first replication, confidence intervals across
replications, and common-random-number paired comparisons between policies.

Run as a module: python -m experiments.run_experiments [days]
"""

from __future__ import annotations
import argparse, copy, logging, math, os, random
from statistics import mean, stdev
from typing import Dict, List, Optional, Sequence, Tuple
from scipy.stats import t as student_t

from wipsim.config import ROOT, ConfigError, apply_overrides, load_cfg, validate_cfg
from wipsim.entities import Ticket
from wipsim.metrics import EmptyPopulationError
from wipsim.policies import Policy
from wipsim.simulation import Simulation, SimulationSet, run_simulation
from experiments.scenarios import SCENARIOS

logger = logging.getLogger(__name__)

def mean_ci(values: List[float], confidence_level: float, comparisons: int = 1) -> Tuple[float, float]:
    """
    Return (mean, half-width) using a t-distribution critical value with
    df = n - 1. `comparisons` > 1 applies a Bonferroni split of alpha.
    """
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = (1.0 - level) / max(1, comparisons)
    tcrit = student_t.ppf(1 - alpha / 2.0, n - 1)
    half = tcrit * (stdev(values) / math.sqrt(n))
    return mu, half

def sample_stddev(values: List[float]) -> float:
    """Return sample standard deviation or 0 if insufficient data."""
    if len(values) < 2:
        return 0.0
    return stdev(values)

def format_ticket(t: Ticket) -> str:
    remaining = " ".join(str(r) for r in t.remaining_by_day)
    return f"{t.start_day} {t.lead_time} {t.end_day} {t.effort} [{remaining}]"

def format_trace(simset: SimulationSet) -> List[str]:
    """Per-day arrival lines: 'day count effort' per ticket, 'day 0' when none."""
    lines = ["day, count, effort"]
    for d, efforts in enumerate(simset.arrivals_by_day):
        if not efforts:
            lines.append(f"{d} 0")
        for e in efforts:
            lines.append(f"{d} {len(efforts)} {e}")
    return lines

def format_simulation(sim: Simulation, max_print: int) -> str:
    lines = [sim.name]
    try:
        m, s, ms = sim.lead_time_stats()
        lines.append(f"Leadtime of tickets mean: {m:.2f} stdev: {s:.2f} mean+stdev: {ms:.2f}")
    except EmptyPopulationError:
        lines.append("Leadtime of tickets mean: n/a stdev: n/a mean+stdev: n/a (no tickets)")
    summary = sim.summary()
    lines.append(f"WIP tickets per day mean: {summary['wip_mean']:.2f} max: {summary['wip_max']}")
    if len(sim.tickets) <= max_print:
        lines.append("# start leadtime end effort [remaining per day]")
        for i, t in enumerate(sim.tickets):
            lines.append(f"{i} {format_ticket(t)}")
    return "\n".join(lines)

def format_report(simset: SimulationSet, max_print: int) -> str:
    """Full textual report for one run, trace included for short horizons."""
    out = [f"Simulating {simset.days} days"]
    if simset.days <= max_print:
        out.extend(format_trace(simset))
    out.append("")
    out.append(f"mean ticket count per day: {simset.mean_count_per_day():.2f}")
    out.append(f"mean ticket effort per day: {simset.mean_effort_per_day():.2f}")
    out.append("")
    for sim in simset:
        out.append(format_simulation(sim, max_print))
        out.append("")
    return "\n".join(out)

def resolve_seed(seed: Optional[int]) -> int:
    """Pin a null seed to a concrete value so every run of a scenario can be replayed."""
    if seed is None:
        seed = random.SystemRandom().randrange(2 ** 31)
        logger.warning("sim.seed is null, using seed %d", seed)
    return seed

def replicate(cfg: Dict, replications: int) -> List[Tuple[int, Dict[str, Dict]]]:
    """Run seeds seed..seed+R-1 and return (seed, per-policy summary) pairs."""
    base_seed = resolve_seed(cfg["sim"].get("seed"))
    results = []
    for rep in range(replications):
        run_cfg = copy.deepcopy(cfg)
        run_cfg["sim"]["seed"] = base_seed + rep
        simset = run_simulation(run_cfg)
        results.append((run_cfg["sim"]["seed"], simset.summary()))
    return results

def lead_time_series(results: List[Tuple[int, Dict[str, Dict]]], policy: str) -> List[float]:
    """Mean lead time per replication; replications without tickets are skipped."""
    vals = []
    for _, summary in results:
        m = summary[policy]["lead_time_mean"]
        if m is not None:
            vals.append(float(m))
    return vals

def run_crn(results: List[Tuple[int, Dict[str, Dict]]], pair: Sequence[str], confidence: float, comparisons: int):
    """
    Paired comparison of two policies. Every policy of a replication saw the
    same arrivals, so per-seed differences use common random numbers.
    """
    name_a, name_b = pair
    rows = []
    for seed, summary in results:
        a = summary[name_a]["lead_time_mean"]
        b = summary[name_b]["lead_time_mean"]
        if a is None or b is None:
            continue
        rows.append((seed, a, b))
    label_a = Policy.from_name(name_a).label
    label_b = Policy.from_name(name_b).label
    print(f"CRN paired lead time comparison ({label_b} - {label_a}):")
    if not rows:
        print("  no replication produced tickets")
        return
    print("  Replication | Seed | Mean1 | Mean2 | Difference")
    for idx, (seed, m1, m2) in enumerate(rows, start=1):
        print(f"    {idx:2d}        | {seed:4d} | {m1:.2f} | {m2:.2f} | {m2 - m1:+.2f}")
    diffs = [b - a for (_, a, b) in rows]
    mean_diff, half = mean_ci(diffs, confidence, comparisons)
    print(f"  Mean difference: {mean_diff:+.2f} days")
    print(f"  Std dev of differences: {sample_stddev(diffs):.2f}")
    print(f"  {confidence*100:.1f}% CI of mean diff (Bonferroni, C={comparisons}): "
          f"{mean_diff - half:+.2f} to {mean_diff + half:+.2f}")

def plot_lead_times(summary: Dict[str, Dict], scenario_name: str) -> Optional[str]:
    """
    Persist a PNG bar chart of mean and mean+stdev lead time per policy for
    one run. Returns the path, or None when no policy has tickets.
    """
    rows = [s for s in summary.values() if s["lead_time_mean"] is not None]
    if not rows:
        return None
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    names = [s["name"] for s in rows]
    means = [s["lead_time_mean"] for s in rows]
    bounds = [s["lead_time_mean_plus_stdev"] for s in rows]
    x = list(range(len(rows)))
    plt.figure(figsize=(9, 5))
    plt.bar([i - 0.2 for i in x], means, width=0.4, label="mean", color="#2563eb")
    plt.bar([i + 0.2 for i in x], bounds, width=0.4, label="mean+stdev", color="#d97706")
    plt.xticks(x, names, rotation=15)
    plt.ylabel("Lead time (days)")
    plt.title(f"{scenario_name}: lead time by policy")
    plt.legend()
    plt.grid(True, axis="y", linestyle="--", alpha=0.4)
    out_dir = os.path.join(ROOT, "experiments", "output")
    os.makedirs(out_dir, exist_ok=True)
    safe_name = scenario_name.lower().replace(" ", "_")
    out_path = os.path.join(out_dir, f"{safe_name}_lead_times.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wipsim",
        description="Compare WIP and prioritization policies by ticket lead time.",
    )
    parser.add_argument("days", nargs="?", type=int, default=None,
                        help="number of days to simulate (default from config)")
    parser.add_argument("--config", default=None, help="YAML config (default config/baseline.yaml)")
    parser.add_argument("--seed", type=int, default=None, help="base RNG seed")
    parser.add_argument("--replications", type=int, default=None, help="replications per scenario")
    parser.add_argument("--scenario", action="append", choices=[s["name"] for s in SCENARIOS],
                        help="scenario to run (repeatable, default all)")
    parser.add_argument("--plot", action="store_true", help="save lead time bar charts")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="log engine progress (-vv for per-day detail)")
    return parser

def cli_overrides(args: argparse.Namespace) -> Dict:
    """Translate command-line flags into a config override dict."""
    overrides: Dict = {}
    if args.days is not None:
        overrides.setdefault("sim", {})["days"] = args.days
    if args.seed is not None:
        overrides.setdefault("sim", {})["seed"] = args.seed
    if args.replications is not None:
        overrides.setdefault("experiments", {})["replications"] = args.replications
    if args.plot:
        overrides.setdefault("experiments", {})["plot"] = True
    return overrides

def main(argv: Optional[Sequence[str]] = None):
    """Entry point: drive all scenarios and replications, report lead times."""
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else (logging.INFO if args.verbose == 1 else logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")

    scenarios = [s for s in SCENARIOS if not args.scenario or s["name"] in args.scenario]
    try:
        cfg = load_cfg(args.config)
        # validate every scenario up front; a bad config is reported once
        configs = [
            (sc, validate_cfg(apply_overrides(apply_overrides(cfg, sc["overrides"]), cli_overrides(args))))
            for sc in scenarios
        ]
    except (ConfigError, OSError) as exc:
        parser.error(str(exc))

    for sc, sc_cfg in configs:
        exp_cfg = sc_cfg["experiments"]
        replications = exp_cfg["replications"]
        confidence = exp_cfg["confidence_level"]
        max_print = sc_cfg["sim"]["max_print"]

        # the detailed run and the replications share one concrete base seed
        sc_cfg["sim"]["seed"] = resolve_seed(sc_cfg["sim"].get("seed"))
        print(f"=== Scenario: {sc['name']} (seed {sc_cfg['sim']['seed']})")
        # Detailed report for the base seed
        first = run_simulation(sc_cfg)
        print(format_report(first, max_print))
        if exp_cfg.get("plot"):
            path = plot_lead_times(first.summary(), sc["name"])
            if path:
                print(f"Lead time plot saved to: {path}")

        if replications < 2:
            continue
        results = replicate(sc_cfg, replications)
        seeds = [seed for seed, _ in results]
        print(f"Replications: {replications} ({confidence*100:.1f}% CI, seeds {seeds[0]}-{seeds[-1]})")
        for name in sc_cfg["policies"]:
            vals = lead_time_series(results, name)
            mu, half = mean_ci(vals, confidence)
            label = Policy.from_name(name).label
            print(f"  {label}: mean lead time {mu:.2f} ± {half:.2f} days "
                  f"(sd {sample_stddev(vals):.2f}, n={len(vals)})")

        pairs = exp_cfg.get("crn_compare") or []
        valid = []
        for pair in pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                logger.warning("skipping CRN entry (needs 2 policy names): %s", pair)
            elif pair[0] not in sc_cfg["policies"] or pair[1] not in sc_cfg["policies"]:
                logger.warning("CRN pair not among configured policies: %s", pair)
            else:
                valid.append(pair)
        for pair in valid:
            print()
            run_crn(results, pair, confidence, comparisons=len(valid))
        print("-")

if __name__ == "__main__":
    main()
