"""
Simulator Tests

Runs whole scenarios through run_simulation() and main() under every
strategy, checking orders, outcomes and the ledger invariants at the end.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np
import pytest

from analysis.events import EventType
from analysis.metrics import compare_strategies, format_metrics_report
from analysis.reporter import StateReporter
from models.ledger import DenialReason
from simulator import main, run_simulation
from utils.config import SimulationConfig
from utils.logger import SimulatorLogger
from utils.scenario_loader import load_processes, load_resource_catalog, load_scenario

SCENARIOS_DIR = project_root / "scenarios"
TEST_SCENARIOS_DIR = project_root / "tests" / "scenarios"


def load_sample():
    catalog = load_resource_catalog(str(SCENARIOS_DIR / "sample_resources.txt"))
    processes = load_processes(str(SCENARIOS_DIR / "sample_processes.txt"), catalog)
    return catalog, processes


@pytest.mark.parametrize("strategy, expected_order", [
    ("banker", [1, 2, 3]),
    ("edf", [2, 3, 1]),
    ("llf", [2, 3, 1]),
])
def test_sample_scenario_all_strategies(strategy, expected_order):
    """Every strategy completes the sample processes and returns all resources."""
    print("\n" + "="*60)
    print(f"SIMULATION TEST: sample scenario, {strategy.upper()}")
    print("="*60)

    catalog, processes = load_sample()
    schedule, metrics, event_log, final = run_simulation(strategy, catalog, processes)

    print(f"  Order: {schedule.order}")
    print(f"  Completed: {metrics.completed_processes}, blocked: {metrics.blocked_processes}")

    assert schedule.order == expected_order
    assert metrics.completed_processes == 3
    assert metrics.blocked_processes == 0
    assert event_log.count(EventType.DENIAL) == 0
    assert np.array_equal(final.available, catalog.instance_counts)
    assert np.array_equal(final.allocation, np.zeros((3, 2)))
    assert np.array_equal(final.need, final.max_demand - final.allocation)
    print("  ✓ All processes completed")


def test_sample_scenario_metrics():
    catalog, processes = load_sample()
    _, metrics, _, _ = run_simulation("edf", catalog, processes)

    # P2 runs 0-2, P3 2-5, P1 5-9
    assert metrics.process_finish_times == {2: 2, 3: 5, 1: 9}
    assert metrics.total_time == 9
    assert metrics.deadline_misses == []
    assert metrics.total_grants == 3

    _, banker_metrics, _, _ = run_simulation("banker", catalog, processes)
    # P1 0-4, P2 4-6 misses deadline 5, P3 6-9 misses deadline 8
    assert banker_metrics.deadline_misses == [2, 3]


def test_unsafe_claim_scenario():
    """A claim larger than the pool leaves the system permanently unsafe."""
    print("\n" + "="*60)
    print("SIMULATION TEST: unsafe claim")
    print("="*60)

    catalog, processes = load_scenario(str(TEST_SCENARIOS_DIR / "unsafe_claim.json"))
    schedule, metrics, event_log, final = run_simulation("banker", catalog, processes)

    reasons = {pid: r.denial_reason for pid, r in schedule.results.items()}
    print(f"  Denials: {reasons}")

    assert schedule.blocked == [1, 2]
    assert reasons == {
        1: DenialReason.UNSAFE_STATE.value,
        2: DenialReason.INSUFFICIENT_RESOURCES.value,
    }
    assert metrics.total_denials == 2
    assert np.array_equal(final.available, [3])
    print("  ✓ Both processes blocked, nothing allocated")


def test_llf_pair_scenario():
    catalog, processes = load_scenario(str(TEST_SCENARIOS_DIR / "llf_pair.json"))
    schedule, _, _, _ = run_simulation("llf", catalog, processes)
    assert schedule.order == [2, 1]
    assert schedule.laxity_trace == [{1: 8, 2: 3}, {1: 7}]


def test_strategies_use_fresh_ledgers():
    """Runs are independent: the same trace gives the same result twice."""
    catalog, processes = load_sample()
    first = run_simulation("banker", catalog, processes)
    second = run_simulation("banker", catalog, processes)
    assert first[0].order == second[0].order
    assert first[3].same_as(second[3])


def test_unknown_strategy():
    catalog, processes = load_sample()
    with pytest.raises(ValueError):
        run_simulation("round_robin", catalog, processes)


def test_logged_output(capsys):
    catalog, processes = load_sample()
    run_simulation("edf", catalog, processes, logger=SimulatorLogger())
    out = capsys.readouterr().out

    assert "SIMULATION START: EDF" in out
    assert "Executing Process 2 (deadline 5)" in out
    assert "Using resources for Process 2: r2_b" in out
    assert "Resources used by Process 1: R1 (2), R2 (1), R1 (released: 1)" in out
    assert "Process 3 completed in 3 units." in out
    assert "Need Matrix (Max - Allocation):" in out
    assert "SCHEDULE METRICS: EDF" in out


def test_verbose_run_logs_event_trace(capsys):
    catalog, processes = load_sample()
    config = SimulationConfig(verbose=True)
    run_simulation("banker", catalog, processes, config, SimulatorLogger(verbose=True))
    out = capsys.readouterr().out

    assert "[DEBUG] Event trace:" in out
    assert "t=0: P1 requests [2, 1] - GRANTED" in out


def test_reporter_render():
    catalog, processes = load_sample()
    _, _, _, final = run_simulation("banker", catalog, processes)
    text = StateReporter(catalog).render(final)

    assert "R1: r1_a, r1_b, r1_c (3/3 available)" in text
    assert "R2: r2_a, r2_b (2/2 available)" in text
    assert "Allocation Matrix:" in text
    assert "Max Demand Matrix:" in text
    assert StateReporter(catalog).summary_line(final) == "Available: R1=3, R2=2"


def test_metrics_reports():
    catalog, processes = load_sample()
    all_metrics = [run_simulation(s, catalog, processes)[1] for s in ("banker", "edf", "llf")]

    report = format_metrics_report(all_metrics[0], verbose=True)
    assert "Execution Order: P1 -> P2 -> P3" in report
    assert "PER-PROCESS SUMMARY" in report

    table = compare_strategies(all_metrics)
    assert "STRATEGY COMPARISON" in table
    for strategy in ("banker", "edf", "llf"):
        assert strategy in table


def test_main_text_descriptors(capsys):
    code = main([
        "--resources", str(SCENARIOS_DIR / "sample_resources.txt"),
        "--processes", str(SCENARIOS_DIR / "sample_processes.txt"),
        "--compare",
    ])
    out = capsys.readouterr().out

    assert code == 0
    assert out.index("SIMULATION START: BANKER") < out.index("SIMULATION START: EDF") \
        < out.index("SIMULATION START: LLF")
    assert "STRATEGY COMPARISON" in out


def test_main_json_scenario_with_log_file(tmp_path):
    log_path = tmp_path / "run.log"
    code = main([
        "--scenario", str(SCENARIOS_DIR / "demo_edf.json"),
        "--strategy", "edf",
        "--log-file", str(log_path),
    ])
    assert code == 0
    text = log_path.read_text(encoding="utf-8")
    assert text.startswith("Simulation Log - ")
    assert "EDF SCHEDULING COMPLETED" in text


def test_main_load_error(tmp_path, capsys):
    code = main(["--scenario", str(tmp_path / "missing.json")])
    out = capsys.readouterr().out
    assert code == 1
    assert "[ERROR] Failed to load descriptors" in out


def test_main_malformed_scenario(tmp_path, capsys):
    """A wrongly shaped scenario is reported, not raised."""
    path = tmp_path / "scenario.json"
    path.write_text('{"resources": [{"name": "R1", "instances": ["a"]}], "processes": [5]}')

    code = main(["--scenario", str(path)])
    out = capsys.readouterr().out

    assert code == 1
    assert "[ERROR] Failed to load descriptors" in out


def test_main_requires_inputs():
    with pytest.raises(SystemExit):
        main(["--strategy", "edf"])
    with pytest.raises(SystemExit):
        main(["--scenario", "a.json", "--resources", "r.txt"])


def test_config_validation():
    with pytest.raises(ValueError):
        SimulationConfig(default_deadline=-1)
    with pytest.raises(ValueError):
        SimulationConfig(time_unit_seconds=-0.5)
