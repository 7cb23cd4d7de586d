#!/usr/bin/env python3
"""
Banker's Scheduler Simulator
Main entry point for the simulation system.

Replays a set of processes against a Banker's-algorithm resource ledger
under one of three execution orders: sequential (banker), EDF or LLF.
"""

import argparse
import sys
from typing import List, Optional, Sequence, Tuple

from algorithms.execution import ExecutionEngine, SimulationClock
from algorithms.scheduling import STRATEGIES, ScheduleResult
from analysis.events import EventLog
from analysis.metrics import ScheduleMetrics, compare_strategies, format_metrics_report
from analysis.reporter import StateReporter
from models.ledger import AllocationLedger, InitializationFailure, LedgerSnapshot
from models.process import ProcessDescriptor
from models.resource import ResourceCatalog
from utils.config import SimulationConfig
from utils.logger import SimulatorLogger
from utils.scenario_loader import LoadError, load_processes, load_resource_catalog, load_scenario

# Run order of --strategy all
STRATEGY_ORDER = ["banker", "edf", "llf"]


def run_simulation(
    strategy: str,
    catalog: ResourceCatalog,
    descriptors: Sequence[ProcessDescriptor],
    config: Optional[SimulationConfig] = None,
    logger: Optional[SimulatorLogger] = None
) -> Tuple[ScheduleResult, ScheduleMetrics, EventLog, LedgerSnapshot]:
    """
    Run one scheduling strategy on a fresh ledger.

    Args:
        strategy: One of 'banker', 'edf', 'llf'
        catalog: Resource catalog
        descriptors: Process descriptors
        config: Simulation settings
        logger: Logger instance (a quiet one is used if omitted)

    Returns:
        Tuple of (schedule result, metrics, event log, final ledger snapshot)

    Raises:
        ValueError: If the strategy is unknown
        InitializationFailure: If the ledger cannot be set up
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy '{strategy}', expected one of {sorted(STRATEGIES)}")

    config = config or SimulationConfig()
    logger = logger or SimulatorLogger(verbose=config.verbose, quiet=True)

    ledger = AllocationLedger(catalog, descriptors, check_invariants=config.check_invariants)
    reporter = StateReporter(catalog)
    event_log = EventLog()
    engine = ExecutionEngine(
        ledger,
        logger=logger,
        event_log=event_log,
        clock=SimulationClock(config.time_unit_seconds),
    )

    logger.log_banner(f"SIMULATION START: {strategy.upper()}")
    logger.log("Initial State:")
    logger.log(reporter.render(ledger.snapshot()))

    def show_state(descriptor, result):
        logger.log_system_state(engine.clock.now, reporter.render(ledger.snapshot()))

    schedule = STRATEGIES[strategy](engine, descriptors, observer=show_state)

    logger.log_banner(f"{strategy.upper()} SCHEDULING COMPLETED")
    logger.log(f"Event trace:\n{event_log.display()}", "debug")

    metrics = ScheduleMetrics.from_run(schedule, descriptors, event_log)
    logger.log(format_metrics_report(metrics, verbose=config.verbose))

    return schedule, metrics, event_log, ledger.snapshot()


def load_inputs(args, config: SimulationConfig) -> Tuple[ResourceCatalog, List[ProcessDescriptor]]:
    """Load the catalog and processes named on the command line."""
    if args.scenario:
        return load_scenario(args.scenario, config)
    catalog = load_resource_catalog(args.resources)
    return catalog, load_processes(args.processes, catalog, config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Banker's Scheduler Simulator"
    )
    parser.add_argument(
        '--strategy',
        choices=STRATEGY_ORDER + ['all'],
        default='all',
        help='Execution order to simulate (default: all, run in banker, edf, llf order)'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        help='Path to JSON scenario file (resources and processes)'
    )
    parser.add_argument(
        '--resources',
        type=str,
        help='Path to resource descriptor text file'
    )
    parser.add_argument(
        '--processes',
        type=str,
        help='Path to process descriptor text file'
    )
    parser.add_argument(
        '--default-deadline',
        type=int,
        default=0,
        help='Deadline for processes that do not declare one (default: 0)'
    )
    parser.add_argument(
        '--default-computation-time',
        type=int,
        default=0,
        help='Computation time for processes that do not declare one (default: 0)'
    )
    parser.add_argument(
        '--time-unit',
        type=float,
        default=0.0,
        help='Wall-clock seconds slept per compute time unit (default: 0, no sleeping)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--no-invariant-checks',
        action='store_true',
        help='Skip resource conservation assertions after each ledger mutation'
    )
    parser.add_argument(
        '--compare',
        action='store_true',
        help='Print a comparison table of all strategies that ran'
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    if not args.scenario and not (args.resources and args.processes):
        parser.error('either --scenario or both --resources and --processes are required')
    if args.scenario and (args.resources or args.processes):
        parser.error('--scenario cannot be combined with --resources/--processes')

    try:
        config = SimulationConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logger = SimulatorLogger(verbose=config.verbose, log_file=config.log_file)

    try:
        catalog, descriptors = load_inputs(args, config)
    except LoadError as e:
        logger.log(f"Failed to load descriptors: {e}", "error")
        logger.close()
        return 1

    strategies = STRATEGY_ORDER if args.strategy == 'all' else [args.strategy]
    all_metrics = []

    try:
        for strategy in strategies:
            _, metrics, _, _ = run_simulation(strategy, catalog, descriptors, config, logger)
            all_metrics.append(metrics)
    except InitializationFailure as e:
        logger.log(f"Initialization failed: {e}", "error")
        logger.close()
        return 1

    if args.compare:
        logger.log(compare_strategies(all_metrics))

    logger.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
