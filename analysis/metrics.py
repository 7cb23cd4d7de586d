"""
Metrics Tracking for the Banker's Scheduler Simulator.

Summarizes one strategy run: completions, blocks, deadline misses and
request outcomes.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence
import statistics

from algorithms.scheduling import ScheduleResult
from analysis.events import EventLog, EventType
from models.process import ProcessDescriptor


@dataclass
class ScheduleMetrics:
    """
    Accumulated metrics for a single strategy run.

    Tracks:
    1. Completed / blocked processes
    2. Deadline misses: a process misses its deadline when it finishes
       after it, or never completes
    3. Request outcomes: grants and denials per process
    4. Total simulated time
    """
    strategy: str
    total_processes: int = 0
    total_time: int = 0
    completed_processes: int = 0
    blocked_processes: int = 0

    execution_order: List[int] = field(default_factory=list)
    process_finish_times: Dict[int, int] = field(default_factory=dict)
    process_final_states: Dict[int, str] = field(default_factory=dict)
    process_granted_counts: Dict[int, int] = field(default_factory=dict)
    process_denied_counts: Dict[int, int] = field(default_factory=dict)
    deadline_misses: List[int] = field(default_factory=list)

    @classmethod
    def from_run(
        cls,
        schedule: ScheduleResult,
        descriptors: Sequence[ProcessDescriptor],
        event_log: EventLog
    ) -> "ScheduleMetrics":
        """
        Build metrics from a finished strategy run.

        Args:
            schedule: Result of the strategy run
            descriptors: Process descriptors of the run
            event_log: Events recorded by the engine during the run
        """
        metrics = cls(strategy=schedule.strategy, total_processes=len(descriptors))
        metrics.execution_order = list(schedule.order)
        deadlines = {d.pid: d.deadline for d in descriptors}

        for pid in schedule.order:
            result = schedule.results[pid]
            metrics.process_finish_times[pid] = result.finish_time
            metrics.process_final_states[pid] = result.state.value
            metrics.total_time = max(metrics.total_time, result.finish_time)

            if result.blocked:
                metrics.blocked_processes += 1
            else:
                metrics.completed_processes += 1

            if result.blocked or result.finish_time > deadlines[pid]:
                metrics.deadline_misses.append(pid)

        for event in event_log.get_events_by_type(EventType.ALLOCATION):
            metrics.record_allocation(event.process_id)
        for event in event_log.get_events_by_type(EventType.DENIAL):
            metrics.record_denial(event.process_id)

        return metrics

    def record_allocation(self, process_id: int) -> None:
        """Record a successful request for a process."""
        if process_id not in self.process_granted_counts:
            self.process_granted_counts[process_id] = 0
        self.process_granted_counts[process_id] += 1

    def record_denial(self, process_id: int) -> None:
        """Record a denied request for a process."""
        if process_id not in self.process_denied_counts:
            self.process_denied_counts[process_id] = 0
        self.process_denied_counts[process_id] += 1

    @property
    def total_grants(self) -> int:
        return sum(self.process_granted_counts.values())

    @property
    def total_denials(self) -> int:
        return sum(self.process_denied_counts.values())

    def get_avg_finish_time(self) -> float:
        """Average finish time of completed processes."""
        times = [
            self.process_finish_times[pid]
            for pid, state in self.process_final_states.items()
            if state == "COMPLETED"
        ]
        if not times:
            return 0.0
        return statistics.mean(times)

    def get_deadline_miss_ratio(self) -> float:
        """Fraction of processes that missed their deadline."""
        if self.total_processes == 0:
            return 0.0
        return len(self.deadline_misses) / self.total_processes


def format_metrics_report(metrics: ScheduleMetrics, verbose: bool = False) -> str:
    """
    Format metrics for display at end of a strategy run.

    Args:
        metrics: ScheduleMetrics instance with collected data
        verbose: If True, include per-process breakdown

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append(f"SCHEDULE METRICS: {metrics.strategy.upper()}")
    lines.append("="*60)

    lines.append(f"Execution Order: {' -> '.join(f'P{pid}' for pid in metrics.execution_order)}")
    lines.append(f"Total Time: {metrics.total_time}")
    lines.append(f"Total Processes: {metrics.total_processes}")
    lines.append(f"Completed: {metrics.completed_processes}")
    lines.append(f"Blocked: {metrics.blocked_processes}")
    lines.append(f"Requests Granted: {metrics.total_grants}")
    lines.append(f"Requests Denied: {metrics.total_denials}")
    lines.append(
        f"Deadline Misses: {len(metrics.deadline_misses)} "
        f"({metrics.get_deadline_miss_ratio():.2%})"
    )
    lines.append(f"Average Finish Time: {metrics.get_avg_finish_time():.2f}")

    if verbose and metrics.process_final_states:
        lines.append("")
        lines.append("PER-PROCESS SUMMARY:")
        lines.append("-" * 60)
        for pid in metrics.execution_order:
            state = metrics.process_final_states[pid]
            finish = metrics.process_finish_times[pid]
            granted = metrics.process_granted_counts.get(pid, 0)
            denied = metrics.process_denied_counts.get(pid, 0)
            missed = "MISSED" if pid in metrics.deadline_misses else "met"
            lines.append(
                f"  P{pid}: {state:10} | finish={finish:3} | "
                f"grant={granted:2} deny={denied:2} | deadline {missed}"
            )

    lines.append("="*60)
    return "\n".join(lines)


def compare_strategies(all_metrics: Sequence[ScheduleMetrics]) -> str:
    """Side-by-side table of several strategy runs."""
    lines = []
    lines.append("\n" + "="*72)
    lines.append("STRATEGY COMPARISON")
    lines.append("="*72)
    lines.append(
        f"{'Strategy':<10} {'Order':<24} {'Done':>5} {'Blk':>4} "
        f"{'Deny':>5} {'Miss':>5} {'AvgFin':>8}"
    )
    lines.append("-"*72)
    for m in all_metrics:
        order = ",".join(str(pid) for pid in m.execution_order)
        lines.append(
            f"{m.strategy:<10} {order:<24} {m.completed_processes:>5} {m.blocked_processes:>4} "
            f"{m.total_denials:>5} {len(m.deadline_misses):>5} {m.get_avg_finish_time():>8.2f}"
        )
    lines.append("="*72)
    return "\n".join(lines)
