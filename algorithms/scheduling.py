"""
Scheduling Strategies for the Banker's Scheduler Simulator.

Each strategy picks a total order over the process set and replays the
execution engine one process at a time, to completion. Nothing runs
concurrently and nothing is preempted.

Strategies:
- Sequential: ascending pid (the Banker's-gated default run)
- EDF: ascending deadline, ties by ascending pid
- LLF: ascending laxity, recomputed between process completions
"""

import heapq
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from algorithms.execution import ExecutionEngine
from models.process import ExecutionResult, ProcessDescriptor

# Called after every process run, e.g. to print a ledger snapshot
ProcessObserver = Callable[[ProcessDescriptor, ExecutionResult], None]


@dataclass
class ScheduleResult:
    """
    Outcome of one strategy run.

    Attributes:
        strategy: Strategy name
        order: Pids in execution order
        results: ExecutionResult per pid
        laxity_trace: For LLF, the laxities of the waiting processes at
            each selection (one dict per selection)
    """
    strategy: str
    order: List[int] = field(default_factory=list)
    results: Dict[int, ExecutionResult] = field(default_factory=dict)
    laxity_trace: List[Dict[int, int]] = field(default_factory=list)

    @property
    def completed(self) -> List[int]:
        return [pid for pid in self.order if not self.results[pid].blocked]

    @property
    def blocked(self) -> List[int]:
        return [pid for pid in self.order if self.results[pid].blocked]


def sequential_order(descriptors: Sequence[ProcessDescriptor]) -> List[ProcessDescriptor]:
    """Ascending process id."""
    return sorted(descriptors, key=lambda d: d.pid)


def edf_order(descriptors: Sequence[ProcessDescriptor]) -> List[ProcessDescriptor]:
    """Earliest deadline first; equal deadlines keep ascending pid order."""
    return sorted(descriptors, key=lambda d: (d.deadline, d.pid))


def _run_one(
    engine: ExecutionEngine,
    descriptor: ProcessDescriptor,
    schedule: ScheduleResult,
    observer: Optional[ProcessObserver],
    detail: str
) -> ExecutionResult:
    engine.logger.log_process_start(engine.clock.now, descriptor.pid, detail)
    result = engine.execute(descriptor)
    schedule.order.append(descriptor.pid)
    schedule.results[descriptor.pid] = result
    if observer:
        observer(descriptor, result)
    return result


def run_sequential(
    engine: ExecutionEngine,
    descriptors: Sequence[ProcessDescriptor],
    observer: Optional[ProcessObserver] = None
) -> ScheduleResult:
    """
    Run every process in ascending pid order.

    Deadlock avoidance is enforced by the ledger's request gate, not by
    the order itself.
    """
    schedule = ScheduleResult(strategy="banker")
    for descriptor in sequential_order(descriptors):
        _run_one(engine, descriptor, schedule, observer, "")
    return schedule


def run_edf(
    engine: ExecutionEngine,
    descriptors: Sequence[ProcessDescriptor],
    observer: Optional[ProcessObserver] = None
) -> ScheduleResult:
    """Run processes in Earliest-Deadline-First order."""
    schedule = ScheduleResult(strategy="edf")
    for descriptor in edf_order(descriptors):
        _run_one(engine, descriptor, schedule, observer, f"deadline {descriptor.deadline}")
    return schedule


def run_llf(
    engine: ExecutionEngine,
    descriptors: Sequence[ProcessDescriptor],
    observer: Optional[ProcessObserver] = None
) -> ScheduleResult:
    """
    Run processes in Least-Laxity-First order.

    laxity = deadline - current_time - computation_time. The heap is
    seeded at current_time = 0. After each process runs to completion,
    current_time advances by its declared computation time and every
    remaining laxity is recomputed before the next pick. Laxity is only
    recomputed between completions, never mid-process.

    Equal laxities are broken by ascending pid.
    """
    schedule = ScheduleResult(strategy="llf")
    current_time = 0

    heap: List[Tuple[int, int, ProcessDescriptor]] = [
        (d.laxity(current_time), d.pid, d) for d in descriptors
    ]
    heapq.heapify(heap)

    while heap:
        schedule.laxity_trace.append({pid: laxity for laxity, pid, _ in heap})

        laxity, _, descriptor = heapq.heappop(heap)
        _run_one(engine, descriptor, schedule, observer, f"laxity {laxity}")

        current_time += descriptor.computation_time

        heap = [(d.laxity(current_time), d.pid, d) for _, _, d in heap]
        heapq.heapify(heap)

    return schedule


STRATEGIES: Dict[str, Callable[..., ScheduleResult]] = {
    "banker": run_sequential,
    "edf": run_edf,
    "llf": run_llf,
}
