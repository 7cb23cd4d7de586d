"""
Execution Engine for the Banker's Scheduler Simulator.

Replays one process's instruction stream against the allocation ledger,
one instruction at a time.
"""

import time
from typing import Callable, List, Optional

from analysis.events import EventLog, EventType, SimulationEvent
from models.instruction import Instruction, InstructionKind
from models.ledger import AllocationLedger
from models.process import ExecutionResult, ProcessDescriptor, ProcessState
from utils.logger import SimulatorLogger


class SimulationClock:
    """
    Cooperative simulation clock.

    compute(d) advances the clock by d time units. Only one process runs
    at a time, so no other process progresses while the clock advances.
    A non-zero time_unit_seconds additionally sleeps for real.
    """

    def __init__(self, time_unit_seconds: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        self.now = 0
        self.time_unit_seconds = time_unit_seconds
        self._sleep = sleep

    def advance(self, duration: int) -> int:
        """Advance the clock and return the new time."""
        if duration < 0:
            raise ValueError(f"Cannot advance clock by negative duration {duration}")
        if self.time_unit_seconds > 0 and duration > 0:
            self._sleep(duration * self.time_unit_seconds)
        self.now += duration
        return self.now


class ExecutionEngine:
    """
    Interprets process instruction streams against a ledger.

    Per-process state machine:
        RUNNING -> BLOCKED    (a request is denied)
        RUNNING -> COMPLETED  (end directive or stream exhausted)
    BLOCKED keeps whatever the process already holds.
    """

    def __init__(
        self,
        ledger: AllocationLedger,
        logger: Optional[SimulatorLogger] = None,
        event_log: Optional[EventLog] = None,
        clock: Optional[SimulationClock] = None
    ):
        self.ledger = ledger
        self.logger = logger or SimulatorLogger(quiet=True)
        self.event_log = event_log if event_log is not None else EventLog()
        self.clock = clock or SimulationClock()

    def execute(self, descriptor: ProcessDescriptor) -> ExecutionResult:
        """
        Run a process's instructions until it ends, blocks or runs out.

        Args:
            descriptor: Process to run

        Returns:
            ExecutionResult with final state and accounting
        """
        pid = descriptor.pid
        result = ExecutionResult(pid=pid, start_time=self.clock.now)
        referenced = descriptor.referenced_instances()

        for instruction in descriptor.instructions:
            if result.state != ProcessState.RUNNING:
                break
            result.instructions_executed += 1
            self._dispatch(instruction, descriptor, result, referenced)

        if result.state == ProcessState.RUNNING:
            # Stream exhausted without an end directive
            result.state = ProcessState.COMPLETED

        self.ledger.reconcile_need(pid)
        result.finish_time = self.clock.now

        if result.state == ProcessState.COMPLETED:
            self.event_log.add(SimulationEvent(
                step=self.clock.now,
                event_type=EventType.FINISH,
                process_id=pid,
                message=f"computed {result.total_computation_time} units",
            ))

        self.logger.log_process_complete(pid, result.state.value, result.total_computation_time)
        return result

    def _dispatch(
        self,
        instruction: Instruction,
        descriptor: ProcessDescriptor,
        result: ExecutionResult,
        referenced: List[str]
    ) -> None:
        kind = instruction.kind

        if kind == InstructionKind.COMPUTE:
            self._compute(instruction, result)
        elif kind == InstructionKind.REQUEST:
            self._request(instruction, result)
        elif kind == InstructionKind.USE_RESOURCES:
            self._use(result, referenced)
        elif kind == InstructionKind.RELEASE:
            self._release(instruction.args, result)
        elif kind == InstructionKind.PRINT_RESOURCES_USED:
            self.logger.log(
                f"Resources used by Process {result.pid}: {', '.join(result.resources_used)}"
            )
        elif kind == InstructionKind.END:
            released = self.ledger.release_all(result.pid)
            if released.any():
                self._record_release(released, result)
            result.state = ProcessState.COMPLETED
        # REFERENCE lines are data for use_resources, nothing to execute

        if self.logger.verbose:
            self.logger.log(
                f"  P{result.pid} after '{instruction}': "
                f"alloc={self.ledger.allocation[result.pid - 1].tolist()}, "
                f"available={self.ledger.available.tolist()}",
                "debug",
            )

    def _compute(self, instruction: Instruction, result: ExecutionResult) -> None:
        duration = instruction.duration
        self.clock.advance(duration)
        result.total_computation_time += duration
        self.event_log.add(SimulationEvent(
            step=self.clock.now,
            event_type=EventType.COMPUTE,
            process_id=result.pid,
            message=f"{duration} units",
        ))

    def _request(self, instruction: Instruction, result: ExecutionResult) -> None:
        amounts = list(instruction.args)
        decision = self.ledger.request(result.pid, amounts)

        self.logger.log_request(self.clock.now, result.pid, amounts, decision.granted, decision.message)
        self.event_log.add(SimulationEvent(
            step=self.clock.now,
            event_type=EventType.ALLOCATION if decision.granted else EventType.DENIAL,
            process_id=result.pid,
            amounts=amounts,
            reason=decision.message,
        ))

        if not decision.granted:
            # Held allocation is intentionally kept: the process stalls holding it
            self.logger.log("Request denied. Deadlock may occur.", "warning")
            result.state = ProcessState.BLOCKED
            result.denial_reason = decision.reason.value
            self.event_log.add(SimulationEvent(
                step=self.clock.now,
                event_type=EventType.BLOCKED,
                process_id=result.pid,
                message=decision.reason.value,
            ))
            return

        for resource, amount in zip(self.ledger.catalog, amounts):
            if amount > 0:
                result.resources_used.append(f"{resource.name} ({amount})")

    def _use(self, result: ExecutionResult, referenced: List[str]) -> None:
        used, claimed = self.ledger.use_direct(result.pid, referenced)

        self.logger.log(f"Using resources for Process {result.pid}: {' '.join(claimed)}")
        self.event_log.add(SimulationEvent(
            step=self.clock.now,
            event_type=EventType.USE,
            process_id=result.pid,
            amounts=used.tolist(),
            message=", ".join(claimed) or "nothing available",
        ))

        for resource, count in zip(self.ledger.catalog, used):
            if count > 0:
                result.resources_used.append(f"{resource.name} (used: {count})")

    def _release(self, amounts, result: ExecutionResult) -> None:
        requested = list(amounts)
        released = self.ledger.release(result.pid, requested)
        if released.tolist() != requested:
            self.logger.log(
                f"P{result.pid} release {requested} exceeds holding, released {released.tolist()}",
                "warning",
            )
        self._record_release(released, result)

    def _record_release(self, released, result: ExecutionResult) -> None:
        self.logger.log_release(self.clock.now, result.pid, released.tolist())
        self.event_log.add(SimulationEvent(
            step=self.clock.now,
            event_type=EventType.RELEASE,
            process_id=result.pid,
            amounts=released.tolist(),
        ))
        for resource, amount in zip(self.ledger.catalog, released):
            if amount > 0:
                result.resources_used.append(f"{resource.name} (released: {amount})")
