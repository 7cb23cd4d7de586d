"""
Process model for the Banker's Scheduler Simulator.

Represents a process descriptor (what the loader produced) and the
outcome of executing it once.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from enum import Enum

from models.instruction import Instruction, InstructionKind


class ProcessState(Enum):
    """Process states during one execution."""
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class ProcessDescriptor:
    """
    Immutable description of a process.

    Attributes:
        pid: Process identifier (1-based, declaration order)
        deadline: Deadline in time units
        computation_time: Declared computation time in time units
        instructions: Decoded instruction stream
    """
    pid: int
    deadline: int
    computation_time: int
    instructions: Tuple[Instruction, ...] = ()

    def __post_init__(self):
        """Validate descriptor fields."""
        if self.pid < 1:
            raise ValueError(f"Process id must be >= 1, got {self.pid}")
        if self.deadline < 0:
            raise ValueError(f"P{self.pid}: deadline cannot be negative")
        if self.computation_time < 0:
            raise ValueError(f"P{self.pid}: computation_time cannot be negative")
        object.__setattr__(self, 'instructions', tuple(self.instructions))

    @property
    def index(self) -> int:
        """Row index of this process in the ledger matrices."""
        return self.pid - 1

    def declared_maximum(self, num_resources: int) -> List[int]:
        """
        Maximum claim declared by this process.

        The first request directive's amounts are the declared maximum.
        A process that never requests claims nothing.
        """
        for instruction in self.instructions:
            if instruction.kind == InstructionKind.REQUEST:
                return list(instruction.args)
        return [0] * num_resources

    def referenced_instances(self) -> List[str]:
        """Instance identifiers referenced anywhere in the stream."""
        return [
            instruction.reference
            for instruction in self.instructions
            if instruction.kind == InstructionKind.REFERENCE
        ]

    def laxity(self, current_time: int) -> int:
        """Laxity at the given time: deadline - current_time - computation_time."""
        return self.deadline - current_time - self.computation_time


@dataclass
class ExecutionResult:
    """
    Outcome of running one process's instruction stream.

    Attributes:
        pid: Process identifier
        state: Final state (BLOCKED or COMPLETED)
        total_computation_time: Sum of compute durations executed
        resources_used: Human-readable log of consumed/released resources
        denial_reason: Why the process blocked, if it did
        start_time: Simulation clock when the process started
        finish_time: Simulation clock when the process stopped
        instructions_executed: Number of instructions consumed
    """
    pid: int
    state: ProcessState = ProcessState.RUNNING
    total_computation_time: int = 0
    resources_used: List[str] = field(default_factory=list)
    denial_reason: Optional[str] = None
    start_time: int = 0
    finish_time: int = 0
    instructions_executed: int = 0

    @property
    def blocked(self) -> bool:
        return self.state == ProcessState.BLOCKED

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"ExecutionResult(pid={self.pid}, state={self.state.value}, "
            f"computation={self.total_computation_time}, "
            f"finish={self.finish_time})"
        )
