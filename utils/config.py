"""
Run configuration for the Banker's Scheduler Simulator.

Collects the knobs the command line exposes so that loaders, the
execution engine and the scheduling driver read them from one place.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SimulationConfig:
    """
    Simulation settings.

    Attributes:
        default_deadline: Deadline given to processes that do not declare one
        default_computation_time: Computation time given to processes that
            do not declare one
        time_unit_seconds: Wall-clock seconds slept per compute time unit.
            0 keeps compute purely cooperative (the clock just advances).
        verbose: Enable debug logging and per-instruction state output
        log_file: Optional log file path
        check_invariants: Assert resource conservation after every mutation
    """
    default_deadline: int = 0
    default_computation_time: int = 0
    time_unit_seconds: float = 0.0
    verbose: bool = False
    log_file: Optional[str] = None
    check_invariants: bool = True

    def __post_init__(self):
        """Validate settings."""
        if self.default_deadline < 0:
            raise ValueError("default_deadline cannot be negative")
        if self.default_computation_time < 0:
            raise ValueError("default_computation_time cannot be negative")
        if self.time_unit_seconds < 0:
            raise ValueError("time_unit_seconds cannot be negative")

    @classmethod
    def from_args(cls, args) -> "SimulationConfig":
        """Build a config from parsed command-line arguments."""
        return cls(
            default_deadline=args.default_deadline,
            default_computation_time=args.default_computation_time,
            time_unit_seconds=args.time_unit,
            verbose=args.verbose,
            log_file=args.log_file,
            check_invariants=not args.no_invariant_checks,
        )
