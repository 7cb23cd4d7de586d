"""
Event Model for the Banker's Scheduler Simulator.

Defines event types for tracking what each process did during a run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EventType(Enum):
    """Types of events in the simulation."""
    ALLOCATION = "allocation"
    DENIAL = "denial"
    RELEASE = "release"
    USE = "use"
    COMPUTE = "compute"
    FINISH = "finish"
    BLOCKED = "blocked"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        step: Simulation clock time when the event occurred
        event_type: Type of event
        process_id: PID involved in event
        amounts: Resource amounts involved (if applicable)
        message: Human-readable description
        reason: Reason for denial (if applicable)
    """
    step: int
    event_type: EventType
    process_id: int
    amounts: Optional[List[int]] = None
    message: str = ""
    reason: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"t={self.step}: P{self.process_id}"

        if self.event_type == EventType.ALLOCATION:
            return f"{base} requests {self.amounts} - GRANTED ({self.reason})"
        elif self.event_type == EventType.DENIAL:
            return f"{base} requests {self.amounts} - DENIED ({self.reason})"
        elif self.event_type == EventType.RELEASE:
            return f"{base} releases {self.amounts}"
        elif self.event_type == EventType.USE:
            return f"{base} uses {self.amounts} ({self.message})"
        elif self.event_type == EventType.COMPUTE:
            return f"{base} computes ({self.message})"
        elif self.event_type == EventType.FINISH:
            return f"{base} - FINISHED ({self.message})"
        elif self.event_type == EventType.BLOCKED:
            return f"{base} - BLOCKED ({self.message})"
        else:
            return f"{base} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def count(self, event_type: EventType) -> int:
        return len(self.get_events_by_type(event_type))

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
