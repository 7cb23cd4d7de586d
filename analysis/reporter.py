"""
State Reporter for the Banker's Scheduler Simulator.

Renders ledger snapshots for diagnostics. Reads snapshots only; never
touches the ledger itself.
"""

from typing import List

import numpy as np

from models.ledger import LedgerSnapshot
from models.resource import ResourceCatalog


class StateReporter:
    """Formats Available/Allocation/Max/Need snapshots as text."""

    def __init__(self, catalog: ResourceCatalog):
        self.catalog = catalog

    def render(self, snapshot: LedgerSnapshot) -> str:
        """
        Generate readable string representation of a ledger snapshot.

        Returns:
            Formatted string showing all matrices and vectors
        """
        output = []
        output.append("\n" + "="*60)
        output.append("CURRENT STATE")
        output.append("="*60)

        output.append("\nAvailable Resources:")
        for j, resource in enumerate(self.catalog):
            instances = ", ".join(resource.instances)
            output.append(
                f"  {resource.name}: {instances} "
                f"({snapshot.available[j]}/{resource.instance_count} available)"
            )

        output.extend(self._matrix("Allocation Matrix:", snapshot.allocation, snapshot.pids))
        output.extend(self._matrix("Max Demand Matrix:", snapshot.max_demand, snapshot.pids))
        output.extend(self._matrix("Need Matrix (Max - Allocation):", snapshot.need, snapshot.pids))

        output.append("\n" + "="*60)
        return "\n".join(output)

    def _matrix(self, title: str, matrix: np.ndarray, pids) -> List[str]:
        width = max([3] + [len(name) for name in self.catalog.names])
        lines = ["\n" + title]
        lines.append("        " + " ".join(f"{name:>{width}}" for name in self.catalog.names))
        for i, pid in enumerate(pids):
            row = " ".join(f"{matrix[i][j]:>{width}}" for j in range(self.catalog.num_resources))
            lines.append(f"  P{pid:<3}: {row}")
        return lines

    def summary_line(self, snapshot: LedgerSnapshot) -> str:
        """One-line Available summary, for compact logs."""
        parts = [f"{name}={count}" for name, count in zip(self.catalog.names, snapshot.available)]
        return "Available: " + ", ".join(parts)
