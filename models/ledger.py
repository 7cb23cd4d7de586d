"""
Allocation Ledger for the Banker's Scheduler Simulator.

Owns the Available/Max/Allocation/Need matrices and exposes the request,
release and direct-use primitives together with the Banker's safety
check. The ledger is the only mutable state in a simulation run.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from algorithms.avoidance import is_safe_state
from models.process import ProcessDescriptor
from models.resource import ResourceCatalog


class InitializationFailure(Exception):
    """Raised when the ledger cannot be set up for a run."""
    pass


class DenialReason(Enum):
    """Why a request was denied."""
    CLAIM_VIOLATION = "claim_violation"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    UNSAFE_STATE = "unsafe_state"


@dataclass(frozen=True)
class RequestResult:
    """
    Outcome of a resource request.

    Attributes:
        granted: Whether the request was committed
        reason: Denial reason (None when granted)
        message: Human-readable explanation
        safe_sequence: Safe completion order found for a granted request
    """
    granted: bool
    reason: Optional[DenialReason] = None
    message: str = ""
    safe_sequence: Optional[Tuple[int, ...]] = None

    def __bool__(self) -> bool:
        return self.granted


@dataclass(frozen=True, eq=False)
class LedgerSnapshot:
    """Point-in-time copy of the ledger matrices."""
    available: np.ndarray
    max_demand: np.ndarray
    allocation: np.ndarray
    need: np.ndarray
    pids: Tuple[int, ...]

    @property
    def total_instances(self) -> np.ndarray:
        return self.available + self.allocation.sum(axis=0)

    def same_as(self, other: "LedgerSnapshot") -> bool:
        """True if both snapshots hold identical matrices."""
        return (
            self.pids == other.pids
            and np.array_equal(self.available, other.available)
            and np.array_equal(self.max_demand, other.max_demand)
            and np.array_equal(self.allocation, other.allocation)
            and np.array_equal(self.need, other.need)
        )


class AllocationLedger:
    """
    Resource-allocation ledger implementing Banker's Algorithm.

    Matrices are indexed [process][resource]; process row i holds pid i + 1.

    Every mutation of Available/Allocation/Need happens inside a single
    lock, so a request's claim check, tentative commit, safety check and
    rollback are atomic with respect to any other request or release.

    Note:
        use_direct() deliberately bypasses the claim and safety checks.
        Only request() is gated.
    """

    def __init__(
        self,
        catalog: ResourceCatalog,
        descriptors: Sequence[ProcessDescriptor],
        check_invariants: bool = True
    ):
        """
        Initialize the ledger from the catalog and process descriptors.

        Args:
            catalog: Resource catalog (read-only)
            descriptors: Process descriptors, pids 1..P (read-only)
            check_invariants: Assert conservation after every mutation

        Raises:
            InitializationFailure: If the lock cannot be created or the
                descriptors do not fit the catalog
        """
        try:
            self._lock = threading.Lock()
        except (RuntimeError, OSError) as e:
            raise InitializationFailure(f"Failed to create ledger lock: {e}") from e

        self.catalog = catalog
        self.check_invariants = check_invariants

        ordered = sorted(descriptors, key=lambda d: d.pid)
        pids = [d.pid for d in ordered]
        if pids != list(range(1, len(ordered) + 1)):
            raise InitializationFailure(f"Process ids must be 1..{len(ordered)}, got {pids}")
        self._pids: Tuple[int, ...] = tuple(pids)

        num_resources = catalog.num_resources
        num_processes = len(ordered)

        self._total = catalog.instance_counts
        self._available = self._total.copy()

        self._max_demand = np.zeros((num_processes, num_resources), dtype=int)
        for descriptor in ordered:
            claim = descriptor.declared_maximum(num_resources)
            if len(claim) != num_resources:
                raise InitializationFailure(
                    f"P{descriptor.pid}: declared maximum has {len(claim)} entries, "
                    f"catalog has {num_resources} resource types"
                )
            self._max_demand[descriptor.index] = claim

        self._allocation = np.zeros((num_processes, num_resources), dtype=int)
        self._need = self._max_demand - self._allocation

    @property
    def num_processes(self) -> int:
        return len(self._pids)

    @property
    def num_resources(self) -> int:
        return self.catalog.num_resources

    @property
    def pids(self) -> Tuple[int, ...]:
        return self._pids

    @property
    def total_instances(self) -> np.ndarray:
        return self._total.copy()

    @property
    def available(self) -> np.ndarray:
        return self._available.copy()

    @property
    def max_demand(self) -> np.ndarray:
        return self._max_demand.copy()

    @property
    def allocation(self) -> np.ndarray:
        return self._allocation.copy()

    @property
    def need(self) -> np.ndarray:
        return self._need.copy()

    def snapshot(self) -> LedgerSnapshot:
        """Create an immutable snapshot of the current matrices."""
        with self._lock:
            return LedgerSnapshot(
                available=self._available.copy(),
                max_demand=self._max_demand.copy(),
                allocation=self._allocation.copy(),
                need=self._need.copy(),
                pids=self._pids,
            )

    def is_safe(self) -> bool:
        """Check whether the current state is safe. Never mutates."""
        with self._lock:
            safe, _ = self._check_safety()
        return safe

    def safe_sequence(self) -> Optional[List[int]]:
        """Safe completion order for the current state, or None if unsafe."""
        with self._lock:
            _, sequence = self._check_safety()
        return sequence

    def _check_safety(self) -> Tuple[bool, Optional[List[int]]]:
        return is_safe_state(self._available, self._allocation, self._need, self._pids)

    def request(self, pid: int, amounts: Iterable[int]) -> RequestResult:
        """
        Handle a resource request using Banker's Algorithm.

        Steps:
        1. Validate: request <= need (otherwise claim violation)
        2. Check: request <= available (otherwise insufficient supply)
        3. Tentatively allocate resources
        4. Run safety algorithm on new state
        5. If safe: keep the commit. If unsafe: restore prior values exactly

        Args:
            pid: Requesting process
            amounts: Instances requested per resource type [R]

        Returns:
            RequestResult describing the decision
        """
        row = self._row(pid)
        request = self._vector(amounts)

        with self._lock:
            need = self._need[row]
            if np.any(request > need):
                return RequestResult(
                    granted=False,
                    reason=DenialReason.CLAIM_VIOLATION,
                    message=f"Request exceeds need (requested: {request.tolist()}, need: {need.tolist()})",
                )

            if np.any(request > self._available):
                return RequestResult(
                    granted=False,
                    reason=DenialReason.INSUFFICIENT_RESOURCES,
                    message=(
                        f"Insufficient resources (requested: {request.tolist()}, "
                        f"available: {self._available.tolist()})"
                    ),
                )

            # Save original rows for rollback
            saved_available = self._available.copy()
            saved_allocation = self._allocation[row].copy()
            saved_need = self._need[row].copy()

            self._available -= request
            self._allocation[row] += request
            self._need[row] -= request

            safe, sequence = self._check_safety()

            if not safe:
                self._available = saved_available
                self._allocation[row] = saved_allocation
                self._need[row] = saved_need
                return RequestResult(
                    granted=False,
                    reason=DenialReason.UNSAFE_STATE,
                    message="Unsafe state detected - request rolled back",
                )

            self._verify(f"after granting {request.tolist()} to P{pid}")

        seq_str = " -> ".join(f"P{p}" for p in sequence)
        return RequestResult(
            granted=True,
            message=f"Safe state maintained, sequence: {seq_str}",
            safe_sequence=tuple(sequence),
        )

    def release(self, pid: int, amounts: Iterable[int]) -> np.ndarray:
        """
        Release resources held by a process. Never denied.

        Amounts larger than the process currently holds are capped at the
        held amount so Allocation never goes negative.

        Args:
            pid: Releasing process
            amounts: Instances to release per resource type [R]

        Returns:
            Amounts actually released [R]
        """
        row = self._row(pid)
        release = self._vector(amounts)

        with self._lock:
            release = np.minimum(release, self._allocation[row])
            self._available += release
            self._allocation[row] -= release
            self._need[row] += release
            self._verify(f"after P{pid} released {release.tolist()}")

        return release

    def release_all(self, pid: int) -> np.ndarray:
        """Release the entire current allocation of a process."""
        row = self._row(pid)
        return self.release(pid, self._allocation[row].copy())

    def use_direct(self, pid: int, referenced_instances: Iterable[str]) -> Tuple[np.ndarray, List[str]]:
        """
        Greedily claim referenced instances that are currently available.

        For each resource type, for each of its instances in declaration
        order: if the instance is referenced and the type still has an
        available unit, one unit is moved to the process. Neither the claim
        check nor the safety check is applied.

        Args:
            pid: Claiming process
            referenced_instances: Instance identifiers named by the process

        Returns:
            Tuple of (units claimed per resource type, instance ids claimed)
        """
        row = self._row(pid)
        referenced = set(referenced_instances)
        used = np.zeros(self.num_resources, dtype=int)
        claimed = []

        with self._lock:
            for j, resource in enumerate(self.catalog):
                for instance in resource.instances:
                    if instance in referenced and self._available[j] > 0:
                        self._available[j] -= 1
                        self._allocation[row][j] += 1
                        self._need[row][j] -= 1
                        used[j] += 1
                        claimed.append(instance)
            self._verify(f"after P{pid} used {used.tolist()}")

        return used, claimed

    def reconcile_need(self, pid: int) -> None:
        """Recompute Need[pid] = Max[pid] - Allocation[pid]."""
        row = self._row(pid)
        with self._lock:
            self._need[row] = self._max_demand[row] - self._allocation[row]

    def assert_resource_conservation(self, context: str = "") -> None:
        """Verify resource conservation: allocated + available = total for all resources.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If conservation, Need identity or non-negativity is violated
        """
        with self._lock:
            self._assert_invariants(context)

    def _verify(self, context: str) -> None:
        if self.check_invariants:
            self._assert_invariants(context)

    def _assert_invariants(self, context: str) -> None:
        for j, resource in enumerate(self.catalog):
            allocated = self._allocation[:, j].sum()
            available = self._available[j]
            total = self._total[j]

            assert allocated + available == total, (
                f"Resource conservation violated for {resource.name} {context}\n"
                f"  Allocated: {allocated}, Available: {available}, Total: {total}\n"
                f"  Allocated + Available = {allocated + available} != {total}"
            )

            assert available >= 0, (
                f"Negative available resources for {resource.name} {context}\n"
                f"  Available: {available}"
            )

        assert np.all(self._allocation >= 0), f"Negative allocation {context}"
        assert np.array_equal(self._need, self._max_demand - self._allocation), (
            f"Need != Max - Allocation {context}"
        )

    def _row(self, pid: int) -> int:
        if pid < 1 or pid > len(self._pids):
            raise KeyError(f"Unknown process P{pid}")
        return pid - 1

    def _vector(self, amounts: Iterable[int]) -> np.ndarray:
        vector = np.array(list(amounts), dtype=int)
        if vector.shape != (self.num_resources,):
            raise ValueError(
                f"Expected {self.num_resources} amounts (one per resource type), got {vector.tolist()}"
            )
        if np.any(vector < 0):
            raise ValueError(f"Amounts cannot be negative: {vector.tolist()}")
        return vector
