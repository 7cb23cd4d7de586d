"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Simulator.

Implements the safety check used by the allocation ledger to keep the
system out of unsafe states.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple


def is_safe_state(
    available: np.ndarray,
    allocation: np.ndarray,
    need: np.ndarray,
    pids: Optional[Sequence[int]] = None
) -> Tuple[bool, Optional[List[int]]]:
    """
    Check if a state is safe using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Make a full pass over all processes in ascending order: every
       unfinished process i with Need[i] <= Work completes,
       Work += Allocation[i], Finish[i] = True
    3. Repeat full passes until a pass makes no progress
    4. SAFE iff every Finish[i] is True

    A single pass under-approximates safety: a process early in the order
    may only become satisfiable after a later one releases its allocation.

    Time Complexity: O(P²×R)

    Args:
        available: Available vector [R]
        allocation: Allocation matrix [P][R]
        need: Need matrix [P][R]
        pids: Process ids labelling the rows (defaults to 1..P)

    Returns:
        Tuple of (is_safe, safe_sequence if exists else None)

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    num_processes = allocation.shape[0]
    if pids is None:
        pids = range(1, num_processes + 1)

    # Work is a copy so the caller's Available is never touched
    work = np.array(available, dtype=int, copy=True)
    finish = np.zeros(num_processes, dtype=bool)
    safe_sequence = []

    made_progress = True
    while made_progress:
        made_progress = False

        for i in range(num_processes):
            if finish[i]:
                continue

            if np.all(need[i] <= work):
                # Process can finish: its allocation returns to the pool
                work += allocation[i]
                finish[i] = True
                safe_sequence.append(pids[i])
                made_progress = True

    if np.all(finish):
        return True, safe_sequence
    else:
        return False, None
