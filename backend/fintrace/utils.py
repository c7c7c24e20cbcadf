"""
utils.py – Ring ID assignment and DFS search budgets.

Ring IDs
--------
Rings from every detector are concatenated in a fixed order (cycles, fan-in,
fan-out, shell networks) and numbered RING_001, RING_002, …  Rings are never
merged: an account may belong to several rings and keeps all memberships.

Search budgets
--------------
Cycle and shell-chain enumeration grow combinatorially on dense graphs.
A SearchBudget caps both the number of DFS frames expanded and the wall-clock
time of one detector call.  Detectors poll ``exhausted`` and return whatever
they have found so far once it trips.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List

log = logging.getLogger(__name__)


class SearchBudget:
    """Step + timeout guard for one detector call. Use as a context manager."""

    def __init__(self, max_steps: int, timeout_seconds: float, name: str = "search"):
        self.max_steps = max_steps
        self.timeout_seconds = timeout_seconds
        self.name = name
        self.steps = 0
        self._stop_event = threading.Event()
        self._timer: threading.Timer | None = None
        self._reported = False

    def __enter__(self) -> "SearchBudget":
        if self.timeout_seconds > 0:
            self._timer = threading.Timer(self.timeout_seconds, self._stop_event.set)
            self._timer.daemon = True
            self._timer.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._timer is not None:
            self._timer.cancel()

    @property
    def timed_out(self) -> bool:
        return self._stop_event.is_set()

    def tick(self) -> bool:
        """Count one expanded frame. Returns False once the budget is spent."""
        self.steps += 1
        if self.exhausted:
            if not self._reported:
                self._reported = True
                log.warning(
                    "%s budget exhausted after %d steps%s; returning partial results.",
                    self.name,
                    self.steps,
                    " (timed out)" if self.timed_out else "",
                )
            return False
        return True

    @property
    def exhausted(self) -> bool:
        return self.steps > self.max_steps or self.timed_out


def assign_ring_ids(
    cycle_rings: List[Dict],
    fan_in_rings: List[Dict],
    fan_out_rings: List[Dict],
    shell_rings: List[Dict],
) -> List[Dict]:
    """
    Combine all ring lists in detector order and assign sequential
    RING_001, RING_002, … IDs.

    Returns a flat list of new ring dicts with ring_id injected; the
    detector outputs are left untouched.
    """
    combined = cycle_rings + fan_in_rings + fan_out_rings + shell_rings

    numbered: List[Dict] = []
    for i, ring in enumerate(combined, start=1):
        numbered.append({"ring_id": f"RING_{i:03d}", **ring})

    log.info("Ring IDs assigned: %d rings", len(numbered))
    return numbered
