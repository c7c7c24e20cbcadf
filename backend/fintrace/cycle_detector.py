"""
cycle_detector.py – Detect circular fund routing (money-mule rings).

Strategy
--------
Iterative depth-first search from every account, in graph order.  Each stack
frame holds (node, path, path_set).  When a successor already on the path is
reached, the sub-path from that successor to the current node closes a cycle;
only cycles of CYCLE_MIN_LEN..CYCLE_MAX_LEN accounts are kept.

Once an account has served as a DFS root it is "rooted": it is never
restarted and later searches do not enter it.  No cycle is lost this way:
every cycle is fully explored from whichever of its members is rooted first.

Canonical deduplication: A→B→C→A, B→C→A→B and the mirror A→C→B→A are the
same ring.  Both the cycle and its reverse are rotated to start at their
smallest account and the lexicographically smaller joined string is the key.

Performance
-----------
• Path depth is capped at CYCLE_MAX_LEN.
• A SearchBudget caps expanded frames and wall-clock time; on exhaustion the
  cycles found so far are returned.
• Hard cap of MAX_CYCLES on the number of rings reported.
"""
from __future__ import annotations

import logging
from typing import List, Dict, Sequence

import networkx as nx

from .config import (
    CYCLE_MIN_LEN, CYCLE_MAX_LEN, MAX_CYCLES,
    CYCLE_TIMEOUT_SECONDS, CYCLE_MAX_STEPS, CYCLE_BASE_RISK,
)
from .utils import SearchBudget

log = logging.getLogger(__name__)


def _rotate_to_min(cycle: Sequence[str]) -> list:
    """Rotate cycle so the lexicographically smallest node is first."""
    cycle = list(cycle)
    if not cycle:
        return cycle
    min_idx = cycle.index(min(cycle))
    return cycle[min_idx:] + cycle[:min_idx]


def canonical_cycle_key(cycle: Sequence[str]) -> str:
    """Rotation- and direction-independent key for a cycle."""
    forward = "-".join(_rotate_to_min(cycle))
    backward = "-".join(_rotate_to_min(list(reversed(cycle))))
    return min(forward, backward)


def detect_cycles(G: nx.MultiDiGraph, budget: SearchBudget | None = None) -> List[Dict]:
    """
    Detect simple directed cycles of length CYCLE_MIN_LEN to CYCLE_MAX_LEN.

    Returns
    -------
    List of ring dicts with keys:
        member_accounts : list[str]  – cycle in edge order, smallest account first
        pattern_type    : "cycle"
        risk_score      : int        – CYCLE_BASE_RISK + cycle length
        details         : str
    """
    rings: List[Dict] = []
    seen: set = set()
    rooted: set = set()

    if budget is None:
        budget = SearchBudget(CYCLE_MAX_STEPS, CYCLE_TIMEOUT_SECONDS, name="Cycle detection")

    with budget:
        for root in G.nodes():
            if len(rings) >= MAX_CYCLES or budget.exhausted:
                break

            stack = [(root, [root], {root})]
            while stack:
                if not budget.tick():
                    break
                node, path, path_set = stack.pop()

                successors = list(G.successors(node))
                # Reverse push so successors are explored in adjacency order.
                for nbr in reversed(successors):
                    if nbr in path_set:
                        continue
                    if len(path) < CYCLE_MAX_LEN and nbr not in rooted:
                        stack.append((nbr, path + [nbr], path_set | {nbr}))

                for nbr in successors:
                    if nbr not in path_set:
                        continue
                    cycle = path[path.index(nbr):]
                    length = len(cycle)
                    if length < CYCLE_MIN_LEN or length > CYCLE_MAX_LEN:
                        continue

                    key = canonical_cycle_key(cycle)
                    if key in seen:
                        continue
                    seen.add(key)

                    rings.append({
                        "member_accounts": _rotate_to_min(cycle),
                        "pattern_type":    "cycle",
                        "risk_score":      CYCLE_BASE_RISK + length,
                        "details":         f"{length}-node circular routing",
                    })
                    if len(rings) >= MAX_CYCLES:
                        log.warning("Cycle cap (%d) reached; stopping early.", MAX_CYCLES)
                        stack.clear()
                        break

            rooted.add(root)

    log.info(
        "Cycle detection: %d rings found%s",
        len(rings),
        " (budget exhausted)" if budget.exhausted else "",
    )
    return rings
