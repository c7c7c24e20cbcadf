"""
shell_detector.py – Detect layered shell account networks.

Definition
----------
A shell chain is a simple directed path of SHELL_MIN_CHAIN to SHELL_MAX_CHAIN
accounts where ALL intermediate nodes (everything except source and
destination) are "pass-through shell" accounts: low-activity nodes used
purely to add layers of obfuscation.

Pass-through shell criteria
----------------------------
An account is a shell intermediary if its dataset-wide transaction count
(sent + received, over every transaction, not only the chain's) lies in
[SHELL_MIN_TX, SHELL_MAX_TX].

Source and destination nodes have no tx_count requirement; they are simply
the first and last nodes of the discovered chain.

Algorithm
---------
Iterative DFS from every node with at least one shell successor.  A path is
only extended through shell nodes (the node being left behind becomes an
intermediary), so every path of SHELL_MIN_CHAIN+ nodes is a candidate chain.

Deduplication
-------------
Candidates are ranked longest first, then by node sequence.  A candidate is
dropped when its node sequence appears inside an accepted chain, or contains
one, so a containing path always wins over its own sub-paths.

Hard cap MAX_SHELL_CHAINS and a SearchBudget bound the work on dense graphs.
"""
from __future__ import annotations

import logging
from typing import List, Dict, Sequence

import networkx as nx

from .config import (
    SHELL_MIN_TX, SHELL_MAX_TX, SHELL_MIN_CHAIN, SHELL_MAX_CHAIN,
    MAX_SHELL_CHAINS, SHELL_TIMEOUT_SECONDS, SHELL_MAX_STEPS, RING_RISK,
)
from .utils import SearchBudget

log = logging.getLogger(__name__)

_SEP = "->"


def _chain_key(path: Sequence[str]) -> str:
    # Delimiters on both ends so "A1" never matches inside "A11".
    return _SEP + _SEP.join(path) + _SEP


def shell_nodes(G: nx.MultiDiGraph) -> set:
    """Accounts whose dataset-wide tx_count qualifies them as pass-through shells."""
    return {
        n for n, tx_count in G.nodes(data="tx_count", default=0)
        if SHELL_MIN_TX <= tx_count <= SHELL_MAX_TX
    }


def _candidate_chains(G: nx.MultiDiGraph, shells: set, budget: SearchBudget) -> List[list]:
    candidates: List[list] = []

    sources = [
        n for n in G.nodes()
        if any(nbr in shells for nbr in G.successors(n))
    ]

    for source in sources:
        if budget.exhausted:
            break

        # Stack: (current_path, visited_set)
        stack = [([source], {source})]
        while stack:
            if not budget.tick():
                break
            path, visited = stack.pop()

            for nbr in G.successors(path[-1]):
                if nbr in visited:
                    continue
                new_path = path + [nbr]

                if len(new_path) >= SHELL_MIN_CHAIN:
                    candidates.append(new_path)

                if nbr in shells and len(new_path) < SHELL_MAX_CHAIN:
                    stack.append((new_path, visited | {nbr}))

    return candidates


def detect_shell_networks(G: nx.MultiDiGraph, budget: SearchBudget | None = None) -> List[Dict]:
    """
    Detect layered shell-account chains.

    Returns
    -------
    List of ring dicts with keys:
        member_accounts : list[str]  – full path [source, shell1, ..., dest]
        pattern_type    : "shell-network"
        risk_score      : int
        details         : str
        intermediates   : list[str]  – the low-tx pass-through accounts
    """
    rings: List[Dict] = []

    shells = shell_nodes(G)
    log.info(
        "Shell detection: %d shell candidates / %d total nodes",
        len(shells),
        G.number_of_nodes(),
    )
    if not shells:
        log.info("Shell detection: 0 chains found")
        return rings

    if budget is None:
        budget = SearchBudget(SHELL_MAX_STEPS, SHELL_TIMEOUT_SECONDS, name="Shell detection")

    with budget:
        candidates = _candidate_chains(G, shells, budget)

    accepted: List[str] = []
    for path in sorted(candidates, key=lambda p: (-len(p), p)):
        key = _chain_key(path)
        if any(key in seen or seen in key for seen in accepted):
            continue
        accepted.append(key)

        rings.append({
            "member_accounts": list(path),
            "pattern_type":    "shell-network",
            "risk_score":      RING_RISK["shell-network"],
            "details":         f"{len(path)}-hop layering chain",
            "intermediates":   list(path[1:-1]),
        })
        if len(rings) >= MAX_SHELL_CHAINS:
            log.warning("Shell chain cap (%d) reached.", MAX_SHELL_CHAINS)
            break

    log.info(
        "Shell detection: %d chains found from %d candidates%s",
        len(rings),
        len(candidates),
        " (budget exhausted)" if budget.exhausted else "",
    )
    return rings
