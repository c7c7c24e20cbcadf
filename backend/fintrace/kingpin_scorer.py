"""
kingpin_scorer.py – Name the single account most likely controlling the flows.

Scoring model
-------------
    total_flow        = total_sent + total_received
    degree_centrality = distinct counterparties / (total accounts - 1)
    score             = 0.7 × (total_flow / 1,000,000) + 0.3 × (degree_centrality × 100)

Only accounts with at least KINGPIN_MIN_CONNECTIONS distinct counterparties
are eligible.  Equal scores resolve to the lowest account ID.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

import networkx as nx

from .config import (
    KINGPIN_MIN_CONNECTIONS,
    KINGPIN_FLOW_WEIGHT,
    KINGPIN_CENTRALITY_WEIGHT,
    KINGPIN_FLOW_NORMALISER,
)

log = logging.getLogger(__name__)


def kingpin_score(total_flow: float, degree_centrality: float) -> float:
    return (
        KINGPIN_FLOW_WEIGHT * (total_flow / KINGPIN_FLOW_NORMALISER)
        + KINGPIN_CENTRALITY_WEIGHT * (degree_centrality * 100)
    )


def detect_kingpin(G: nx.MultiDiGraph) -> Optional[Dict]:
    """
    Pick the highest-scoring eligible account.

    Returns
    -------
    None, or a dict with keys:
        account_id, total_flow, total_sent, total_received,
        connections, degree_centrality, score
    """
    n_accounts = G.number_of_nodes()
    best: Optional[Dict] = None

    for acc, attrs in G.nodes(data=True):
        connections = len(attrs.get("connections", ()))
        if connections < KINGPIN_MIN_CONNECTIONS:
            continue

        total_sent = attrs.get("total_sent", 0.0)
        total_received = attrs.get("total_received", 0.0)
        total_flow = total_sent + total_received
        centrality = connections / (n_accounts - 1) if n_accounts > 1 else 0.0
        score = kingpin_score(total_flow, centrality)

        if (
            best is None
            or score > best["score"]
            or (score == best["score"] and acc < best["account_id"])
        ):
            best = {
                "account_id":        acc,
                "total_flow":        round(total_flow, 2),
                "total_sent":        round(total_sent, 2),
                "total_received":    round(total_received, 2),
                "connections":       connections,
                "degree_centrality": round(centrality, 6),
                "score":             score,
            }

    if best is None:
        log.info("Kingpin: no account with >= %d connections", KINGPIN_MIN_CONNECTIONS)
        return None

    best["score"] = round(best["score"], 6)
    log.info(
        "Kingpin identified: %s (flow %.2f, %d connections, score %.4f)",
        best["account_id"],
        best["total_flow"],
        best["connections"],
        best["score"],
    )
    return best
