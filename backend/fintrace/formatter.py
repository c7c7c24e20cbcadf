"""
formatter.py – Produce the final report record.

JSON contract
-------------
{
  "suspicious_accounts": [{account_id, risk_score, reasons, patterns_detected,
                           ring_ids}],
  "fraud_rings":         [{ring_id, pattern_type, member_accounts, risk_score,
                           details}],
  "summary":             {total_accounts_analyzed, suspicious_accounts_flagged,
                          fraud_rings_detected, processing_time_seconds,
                          patterns_breakdown: {cycles, fan_in, fan_out,
                                               shell_networks}},
  "kingpin":             {account_id, total_flow, total_sent, total_received,
                          connections, degree_centrality, score} | null,
  "graph":               {nodes: [...], edges: [...]}   // only when requested
}

suspicious_accounts and fraud_rings are sorted descending by risk_score.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import networkx as nx

from .graph_builder import aggregate_edges, display_risk

log = logging.getLogger(__name__)

_RING_FIELDS = ("ring_id", "pattern_type", "member_accounts", "risk_score", "details")


def _patterns_breakdown(rings: List[Dict]) -> Dict[str, int]:
    counts = {"cycles": 0, "fan_in": 0, "fan_out": 0, "shell_networks": 0}
    field = {
        "cycle":         "cycles",
        "fan-in":        "fan_in",
        "fan-out":       "fan_out",
        "shell-network": "shell_networks",
    }
    for ring in rings:
        counts[field[ring["pattern_type"]]] += 1
    return counts


def build_graph_payload(
    G: nx.MultiDiGraph,
    account_scores: Dict[str, Dict],
    kingpin: Optional[Dict] = None,
) -> Dict[str, List[Dict]]:
    """Display view: per-node heuristic/override risk plus aggregated edges."""
    kingpin_id = kingpin["account_id"] if kingpin else None

    nodes: List[Dict] = []
    for node, attrs in G.nodes(data=True):
        reasons = account_scores.get(node, {}).get("reasons", [])
        # the kingpin floor alone applies unless a detector also flagged it
        suspicious = any(reason != "kingpin" for reason in reasons)
        is_kingpin = node == kingpin_id
        nodes.append({
            "id":             node,
            "tx_count":       attrs.get("tx_count", 0),
            "total_sent":     attrs.get("total_sent", 0.0),
            "total_received": attrs.get("total_received", 0.0),
            "suspicious":     suspicious or is_kingpin,
            "is_kingpin":     is_kingpin,
            "risk":           display_risk(attrs.get("heuristic_risk", 0), suspicious, is_kingpin),
            "ring_ids":       list(account_scores.get(node, {}).get("ring_ids", [])),
        })

    return {"nodes": nodes, "edges": aggregate_edges(G)}


def format_output(
    rings: List[Dict],
    account_scores: Dict[str, Dict],
    kingpin: Optional[Dict],
    total_accounts: int,
    processing_time: float = 0.0,
    G: nx.MultiDiGraph | None = None,
) -> Dict[str, Any]:
    """
    Build the complete report.

    Parameters
    ----------
    rings           : ring list with ring_id assigned
    account_scores  : output of scoring.calculate_scores()
    kingpin         : output of kingpin_scorer.detect_kingpin()
    total_accounts  : unique account count in the input
    processing_time : elapsed wall-clock seconds
    G               : when given, the display graph is attached
    """
    # 1. Fraud rings
    fraud_rings: List[Dict] = [
        {key: ring[key] for key in _RING_FIELDS} for ring in rings
    ]
    # Stable sort: equal risk keeps ring_id order.
    fraud_rings.sort(key=lambda r: r["risk_score"], reverse=True)

    # 2. Suspicious accounts
    suspicious_accounts: List[Dict] = [
        {
            "account_id":        acc_id,
            "risk_score":        d["score"],
            "reasons":           list(d["reasons"]),
            "patterns_detected": len(d["reasons"]),
            "ring_ids":          list(d["ring_ids"]),
        }
        for acc_id, d in account_scores.items()
    ]
    suspicious_accounts.sort(key=lambda a: (-a["risk_score"], a["account_id"]))

    # 3. Summary
    summary: Dict[str, Any] = {
        "total_accounts_analyzed":     total_accounts,
        "suspicious_accounts_flagged": len(suspicious_accounts),
        "fraud_rings_detected":        len(fraud_rings),
        "processing_time_seconds":     round(processing_time, 3),
        "patterns_breakdown":          _patterns_breakdown(rings),
    }

    response: Dict[str, Any] = {
        "suspicious_accounts": suspicious_accounts,
        "fraud_rings":         fraud_rings,
        "summary":             summary,
        "kingpin":             dict(kingpin) if kingpin else None,
    }
    if G is not None:
        response["graph"] = build_graph_payload(G, account_scores, kingpin)

    log.info(
        "Format complete: %d suspicious accounts, %d fraud rings",
        len(suspicious_accounts),
        len(fraud_rings),
    )
    return response
