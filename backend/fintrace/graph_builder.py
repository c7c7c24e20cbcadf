"""
graph_builder.py – Build a labelled directed multigraph from transaction data.
Uses vectorised pandas operations for the per-account aggregates.

Every transaction becomes its own edge (keyed by transaction_id), so parallel
transfers between the same pair of accounts are preserved for traversal.
The aggregated edge view (one edge per sender/receiver pair) is produced
separately by ``aggregate_edges`` and is used for display only.

The returned graph is frozen: detectors get a read-only snapshot.
"""
from __future__ import annotations

import logging
from typing import Dict, List

import networkx as nx
import pandas as pd

from .config import (
    HEURISTIC_TX_HIGH, HEURISTIC_TX_MEDIUM,
    HEURISTIC_FLOW_HIGH, HEURISTIC_FLOW_MEDIUM,
    HEURISTIC_RATIO_HIGH, HEURISTIC_RATIO_LOW,
    SUSPICIOUS_RISK_FLOOR, SUSPICIOUS_RISK_BOOST,
    KINGPIN_RISK_FLOOR, MAX_RISK_SCORE,
)

log = logging.getLogger(__name__)


def heuristic_risk(tx_count: int, total_sent: float, total_received: float) -> int:
    """Activity-only risk estimate, independent of any detector finding."""
    score = 0

    if tx_count > HEURISTIC_TX_HIGH:
        score += 30
    elif tx_count > HEURISTIC_TX_MEDIUM:
        score += 15

    total_flow = total_sent + total_received
    if total_flow > HEURISTIC_FLOW_HIGH:
        score += 40
    elif total_flow > HEURISTIC_FLOW_MEDIUM:
        score += 20

    ratio = total_sent / (total_received + 1)
    if ratio > HEURISTIC_RATIO_HIGH or ratio < HEURISTIC_RATIO_LOW:
        score += 20

    return score


def display_risk(heuristic: float, suspicious: bool = False, is_kingpin: bool = False) -> int:
    """
    Final node risk for display: detector findings override the heuristic.

    suspicious → floor at SUSPICIOUS_RISK_FLOOR, then + SUSPICIOUS_RISK_BOOST
    kingpin    → floor at KINGPIN_RISK_FLOOR
    Result capped at MAX_RISK_SCORE.
    """
    score = heuristic
    if suspicious:
        score = max(score, SUSPICIOUS_RISK_FLOOR) + SUSPICIOUS_RISK_BOOST
    if is_kingpin:
        score = max(score, KINGPIN_RISK_FLOOR)
    return int(min(round(score), MAX_RISK_SCORE))


def _account_order(df: pd.DataFrame) -> pd.Index:
    """Accounts in order of first appearance (sender before receiver per row)."""
    return pd.Index(
        pd.unique(df[["sender_id", "receiver_id"]].to_numpy().ravel())
    )


def build_graph(df: pd.DataFrame) -> nx.MultiDiGraph:
    """
    Construct a frozen directed multigraph from a validated transaction DataFrame.

    Node attributes
    ---------------
    total_sent, total_received : float
    tx_count, sent_count, received_count : int
    connections                : frozenset[str] – distinct counterparties
    heuristic_risk             : int

    Edge attributes (one edge per transaction, key = transaction_id)
    ---------------
    amount    : float
    timestamp : pd.Timestamp
    """
    G = nx.MultiDiGraph()

    if df.empty:
        log.info("Graph built: 0 nodes, 0 edges (empty input)")
        return nx.freeze(G)

    # ── Vectorised node statistics ─────────────────────────────────────────────
    sent_stats = df.groupby("sender_id").agg(
        total_sent=("amount", "sum"),
        sent_count=("amount", "count"),
    )
    recv_stats = df.groupby("receiver_id").agg(
        total_received=("amount", "sum"),
        received_count=("amount", "count"),
    )

    all_accounts = _account_order(df)
    s = sent_stats.reindex(all_accounts)
    r = recv_stats.reindex(all_accounts)

    node_df = pd.DataFrame({
        "total_sent":     s["total_sent"].fillna(0.0).round(2),
        "total_received": r["total_received"].fillna(0.0).round(2),
        "sent_count":     s["sent_count"].fillna(0).astype(int),
        "received_count": r["received_count"].fillna(0).astype(int),
    }, index=all_accounts)
    node_df["tx_count"] = node_df["sent_count"] + node_df["received_count"]

    # Direction-agnostic counterparty sets.
    connections: Dict[str, set] = {acc: set() for acc in all_accounts}
    for sender, receiver in zip(df["sender_id"], df["receiver_id"]):
        connections[sender].add(receiver)
        connections[receiver].add(sender)

    G.add_nodes_from([
        (row.Index, {
            "total_sent":     float(row.total_sent),
            "total_received": float(row.total_received),
            "tx_count":       int(row.tx_count),
            "sent_count":     int(row.sent_count),
            "received_count": int(row.received_count),
            "connections":    frozenset(connections[row.Index]),
            "heuristic_risk": heuristic_risk(
                int(row.tx_count), float(row.total_sent), float(row.total_received)
            ),
        })
        for row in node_df.itertuples()
    ])

    # ── Edges ──────────────────────────────────────────────────────────────────
    G.add_edges_from([
        (row.sender_id, row.receiver_id, row.transaction_id, {
            "amount":    round(float(row.amount), 2),
            "timestamp": row.timestamp,
        })
        for row in df[
            ["transaction_id", "sender_id", "receiver_id", "amount", "timestamp"]
        ].itertuples(index=False)
    ])

    log.info("Graph built: %d nodes, %d edges", G.number_of_nodes(), G.number_of_edges())
    return nx.freeze(G)


def aggregate_edges(G: nx.MultiDiGraph) -> List[Dict]:
    """Collapse parallel transactions into one display edge per (source, target)."""
    totals: Dict[tuple, Dict] = {}
    for u, v, amount in G.edges(data="amount"):
        entry = totals.setdefault((u, v), {"total_amount": 0.0, "tx_count": 0})
        entry["total_amount"] += amount
        entry["tx_count"] += 1

    return [
        {
            "source":       u,
            "target":       v,
            "total_amount": round(agg["total_amount"], 2),
            "tx_count":     agg["tx_count"],
        }
        for (u, v), agg in totals.items()
    ]
