"""
scoring.py – Suspicion scoring engine.

Scoring model
-------------
Every ring occurrence contributes points to some of its members:

  cycle          every member            +50  reason "cycle"
  fan-in/out     hub                     +30  reason "fan-in" / "fan-out"
                 each counterparty       +20  same reason
  shell-network  intermediaries only     +20  reason "shell"

Contributions are additive: an account in two cycles gets +100, while its
reasons stay de-duplicated.  Every ring membership is recorded in ring_ids.

The kingpin is always flagged (reason "kingpin") and floored at
KINGPIN_RISK_FLOOR before the final clamp to [0, MAX_RISK_SCORE].
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .config import (
    SCORE_CYCLE_MEMBER,
    SCORE_FAN_HUB,
    SCORE_FAN_COUNTERPARTY,
    SCORE_SHELL_INTERMEDIARY,
    KINGPIN_RISK_FLOOR,
    MAX_RISK_SCORE,
)

log = logging.getLogger(__name__)


def ring_contributions(ring: Dict) -> List[Tuple[str, str, int]]:
    """Return (account_id, reason, points) triples contributed by one ring."""
    pattern = ring["pattern_type"]
    members = ring["member_accounts"]

    if pattern == "cycle":
        return [(acc, "cycle", SCORE_CYCLE_MEMBER) for acc in members]

    if pattern in ("fan-in", "fan-out"):
        hub = ring.get("hub", members[0])
        return [
            (acc, pattern, SCORE_FAN_HUB if acc == hub else SCORE_FAN_COUNTERPARTY)
            for acc in members
        ]

    if pattern == "shell-network":
        intermediates = ring.get("intermediates", members[1:-1])
        return [(acc, "shell", SCORE_SHELL_INTERMEDIARY) for acc in intermediates]

    log.warning("Unknown pattern type %r in ring %s; ignored.", pattern, ring.get("ring_id"))
    return []


def calculate_scores(rings: List[Dict], kingpin: Optional[Dict] = None) -> Dict[str, Dict]:
    """
    Build a per-account suspicion score map.

    Parameters
    ----------
    rings   : ring list with ring_id assigned
    kingpin : output of kingpin_scorer.detect_kingpin(), or None

    Returns
    -------
    dict mapping account_id to:
        score    : int        – 0–MAX_RISK_SCORE, clamped
        reasons  : list[str]  – unique reasons in first-seen order
        ring_ids : list[str]  – all ring IDs this account belongs to
    """
    data: Dict[str, Dict] = {}

    def _entry(acc: str) -> Dict:
        if acc not in data:
            data[acc] = {"score": 0, "reasons": [], "ring_ids": []}
        return data[acc]

    for ring in rings:
        ring_id = ring.get("ring_id")
        for acc, reason, points in ring_contributions(ring):
            e = _entry(acc)
            e["score"] += points
            if reason not in e["reasons"]:
                e["reasons"].append(reason)
            if ring_id and ring_id not in e["ring_ids"]:
                e["ring_ids"].append(ring_id)

    if kingpin is not None:
        e = _entry(kingpin["account_id"])
        if "kingpin" not in e["reasons"]:
            e["reasons"].append("kingpin")
        e["score"] = max(e["score"], KINGPIN_RISK_FLOOR)

    for e in data.values():
        e["score"] = int(min(max(e["score"], 0), MAX_RISK_SCORE))

    log.info("Scoring complete: %d accounts scored", len(data))
    return data
