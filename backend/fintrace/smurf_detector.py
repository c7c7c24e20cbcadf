"""
smurf_detector.py – Detect smurfing patterns (fan-in / fan-out).

Smurfing (structuring)
-----------------------
  Fan-in  : FAN_THRESHOLD+ unique senders → 1 receiver within a 72-hour window.
  Fan-out : 1 sender → FAN_THRESHOLD+ unique receivers within a 72-hour window.

Windows are anchored at each transaction in timestamp order and span
[t, t + SMURF_WINDOW_HOURS], both ends inclusive.  The first window that
reaches the threshold is reported and the anchor is not scanned further,
so at most one ring exists per (pattern, anchor).

Performance
-----------
Two-pointer window: the right edge only moves forward, O(n) per group.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Dict

import pandas as pd

from .config import FAN_THRESHOLD, SMURF_WINDOW_HOURS, RING_RISK

log = logging.getLogger(__name__)


def _first_qualifying_window(
    sorted_times: list,
    sorted_counterparts: list,
    window_td: timedelta,
    threshold: int,
) -> list:
    """
    Scan windows starting at each transaction and return the distinct
    counterparties (in arrival order) of the first window holding
    >= threshold of them.  Empty list if no window qualifies.
    """
    n = len(sorted_times)
    if n < threshold:
        return []

    right = 0
    window: Dict[str, int] = {}

    for left in range(n):
        window_end = sorted_times[left] + window_td
        while right < n and sorted_times[right] <= window_end:
            cp = sorted_counterparts[right]
            window[cp] = window.get(cp, 0) + 1
            right += 1

        if len(window) >= threshold:
            return list(window.keys())

        lcp = sorted_counterparts[left]
        window[lcp] -= 1
        if window[lcp] == 0:
            del window[lcp]

    return []


def _detect_fan(
    df: pd.DataFrame,
    anchor_col: str,
    counterpart_col: str,
    pattern: str,
    window_td: timedelta,
) -> List[Dict]:
    rings: List[Dict] = []

    for anchor, grp in df.groupby(anchor_col, sort=True):
        if len(grp) < FAN_THRESHOLD:
            continue
        grp = grp.sort_values("timestamp", kind="stable")
        counterparts = _first_qualifying_window(
            grp["timestamp"].tolist(),
            grp[counterpart_col].tolist(),
            window_td,
            FAN_THRESHOLD,
        )
        if not counterparts:
            continue

        if pattern == "fan-in":
            details = f"{len(counterparts)} senders → 1 receiver in {SMURF_WINDOW_HOURS}h"
        else:
            details = f"1 sender → {len(counterparts)} receivers in {SMURF_WINDOW_HOURS}h"

        rings.append({
            "member_accounts": [anchor] + counterparts,
            "pattern_type":    pattern,
            "risk_score":      RING_RISK[pattern],
            "details":         details,
            "hub":             anchor,
        })

    return rings


def detect_smurfing(df: pd.DataFrame) -> Dict[str, List[Dict]]:
    """
    Detect fan-in and fan-out smurfing patterns.

    Returns
    -------
    {"fan_in": [...], "fan_out": [...]} where each ring dict has keys:
        member_accounts : list[str]  – hub first, then counterparties
        pattern_type    : "fan-in" | "fan-out"
        risk_score      : int
        details         : str
        hub             : str        – the aggregator / disperser
    """
    if df.empty:
        log.info("Smurfing detection: 0 rings found (empty input)")
        return {"fan_in": [], "fan_out": []}

    window_td = timedelta(hours=SMURF_WINDOW_HOURS)

    fan_in = _detect_fan(df, "receiver_id", "sender_id", "fan-in", window_td)
    fan_out = _detect_fan(df, "sender_id", "receiver_id", "fan-out", window_td)

    log.info(
        "Smurfing detection: %d fan-in + %d fan-out rings found",
        len(fan_in),
        len(fan_out),
    )
    return {"fan_in": fan_in, "fan_out": fan_out}
