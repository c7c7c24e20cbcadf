"""
Pytest configuration and shared fixtures for the forensics engine tests.
"""
from datetime import datetime, timedelta
from typing import Callable, List, Sequence

import pandas as pd
import pytest

from fintrace.graph_builder import build_graph


BASE_TIME = datetime(2024, 1, 15, 10, 0, 0)


def _frame(rows: Sequence[Sequence]) -> pd.DataFrame:
    """
    rows: (sender, receiver, amount, timestamp) or
          (transaction_id, sender, receiver, amount, timestamp)
    """
    records = []
    for i, row in enumerate(rows):
        if len(row) == 4:
            row = (f"TX_{i:04d}",) + tuple(row)
        tx_id, sender, receiver, amount, ts = row
        records.append({
            "transaction_id": tx_id,
            "sender_id":      sender,
            "receiver_id":    receiver,
            "amount":         float(amount),
            "timestamp":      pd.Timestamp(ts),
        })
    return pd.DataFrame.from_records(
        records,
        columns=["transaction_id", "sender_id", "receiver_id", "amount", "timestamp"],
    )


@pytest.fixture
def make_frame() -> Callable[[Sequence[Sequence]], pd.DataFrame]:
    """Build a validated transaction frame from compact row tuples."""
    return _frame


@pytest.fixture
def make_graph() -> Callable:
    """Build a frozen transaction graph from compact row tuples."""
    return lambda rows: build_graph(_frame(rows))


@pytest.fixture
def cycle_rows() -> List[tuple]:
    """A1→A2→A3→A4→A5→A1 with equal amounts."""
    accounts = ["A1", "A2", "A3", "A4", "A5"]
    return [
        (accounts[i], accounts[(i + 1) % 5], 5000, BASE_TIME + timedelta(hours=i))
        for i in range(5)
    ]


def fan_in_rows(n_senders: int, receiver: str = "R") -> List[tuple]:
    """n distinct senders each sending once to receiver within one hour."""
    return [
        (f"S{i:02d}", receiver, 900 + i, BASE_TIME + timedelta(minutes=5 * i))
        for i in range(n_senders)
    ]


@pytest.fixture
def fan_in_10() -> List[tuple]:
    return fan_in_rows(10)


@pytest.fixture
def fan_in_9() -> List[tuple]:
    return fan_in_rows(9)


@pytest.fixture
def shell_rows() -> List[tuple]:
    """
    X1→X2→X3→X4 layering chain.  X2 and X3 have exactly two transactions;
    X1 and X4 are busy (>= 10 transactions each).
    """
    rows = [
        ("X1", "X2", 40000, BASE_TIME),
        ("X2", "X3", 39000, BASE_TIME + timedelta(hours=1)),
        ("X3", "X4", 38000, BASE_TIME + timedelta(hours=2)),
    ]
    # Busy endpoints, spread over weeks so no fan pattern forms.
    for i in range(10):
        rows.append((f"IN{i:02d}", "X1", 1000, BASE_TIME - timedelta(days=5 * (i + 1))))
        rows.append(("X4", f"OUT{i:02d}", 1000, BASE_TIME + timedelta(days=5 * (i + 1))))
    return rows


@pytest.fixture
def fan_in_factory() -> Callable[..., List[tuple]]:
    return fan_in_rows
