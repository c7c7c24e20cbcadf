"""
models.py – Pydantic request / response models.
Defines the exact JSON contract the API accepts and returns.
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class Transaction(BaseModel):
    """A single input transfer. Immutable once parsed."""
    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(..., min_length=1)
    sender_id: str = Field(..., min_length=1)
    receiver_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0.0)
    timestamp: datetime


class SuspiciousAccount(BaseModel):
    """
    Mandatory fields: account_id, risk_score, reasons, patterns_detected.
    ring_ids lists every ring the account belongs to.
    """
    model_config = ConfigDict(extra="allow")

    account_id: str
    risk_score: int = Field(..., ge=0, le=99)
    reasons: List[str]
    patterns_detected: int
    ring_ids: List[str] = []


class FraudRing(BaseModel):
    model_config = ConfigDict(extra="allow")

    ring_id: str
    pattern_type: Literal["cycle", "fan-in", "fan-out", "shell-network"]
    member_accounts: List[str]
    risk_score: int = Field(..., ge=0, le=99)
    details: str


class PatternsBreakdown(BaseModel):
    cycles: int
    fan_in: int
    fan_out: int
    shell_networks: int


class AnalysisSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_accounts_analyzed: int
    suspicious_accounts_flagged: int
    fraud_rings_detected: int
    patterns_breakdown: PatternsBreakdown
    processing_time_seconds: float = 0.0


class Kingpin(BaseModel):
    account_id: str
    total_flow: float
    total_sent: float
    total_received: float
    connections: int
    degree_centrality: float
    score: float


class GraphNode(BaseModel):
    id: str
    tx_count: int
    total_sent: float
    total_received: float
    suspicious: bool
    is_kingpin: bool
    risk: int = Field(..., ge=0, le=99)
    ring_ids: List[str] = []


class GraphEdge(BaseModel):
    source: str
    target: str
    total_amount: float
    tx_count: int


class GraphData(BaseModel):
    nodes: List[GraphNode]
    edges: List[GraphEdge]


class ParseStats(BaseModel):
    total_rows: int
    valid_rows: int
    dropped_rows: int
    duplicate_tx_ids: int
    self_transactions: int
    negative_amounts: int
    warnings: List[str] = []


class AnalysisResult(BaseModel):
    suspicious_accounts: List[SuspiciousAccount]
    fraud_rings: List[FraudRing]
    summary: AnalysisSummary
    kingpin: Optional[Kingpin] = None
    graph: Optional[GraphData] = None
    parse_stats: Optional[ParseStats] = None
