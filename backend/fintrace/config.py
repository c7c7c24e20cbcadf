"""
config.py – Centralised configuration via environment variables.
All tunable thresholds live here so nothing is scattered across modules.
"""
import os


# ── File limits ────────────────────────────────────────────────────────────────
MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "20"))
MAX_FILE_SIZE_BYTES: int = MAX_FILE_SIZE_MB * 1024 * 1024
MAX_ROWS: int = int(os.getenv("MAX_ROWS", "10000"))

# ── API ────────────────────────────────────────────────────────────────────────
CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "*").split(",")

# ── Cycle detection ────────────────────────────────────────────────────────────
CYCLE_MIN_LEN: int = 3
CYCLE_MAX_LEN: int = 5
MAX_CYCLES: int = int(os.getenv("MAX_CYCLES", "5000"))
CYCLE_TIMEOUT_SECONDS: float = float(os.getenv("CYCLE_TIMEOUT_SECONDS", "5.0"))
# Upper bound on DFS frames expanded per call; dense graphs stop here.
CYCLE_MAX_STEPS: int = int(os.getenv("CYCLE_MAX_STEPS", "2000000"))

# ── Smurfing detection ─────────────────────────────────────────────────────────
FAN_THRESHOLD: int = int(os.getenv("FAN_THRESHOLD", "10"))
SMURF_WINDOW_HOURS: int = int(os.getenv("SMURF_WINDOW_HOURS", "72"))

# ── Shell detection ────────────────────────────────────────────────────────────
# Intermediate accounts must have a dataset-wide tx count in [SHELL_MIN_TX, SHELL_MAX_TX].
SHELL_MIN_TX: int = int(os.getenv("SHELL_MIN_TX", "2"))
SHELL_MAX_TX: int = int(os.getenv("SHELL_MAX_TX", "3"))
SHELL_MIN_CHAIN: int = 3          # nodes, endpoints included
SHELL_MAX_CHAIN: int = int(os.getenv("SHELL_MAX_CHAIN", "6"))
MAX_SHELL_CHAINS: int = int(os.getenv("MAX_SHELL_CHAINS", "1000"))
SHELL_TIMEOUT_SECONDS: float = float(os.getenv("SHELL_TIMEOUT_SECONDS", "5.0"))
SHELL_MAX_STEPS: int = int(os.getenv("SHELL_MAX_STEPS", "2000000"))

# ── Kingpin ────────────────────────────────────────────────────────────────────
KINGPIN_MIN_CONNECTIONS: int = int(os.getenv("KINGPIN_MIN_CONNECTIONS", "5"))
KINGPIN_FLOW_WEIGHT: float = 0.7
KINGPIN_CENTRALITY_WEIGHT: float = 0.3
KINGPIN_FLOW_NORMALISER: float = 1_000_000.0
KINGPIN_RISK_FLOOR: int = 95

# ── Account scoring ────────────────────────────────────────────────────────────
# Points added to an account per ring occurrence (accumulated, never de-duplicated).
SCORE_CYCLE_MEMBER: int = 50
SCORE_FAN_HUB: int = 30
SCORE_FAN_COUNTERPARTY: int = 20
SCORE_SHELL_INTERMEDIARY: int = 20

MAX_RISK_SCORE: int = 99

# Display-only heuristic risk for graph nodes.
HEURISTIC_TX_HIGH: int = 50
HEURISTIC_TX_MEDIUM: int = 20
HEURISTIC_FLOW_HIGH: float = 500_000.0
HEURISTIC_FLOW_MEDIUM: float = 100_000.0
HEURISTIC_RATIO_HIGH: float = 5.0
HEURISTIC_RATIO_LOW: float = 0.2
SUSPICIOUS_RISK_FLOOR: int = 70
SUSPICIOUS_RISK_BOOST: int = 15

# ── Risk weights for fraud_rings ───────────────────────────────────────────────
# Cycle rings score CYCLE_BASE_RISK + cycle length.
CYCLE_BASE_RISK: int = 90
RING_RISK: dict = {
    "fan-in":        85,
    "fan-out":       85,
    "shell-network": 75,
}
