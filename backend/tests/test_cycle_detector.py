"""
Tests for circular fund routing detection.
"""
from datetime import datetime, timedelta

from fintrace.cycle_detector import canonical_cycle_key, detect_cycles
from fintrace.utils import SearchBudget


def _ring_rows(accounts, start=datetime(2024, 1, 1)):
    n = len(accounts)
    return [
        (accounts[i], accounts[(i + 1) % n], 1000, start + timedelta(hours=i))
        for i in range(n)
    ]


def _assert_closed(G, members):
    for i, acc in enumerate(members):
        nxt = members[(i + 1) % len(members)]
        assert G.has_edge(acc, nxt), f"{acc}→{nxt} missing"


class TestCanonicalKey:
    def test_rotations_share_a_key(self):
        assert canonical_cycle_key(["A", "B", "C"]) == canonical_cycle_key(["B", "C", "A"])
        assert canonical_cycle_key(["A", "B", "C"]) == canonical_cycle_key(["C", "A", "B"])

    def test_mirror_shares_a_key(self):
        assert canonical_cycle_key(["A", "B", "C", "D"]) == canonical_cycle_key(["A", "D", "C", "B"])
        assert canonical_cycle_key(["B", "A", "D", "C"]) == canonical_cycle_key(["A", "B", "C", "D"])

    def test_different_cycles_differ(self):
        assert canonical_cycle_key(["A", "B", "C", "D"]) != canonical_cycle_key(["A", "C", "B", "D"])


class TestDetectCycles:
    """Tests for detect_cycles."""

    def test_five_node_cycle(self, make_graph, cycle_rows):
        """A1→…→A5→A1 is reported once with risk 95."""
        G = make_graph(cycle_rows)
        rings = detect_cycles(G)

        assert len(rings) == 1
        ring = rings[0]
        assert ring["pattern_type"] == "cycle"
        assert ring["member_accounts"] == ["A1", "A2", "A3", "A4", "A5"]
        assert ring["risk_score"] == 95
        assert ring["details"] == "5-node circular routing"

    def test_risk_scales_with_length(self, make_graph):
        G = make_graph(_ring_rows(["P", "Q", "R"]) + _ring_rows(["W", "X", "Y", "Z"]))
        scores = sorted(r["risk_score"] for r in detect_cycles(G))
        assert scores == [93, 94]

    def test_length_bounds(self, make_graph):
        """2-cycles and 6-cycles are out of range."""
        rows = _ring_rows(["A", "B"]) + _ring_rows(["C1", "C2", "C3", "C4", "C5", "C6"])
        assert detect_cycles(make_graph(rows)) == []

    def test_rotation_independent_of_start(self, make_graph):
        """The cycle is reported smallest-account first regardless of input order."""
        G = make_graph(_ring_rows(["N3", "N1", "N2"]))
        rings = detect_cycles(G)

        assert len(rings) == 1
        assert rings[0]["member_accounts"] == ["N1", "N2", "N3"]
        _assert_closed(G, rings[0]["member_accounts"])

    def test_mirror_cycle_reported_once(self, make_graph):
        """A→B→C→A and A→C→B→A collapse to one ring."""
        G = make_graph(_ring_rows(["A", "B", "C"]) + _ring_rows(["A", "C", "B"]))
        rings = detect_cycles(G)
        assert len(rings) == 1

    def test_overlapping_cycles_all_found(self, make_graph):
        """Cycles sharing a hub are each reported, even after the hub is rooted."""
        rows = (
            _ring_rows(["H", "B1", "B2"])
            + _ring_rows(["H", "C1", "C2", "C3"])
            + _ring_rows(["D1", "D2", "D3"])
        )
        G = make_graph(rows)
        rings = detect_cycles(G)

        members = sorted(tuple(r["member_accounts"]) for r in rings)
        assert members == [
            ("B1", "B2", "H"),
            ("C1", "C2", "C3", "H"),
            ("D1", "D2", "D3"),
        ]
        for ring in rings:
            assert 3 <= len(ring["member_accounts"]) <= 5
            _assert_closed(G, ring["member_accounts"])

    def test_parallel_edges_do_not_duplicate(self, make_graph):
        rows = _ring_rows(["A", "B", "C"]) * 3
        rows = [(f"T{i}",) + row for i, row in enumerate(rows)]
        assert len(detect_cycles(make_graph(rows))) == 1

    def test_no_rotation_or_mirror_duplicates_in_dense_graph(self, make_graph):
        accounts = ["K1", "K2", "K3", "K4", "K5"]
        rows = [
            (a, b, 100, datetime(2024, 1, 1))
            for a in accounts for b in accounts if a != b
        ]
        G = make_graph(rows)
        rings = detect_cycles(G)

        keys = [canonical_cycle_key(r["member_accounts"]) for r in rings]
        assert len(keys) == len(set(keys))
        for ring in rings:
            assert 3 <= len(ring["member_accounts"]) <= 5
            _assert_closed(G, ring["member_accounts"])

    def test_budget_exhaustion_returns_partial_results(self, make_graph):
        accounts = [f"K{i}" for i in range(8)]
        rows = [
            (a, b, 100, datetime(2024, 1, 1))
            for a in accounts for b in accounts if a != b
        ]
        G = make_graph(rows)

        full = detect_cycles(G)
        partial = detect_cycles(G, budget=SearchBudget(max_steps=50, timeout_seconds=0))

        assert len(partial) < len(full)
        full_keys = {canonical_cycle_key(r["member_accounts"]) for r in full}
        assert {canonical_cycle_key(r["member_accounts"]) for r in partial} <= full_keys

    def test_empty_graph(self, make_graph):
        assert detect_cycles(make_graph([])) == []
