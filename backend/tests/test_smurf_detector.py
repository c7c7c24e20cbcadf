"""
Tests for fan-in / fan-out smurfing detection.
"""
from datetime import datetime, timedelta

from fintrace.smurf_detector import detect_smurfing


BASE = datetime(2024, 3, 1, 9, 0, 0)


class TestFanIn:
    """Many senders → one receiver."""

    def test_ten_senders_within_an_hour(self, make_frame, fan_in_10):
        """Exactly FAN_THRESHOLD senders form one ring of 11 members."""
        result = detect_smurfing(make_frame(fan_in_10))

        assert len(result["fan_in"]) == 1
        assert result["fan_out"] == []
        ring = result["fan_in"][0]
        assert ring["pattern_type"] == "fan-in"
        assert ring["risk_score"] == 85
        assert ring["hub"] == "R"
        assert ring["member_accounts"][0] == "R"
        assert len(ring["member_accounts"]) == 11
        assert set(ring["member_accounts"][1:]) == {f"S{i:02d}" for i in range(10)}
        assert ring["details"] == "10 senders → 1 receiver in 72h"

    def test_nine_senders_is_below_threshold(self, make_frame, fan_in_9):
        result = detect_smurfing(make_frame(fan_in_9))
        assert result["fan_in"] == []

    def test_repeat_sender_counts_once(self, make_frame, fan_in_9):
        """Ten transactions from nine distinct senders do not qualify."""
        rows = fan_in_9 + [("S00", "R", 500, fan_in_9[0][3])]
        assert detect_smurfing(make_frame(rows))["fan_in"] == []

    def test_senders_spread_beyond_window(self, make_frame):
        """Ten senders spaced 10h apart span 90h, wider than any 72h window."""
        rows = [
            (f"S{i:02d}", "R", 100, BASE + timedelta(hours=10 * i))
            for i in range(10)
        ]
        assert detect_smurfing(make_frame(rows))["fan_in"] == []

    def test_window_end_is_inclusive(self, make_frame):
        """A transaction exactly 72h after the window start still counts."""
        rows = [
            (f"S{i:02d}", "R", 100, BASE + timedelta(hours=8 * i))
            for i in range(9)
        ]
        rows.append(("S09", "R", 100, BASE + timedelta(hours=72)))
        assert len(detect_smurfing(make_frame(rows))["fan_in"]) == 1

    def test_qualifying_window_later_in_history(self, make_frame):
        """Early sparse activity does not hide a later burst."""
        rows = [("OLD", "R", 100, BASE - timedelta(days=30))]
        rows += [
            (f"S{i:02d}", "R", 100, BASE + timedelta(minutes=i))
            for i in range(10)
        ]
        rings = detect_smurfing(make_frame(rows))["fan_in"]

        assert len(rings) == 1
        assert "OLD" not in rings[0]["member_accounts"]

    def test_one_ring_per_receiver(self, make_frame):
        """Two separate bursts on the same receiver still give a single ring."""
        rows = [
            (f"S{i:02d}", "R", 100, BASE + timedelta(minutes=i))
            for i in range(10)
        ] + [
            (f"T{i:02d}", "R", 100, BASE + timedelta(days=10, minutes=i))
            for i in range(12)
        ]
        rings = detect_smurfing(make_frame(rows))["fan_in"]

        assert len(rings) == 1
        assert len(rings[0]["member_accounts"]) == 11


class TestFanOut:
    """One sender → many receivers."""

    def test_fan_out_detected(self, make_frame):
        rows = [
            ("D", f"M{i:02d}", 300, BASE + timedelta(hours=i))
            for i in range(12)
        ]
        result = detect_smurfing(make_frame(rows))

        assert result["fan_in"] == []
        assert len(result["fan_out"]) == 1
        ring = result["fan_out"][0]
        assert ring["pattern_type"] == "fan-out"
        assert ring["hub"] == "D"
        assert ring["member_accounts"][0] == "D"
        assert len(ring["member_accounts"]) == 13
        assert ring["details"] == "1 sender → 12 receivers in 72h"

    def test_ten_receivers_meet_threshold(self, make_frame):
        rows = [
            ("D", f"M{i:02d}", 300, BASE + timedelta(minutes=5 * i))
            for i in range(10)
        ]
        rings = detect_smurfing(make_frame(rows))["fan_out"]

        assert len(rings) == 1
        assert len(rings[0]["member_accounts"]) == 11
        assert rings[0]["details"] == "1 sender → 10 receivers in 72h"

    def test_nine_receivers_is_below_threshold(self, make_frame):
        rows = [
            ("D", f"M{i:02d}", 300, BASE + timedelta(minutes=5 * i))
            for i in range(9)
        ]
        assert detect_smurfing(make_frame(rows))["fan_out"] == []

    def test_empty_frame(self, make_frame):
        assert detect_smurfing(make_frame([])) == {"fan_in": [], "fan_out": []}
