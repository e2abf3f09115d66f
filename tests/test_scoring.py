"""Tests for scoring module."""
import pytest

from scoring import Penalty, severity_penalties, weighted_penalty_score


class TestWeightedPenaltyScore:

    def test_no_penalties_is_perfect(self):
        assert weighted_penalty_score([]) == 100.0

    def test_partial_shortfall(self):
        penalties = [Penalty(25.0), Penalty(10.0, 0.5)]
        assert weighted_penalty_score(penalties) == pytest.approx(70.0)

    def test_clamped_at_floor(self):
        assert weighted_penalty_score([Penalty(25.0)] * 5) == 0.0

    def test_clamped_at_ceiling(self):
        assert weighted_penalty_score([Penalty(10.0, -1.0)]) == 100.0


class TestSeverityPenalties:

    def test_weights(self):
        penalties = severity_penalties(["critical", "warning", "info"])
        assert [p.weight for p in penalties] == [25.0, 10.0, 2.0]

    def test_unknown_severity_costs_nothing(self):
        assert weighted_penalty_score(severity_penalties(["bogus"])) == 100.0
