from __future__ import annotations

from ranking.config import ScoringPolicy
from ranking.services.eligibility import coach_validation_ratio, evaluate_eligibility

POLICY = ScoringPolicy()


def test_all_gates_met():
    gates = evaluate_eligibility(60, 80.0, 24, POLICY)
    assert gates.games_minimum_met
    assert gates.integrity_threshold_met
    assert gates.coach_validation_met
    assert gates.data_span_met
    assert gates.ranking_eligible is True


def test_two_sessions_not_eligible():
    gates = evaluate_eligibility(2, 100.0, 0, POLICY)
    assert gates.games_minimum_met is False
    assert gates.data_span_met is False
    assert gates.coach_validation_met is False
    assert gates.ranking_eligible is False


def test_data_span_without_games_minimum():
    gates = evaluate_eligibility(14, 100.0, 14, POLICY)
    assert gates.data_span_met is True
    assert gates.games_minimum_met is False
    assert gates.ranking_eligible is False


def test_integrity_gate_boundary():
    assert evaluate_eligibility(70, 79.9, 70, POLICY).integrity_threshold_met is False
    assert evaluate_eligibility(70, 80.0, 70, POLICY).integrity_threshold_met is True


def test_coach_validation_ratio_boundary():
    assert coach_validation_ratio(100, 40) == 0.40
    assert evaluate_eligibility(100, 90.0, 40, POLICY).coach_validation_met is True
    assert evaluate_eligibility(100, 90.0, 39, POLICY).coach_validation_met is False


def test_coach_validation_zero_sessions():
    assert coach_validation_ratio(0, 0) == 0.0


def test_as_columns_includes_aggregate():
    cols = evaluate_eligibility(60, 80.0, 24, POLICY).as_columns()
    assert set(cols) == {
        "games_minimum_met",
        "integrity_threshold_met",
        "coach_validation_met",
        "data_span_met",
        "ranking_eligible",
    }
    assert cols["ranking_eligible"] is True


def test_thresholds_configurable():
    policy = ScoringPolicy(min_games=5, min_data_span=3, min_coach_validation=0.0)
    assert evaluate_eligibility(5, 100.0, 0, policy).ranking_eligible is True
