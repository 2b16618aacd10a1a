"""Tests for per-athlete session aggregation."""

from __future__ import annotations

from datetime import date

import pytest

from ranking.services.aggregator import (
    SessionRecord,
    aggregate_sessions,
    delta_maturity_index,
    fatigue_correlation_flag,
    game_practice_ratio,
    grading_delta,
    session_score,
)

FULL_A = {"bqi": 80, "fqi": 70, "pei": 60, "decision": 90, "competitive_execution": 85}
FULL_B = {"bqi": 60, "fqi": 50, "pei": 40, "decision": 70, "competitive_execution": 65}


def _rec(indexes=None, player=None, coach=None, session_type="team_practice"):
    return SessionRecord(
        athlete_id=1,
        sport="baseball",
        session_date=date(2026, 10, 1),
        sub_indexes=indexes or {},
        player_grade=player,
        coach_grade=coach,
        session_type=session_type,
    )


def test_session_score_weighted():
    assert session_score(FULL_A) == pytest.approx(77.5)
    assert session_score(FULL_B) == pytest.approx(57.5)


def test_session_score_missing_indexes_default_zero():
    assert session_score({"bqi": 100}) == pytest.approx(25.0)
    assert session_score({}) == 0.0
    assert session_score(None) == 0.0


def test_session_score_invalid_values_default_zero():
    assert session_score({"bqi": "n/a", "fqi": None, "pei": float("nan"), "decision": True}) == 0.0
    assert session_score({"bqi": "80"}) == pytest.approx(20.0)


def test_uniform_sub_indexes_score_equals_level():
    flat = {k: 67 for k in FULL_A}
    assert session_score(flat) == pytest.approx(67.0)


def test_aggregate_mean_of_session_scores():
    result = aggregate_sessions([_rec(FULL_A), _rec(FULL_B)])
    assert result is not None
    assert result.session_count == 2
    assert result.avg_score == pytest.approx(67.5)
    assert result.composites["bqi"] == pytest.approx(70.0)
    assert result.composites["competitive_execution"] == pytest.approx(75.0)


def test_aggregate_empty_returns_none():
    assert aggregate_sessions([]) is None


def test_grading_delta_only_dual_graded():
    sessions = [_rec(player=70, coach=60), _rec(player=50, coach=56), _rec(player=90), _rec(coach=40)]
    assert grading_delta(sessions) == pytest.approx(8.0)
    result = aggregate_sessions(sessions)
    assert result.dual_graded_count == 2
    assert result.grading_delta == pytest.approx(8.0)


def test_grading_delta_zero_without_pairs():
    assert grading_delta([_rec(player=70), _rec()]) == 0.0


def test_delta_maturity_requires_three_pairs():
    assert delta_maturity_index([_rec(player=70, coach=60), _rec(player=60, coach=60)]) is None
    sessions = [_rec(player=70, coach=60), _rec(player=60, coach=60), _rec(player=65, coach=60)]
    assert delta_maturity_index(sessions) == pytest.approx(4.08, abs=0.01)


def test_game_practice_ratio():
    sessions = [_rec(session_type="game"), _rec(session_type="live_scrimmage"), _rec(), _rec(), _rec()]
    assert game_practice_ratio(sessions) == pytest.approx(2 / 3)
    assert game_practice_ratio([_rec(session_type="game")]) is None


def test_aggregate_is_deterministic():
    sessions = [_rec(FULL_A, 70, 65), _rec(FULL_B, 55, 60)]
    assert aggregate_sessions(sessions) == aggregate_sessions(list(sessions))


@pytest.mark.parametrize("payload", [[80, 70], "bqi=80", 42])
def test_session_score_non_mapping_payload_is_zero(payload, caplog):
    with caplog.at_level("WARNING", logger="ranking.services.aggregator"):
        assert session_score(payload) == 0.0
    assert "not an object" in caplog.text


def test_aggregate_tolerates_non_mapping_payload():
    result = aggregate_sessions([_rec({"bqi": 80}), _rec([80, 70])])
    assert result.session_count == 2
    assert result.avg_score == pytest.approx(10.0)
    assert result.composites["bqi"] == pytest.approx(40.0)
    assert result.composites["fqi"] == 0.0


def _tired(grade=None, player=None, state=None):
    return SessionRecord(
        athlete_id=1,
        sport="baseball",
        session_date=date(2026, 10, 1),
        player_grade=player,
        effective_grade=grade,
        fatigue_state={"body": 1, "overall": 3} if state is None else state,
    )


def test_fatigue_flag_needs_three_tired_sessions():
    assert fatigue_correlation_flag([_tired(80), _tired(80)]) is False
    assert fatigue_correlation_flag([_tired(80), _tired(80), _tired(80)]) is True


def test_fatigue_flag_requires_majority_above_sixty():
    # 2 of 3 high is 66%, over the 60% share
    assert fatigue_correlation_flag([_tired(80), _tired(61), _tired(50)]) is True
    # 3 of 5 high is exactly 60%, not over it
    assert fatigue_correlation_flag([_tired(80)] * 3 + [_tired(60)] * 2) is False


def test_fatigue_flag_falls_back_to_player_grade():
    sessions = [_tired(player=70.0) for _ in range(3)]
    assert fatigue_correlation_flag(sessions) is True
    assert fatigue_correlation_flag([_tired() for _ in range(3)]) is False


def test_fatigue_flag_ignores_rested_and_malformed_states():
    rested = [_tired(80, state={"body": 4, "overall": 5}) for _ in range(3)]
    malformed = [_tired(80, state=["tired"]) for _ in range(3)]
    overall_low = [_tired(80, state={"overall": 2}) for _ in range(3)]
    assert fatigue_correlation_flag(rested) is False
    assert fatigue_correlation_flag(malformed) is False
    assert fatigue_correlation_flag(overall_low) is True
    assert aggregate_sessions(overall_low).fatigue_correlation_flag is True
