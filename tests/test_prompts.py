from __future__ import annotations

from ranking.services.prompts import MAX_PROMPTS, development_prompts

COMPOSITES = {"bqi": 72.0, "fqi": 48.0, "pei": 60.0, "decision": 66.0, "competitive_execution": 70.0}


def test_weakest_and_strongest_composites():
    prompts = development_prompts(COMPOSITES, 100.0, "stable", 65)
    assert prompts[0].startswith("Focus on Fielding Quality")
    assert "48" in prompts[0]
    assert prompts[1].startswith("Bat Quality is your strength at 72")


def test_strength_prompt_needs_score_above_60():
    prompts = development_prompts({"bqi": 40.0, "fqi": 30.0}, 100.0, "stable", 65)
    assert len(prompts) == 1


def test_integrity_and_trend_prompts():
    prompts = development_prompts({}, 70.0, "dropping", 65)
    assert any("integrity score above 80" in p for p in prompts)
    assert any("dipping" in p for p in prompts)


def test_session_count_prompts():
    assert development_prompts({}, 100.0, "stable", 12) == [
        "Log 18 more sessions to strengthen your data profile"
    ]
    assert development_prompts({}, 100.0, "stable", 45) == ["15 sessions until ranking eligibility, keep building"]
    assert development_prompts({}, 100.0, "stable", 60) == []


def test_prompts_capped():
    prompts = development_prompts(COMPOSITES, 50.0, "rising", 5)
    assert len(prompts) == MAX_PROMPTS
