"""Development prompts attached to each snapshot for downstream display."""

from __future__ import annotations

from typing import Mapping

COMPOSITE_LABELS: dict[str, str] = {
    "bqi": "Bat Quality",
    "fqi": "Fielding Quality",
    "pei": "Pitching Execution",
    "decision": "Decision Making",
    "competitive_execution": "Competitive Execution",
}

MAX_PROMPTS = 4
DATA_PROFILE_SESSIONS = 30


def development_prompts(
    composites: Mapping[str, float],
    integrity_score: float,
    trend_direction: str,
    sessions_count: int,
    min_integrity: float = 80.0,
    min_games: int = 60,
) -> list[str]:
    prompts: list[str] = []
    if composites:
        ordered = sorted(composites.items(), key=lambda kv: kv[1])
        weakest_name, weakest = ordered[0]
        strongest_name, strongest = ordered[-1]
        prompts.append(
            f"Focus on {COMPOSITE_LABELS.get(weakest_name, weakest_name)}: "
            f"it's your lowest composite at {round(weakest)}"
        )
        if strongest > 60:
            prompts.append(
                f"{COMPOSITE_LABELS.get(strongest_name, strongest_name)} is your strength at "
                f"{round(strongest)}, leverage it in games"
            )

    if integrity_score < min_integrity:
        prompts.append(f"Maintain consistent self-grading to boost your integrity score above {round(min_integrity)}")

    if trend_direction == "rising":
        prompts.append("Your trend is rising, maintain consistency to lock in your gains")
    elif trend_direction == "dropping":
        prompts.append("Your trend is dipping, review recent session footage and intensify quality reps")

    if sessions_count < DATA_PROFILE_SESSIONS:
        prompts.append(f"Log {DATA_PROFILE_SESSIONS - sessions_count} more sessions to strengthen your data profile")
    elif sessions_count < min_games:
        prompts.append(f"{min_games - sessions_count} sessions until ranking eligibility, keep building")

    return prompts[:MAX_PROMPTS]
