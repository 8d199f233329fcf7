"""
Plain-language narrative: working hypothesis, insight cards, and the
weekly reflection.
"""

from typing import Dict, List, Optional

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import compute_cognitive_load, compute_raw_loads
from cogload.signals import compute_stability_index, population_std, recent_window


# ---------------------------------------------------------------------------
# Hypothesis
# ---------------------------------------------------------------------------

def generate_hypothesis(
    checkins: CheckInSequence,
    load: Optional[Dict] = None,
    stability: Optional[Dict] = None,
    cfg: CogloadConfig | None = None,
) -> str:
    """One-sentence working hypothesis about the current load pattern."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    nc = cfg.narrative
    df = to_frame(checkins)

    if len(df) == 0:
        return (
            "Awaiting initial cognitive data to begin pattern analysis. "
            "Submit your first check-in to activate the modeling engine."
        )
    if len(df) < nc.hypothesis_min_entries:
        return (
            "Preliminary calibration in progress. Early signals suggest initial "
            "baseline formation. More data points will refine hypothesis generation."
        )

    if load is None:
        load = compute_cognitive_load(df, cfg)
    if stability is None:
        stability = compute_stability_index(df, cfg)

    recent = recent_window(df, nc.window)
    avg_deadline = float(recent["deadline_pressure"].mean())
    avg_sleep = float(recent["sleep_hours"].mean())

    text = f"Your cognitive system is operating at {load['tier']} load tolerance"
    if stability["score"] < nc.volatile_stability:
        cause = (
            "deadline reactivity" if avg_deadline > nc.reactive_deadline
            else "inconsistent recovery patterns"
        )
        text += f", but volatility suggests {cause}"
    else:
        text += f" with {stability['label'].lower()} pattern regularity"
    if avg_sleep < nc.low_sleep:
        text += ". Sleep deficit may be constraining recovery buffering capacity"
    return text + "."


# ---------------------------------------------------------------------------
# Insight cards
# ---------------------------------------------------------------------------

def generate_insights(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> List[Dict[str, str]]:
    """
    Short observation cards over the last week.

    Each card is {"type", "title", "body"} with type one of
    suggestion / pattern / recovery. Empty below 2 entries; a single
    "Steady patterns" card when nothing else fires.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    nc = cfg.narrative
    df = to_frame(checkins)
    if len(df) < nc.insights_min_entries:
        return []

    recent = recent_window(df, nc.window)
    insights = []

    if recent["sleep_hours"].mean() < nc.low_sleep:
        insights.append({
            "type": "suggestion",
            "title": "Sleep consistency",
            "body": "Average sleep below 6.5 hours. Small improvements can meaningfully reduce cognitive load.",
        })
    if recent["focus_hours"].mean() > nc.long_focus:
        insights.append({
            "type": "pattern",
            "title": "Extended focus periods",
            "body": "Averaging over 8 hours of focused work. Cognitive reserves may benefit from shorter blocks.",
        })
    if recent["task_switching"].mean() > nc.high_switching:
        insights.append({
            "type": "suggestion",
            "title": "Task batching opportunity",
            "body": "High task switching detected. Grouping similar tasks could reduce cognitive friction.",
        })

    if len(recent) >= 3:
        pressure = (recent["deadline_pressure"] + recent["task_switching"]).to_numpy()[-3:]
        if pressure[2] < pressure[0] and pressure[1] < pressure[0]:
            insights.append({
                "type": "recovery",
                "title": "Recovery signal detected",
                "body": "Recent entries show decreasing pressure. Positive for cognitive restoration.",
            })

    if not insights:
        insights.append({
            "type": "pattern",
            "title": "Steady patterns",
            "body": "Consistent patterns detected. Stability is a strong foundation for sustained performance.",
        })
    return insights


# ---------------------------------------------------------------------------
# Weekly reflection
# ---------------------------------------------------------------------------

def _pattern_class(sigma: float, cfg: CogloadConfig) -> str:
    nc = cfg.narrative
    if sigma < nc.consistent_sigma:
        return "consistent"
    if sigma < nc.variable_sigma:
        return "variable"
    return "volatile"


def _elasticity_class(week, sigma: float, cfg: CogloadConfig) -> str:
    """Load spread relative to input spread."""
    nc = cfg.narrative
    if len(week) < 3:
        return "moderate"
    inputs = (week["focus_hours"] + week["deadline_pressure"] / 10.0).to_numpy()
    ratio = sigma / max(population_std(inputs), 1.0)
    if ratio > nc.high_elasticity_ratio:
        return "high"
    if ratio > nc.moderate_elasticity_ratio:
        return "moderate"
    return "low"


def generate_weekly_reflection(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> str:
    """Markdown-flavored reflection over the last seven entries."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    nc = cfg.narrative
    week = recent_window(to_frame(checkins), nc.window)
    n = len(week)
    if n == 0:
        return "Complete a few check-ins to receive your weekly reflection."

    loads = compute_raw_loads(week, cfg).to_numpy()
    sigma = population_std(loads)
    pattern = _pattern_class(sigma, cfg)
    elasticity = _elasticity_class(week, sigma, cfg)
    avg_sleep = float(week["sleep_hours"].mean())

    deadline = week["deadline_pressure"]
    high_pressure_days = int((deadline > nc.high_pressure_deadline).sum())
    recovery_days = int(((week["focus_hours"] < nc.recovery_focus) & (deadline < nc.recovery_deadline)).sum())
    clear_under_pressure = int(((deadline > nc.pressured_deadline) & (week["mental_clarity"] >= nc.clear_clarity)).sum())

    if recovery_days >= 2:
        buffering = "adequate"
    elif recovery_days == 1:
        buffering = "limited"
    else:
        buffering = "minimal"

    if clear_under_pressure >= 2:
        resilience = "You maintained mental clarity under pressure, a strong resilience marker."
    elif high_pressure_days >= 2:
        resilience = "Mental clarity decreased under pressure, suggesting limited resilience buffering."
    else:
        resilience = ""

    plural = "s" if n > 1 else ""
    parts = [
        f"**Pattern Classification:** {pattern.capitalize()} load pattern across {n} check-in{plural}.\n\n",
        "**Volatility Interpretation:** ",
    ]
    if pattern == "volatile":
        parts.append(f"High fluctuation (σ = {sigma:.1f}) suggests reactive load patterns.\n\n")
    elif pattern == "variable":
        parts.append(f"Moderate variation (σ = {sigma:.1f}) within manageable range.\n\n")
    else:
        parts.append(f"Low variation (σ = {sigma:.1f}) indicates stable baseline.\n\n")
    parts.append(f"**Load Elasticity:** {elasticity} cognitive elasticity. Recovery buffering is {buffering}.\n\n")
    if resilience:
        parts.append(f"**Resilience Markers:** {resilience}\n\n")
    if avg_sleep < nc.sleep_note_hours:
        parts.append(f"Sleep averaged {avg_sleep:.1f} hours. Improvements could have outsized benefits. ")
    if high_pressure_days >= nc.crowded_pressure_days:
        parts.append(f"{high_pressure_days} days showed high deadline pressure. Consider spacing intensive periods.")
    return "".join(parts)
