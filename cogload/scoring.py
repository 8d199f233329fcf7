"""
Load scoring: transforms raw check-in fields into the 0-100 raw load and
the smoothed, tiered load index.

compute_load_components is a pure column transform; it returns a new frame
and never touches the caller's.
"""

import math
from typing import Dict, List, Mapping, Union

import numpy as np
import pandas as pd

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckIn, CheckInSequence, to_frame


COMPONENT_COLUMNS = (
    "focus_load",
    "sleep_deficit",
    "deadline_load",
    "switching_load",
    "clarity_inverse",
)

# Component column → (display name, weight attribute)
FACTOR_MAP = {
    "focus_load": ("Focus hours", "focus"),
    "sleep_deficit": ("Sleep deficit", "sleep"),
    "deadline_load": ("Deadline pressure", "deadline"),
    "switching_load": ("Task switching", "switching"),
    "clarity_inverse": ("Mental clarity", "clarity"),
}

FACTOR_DESCRIPTIONS = {
    "Focus hours": {
        "high": "Extended focus periods may be depleting cognitive reserves.",
        "moderate": "Focus duration within manageable range.",
        "low": "Focus periods are well-balanced.",
    },
    "Sleep deficit": {
        "high": "Significant sleep deficit affecting cognitive capacity.",
        "moderate": "Slight sleep inconsistency contributing to load.",
        "low": "Sleep pattern supportive of recovery.",
    },
    "Deadline pressure": {
        "high": "High deadline pressure is a major contributor.",
        "moderate": "Some deadline pressure present but manageable.",
        "low": "Deadline pressure minimal.",
    },
    "Task switching": {
        "high": "Frequent switching fragmenting attention.",
        "moderate": "Some switching present. Consider batching.",
        "low": "Task flow relatively uninterrupted.",
    },
    "Mental clarity": {
        "high": "Reduced clarity compounding other factors.",
        "moderate": "Clarity moderate. Small adjustments may help.",
        "low": "Self-reported clarity is strong.",
    },
}

AWAITING_DATA = (
    "Awaiting initial data. Submit your first check-in to activate the "
    "cognitive modeling engine."
)


# ---------------------------------------------------------------------------
# Numeric primitives
# ---------------------------------------------------------------------------

def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """Round with .5 always going up; ints for digits=0."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded


def clamp_score(value: float, lower: float = 0.0, upper: float = 100.0) -> int:
    """Clamp into [lower, upper], then round to an integer."""
    return round_half_up(clamp(value, lower, upper))


# ---------------------------------------------------------------------------
# Raw load
# ---------------------------------------------------------------------------

def compute_load_components(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> pd.DataFrame:
    """Return a new frame with the five 0-100 sub-scores and raw_load."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    s = cfg.scoring
    w = cfg.weights
    df = to_frame(checkins)

    focus_load = np.minimum(df["focus_hours"] / s.focus_cap_hours, 1.0) * s.scale_max
    sleep_deficit = (
        np.maximum(0.0, (s.sleep_target_hours - df["sleep_hours"]) / s.sleep_target_hours)
        * s.scale_max
    )
    deadline_load = df["deadline_pressure"].astype("float64")
    switching_load = df["task_switching"].astype("float64")
    clarity_inverse = (s.clarity_max - df["mental_clarity"]) / s.clarity_span * s.scale_max

    raw_load = (
        focus_load * w.focus
        + sleep_deficit * w.sleep
        + deadline_load * w.deadline
        + switching_load * w.switching
        + clarity_inverse * w.clarity
    )

    return df.assign(
        focus_load=focus_load,
        sleep_deficit=sleep_deficit,
        deadline_load=deadline_load,
        switching_load=switching_load,
        clarity_inverse=clarity_inverse,
        raw_load=raw_load,
    )


def compute_raw_loads(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> pd.Series:
    """Unsmoothed raw load for every entry, in sequence order."""
    return compute_load_components(checkins, cfg)["raw_load"]


def raw_load(
    checkin: Union[CheckIn, Mapping],
    cfg: CogloadConfig | None = None,
) -> float:
    """Raw load of a single check-in."""
    return float(compute_raw_loads([checkin], cfg).iloc[0])


# ---------------------------------------------------------------------------
# Load index
# ---------------------------------------------------------------------------

def classify_tier(load_index: float, cfg: CogloadConfig | None = None) -> str:
    """Map a load index to low / moderate / high."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    t = cfg.tiers
    if load_index < t.moderate:
        return "low"
    if load_index < t.high:
        return "moderate"
    return "high"


def _factor_level(value: float, cfg: CogloadConfig) -> str:
    if value > cfg.scoring.factor_high:
        return "high"
    if value > cfg.scoring.factor_moderate:
        return "moderate"
    return "low"


def _factor_impact(name: str, window: pd.DataFrame, cfg: CogloadConfig) -> str:
    """Direction of a factor over the last few entries; only sleep and switching move."""
    points = cfg.scoring.trend_points
    if len(window) < points:
        return "stable"

    tail = window.tail(points)
    if name == "Sleep deficit":
        first, last = tail["sleep_hours"].iloc[0], tail["sleep_hours"].iloc[-1]
        # Less sleep means a growing deficit
        if last < first:
            return "increasing"
        if last > first:
            return "decreasing"
    elif name == "Task switching":
        first, last = tail["task_switching"].iloc[0], tail["task_switching"].iloc[-1]
        if last > first:
            return "increasing"
        if last < first:
            return "decreasing"
    return "stable"


def _explain(factors: List[Dict], tier: str) -> str:
    top = [f["name"].lower() for f in factors[:2]]
    if tier == "low":
        hint = f" Monitor {top[0]} as highest contributor." if top else ""
        return f"Cognitive load well-managed.{hint}"
    if tier == "moderate":
        return f"Load elevated, mainly due to {' and '.join(top)}. Small adjustments could help."
    return f"Load high. Main contributors: {' and '.join(top)}. Prioritize recovery."


def compute_cognitive_load(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Smoothed load index for the most recent entry.

    The latest raw load is blended with the mean raw load of the prior
    entries in the trailing window, which damps single-day spikes.

    Returns:
        {"load_index": int, "tier": str, "factors": [...], "explanation": str}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    s = cfg.scoring
    df = to_frame(checkins)

    if len(df) == 0:
        return {"load_index": 0, "tier": "low", "factors": [], "explanation": AWAITING_DATA}

    window = compute_load_components(df.tail(cfg.windows.load), cfg)
    latest = window.iloc[-1]
    load = float(latest["raw_load"])

    if len(window) > 1:
        history = float(window["raw_load"].iloc[:-1].mean())
        load = load * s.current_weight + history * s.history_weight

    load_index = clamp_score(load, 0.0, s.scale_max)
    tier = classify_tier(load_index, cfg)

    contributions = []
    for col, (name, weight_attr) in FACTOR_MAP.items():
        value = float(latest[col])
        weight = getattr(cfg.weights, weight_attr)
        contributions.append((name, value, weight))
    # sorted() is stable: ties keep declaration order
    contributions = sorted(contributions, key=lambda c: c[1] * c[2], reverse=True)

    factors = [
        {
            "name": name,
            "impact": _factor_impact(name, window, cfg),
            "weight": round_half_up(value * weight / 100, 2),
            "description": FACTOR_DESCRIPTIONS[name][_factor_level(value, cfg)],
        }
        for name, value, weight in contributions[: s.top_factors]
    ]

    return {
        "load_index": load_index,
        "tier": tier,
        "factors": factors,
        "explanation": _explain(factors, tier),
    }
