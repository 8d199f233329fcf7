"""
Pattern detectors: risk forecast, day-over-day system shift, recovery
signals, and trailing micro-streaks.

Each detector is a pure function over the check-in sequence and returns
structured results. No side effects.
"""

from typing import Dict, List

import numpy as np
import pandas as pd

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import clamp_score, compute_raw_loads, round_half_up
from cogload.signals import population_std, recent_window


# ---------------------------------------------------------------------------
# Risk forecast
# ---------------------------------------------------------------------------

def compute_risk_forecast(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, int]:
    """
    Burnout / instability / recovery-deficit percentages over the last week.

    burnout     = high_day_ratio * 40 + max(0, 7 - sleep) * 10 + σ * 0.8
    instability = σ * 3.5
    deficit     = max(0, 7 - sleep) * 15 + long_focus_days * 8

    Each is capped at 95; below 3 entries fixed low defaults are returned.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    r = cfg.risk
    df = to_frame(checkins)

    if len(df) < cfg.min_samples.risk:
        return {
            "burnout_probability": r.default_burnout,
            "instability_risk": r.default_instability,
            "recovery_deficit": r.default_deficit,
        }

    window = recent_window(df, cfg.windows.risk)
    loads = compute_raw_loads(window, cfg).to_numpy()
    sigma = population_std(loads)
    sleep_gap = max(0.0, r.sleep_reference - float(window["sleep_hours"].mean()))
    high_ratio = float((loads > r.high_load).sum()) / len(window)
    long_focus_days = int((window["focus_hours"] > r.long_focus_hours).sum())

    burnout = high_ratio * r.high_day_weight + sleep_gap * r.sleep_gap_weight + sigma * r.sigma_weight
    instability = sigma * r.instability_sigma_weight
    deficit = sleep_gap * r.deficit_sleep_weight + long_focus_days * r.long_focus_weight

    return {
        "burnout_probability": clamp_score(burnout, 0, r.cap),
        "instability_risk": clamp_score(instability, 0, r.cap),
        "recovery_deficit": clamp_score(deficit, 0, r.cap),
    }


# ---------------------------------------------------------------------------
# System shift
# ---------------------------------------------------------------------------

SHIFT_FIELDS = (
    ("Deadline pressure", "deadline_pressure", "pressure_delta"),
    ("Task switching", "task_switching", "pressure_delta"),
    ("Sleep duration", "sleep_hours", "sleep_delta"),
)


def compute_system_shift(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Compare the two most recent entries.

    Returns:
        {"load_delta", "volatility_delta", "sleep_delta", "risk_forecast",
         "divergence_detected", "increases", "decreases"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    sh = cfg.shift
    df = to_frame(checkins)

    if len(df) < cfg.min_samples.shift:
        return {
            "load_delta": 0,
            "volatility_delta": 0.0,
            "sleep_delta": 0.0,
            "risk_forecast": sh.default_forecast,
            "divergence_detected": False,
            "increases": [],
            "decreases": [],
        }

    tail = recent_window(df, 4)
    loads = compute_raw_loads(tail, cfg).to_numpy()
    latest, prev = tail.iloc[-1], tail.iloc[-2]
    latest_load = float(loads[-1])

    load_delta = round_half_up(latest_load - loads[-2])
    sleep_delta = round_half_up(latest["sleep_hours"] - prev["sleep_hours"], 1)

    increases: List[str] = []
    decreases: List[str] = []
    for label, col, threshold_attr in SHIFT_FIELDS:
        threshold = getattr(sh, threshold_attr)
        if latest[col] > prev[col] + threshold:
            increases.append(label)
        elif latest[col] < prev[col] - threshold:
            decreases.append(label)
    # Clarity is ordinal: any change counts
    if latest["mental_clarity"] > prev["mental_clarity"]:
        increases.append("Mental clarity")
    elif latest["mental_clarity"] < prev["mental_clarity"]:
        decreases.append("Mental clarity")

    volatility_delta = 0.0
    if len(tail) >= 4:
        previous_swing = abs(loads[-3] - loads[-4])
        volatility_delta = round_half_up(abs(load_delta) - previous_swing, 1)

    sleep_proxy = 100.0 - latest["sleep_hours"] * sh.sleep_proxy_per_hour
    forecast = (
        latest_load * sh.forecast_load_weight
        + sleep_proxy * sh.forecast_sleep_weight
        + latest["deadline_pressure"] * sh.forecast_deadline_weight
    )

    return {
        "load_delta": load_delta,
        "volatility_delta": volatility_delta,
        "sleep_delta": sleep_delta,
        "risk_forecast": clamp_score(forecast),
        "divergence_detected": abs(load_delta) > sh.divergence_delta,
        "increases": increases,
        "decreases": decreases,
    }


# ---------------------------------------------------------------------------
# Recovery signals
# ---------------------------------------------------------------------------

def _low_focus_recovery(window: pd.DataFrame, loads: np.ndarray, cfg: CogloadConfig):
    """First pair of low-focus days after a high-load day that calmed the swings."""
    rp = cfg.recovery
    focus = window["focus_hours"].to_numpy()
    for i in range(2, len(window)):
        if focus[i] < rp.low_focus_hours and focus[i - 1] < rp.low_focus_hours and loads[i - 2] > rp.prior_high_load:
            before_ref = loads[i - 3] if i >= 3 else loads[i - 2]
            before = abs(loads[i - 2] - before_ref)
            after = abs(loads[i] - loads[i - 1])
            reduction = round_half_up((before - after) / before * 100) if before > 0 else 0
            if reduction > 0:
                return {
                    "description": "Two moderate-focus days reduced volatility",
                    "impact": f"Volatility decreased by {reduction}%",
                    "percentage": reduction,
                }
    return None


def _sleep_recovery(window: pd.DataFrame, cfg: CogloadConfig):
    rp = cfg.recovery
    recent = recent_window(window, rp.sleep_window)["sleep_hours"]
    if len(recent) < 3:
        return None
    early = float(recent.iloc[:2].mean())
    late = float(recent.iloc[-2:].mean())
    gain = late - early
    if gain < rp.sleep_gain_hours:
        return None
    percentage = round_half_up(gain / early * 100) if early > 0 else 100
    return {
        "description": "Sleep improvement detected",
        "impact": f"Average sleep increased by {gain:.1f} hours",
        "percentage": percentage,
    }


def _switching_recovery(window: pd.DataFrame, cfg: CogloadConfig):
    rp = cfg.recovery
    recent = recent_window(window, rp.switching_window)["task_switching"]
    if len(recent) < 4:
        return None
    early = float(recent.iloc[:2].mean())
    late = float(recent.iloc[-2:].mean())
    if not early > late + rp.switching_drop:
        return None
    return {
        "description": "Task switching frequency decreased",
        "impact": f"Switching reduced from {round_half_up(early)} to {round_half_up(late)}",
        "percentage": round_half_up((early - late) / early * 100),
    }


def detect_recovery_signals(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> List[Dict[str, object]]:
    """Recovery signals found in the last 14 entries; empty below 5 entries."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = to_frame(checkins)
    if len(df) < cfg.min_samples.recovery_signals:
        return []

    window = recent_window(df, cfg.windows.recovery)
    loads = compute_raw_loads(window, cfg).to_numpy()

    found = (
        _low_focus_recovery(window, loads, cfg),
        _sleep_recovery(window, cfg),
        _switching_recovery(window, cfg),
    )
    return [signal for signal in found if signal is not None]


# ---------------------------------------------------------------------------
# Micro-streaks
# ---------------------------------------------------------------------------

def _trailing_streak(flags: np.ndarray) -> int:
    """Count consecutive True values ending at the last element."""
    streak = 0
    for flag in reversed(flags):
        if not flag:
            break
        streak += 1
    return streak


STREAK_LABELS = ("Stability", "Sleep consistency", "Low volatility")


def compute_micro_streaks(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> List[Dict[str, object]]:
    """
    Trailing consecutive-day counters.

        Stability          raw load < 60
        Sleep consistency  sleep >= 7h
        Low volatility     |Δload| < 10 between consecutive days

    A streak is active once it reaches 2 days.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    sp = cfg.streaks
    df = to_frame(checkins)

    if len(df) < cfg.min_samples.streaks:
        return [{"label": label, "days": 0, "active": False} for label in STREAK_LABELS]

    loads = compute_raw_loads(df, cfg).to_numpy()
    conditions = {
        "Stability": loads < sp.stable_load,
        "Sleep consistency": df["sleep_hours"].to_numpy() >= sp.sleep_hours,
        "Low volatility": np.abs(np.diff(loads)) < sp.volatility_delta,
    }

    streaks = []
    for label in STREAK_LABELS:
        days = _trailing_streak(conditions[label])
        streaks.append({"label": label, "days": days, "active": days >= sp.active_days})
    return streaks
