"""
Signal extraction over the raw load series: stability, elasticity, and
data-volume confidence.

All windows come from recent_window, so every model agrees on what
"the last N entries" means. All functions are pure.
"""

from typing import Dict, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import clamp_score, compute_raw_loads, round_half_up


Window = Union[pd.DataFrame, pd.Series]


# ---------------------------------------------------------------------------
# Window + statistics primitives
# ---------------------------------------------------------------------------

def recent_window(data: Window, size: int) -> Window:
    """The last `size` entries, reindexed from 0. Recency is the tail."""
    return data.tail(size).reset_index(drop=True)


def population_std(values: Sequence[float]) -> float:
    """Standard deviation with ddof=0; 0.0 for empty input."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(np.std(arr, ddof=0))


def mean_or(values: Sequence[float], default: float) -> float:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return default
    return float(arr.mean())


def rolling_volatility(loads: Sequence[float], window: int = 3) -> np.ndarray:
    """
    Population std of each trailing `window`-point block.

    The first window-1 points have no full block and report 0.0.
    Computed explicitly per block so a constant block is exactly 0.
    """
    arr = np.asarray(loads, dtype=np.float64)
    out = np.zeros(arr.size, dtype=np.float64)
    for i in range(window - 1, arr.size):
        out[i] = np.std(arr[i - window + 1 : i + 1], ddof=0)
    return out


# ---------------------------------------------------------------------------
# Stability
# ---------------------------------------------------------------------------

STABILITY_DESCRIPTIONS = {
    "Stable": "Consistent cognitive load. Stability predicts sustained performance.",
    "Variable": "Some fluctuation. Moderate variability worth monitoring.",
    "Volatile": "Significant fluctuation. Instability predicts burnout more than raw intensity.",
}


def _label_stability(score: int, cfg: CogloadConfig) -> str:
    st = cfg.stability
    if score >= st.stable:
        return "Stable"
    if score >= st.variable:
        return "Variable"
    return "Volatile"


def _pattern_regularity(sigma: float, cfg: CogloadConfig) -> str:
    st = cfg.stability
    if sigma < st.regular_sigma:
        return "Regular"
    if sigma < st.variable_sigma:
        return "Variable"
    return "Irregular"


def _project(loads: np.ndarray, cfg: CogloadConfig) -> str:
    """Compare the mean of the last 3 loads with the 3 before them."""
    st = cfg.stability
    if loads.size < st.projection_min_points:
        return "Maintaining current trajectory"

    delta = loads[-3:].mean() - loads[-6:-3].mean()
    if delta > st.projection_delta:
        return "Load trending upward. Monitor closely."
    if delta < -st.projection_delta:
        return "Load trending downward. Positive trajectory."
    return "Stable trajectory maintained"


def compute_stability_index(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Stability = 100 - 3σ of raw load over the trailing window.

    Returns:
        {"score", "label", "description", "volatility_index", "std_dev",
         "pattern_regularity", "projection"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    st = cfg.stability
    df = to_frame(checkins)

    if len(df) < cfg.min_samples.stability:
        return {
            "score": st.calibrating_score,
            "label": "Calibrating",
            "description": f"Need at least {cfg.min_samples.stability} check-ins.",
            "volatility_index": 0.0,
            "std_dev": 0.0,
            "pattern_regularity": "Unknown",
            "projection": "Gathering data",
        }

    loads = compute_raw_loads(recent_window(df, cfg.windows.stability), cfg).to_numpy()
    sigma = population_std(loads)
    score = round_half_up(max(0.0, 100.0 - sigma * st.sigma_multiplier))
    label = _label_stability(score, cfg)

    return {
        "score": score,
        "label": label,
        "description": STABILITY_DESCRIPTIONS[label],
        "volatility_index": round_half_up(sigma, 1),
        "std_dev": round(sigma, 4),
        "pattern_regularity": _pattern_regularity(sigma, cfg),
        "projection": _project(loads, cfg),
    }


# ---------------------------------------------------------------------------
# Elasticity
# ---------------------------------------------------------------------------

def _spike_recoveries(loads: np.ndarray, cfg: CogloadConfig) -> list:
    """
    Days needed to fall back below (spike - recovery_drop) after each spike.

    A spike is a jump of more than spike_jump over the previous value. If the
    series never recovers, the count runs to the end of the series.
    """
    e = cfg.elasticity
    recoveries = []
    for i in range(1, loads.size):
        if loads[i] > loads[i - 1] + e.spike_jump:
            days = 0
            for j in range(i + 1, loads.size):
                days += 1
                if loads[j] < loads[i] - e.recovery_drop:
                    break
            recoveries.append(days)
    return recoveries


def _buffering(window: pd.DataFrame, cfg: CogloadConfig) -> str:
    e = cfg.elasticity
    light_days = int(
        ((window["focus_hours"] < e.buffer_focus_hours)
         & (window["deadline_pressure"] < e.buffer_deadline)).sum()
    )
    if light_days >= e.strong_buffer_days:
        return "Strong"
    if light_days >= 1:
        return "Moderate"
    return "Weak"


def compute_elasticity(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Speed of load recovery after spikes.

    Returns:
        {"score", "label", "interpretation", "buffering", "recovery_velocity"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    e = cfg.elasticity
    df = to_frame(checkins)

    if len(df) < cfg.min_samples.elasticity:
        return {
            "score": e.calibrating_score,
            "label": "Calibrating",
            "interpretation": "Gathering data to measure cognitive elasticity.",
            "buffering": "Unknown",
            "recovery_velocity": 0,
        }

    window = recent_window(df, cfg.windows.elasticity)
    loads = compute_raw_loads(window, cfg).to_numpy()
    recoveries = _spike_recoveries(loads, cfg)

    avg_recovery = float(np.mean(recoveries)) if recoveries else e.default_recovery_days
    score = clamp_score(100.0 - avg_recovery * e.penalty_per_day)

    if score >= e.high:
        label = "High"
        interpretation = "Quick recovery from spikes. High adaptive capacity."
    elif score >= e.moderate:
        label = "Moderate"
        interpretation = "Moderate recovery rate. Rebounds within expected parameters."
    else:
        label = "Low"
        interpretation = "Slower recovery from spikes. Consider protective strategies."

    if not recoveries:
        velocity = e.default_velocity
    elif avg_recovery <= 0:
        # Every spike sat on the final entry
        velocity = 100
    else:
        velocity = clamp_score(100.0 / avg_recovery)

    return {
        "score": score,
        "label": label,
        "interpretation": interpretation,
        "buffering": _buffering(window, cfg),
        "recovery_velocity": velocity,
    }


# ---------------------------------------------------------------------------
# Model confidence
# ---------------------------------------------------------------------------

def _step(n: int, bands: Tuple[Tuple[int, int], ...], ceiling: int) -> int:
    for upper, value in bands:
        if n < upper:
            return value
    return ceiling


def compute_model_confidence(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, int]:
    """Data / pattern / projection confidence percentages from entry count."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    c = cfg.confidence
    n = len(to_frame(checkins))

    return {
        "data": min(100, round_half_up(n / c.data_full_at * 100)),
        "pattern": _step(n, c.pattern, c.pattern_max),
        "projection": _step(n, c.projection, c.projection_max),
    }
