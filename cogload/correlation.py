"""
Pairwise correlation and period-over-period pattern comparison.
"""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import clamp, compute_raw_loads, round_half_up
from cogload.signals import population_std, recent_window, rolling_volatility


# ---------------------------------------------------------------------------
# Pearson
# ---------------------------------------------------------------------------

def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson r, clamped to [-1, 1] and rounded to 2 decimals.

    Returns 0.0 when either series is constant (zero denominator).
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    if x.size == 0 or x.size != y.size:
        return 0.0

    x_c = x - x.mean()
    y_c = y - y.mean()
    denom = np.sqrt(np.dot(x_c, x_c)) * np.sqrt(np.dot(y_c, y_c))
    if denom == 0.0:
        return 0.0

    r = clamp(float(np.dot(x_c, y_c) / denom), -1.0, 1.0)
    return round_half_up(r, 2)


def compute_correlations(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> List[Dict[str, object]]:
    """
    Correlations over the last 21 entries for three fixed pairs:

        Sleep     × Load        (raw load)
        Switching × Volatility  (3-point rolling σ of raw load)
        Deadlines × Recovery    (sleep hours)

    Empty below 5 entries.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    cp = cfg.correlation
    df = to_frame(checkins)
    if len(df) < cfg.min_samples.correlation:
        return []

    window = recent_window(df, cfg.windows.correlation)
    loads = compute_raw_loads(window, cfg).to_numpy()
    volatility = rolling_volatility(loads, cp.volatility_window)
    sleeps = window["sleep_hours"].to_numpy()

    sleep_load = pearson(sleeps, loads)
    switch_vol = pearson(window["task_switching"].to_numpy(), volatility)
    deadline_sleep = pearson(window["deadline_pressure"].to_numpy(), sleeps)

    if sleep_load < -cp.significance:
        sleep_text = "More sleep correlates with lower load. Sleep is protective."
    elif sleep_load > cp.significance:
        sleep_text = "Unexpected positive correlation. Investigate confounders."
    else:
        sleep_text = "Weak relationship in current data window."

    if switch_vol > cp.significance:
        switch_text = "Higher switching correlates with more volatility. Batching may help."
    else:
        switch_text = "Task switching has limited impact on volatility currently."

    if deadline_sleep < -cp.significance:
        deadline_text = "Deadline pressure reduces sleep. A recovery risk pattern."
    else:
        deadline_text = "Deadlines aren't significantly impacting sleep patterns."

    return [
        {"x_label": "Sleep", "y_label": "Load", "correlation": sleep_load,
         "explanation": sleep_text},
        {"x_label": "Switching", "y_label": "Volatility", "correlation": switch_vol,
         "explanation": switch_text},
        {"x_label": "Deadlines", "y_label": "Recovery", "correlation": deadline_sleep,
         "explanation": deadline_text},
    ]


# ---------------------------------------------------------------------------
# Pattern comparison
# ---------------------------------------------------------------------------

def _period_stats(period: pd.DataFrame, cfg: CogloadConfig) -> Dict[str, float]:
    loads = compute_raw_loads(period, cfg).to_numpy()
    return {
        "avg_load": round_half_up(float(loads.mean())),
        "volatility": round_half_up(population_std(loads), 1),
        "avg_sleep": round_half_up(float(period["sleep_hours"].mean()), 1),
    }


def compare_patterns(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Split the history at its midpoint and compare the two halves.

    Returns:
        {"available", "current_period", "previous_period", "load_change",
         "volatility_change", "sleep_correlation", "summary"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    cp = cfg.correlation
    df = to_frame(checkins)
    n = len(df)
    needed = cfg.min_samples.comparison

    if n < needed:
        empty = {"avg_load": 0, "volatility": 0.0, "avg_sleep": 0.0}
        return {
            "available": False,
            "current_period": dict(empty),
            "previous_period": dict(empty),
            "load_change": 0,
            "volatility_change": 0.0,
            "sleep_correlation": "",
            "summary": f"Need {needed - n} more check-ins for pattern comparison.",
        }

    half = n // 2
    prev = _period_stats(df.iloc[:half], cfg)
    curr = _period_stats(df.iloc[half:], cfg)

    load_change = curr["avg_load"] - prev["avg_load"]
    volatility_change = round_half_up(curr["volatility"] - prev["volatility"], 1)
    sleep_diff = curr["avg_sleep"] - prev["avg_sleep"]

    if sleep_diff > cp.sleep_shift_hours:
        sleep_correlation = "Improved sleep correlates with cognitive load changes."
    elif sleep_diff < -cp.sleep_shift_hours:
        sleep_correlation = "Reduced sleep may contribute to load increases."
    else:
        sleep_correlation = "Sleep patterns remained consistent."

    if load_change > cp.load_shift_points:
        summary = f"Average load increased by {load_change} points. "
    elif load_change < -cp.load_shift_points:
        summary = f"Average load decreased by {abs(load_change)} points. Positive trend. "
    else:
        summary = "Average load stable between periods. "

    return {
        "available": True,
        "current_period": curr,
        "previous_period": prev,
        "load_change": load_change,
        "volatility_change": volatility_change,
        "sleep_correlation": sleep_correlation,
        "summary": summary + sleep_correlation,
    }
