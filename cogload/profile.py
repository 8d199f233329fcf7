"""
Cognitive DNA: a descriptive fingerprint of how a person's load behaves.
"""

from typing import Dict

import numpy as np

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import compute_raw_loads, round_half_up
from cogload.signals import compute_elasticity, mean_or, recent_window


def _reactivity(loads: np.ndarray, cfg: CogloadConfig) -> int:
    pp = cfg.profile
    if loads.size < 2:
        return pp.default_reactivity
    mean_step = float(np.abs(np.diff(loads)).mean())
    return min(100, round_half_up(mean_step * pp.reactivity_scale))


def _sleep_sensitivity(window, loads: np.ndarray, cfg: CogloadConfig) -> int:
    """Gap between mean load on short-sleep days and on rested days."""
    pp = cfg.profile
    if len(window) < pp.min_entries:
        return pp.default_sensitivity
    sleep = window["sleep_hours"].to_numpy()
    short = loads[sleep < pp.low_sleep]
    rested = loads[sleep >= pp.rested_sleep]
    if short.size == 0 or rested.size == 0:
        return pp.default_sensitivity
    gap = abs(float(short.mean()) - float(rested.mean()))
    return min(100, round_half_up(gap * pp.sensitivity_scale))


def compute_cognitive_dna(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Returns:
        {"baseline_range", "reactivity_index", "recovery_velocity",
         "sleep_sensitivity", "deadline_amplification",
         "task_switching_friction", "cognitive_age", "spectrums"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    pp = cfg.profile
    df = to_frame(checkins)
    loads = compute_raw_loads(df, cfg).to_numpy()

    if loads.size:
        baseline_range = [round_half_up(float(loads.min())), round_half_up(float(loads.max()))]
        mean = float(loads.mean())
    else:
        baseline_range = list(pp.default_range)
        mean = pp.default_mean
    sigma = float(np.std(loads, ddof=0)) if loads.size > 1 else pp.default_std

    window = recent_window(df, cfg.windows.dna)
    window_loads = compute_raw_loads(window, cfg).to_numpy()

    reactivity = _reactivity(loads, cfg)
    elasticity = compute_elasticity(df, cfg)
    sensitivity = _sleep_sensitivity(window, window_loads, cfg)

    if len(df) >= pp.min_entries:
        pressured = int((window["deadline_pressure"] > pp.deadline_high).sum())
        amplification = min(100, round_half_up(pressured / max(1, len(window)) * pp.amplification_scale))
    else:
        amplification = pp.default_amplification

    friction = round_half_up(mean_or(window["task_switching"], pp.default_switching))

    cognitive_age = round_half_up(
        pp.age_base
        + mean / 100.0 * pp.age_mean_years
        + sigma / pp.age_sigma_span * pp.age_sigma_years
        - elasticity["score"] / 100.0 * pp.age_elastic_years
    )

    spectrums = [
        {"label": "Processing", "left": "Reactor", "right": "Stabilizer", "value": 100 - reactivity},
        {"label": "Focus", "left": "Deep Diver", "right": "Switcher", "value": friction},
        {"label": "Resilience", "left": "Elastic", "right": "Brittle", "value": 100 - elasticity["score"]},
        {"label": "Pressure", "left": "Thrives", "right": "Fractures", "value": 100 - amplification},
    ]

    return {
        "baseline_range": baseline_range,
        "reactivity_index": reactivity,
        "recovery_velocity": elasticity["recovery_velocity"],
        "sleep_sensitivity": sensitivity,
        "deadline_amplification": amplification,
        "task_switching_friction": friction,
        "cognitive_age": cognitive_age,
        "spectrums": spectrums,
    }
