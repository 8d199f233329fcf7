"""
Parametric 7-day projection from hypothetical inputs.

Each projected day is

    baseline * 0.4 + workload * 35 + sleep_deficit * 25
    + deadline_peak(day) + day * drift - recovery * 15

clamped to [0, 100], where deadline_peak follows a half-sine over the week
scaled by the deadline count. The baseline is the mean raw load of the last
seven real entries.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from cogload.config import CogloadConfig, DEFAULT_CONFIG, ScenarioPreset
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import classify_tier, compute_raw_loads, round_half_up
from cogload.signals import compute_stability_index, mean_or, recent_window


@dataclass(frozen=True)
class SimulationInput:
    """A hypothetical upcoming week. Percentages are 0-100."""

    expected_workload: float
    major_deadlines: int
    planned_sleep: float
    recovery_intention: float

    @classmethod
    def from_preset(cls, preset: ScenarioPreset) -> "SimulationInput":
        return cls(
            expected_workload=preset.expected_workload,
            major_deadlines=preset.major_deadlines,
            planned_sleep=preset.planned_sleep,
            recovery_intention=preset.recovery_intention,
        )


def project_loads(
    baseline: float,
    sim: SimulationInput,
    cfg: CogloadConfig | None = None,
) -> np.ndarray:
    """Projected integer load for each day of the horizon."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.simulation
    s = cfg.scoring

    days = np.arange(p.horizon_days, dtype=np.float64)
    workload = sim.expected_workload / 100.0
    recovery = sim.recovery_intention / 100.0
    sleep_deficit = max(0.0, (s.sleep_target_hours - sim.planned_sleep) / s.sleep_target_hours)

    if sim.major_deadlines > 0:
        deadline_peak = (
            np.sin(days / (p.horizon_days - 1) * np.pi)
            * sim.major_deadlines * p.deadline_amplitude
        )
    else:
        deadline_peak = np.zeros_like(days)

    raw = (
        baseline * p.baseline_weight
        + workload * p.workload_weight
        + sleep_deficit * p.sleep_weight
        + deadline_peak
        + days * p.daily_drift
        - recovery * p.recovery_weight
    )
    clipped = np.clip(raw, 0.0, 100.0)
    return np.floor(clipped + 0.5).astype(int)


def simulate_upcoming_week(
    checkins: CheckInSequence,
    sim: SimulationInput,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Project the next week under the given inputs.

    Returns:
        {"projected_loads", "risk_zones", "summary", "stability_shift",
         "peak_day", "risk_probability"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    p = cfg.simulation
    df = to_frame(checkins)

    recent = recent_window(df, p.baseline_window)
    baseline = mean_or(compute_raw_loads(recent, cfg), p.default_baseline)

    loads = project_loads(baseline, sim, cfg)
    projected = [int(v) for v in loads]
    risk_zones = [
        {"day": day + 1, "risk": classify_tier(load, cfg)}
        for day, load in enumerate(projected)
    ]

    high_days = sum(1 for z in risk_zones if z["risk"] == "high")
    # argmax returns the first maximum
    peak_day = int(np.argmax(loads)) + 1
    risk_probability = round_half_up(high_days / p.horizon_days * 100)

    stability = compute_stability_index(df, cfg)["score"]
    projected_stability = round_half_up(
        stability
        + (sim.recovery_intention / 100.0 - 0.5) * p.stability_recovery_weight
        - sim.expected_workload / 100.0 * p.stability_workload_weight
    )

    summary = "Based on your patterns and planned inputs, "
    if high_days == 0:
        summary += "your upcoming week looks manageable. Maintain planned sleep to sustain this."
    elif high_days <= 2:
        summary += f"day {peak_day} may see elevated load. Consider lighter scheduling around that period."
    else:
        summary += (
            f"{high_days} days show high cognitive load risk. "
            "Consider reducing intensity or spacing deadlines."
        )

    return {
        "projected_loads": projected,
        "risk_zones": risk_zones,
        "summary": summary,
        "stability_shift": projected_stability - stability,
        "peak_day": peak_day,
        "risk_probability": risk_probability,
    }


def simulate_scenarios(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> List[Dict[str, object]]:
    """Run every configured preset for side-by-side comparison."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = to_frame(checkins)

    results = []
    for preset in cfg.simulation.scenarios:
        sim = simulate_upcoming_week(df, SimulationInput.from_preset(preset), cfg)
        results.append({
            "name": preset.name,
            "loads": sim["projected_loads"],
            "risk": sim["risk_probability"],
        })
    return results
