"""
Longitudinal evolution level and milestone tracking.

The level ladder is declarative (config.EvolutionParams.levels), checked
top-down: first rung whose entry-count and stability thresholds both hold.
"""

from typing import Dict

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import round_half_up
from cogload.signals import compute_elasticity, compute_stability_index


def classify_level(n: int, stability_score: int, cfg: CogloadConfig | None = None):
    """Return (level, name) for an entry count and stability score."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    ev = cfg.evolution
    for rung in ev.levels:
        if n >= rung.min_entries and stability_score >= rung.min_stability:
            return rung.level, rung.name
    return ev.base_level, ev.base_name


def compute_evolution(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Evolution level, progress, milestones, and half-over-half improvement.

    Improvement deltas split the full history at its midpoint and compare
    the stability and elasticity models of the two halves; they stay 0
    until 14 entries exist.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    ev = cfg.evolution
    df = to_frame(checkins)
    n = len(df)

    milestones = [label for threshold, label in ev.milestones if n >= threshold]

    stability_improvement = 0
    volatility_reduction = 0
    recovery_strengthening = 0
    if n >= cfg.min_samples.evolution_deltas:
        half = n // 2
        first, second = df.iloc[:half], df.iloc[half:]

        stab_1 = compute_stability_index(first, cfg)
        stab_2 = compute_stability_index(second, cfg)
        stability_improvement = stab_2["score"] - stab_1["score"]
        volatility_reduction = round_half_up(
            (stab_1["std_dev"] - stab_2["std_dev"]) / max(1.0, stab_1["std_dev"]) * 100
        )

        elast_1 = compute_elasticity(first, cfg)
        elast_2 = compute_elasticity(second, cfg)
        recovery_strengthening = elast_2["score"] - elast_1["score"]

    stability = compute_stability_index(df, cfg)
    level, name = classify_level(n, stability["score"], cfg)

    return {
        "level": level,
        "name": name,
        "progress": min(100, round_half_up(n / ev.full_progress_entries * 100)),
        "stability_improvement": stability_improvement,
        "volatility_reduction": volatility_reduction,
        "recovery_strengthening": recovery_strengthening,
        "milestones": milestones,
    }
