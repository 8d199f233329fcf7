"""
Behavioral archetype classification.

Maps rolling statistics of the last 21 entries → a named archetype.
The cascade is an explicit ordered tuple of (name, predicate) pairs;
first match wins, so precedence is visible in one place and each rule
can be tested on its own.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import numpy as np

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, to_frame
from cogload.scoring import compute_raw_loads, round_half_up
from cogload.signals import population_std, recent_window


# ---------------------------------------------------------------------------
# Archetype profiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArchetypeProfile:
    """Fixed text carried by an archetype; `pattern` is filled from stats."""

    description: str
    pattern: str
    stress_response: str
    behavior_signature: str


ARCHETYPE_PROFILES: Dict[str, ArchetypeProfile] = {
    "Burst Performer": ArchetypeProfile(
        description="High-intensity bursts followed by recovery. Effective but carries crash risk.",
        pattern="Intensity spikes followed by {recovery_patterns}-day recovery periods.",
        stress_response="Absorbs pressure then crashes. Needs deliberate decompression.",
        behavior_signature="High amplitude oscillation with recovery dependency",
    ),
    "Deadline Reactor": ArchetypeProfile(
        description="Load spikes notably under deadline pressure. Thrives with external structure.",
        pattern="{deadline_spikes} of {window} days showed high deadline pressure.",
        stress_response="Performance amplifies under deadline proximity",
        behavior_signature="Pressure-driven activation with anticipatory load building",
    ),
    "Elastic Thinker": ArchetypeProfile(
        description="Highly adaptive cognitive patterns. Flexes between modes rapidly.",
        pattern="Wide load range with quick transitions between states.",
        stress_response="Absorbs varied demands but risks over-extension",
        behavior_signature="High-bandwidth cognitive switching with moderate recovery needs",
    ),
    "Recovery Dependent": ArchetypeProfile(
        description="Relies on deliberate recovery windows. Works well when rest is protected.",
        pattern="{recovery_patterns} clear recovery cycles detected.",
        stress_response="Degrades without recovery windows. Needs protected downtime.",
        behavior_signature="Performance sustained through intentional recovery cycling",
    ),
    "Steady Builder": ArchetypeProfile(
        description="Consistent output with low volatility. Most sustainable long-term pattern.",
        pattern="Low variance, moderate intensity. Supports sustained performance.",
        stress_response="Resilient under consistent load, may struggle with sudden spikes",
        behavior_signature="Low-amplitude consistent output with strong baseline maintenance",
    ),
    "Adaptive Thinker": ArchetypeProfile(
        description="Flexible cognitive strategies adapting across contexts.",
        pattern="Average load {mean_rounded} with moderate variability.",
        stress_response="Context-dependent. Adapts strategy to demand type.",
        behavior_signature="Multi-modal cognitive approach without dominant pattern",
    ),
}


# ---------------------------------------------------------------------------
# Rolling statistics
# ---------------------------------------------------------------------------

def _count_recovery_patterns(loads: np.ndarray, cfg: CogloadConfig) -> int:
    """A peak above recovery_peak followed by two points below recovery_trough."""
    a = cfg.archetype
    count = 0
    for i in range(1, loads.size - 1):
        if (
            loads[i - 1] > a.recovery_peak
            and loads[i] < a.recovery_trough
            and loads[i + 1] < a.recovery_trough
        ):
            count += 1
    return count


def compute_archetype_stats(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, float]:
    """Statistics the cascade is evaluated against."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    a = cfg.archetype
    window = recent_window(to_frame(checkins), cfg.windows.archetype)
    loads = compute_raw_loads(window, cfg).to_numpy()

    mean = float(loads.mean()) if loads.size else 0.0
    return {
        "window": int(loads.size),
        "mean": mean,
        "mean_rounded": round_half_up(mean),
        "std_dev": population_std(loads),
        "high_days": int((loads > a.high_load).sum()),
        "deadline_spikes": int((window["deadline_pressure"] > a.deadline_spike).sum()),
        "avg_sleep": float(window["sleep_hours"].mean()) if len(window) else 0.0,
        "recovery_patterns": _count_recovery_patterns(loads, cfg),
    }


# ---------------------------------------------------------------------------
# Rule cascade
# ---------------------------------------------------------------------------

Predicate = Callable[[Dict[str, float], CogloadConfig], bool]


def _is_burst(s, cfg):
    a = cfg.archetype
    return (
        s["std_dev"] > a.burst_sigma
        and s["high_days"] > s["window"] * a.burst_high_day_ratio
        and s["recovery_patterns"] >= a.min_recovery_patterns
    )


def _is_deadline_reactor(s, cfg):
    return s["deadline_spikes"] > s["window"] * cfg.archetype.deadline_ratio


def _is_elastic(s, cfg):
    a = cfg.archetype
    return s["std_dev"] > a.elastic_sigma and s["mean"] > a.elastic_mean


def _is_recovery_dependent(s, cfg):
    a = cfg.archetype
    return s["recovery_patterns"] >= a.min_recovery_patterns and s["avg_sleep"] >= a.recovery_sleep


def _is_steady(s, cfg):
    a = cfg.archetype
    return s["std_dev"] < a.steady_sigma and s["mean"] < a.steady_mean


ARCHETYPE_RULES: Tuple[Tuple[str, Predicate], ...] = (
    ("Burst Performer", _is_burst),
    ("Deadline Reactor", _is_deadline_reactor),
    ("Elastic Thinker", _is_elastic),
    ("Recovery Dependent", _is_recovery_dependent),
    ("Steady Builder", _is_steady),
)

FALLBACK_ARCHETYPE = "Adaptive Thinker"


def classify_archetype(stats: Dict[str, float], cfg: CogloadConfig | None = None) -> str:
    """Name of the first rule whose predicate holds."""
    if cfg is None:
        cfg = DEFAULT_CONFIG
    for name, predicate in ARCHETYPE_RULES:
        if predicate(stats, cfg):
            return name
    return FALLBACK_ARCHETYPE


def _confidence(n: int, cfg: CogloadConfig) -> int:
    for min_entries, confidence in cfg.archetype.confidence_tiers:
        if n >= min_entries:
            return confidence
    return cfg.archetype.confidence_tiers[-1][1]


def determine_cognitive_archetype(
    checkins: CheckInSequence,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Classify the behavioral archetype.

    Returns:
        {"name", "description", "pattern", "available", "confidence",
         "stress_response", "behavior_signature"}
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    df = to_frame(checkins)
    n = len(df)
    needed = cfg.min_samples.archetype

    if n < needed:
        return {
            "name": "Emerging",
            "description": f"{needed - n} more check-ins needed.",
            "pattern": "",
            "available": False,
            "confidence": round_half_up(n / needed * cfg.archetype.emerging_confidence),
            "stress_response": "",
            "behavior_signature": "",
        }

    stats = compute_archetype_stats(df, cfg)
    name = classify_archetype(stats, cfg)
    profile = ARCHETYPE_PROFILES[name]

    return {
        "name": name,
        "description": profile.description,
        "pattern": profile.pattern.format(**stats),
        "available": True,
        "confidence": _confidence(n, cfg),
        "stress_response": profile.stress_response,
        "behavior_signature": profile.behavior_signature,
    }
