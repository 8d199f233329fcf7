"""
Pipeline orchestration: load → score → signal → classify → detect →
narrate → report.

File loading and report formatting live here. Every analytic stage is
delegated to the model modules, which stay pure.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import pandas as pd

from cogload.archetype import determine_cognitive_archetype
from cogload.coach import get_coach_intelligence
from cogload.coach_service import CoachTextGenerator
from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.correlation import compare_patterns, compute_correlations
from cogload.detectors import (
    compute_micro_streaks,
    compute_risk_forecast,
    compute_system_shift,
    detect_recovery_signals,
)
from cogload.evolution import compute_evolution
from cogload.experiments import experiment_progress, refresh_experiments
from cogload.models import (
    METRIC_COLUMNS,
    RECORD_FIELDS,
    CheckInSequence,
    Experiment,
    to_frame,
)
from cogload.narrative import generate_hypothesis, generate_insights, generate_weekly_reflection
from cogload.profile import compute_cognitive_dna
from cogload.scoring import compute_cognitive_load
from cogload.signals import compute_elasticity, compute_model_confidence, compute_stability_index
from cogload.simulation import SimulationInput, simulate_scenarios, simulate_upcoming_week

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data loading (CLI mode only)
# ---------------------------------------------------------------------------

def _records_to_frame(data: list) -> pd.DataFrame:
    """Accepts camelCase persisted records or snake_case dicts."""
    df = pd.DataFrame(data).rename(columns=RECORD_FIELDS)
    missing = set(METRIC_COLUMNS) - set(df.columns)
    if missing:
        camel = {v: k for k, v in RECORD_FIELDS.items()}
        raise ValueError(f"Missing required fields: {sorted(camel[m] for m in missing)}")
    # File order is chronological order; no date sort
    df[list(METRIC_COLUMNS)] = df[list(METRIC_COLUMNS)].astype("float64")
    return df.reset_index(drop=True)


def load_data(filepath: Union[str, Path]) -> pd.DataFrame:
    """Load and validate persisted check-in records from a JSON file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Data file must contain a list of check-in records")
    if not data:
        raise ValueError("Data file is empty")

    df = _records_to_frame(data)
    logger.info(f"Loaded {len(df)} check-ins from {path}")
    return df


# ---------------------------------------------------------------------------
# Core analysis (no file I/O)
# ---------------------------------------------------------------------------

def _analyze_df(
    df: pd.DataFrame,
    cfg: CogloadConfig,
    experiments: Optional[Iterable[Experiment]] = None,
    today: Optional[date] = None,
    generator: Optional[CoachTextGenerator] = None,
    simulation: Optional[SimulationInput] = None,
) -> Dict:
    # Stage 1: Load
    load = compute_cognitive_load(df, cfg)

    # Stage 2: Signals
    stability = compute_stability_index(df, cfg)
    elasticity = compute_elasticity(df, cfg)
    confidence = compute_model_confidence(df, cfg)

    # Stage 3: Classification
    archetype = determine_cognitive_archetype(df, cfg)
    evolution = compute_evolution(df, cfg)
    dna = compute_cognitive_dna(df, cfg)

    # Stage 4: Detection
    risk = compute_risk_forecast(df, cfg)
    shift = compute_system_shift(df, cfg)
    recovery_signals = detect_recovery_signals(df, cfg)
    streaks = compute_micro_streaks(df, cfg)
    correlations = compute_correlations(df, cfg)
    comparison = compare_patterns(df, cfg)

    # Stage 5: Projection
    scenarios = simulate_scenarios(df, cfg)
    projected = simulate_upcoming_week(df, simulation, cfg) if simulation is not None else None

    # Stage 6: Experiments
    refreshed = refresh_experiments(list(experiments or []), today)
    experiment_status = [
        experiment_progress(e, df, today, cfg)
        for e in refreshed if e.status != "available"
    ]

    # Stage 7: Narrative
    coach = get_coach_intelligence(df, load, stability, generator=generator, cfg=cfg)

    return {
        "entries": len(df),
        "load": load,
        "stability": stability,
        "elasticity": elasticity,
        "model_confidence": confidence,
        "archetype": archetype,
        "evolution": evolution,
        "cognitive_dna": dna,
        "risk_forecast": risk,
        "system_shift": shift,
        "recovery_signals": recovery_signals,
        "micro_streaks": streaks,
        "correlations": correlations,
        "pattern_comparison": comparison,
        "scenarios": scenarios,
        "simulation": projected,
        "experiments": experiment_status,
        "hypothesis": generate_hypothesis(df, load, stability, cfg),
        "insights": generate_insights(df, cfg),
        "weekly_reflection": generate_weekly_reflection(df, cfg),
        "coach": coach,
    }


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def analyze(
    filepath: Union[str, Path],
    cfg: CogloadConfig | None = None,
    **kwargs,
) -> Dict:
    """CLI entry point: read a JSON file and run the full analysis."""
    if cfg is None:
        cfg = DEFAULT_CONFIG

    df = load_data(filepath)
    return _analyze_df(df, cfg, **kwargs)


def analyze_data(
    data: CheckInSequence,
    cfg: CogloadConfig | None = None,
    experiments: Optional[Iterable[Experiment]] = None,
    today: Optional[date] = None,
    generator: Optional[CoachTextGenerator] = None,
    simulation: Optional[SimulationInput] = None,
) -> Dict:
    """
    Integration entry point.

    Accepts persisted records, CheckIn objects, or a DataFrame. An empty
    history is valid and yields calibrating results throughout.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG

    if isinstance(data, pd.DataFrame):
        df = data
    else:
        data = list(data)
        if data and all(isinstance(r, dict) for r in data):
            df = _records_to_frame(data)
        else:
            df = to_frame(data)

    return _analyze_df(df, cfg, experiments, today, generator, simulation)


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

def generate_report(result: Dict) -> str:
    """Format the analysis result as a human-readable text report."""
    load = result["load"]
    stability = result["stability"]
    archetype = result["archetype"]
    elasticity = result["elasticity"]
    risk = result["risk_forecast"]
    evolution = result["evolution"]
    conf = result["model_confidence"]

    lines = [
        "COGLOAD STATUS REPORT",
        "=" * 58,
        "",
        f"  Check-ins           : {result['entries']}",
        f"  Load Index          : {load['load_index']} ({load['tier']})",
        f"  Stability           : {stability['score']} ({stability['label']}, {stability['pattern_regularity']})",
        f"  Projection          : {stability['projection']}",
        f"  Archetype           : {archetype['name']} ({archetype['confidence']}% confidence)",
        f"  Elasticity          : {elasticity['score']} ({elasticity['label']}, buffering {elasticity['buffering']})",
        f"  Evolution           : Level {evolution['level']} {evolution['name']} ({evolution['progress']}%)",
        f"  Model Confidence    : data {conf['data']}% / pattern {conf['pattern']}% / projection {conf['projection']}%",
        "",
        "  Risk Forecast:",
        f"    Burnout           : {risk['burnout_probability']}%",
        f"    Instability       : {risk['instability_risk']}%",
        f"    Recovery Deficit  : {risk['recovery_deficit']}%",
    ]

    if load["factors"]:
        lines.append("")
        lines.append("  Top Factors:")
        for f in load["factors"]:
            lines.append(f"    {f['name']:20s} : {f['impact']:8s} (+{f['weight']:.2f})")

    active_streaks = [s for s in result["micro_streaks"] if s["active"]]
    if active_streaks:
        lines.append("")
        lines.append("  Active Streaks:")
        for s in active_streaks:
            lines.append(f"    - {s['label']}: {s['days']} days")

    if result["recovery_signals"]:
        lines.append("")
        lines.append("  Recovery Signals:")
        for sig in result["recovery_signals"]:
            lines.append(f"    - {sig['description']} ({sig['impact']})")

    if result["correlations"]:
        lines.append("")
        lines.append("  Correlations:")
        for c in result["correlations"]:
            pair = f"{c['x_label']} x {c['y_label']}"
            lines.append(f"    {pair:22s} : {c['correlation']:+.2f}  {c['explanation']}")

    if result.get("simulation"):
        sim = result["simulation"]
        lines.append("")
        lines.append(f"  Simulated Week      : {sim['projected_loads']}")
        lines.append(f"    Peak Day {sim['peak_day']}, high-load risk {sim['risk_probability']}%")

    for exp in result["experiments"]:
        lines.append("")
        lines.append(
            f"  Experiment          : {exp['name']} [{exp['status']}] "
            f"{exp['progress']}% (stability {exp['delta']:+d})"
        )

    coach = result["coach"]
    lines.append("")
    lines.append(f"  Coach ({coach['source']}):")
    lines.append(f"    {coach['insight']}")
    lines.append(f"    Protect : {coach['protection_strategy']}")
    lines.append(f"    Optimize: {coach['optimization']}")
    if coach["risk_warning"]:
        lines.append("")
        lines.append(f"  ⚠  {coach['risk_warning']}")

    lines.append("")
    lines.append(f"  {result['hypothesis']}")
    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)
