"""Cogload v1.0: Standalone test suite (no pytest dependency)."""
import asyncio
import json
import os
import sys
import tempfile
import time
import traceback
from dataclasses import replace
from datetime import date
from pathlib import Path
from unittest import mock

import numpy as np
import pandas as pd
import requests

sys.path.insert(0, str(Path(__file__).parent))

from cogload.config import CogloadConfig, LoadWeights
from cogload.models import CheckIn, Experiment, to_frame
from cogload.scoring import (
    AWAITING_DATA, classify_tier, compute_cognitive_load, compute_load_components,
    raw_load, round_half_up,
)
from cogload.signals import (
    compute_elasticity, compute_model_confidence, compute_stability_index,
    recent_window, rolling_volatility,
)
from cogload.archetype import classify_archetype, compute_archetype_stats, determine_cognitive_archetype
from cogload.detectors import (
    compute_micro_streaks, compute_risk_forecast, compute_system_shift, detect_recovery_signals,
)
from cogload.simulation import SimulationInput, project_loads, simulate_scenarios, simulate_upcoming_week
from cogload.evolution import classify_level, compute_evolution
from cogload.experiments import (
    active_experiments, complete_experiment, days_elapsed, experiment_progress,
    get_available_experiments, refresh_experiments, start_experiment,
)
from cogload.correlation import compare_patterns, compute_correlations, pearson
from cogload.profile import compute_cognitive_dna
from cogload.narrative import generate_hypothesis, generate_insights, generate_weekly_reflection
from cogload.coach import (
    build_cognitive_context, generate_coach_advice, get_coach_intelligence,
    get_coach_intelligence_async,
)
from cogload.coach_service import OllamaCoachGenerator, parse_coach_response
from cogload.storage import CheckInStore, InMemoryRepository, JsonFileRepository, CHECKINS_KEY
from cogload.pipeline import analyze, analyze_data, generate_report, load_data

CFG = CogloadConfig()
TEST_DATA = Path(__file__).parent / "test_data.json"

passed = 0
failed = 0


def test(name, fn):
    global passed, failed
    try:
        fn()
        print(f"  ✓ {name}")
        passed += 1
    except Exception as e:
        print(f"  ✗ {name}: {e}")
        traceback.print_exc()
        failed += 1


def approx(a, b, tol=0.01):
    assert abs(a - b) < tol, f"{a} != {b} (tol={tol})"


def entry(focus=8, sleep=6, deadline=50, switching=40, clarity=3):
    return {
        "focusHours": focus, "sleepHours": sleep, "deadlinePressure": deadline,
        "taskSwitching": switching, "mentalClarity": clarity,
    }


# Reference entries: raw load 45.083 / 37.083 / 83.5 / 7.333
A = entry()
B = entry(deadline=10)
H = entry(focus=12, sleep=4, deadline=90, switching=90, clarity=1)
L = entry(focus=2, sleep=8, deadline=10, switching=10, clarity=5)
STEADY = entry(focus=4, sleep=8, deadline=20, switching=20, clarity=4)
REACTOR = entry(focus=6, sleep=7, deadline=80, switching=30, clarity=3)


# ═══════════════════════════════════════════════════════════════════════
# CONFIG
# ═══════════════════════════════════════════════════════════════════════
print("\n[Config]")

def t_weights_sum():
    w = CFG.weights
    approx(w.focus + w.sleep + w.deadline + w.switching + w.clarity, 1.0, 1e-9)
test("load weights sum to 1", t_weights_sum)

def t_bad_weights():
    try:
        LoadWeights(focus=0.5, sleep=0.5, deadline=0.5, switching=0.5, clarity=0.5)
        raise RuntimeError("Should have raised ValueError")
    except ValueError:
        pass
test("invalid load weights raises ValueError", t_bad_weights)

def t_config_override():
    cfg = replace(CFG, tiers=replace(CFG.tiers, moderate=50))
    assert classify_tier(45, cfg) == "low"
    assert classify_tier(45, CFG) == "moderate"
test("config override changes tier boundary", t_config_override)

def t_drift_configurable():
    cfg = replace(CFG, simulation=replace(CFG.simulation, daily_drift=0.0))
    loads = project_loads(40.0, SimulationInput(0, 0, 8, 0), cfg)
    assert list(loads) == [16] * 7
test("simulation drift is a config field", t_drift_configurable)


# ═══════════════════════════════════════════════════════════════════════
# MODELS
# ═══════════════════════════════════════════════════════════════════════
print("\n[Models]")

def t_checkin_from_record():
    c = CheckIn.from_record(dict(A, id="x", date="2026-01-01", moodWord="calm"))
    assert c.focus_hours == 8.0 and c.mental_clarity == 3 and c.mood_word == "calm"
    assert c.to_record()["deadlinePressure"] == 50.0
test("CheckIn maps camelCase records", t_checkin_from_record)

def t_to_frame_empty():
    df = to_frame([])
    assert len(df) == 0 and "sleep_hours" in df.columns
test("to_frame([]) yields typed empty frame", t_to_frame_empty)

def t_to_frame_preserves_order():
    df = to_frame([H, L, A])
    assert list(df["deadline_pressure"]) == [90.0, 10.0, 50.0]
test("to_frame preserves sequence order", t_to_frame_preserves_order)

def t_bad_experiment_status():
    try:
        Experiment(id="x", name="x", description="", duration=7, metric="", status="bogus")
        raise RuntimeError("Should have raised ValueError")
    except ValueError:
        pass
test("unknown experiment status raises ValueError", t_bad_experiment_status)


# ═══════════════════════════════════════════════════════════════════════
# SCORING
# ═══════════════════════════════════════════════════════════════════════
print("\n[Scoring]")

def t_scenario_a():
    approx(raw_load(A), 45.083)
    r = compute_cognitive_load([A])
    assert r["load_index"] == 45 and r["tier"] == "moderate"
test("scenario A: single entry → 45 moderate", t_scenario_a)

def t_scenario_b():
    approx(raw_load(B), 37.083)
    r = compute_cognitive_load([A, B])
    assert r["load_index"] == 40, r["load_index"]
    assert r["tier"] == "moderate"
test("scenario B: smoothed → 40 moderate", t_scenario_b)

def t_tier_boundaries():
    assert classify_tier(39) == "low"
    assert classify_tier(40) == "moderate"
    assert classify_tier(69) == "moderate"
    assert classify_tier(70) == "high"
test("tier boundaries at 40 and 70", t_tier_boundaries)

def t_empty_load():
    r = compute_cognitive_load([])
    assert r["load_index"] == 0 and r["tier"] == "low"
    assert r["explanation"] == AWAITING_DATA
    assert r["factors"] == []
test("empty history → 0 low with calibration text", t_empty_load)

def t_raw_bounds():
    approx(raw_load(entry(focus=24, sleep=0, deadline=100, switching=100, clarity=1)), 100.0)
    approx(raw_load(entry(focus=0, sleep=10, deadline=0, switching=0, clarity=5)), 0.0)
test("raw load spans [0, 100]", t_raw_bounds)

def t_monotonic_deadline():
    loads = [raw_load(entry(deadline=d)) for d in range(0, 101, 10)]
    assert all(b >= a for a, b in zip(loads, loads[1:]))
test("raw load non-decreasing in deadline pressure", t_monotonic_deadline)

def t_monotonic_sleep():
    loads = [raw_load(entry(sleep=s)) for s in np.arange(0, 8.01, 0.5)]
    assert all(b <= a for a, b in zip(loads, loads[1:]))
test("raw load non-increasing in sleep below target", t_monotonic_sleep)

def t_factors():
    r = compute_cognitive_load([A])
    assert len(r["factors"]) == 3
    assert r["factors"][0]["name"] == "Focus hours"
    approx(r["factors"][0]["weight"], 0.13, 1e-9)
    assert [f["name"] for f in r["factors"]][1:] == ["Deadline pressure", "Task switching"]
test("top factors ranked by contribution", t_factors)

def t_components_no_mutation():
    df = to_frame([A, B])
    cols = list(df.columns)
    compute_load_components(df)
    assert list(df.columns) == cols
test("component computation leaves input frame unchanged", t_components_no_mutation)

def t_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    approx(round_half_up(1.25, 1), 1.3, 1e-9)
test("round_half_up rounds .5 upward", t_round_half_up)


# ═══════════════════════════════════════════════════════════════════════
# SIGNALS
# ═══════════════════════════════════════════════════════════════════════
print("\n[Signals]")

def t_scenario_c():
    r = compute_stability_index([H, L])
    assert r["score"] == 50 and r["label"] == "Calibrating"
test("scenario C: 2 entries → calibrating stability 50", t_scenario_c)

def t_stability_constant():
    r = compute_stability_index([A] * 5)
    assert r["score"] == 100 and r["label"] == "Stable"
    assert r["pattern_regularity"] == "Regular"
    assert r["projection"] == "Stable trajectory maintained"
test("constant series → stability 100", t_stability_constant)

def t_stability_volatile():
    r = compute_stability_index([H, L, L, H, L, L, H])
    assert r["score"] == 0 and r["label"] == "Volatile"
    assert r["pattern_regularity"] == "Irregular"
test("alternating extremes → volatile", t_stability_volatile)

def t_stability_projection_up():
    r = compute_stability_index([L, L, L, H, H, H])
    assert r["projection"] == "Load trending upward. Monitor closely."
test("rising tail projects upward", t_stability_projection_up)

def t_recent_window():
    s = pd.Series(range(10))
    w = recent_window(s, 3)
    assert list(w) == [7, 8, 9] and list(w.index) == [0, 1, 2]
test("recent_window takes the tail, reindexed", t_recent_window)

def t_rolling_volatility():
    v = rolling_volatility([10, 10, 10, 40])
    assert v[0] == 0.0 and v[2] == 0.0
    approx(v[3], np.std([10, 10, 40]))
test("rolling volatility over 3-point blocks", t_rolling_volatility)

def t_elasticity_recovery():
    r = compute_elasticity([L, L, H, L, L])
    assert r["score"] == 80 and r["label"] == "High"
    assert r["recovery_velocity"] == 100
    assert r["buffering"] == "Strong"
test("quick spike recovery → high elasticity", t_elasticity_recovery)

def t_elasticity_constant():
    r = compute_elasticity([A] * 6)
    assert r["score"] == 60 and r["label"] == "Moderate"
    assert r["recovery_velocity"] == 50
test("no spikes → default elasticity", t_elasticity_constant)

def t_elasticity_calibrating():
    assert compute_elasticity([A] * 4)["label"] == "Calibrating"
test("elasticity calibrates below 5 entries", t_elasticity_calibrating)

def t_elasticity_slow():
    # Spike at day 2 never falls 10 below itself: 4 recovery days
    r = compute_elasticity([L] + [H] * 5)
    assert r["score"] == 20 and r["label"] == "Low"
    assert r["interpretation"].startswith("Slower recovery")
    assert r["recovery_velocity"] == 25
test("unrecovered spike → low elasticity", t_elasticity_slow)

def t_confidence():
    assert compute_model_confidence([]) == {"data": 0, "pattern": 10, "projection": 15}
    assert compute_model_confidence([A] * 21) == {"data": 100, "pattern": 95, "projection": 90}
    values = [compute_model_confidence([A] * n)["pattern"] for n in range(0, 25)]
    assert all(b >= a for a, b in zip(values, values[1:]))
test("model confidence steps with entry count", t_confidence)


# ═══════════════════════════════════════════════════════════════════════
# ARCHETYPE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Archetype]")

def t_burst_precedence():
    seq = [H, L, L, H, L, L, H]
    stats = compute_archetype_stats(seq)
    assert stats["deadline_spikes"] == 3 and stats["recovery_patterns"] == 2
    assert determine_cognitive_archetype(seq)["name"] == "Burst Performer"
test("burst rule precedes deadline rule", t_burst_precedence)

def t_deadline_reactor():
    assert determine_cognitive_archetype([REACTOR] * 7)["name"] == "Deadline Reactor"
test("sustained deadline spikes → Deadline Reactor", t_deadline_reactor)

def t_steady_builder():
    r = determine_cognitive_archetype([STEADY] * 7)
    assert r["name"] == "Steady Builder" and r["available"]
    assert r["confidence"] == 55
test("low flat load → Steady Builder", t_steady_builder)

def t_fallback():
    assert determine_cognitive_archetype([dict(H, deadlinePressure=50)] * 7)["name"] == "Adaptive Thinker"
test("no rule matches → Adaptive Thinker", t_fallback)

def t_recovery_dependent():
    # Peak load 62.8: above the recovery peak, never a high day
    peak = entry(focus=10, sleep=7, deadline=70, switching=70, clarity=1)
    seq = [peak, L, L, peak, L, L, L]
    stats = compute_archetype_stats(seq)
    assert stats["recovery_patterns"] == 2 and stats["high_days"] == 0
    assert stats["avg_sleep"] >= 6.5
    r = determine_cognitive_archetype(seq)
    assert r["name"] == "Recovery Dependent"
    assert r["pattern"] == "2 clear recovery cycles detected."
test("rested recovery cycles → Recovery Dependent", t_recovery_dependent)

def t_emerging():
    r = determine_cognitive_archetype([A] * 3)
    assert r["name"] == "Emerging" and not r["available"]
    assert r["confidence"] == 17
test("below 7 entries → Emerging", t_emerging)

def t_classify_isolated():
    stats = {"window": 10, "mean": 50.0, "std_dev": 16.0, "high_days": 0,
             "deadline_spikes": 0, "avg_sleep": 7.0, "recovery_patterns": 0}
    assert classify_archetype(stats) == "Elastic Thinker"
test("rule cascade evaluable on raw stats", t_classify_isolated)


# ═══════════════════════════════════════════════════════════════════════
# DETECTORS
# ═══════════════════════════════════════════════════════════════════════
print("\n[Detectors]")

def t_risk_defaults():
    assert compute_risk_forecast([A, A]) == {
        "burnout_probability": 10, "instability_risk": 15, "recovery_deficit": 10}
test("risk forecast defaults below 3 entries", t_risk_defaults)

def t_risk_heavy():
    r = compute_risk_forecast([H] * 7)
    assert r["burnout_probability"] == 70
    assert r["instability_risk"] == 0
    assert r["recovery_deficit"] == 95
test("sustained overload → capped deficit", t_risk_heavy)

def t_shift_a_to_b():
    r = compute_system_shift([A, B])
    assert r["load_delta"] == -8
    assert r["decreases"] == ["Deadline pressure"] and r["increases"] == []
    assert r["risk_forecast"] == 30
    assert r["divergence_detected"] is False
test("system shift between last two entries", t_shift_a_to_b)

def t_shift_single():
    r = compute_system_shift([A])
    assert r["load_delta"] == 0 and r["risk_forecast"] == 15
test("system shift needs 2 entries", t_shift_single)

def t_shift_divergence():
    r = compute_system_shift([L, H])
    assert r["divergence_detected"] is True
    assert "Mental clarity" in r["decreases"] and "Deadline pressure" in r["increases"]
test("large jump flags divergence", t_shift_divergence)

def t_recovery_signals_short():
    assert detect_recovery_signals([A] * 4) == []
test("no recovery signals below 5 entries", t_recovery_signals_short)

def t_sleep_recovery_signal():
    seq = [entry(focus=7, sleep=s) for s in (6, 6, 6, 7, 7)]
    signals = detect_recovery_signals(seq)
    assert [s["description"] for s in signals] == ["Sleep improvement detected"]
    assert signals[0]["percentage"] == 17
test("sleep gain ≥ 0.5h is a recovery signal", t_sleep_recovery_signal)

def t_low_focus_recovery_signal():
    # Loads 7.33, 57, 7.33, 9, 7.33: swing 49.67 before, 1.67 after
    pressured = entry(focus=12, sleep=8, deadline=100, switching=10, clarity=1)
    light = entry(focus=3, sleep=8, deadline=10, switching=10, clarity=5)
    signals = detect_recovery_signals([L, pressured, L, light, L])
    assert len(signals) == 1
    assert signals[0]["description"] == "Two moderate-focus days reduced volatility"
    assert signals[0]["percentage"] == 97
    assert signals[0]["impact"] == "Volatility decreased by 97%"
test("low-focus days after high load calm volatility", t_low_focus_recovery_signal)

def t_switching_recovery_signal():
    seq = [entry(switching=s) for s in (50, 50, 40, 40, 30, 30)]
    signals = detect_recovery_signals(seq)
    assert [s["description"] for s in signals] == ["Task switching frequency decreased"]
    assert signals[0]["impact"] == "Switching reduced from 50 to 30"
    assert signals[0]["percentage"] == 40
test("switching drop > 10 is a recovery signal", t_switching_recovery_signal)

def t_scenario_d():
    seq = [entry(sleep=7)] * 3 + [entry(sleep=8)] * 3
    streaks = {s["label"]: s for s in compute_micro_streaks(seq)}
    assert streaks["Sleep consistency"]["days"] == 6
    assert streaks["Sleep consistency"]["active"] is True
test("scenario D: six rested days → active sleep streak", t_scenario_d)

def t_streak_broken():
    seq = [entry(sleep=8)] * 5 + [entry(sleep=5)]
    streaks = {s["label"]: s for s in compute_micro_streaks(seq)}
    assert streaks["Sleep consistency"]["days"] == 0
    assert streaks["Sleep consistency"]["active"] is False
test("streak is 0 when latest entry fails", t_streak_broken)

def t_streak_low_volatility():
    streaks = {s["label"]: s["days"] for s in compute_micro_streaks([L] * 6)}
    assert streaks["Stability"] == 6 and streaks["Low volatility"] == 5
test("stability and volatility streaks", t_streak_low_volatility)


# ═══════════════════════════════════════════════════════════════════════
# SIMULATION
# ═══════════════════════════════════════════════════════════════════════
print("\n[Simulation]")

def t_sim_quiet_week():
    r = simulate_upcoming_week([], SimulationInput(0, 0, 8, 0))
    assert r["projected_loads"] == [16, 18, 19, 21, 22, 24, 25]
    assert all(z["risk"] == "low" for z in r["risk_zones"])
    assert r["peak_day"] == 7 and r["risk_probability"] == 0
    assert r["stability_shift"] == -10
    assert "manageable" in r["summary"]
test("quiet week from default baseline", t_sim_quiet_week)

def t_sim_high_load():
    r = simulate_upcoming_week([], SimulationInput(80, 3, 6, 20))
    assert r["peak_day"] == 4
    assert r["risk_probability"] == 57
    assert all(0 <= v <= 100 for v in r["projected_loads"])
test("high-load scenario peaks mid-week", t_sim_high_load)

def t_scenarios():
    names = [s["name"] for s in simulate_scenarios([A] * 5)]
    assert names == ["High Load", "High Recovery", "Balanced"]
test("preset scenarios in declared order", t_scenarios)


# ═══════════════════════════════════════════════════════════════════════
# EVOLUTION
# ═══════════════════════════════════════════════════════════════════════
print("\n[Evolution]")

def t_evolution_empty():
    r = compute_evolution([])
    assert (r["level"], r["name"], r["progress"]) == (1, "Reactive", 0)
    assert r["milestones"] == []
test("no entries → level 1", t_evolution_empty)

def t_evolution_week():
    assert compute_evolution([A] * 7)["level"] == 2
test("one steady week → level 2", t_evolution_week)

def t_evolution_full():
    r = compute_evolution([A] * 30)
    assert r["level"] == 5 and r["progress"] == 100
    assert len(r["milestones"]) == 5
    assert r["stability_improvement"] == 0 and r["recovery_strengthening"] == 0
test("30 steady entries → level 5", t_evolution_full)

def t_level_needs_stability():
    assert classify_level(30, 50) == (3, "Adaptive")
test("level ladder requires stability", t_level_needs_stability)


# ═══════════════════════════════════════════════════════════════════════
# EXPERIMENTS
# ═══════════════════════════════════════════════════════════════════════
print("\n[Experiments]")

START = date(2026, 1, 1)

def t_templates():
    exps = get_available_experiments()
    assert len(exps) == 4 and all(e.status == "available" for e in exps)
test("four experiment templates", t_templates)

def t_start():
    exps = start_experiment([], "increase-sleep", 70, today=START)
    assert len(exps) == 1
    e = exps[0]
    assert e.status == "active" and e.start_date == "2026-01-01" and e.baseline_value == 70
test("start snapshots baseline", t_start)

def t_restart_replaces():
    exps = start_experiment([], "increase-sleep", 70, today=START)
    exps = start_experiment(exps, "increase-sleep", 60, today=date(2026, 1, 3))
    assert len(exps) == 1 and exps[0].baseline_value == 60
test("restarting replaces the previous instance", t_restart_replaces)

def t_unknown_template():
    try:
        start_experiment([], "nope", 50)
        raise RuntimeError("Should have raised KeyError")
    except KeyError:
        pass
test("unknown template raises KeyError", t_unknown_template)

def t_progress():
    exps = start_experiment([], "deep-work", 70, today=START)
    p = experiment_progress(exps[0], [A] * 3, today=date(2026, 1, 4))
    assert p["days_elapsed"] == 3 and p["progress"] == 43
    assert p["current"] == 100 and p["delta"] == 30
    assert exps[0].current_value is None
test("progress and live stability delta", t_progress)

def t_auto_complete():
    exps = start_experiment([], "deep-work", 70, today=START)
    assert days_elapsed(exps[0], date(2026, 1, 8)) == 7
    refreshed = refresh_experiments(exps, today=date(2026, 1, 8))
    assert refreshed[0].status == "completed" and refreshed[0].end_date == "2026-01-08"
    assert active_experiments(refreshed) == []
test("elapsed duration completes experiment", t_auto_complete)

def t_manual_complete():
    exps = start_experiment([], "reduce-switching", 50, today=START)
    done = complete_experiment(exps, "reduce-switching", today=date(2026, 1, 2))
    assert done[0].status == "completed"
    assert exps[0].status == "active"
test("manual completion returns a new list", t_manual_complete)


# ═══════════════════════════════════════════════════════════════════════
# CORRELATION
# ═══════════════════════════════════════════════════════════════════════
print("\n[Correlation]")

def t_pearson():
    assert pearson([1, 2, 3], [2, 4, 6]) == 1.0
    assert pearson([1, 2, 3], [3, 2, 1]) == -1.0
    assert pearson([1, 1, 1], [1, 2, 3]) == 0.0
test("pearson basics and zero denominator", t_pearson)

def t_correlations_short():
    assert compute_correlations([A] * 4) == []
test("fewer than 5 entries → no correlations", t_correlations_short)

def t_correlations_fixture():
    corr = compute_correlations(load_data(TEST_DATA))
    assert [c["x_label"] for c in corr] == ["Sleep", "Switching", "Deadlines"]
    assert all(-1.0 <= c["correlation"] <= 1.0 for c in corr)
    assert corr[0]["correlation"] < -0.3
    assert corr[0]["explanation"].startswith("More sleep")
test("fixture correlations bounded, sleep protective", t_correlations_fixture)

def t_compare_short():
    r = compare_patterns([A] * 10)
    assert r["available"] is False
    assert r["summary"].startswith("Need 4 more check-ins")
test("pattern comparison needs 14 entries", t_compare_short)

def t_compare_rising():
    r = compare_patterns([L] * 7 + [H] * 7)
    assert r["previous_period"]["avg_load"] == 7
    assert r["current_period"]["avg_load"] == 84
    assert r["load_change"] == 77
    assert r["sleep_correlation"] == "Reduced sleep may contribute to load increases."
    assert r["summary"].startswith("Average load increased by 77 points.")
test("rising second half detected", t_compare_rising)

def t_compare_flat():
    r = compare_patterns([A] * 14)
    assert r["load_change"] == 0 and r["volatility_change"] == 0.0
    assert r["summary"] == "Average load stable between periods. Sleep patterns remained consistent."
test("flat history compares as stable", t_compare_flat)


# ═══════════════════════════════════════════════════════════════════════
# PROFILE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Cognitive DNA]")

def t_dna_empty():
    r = compute_cognitive_dna([])
    assert r["baseline_range"] == [30, 60]
    assert r["reactivity_index"] == 50 and r["sleep_sensitivity"] == 50
    assert r["deadline_amplification"] == 50 and r["task_switching_friction"] == 40
    assert r["cognitive_age"] == 31
test("empty history → neutral DNA", t_dna_empty)

def t_dna_reactor():
    r = compute_cognitive_dna([REACTOR] * 7)
    assert r["baseline_range"] == [43, 43]
    assert r["reactivity_index"] == 0
    assert r["deadline_amplification"] == 100
    assert r["task_switching_friction"] == 30
    assert r["cognitive_age"] == 27
    assert [s["value"] for s in r["spectrums"]] == [100, 30, 40, 0]
test("constant deadline-heavy history", t_dna_reactor)

def t_dna_sleep_sensitivity():
    seq = [entry(sleep=s) for s in (5, 5, 8, 8, 8)]
    assert compute_cognitive_dna(seq)["sleep_sensitivity"] == 19
test("sleep sensitivity from short vs rested days", t_dna_sleep_sensitivity)


# ═══════════════════════════════════════════════════════════════════════
# NARRATIVE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Narrative]")

def t_hypothesis_calibrating():
    assert generate_hypothesis([]).startswith("Awaiting initial cognitive data")
    assert generate_hypothesis([A, A]).startswith("Preliminary calibration")
test("hypothesis before enough data", t_hypothesis_calibrating)

def t_hypothesis_steady():
    text = generate_hypothesis([STEADY] * 7)
    assert text == "Your cognitive system is operating at low load tolerance with stable pattern regularity.", text
test("steady hypothesis sentence", t_hypothesis_steady)

def t_hypothesis_volatile():
    text = generate_hypothesis([H, L, L, H, L, L, H])
    assert "but volatility suggests" in text
    assert text.endswith("Sleep deficit may be constraining recovery buffering capacity.")
test("volatile hypothesis names cause", t_hypothesis_volatile)

def t_insights_short():
    assert generate_insights([A]) == []
test("no insights below 2 entries", t_insights_short)

def t_insights_steady():
    cards = generate_insights([STEADY] * 2)
    assert [c["title"] for c in cards] == ["Steady patterns"]
test("steady fallback insight", t_insights_steady)

def t_insights_all():
    seq = [entry(focus=9, sleep=5, deadline=d, switching=70) for d in (80, 60, 50)]
    titles = [c["title"] for c in generate_insights(seq)]
    assert titles == ["Sleep consistency", "Extended focus periods",
                      "Task batching opportunity", "Recovery signal detected"]
test("insight cards fire in order", t_insights_all)

def t_reflection_empty():
    assert generate_weekly_reflection([]).startswith("Complete a few check-ins")
test("reflection needs data", t_reflection_empty)

def t_reflection_steady():
    text = generate_weekly_reflection([STEADY] * 7)
    assert "Consistent load pattern across 7 check-ins." in text
    assert "low cognitive elasticity. Recovery buffering is adequate." in text
    assert "Sleep averaged" not in text
test("steady week reflection", t_reflection_steady)

def t_reflection_single():
    assert "across 1 check-in." in generate_weekly_reflection([A])
test("singular check-in wording", t_reflection_single)


# ═══════════════════════════════════════════════════════════════════════
# COACH
# ═══════════════════════════════════════════════════════════════════════
print("\n[Coach]")

HIGH_LOAD = {"load_index": 80, "tier": "high", "factors": [], "explanation": ""}
MOD_LOAD = {"load_index": 50, "tier": "moderate", "factors": [], "explanation": ""}
LOW_LOAD = {"load_index": 10, "tier": "low", "factors": [], "explanation": ""}
SHAKY = {"score": 30, "label": "Volatile", "pattern_regularity": "Irregular"}
SOLID = {"score": 80, "label": "Stable", "pattern_regularity": "Regular"}

GOOD_TEXT = (
    "INSIGHT: Your system is steady.\nIt holds.\n"
    "PROTECTION: Guard your mornings.\n"
    "OPTIMIZATION: Batch reviews.\n"
    "RISK: none"
)


class FakeGenerator:
    def __init__(self, result=None, error=None, delay=0.0):
        self.result, self.error, self.delay = result, error, delay
        self.contexts = []

    def try_generate(self, context):
        self.contexts.append(context)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


def t_advice_high():
    a = generate_coach_advice([entry(sleep=7, switching=30)] * 7, HIGH_LOAD, SHAKY)
    assert a["insight"].startswith("Your system is under sustained pressure")
    assert a["protection_strategy"].startswith("Create a 2-hour protected focus block")
    assert a["optimization"].startswith("Defer non-essential decisions")
    assert a["risk_warning"].startswith("Pattern analysis indicates elevated burnout")
test("high load + low stability → burnout warning", t_advice_high)

def t_advice_empty_defaults():
    a = generate_coach_advice([], LOW_LOAD, SOLID)
    assert a["insight"].startswith("Your cognitive load is well-managed")
    assert a["protection_strategy"].startswith("Maintain current patterns")
    assert a["optimization"].startswith("Use this low-load period")
    assert a["risk_warning"] is None
test("empty history uses default averages", t_advice_empty_defaults)

def t_advice_sleep_first():
    a = generate_coach_advice([entry(sleep=5, switching=80)] * 7, MOD_LOAD, SOLID)
    assert a["protection_strategy"].startswith("Prioritize sleep recovery")
    assert a["risk_warning"].startswith("Sleep deficit has reached")
test("sleep rule precedes switching rule", t_advice_sleep_first)

def t_advice_switching():
    a = generate_coach_advice([entry(sleep=7, switching=70)] * 7, MOD_LOAD, SOLID)
    assert a["protection_strategy"].startswith("Batch similar tasks")
    assert a["optimization"].startswith("Front-load")
test("high switching → batching", t_advice_switching)

def t_context():
    load = compute_cognitive_load([A])
    stability = compute_stability_index([A])
    text = build_cognitive_context([A], load, stability)
    assert "- Load Index: 45/100 (moderate tier)" in text
    assert "- Avg Sleep (7d): 6.0h" in text
    assert "- Check-ins: 1 total" in text
test("context summary lines", t_context)

def t_intelligence_algorithmic():
    r = get_coach_intelligence([A], MOD_LOAD, SOLID)
    assert r["source"] == "algorithmic"
test("no generator → algorithmic", t_intelligence_algorithmic)

def t_intelligence_llm():
    gen = FakeGenerator(result=parse_coach_response(GOOD_TEXT))
    r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=gen)
    assert r["source"] == "llm" and r["insight"] == "Your system is steady.\nIt holds."
    assert gen.contexts[0].startswith("Cognitive System State:")
test("usable generator output wins", t_intelligence_llm)

def t_intelligence_failures():
    for gen in (FakeGenerator(result=None), FakeGenerator(error=RuntimeError("boom"))):
        r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=gen)
        assert r["source"] == "algorithmic"
        assert r["insight"].startswith("You're operating in a productive")
test("failed or raising generator → algorithmic", t_intelligence_failures)

def t_intelligence_async_timeout():
    cfg = replace(CFG, coach_service=replace(CFG.coach_service, timeout_seconds=0.05))
    gen = FakeGenerator(result={"insight": "late"}, delay=0.3)
    r = asyncio.run(get_coach_intelligence_async([A], MOD_LOAD, SOLID, generator=gen, cfg=cfg))
    assert r["source"] == "algorithmic"
test("async generator timeout → algorithmic", t_intelligence_async_timeout)

def t_intelligence_async_llm():
    gen = FakeGenerator(result=parse_coach_response(GOOD_TEXT))
    r = asyncio.run(get_coach_intelligence_async([A], MOD_LOAD, SOLID, generator=gen))
    assert r["source"] == "llm"
test("async generator success → llm", t_intelligence_async_llm)

def t_intelligence_sync_timeout():
    cfg = replace(CFG, coach_service=replace(CFG.coach_service, timeout_seconds=0.1))
    gen = FakeGenerator(result={"insight": "late"}, delay=1.5)
    started = time.monotonic()
    r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=gen, cfg=cfg)
    elapsed = time.monotonic() - started
    assert r["source"] == "algorithmic"
    assert elapsed < 1.0, f"blocked for {elapsed:.2f}s"
test("slow generator abandoned after timeout", t_intelligence_sync_timeout)

def t_intelligence_async_returns_promptly():
    cfg = replace(CFG, coach_service=replace(CFG.coach_service, timeout_seconds=0.1))
    gen = FakeGenerator(result={"insight": "late"}, delay=1.5)
    started = time.monotonic()
    r = asyncio.run(get_coach_intelligence_async([A], MOD_LOAD, SOLID, generator=gen, cfg=cfg))
    elapsed = time.monotonic() - started
    assert r["source"] == "algorithmic"
    assert elapsed < 1.0, f"blocked for {elapsed:.2f}s"
test("async run does not wait for abandoned generator", t_intelligence_async_returns_promptly)

def t_intelligence_rejects_blank_insight():
    for result in ({"insight": ""}, {"insight": "   "}, {"optimization": "x"}, "INSIGHT: text", ["x"]):
        r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=FakeGenerator(result=result))
        assert r["source"] == "algorithmic", result
        assert r["insight"].startswith("You're operating in a productive")
        r = asyncio.run(get_coach_intelligence_async(
            [A], MOD_LOAD, SOLID, generator=FakeGenerator(result=result)))
        assert r["source"] == "algorithmic", result
test("generator output without insight → algorithmic", t_intelligence_rejects_blank_insight)

def t_intelligence_fills_missing_slots():
    r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=FakeGenerator(result={"insight": "hi"}))
    assert r == {
        "insight": "hi",
        "protection_strategy": "Maintain current protective patterns.",
        "optimization": "Continue current optimization approach.",
        "risk_warning": None,
        "source": "llm",
    }
    r = get_coach_intelligence([A], MOD_LOAD, SOLID, generator=FakeGenerator(
        result={"insight": "hi", "risk_warning": "None", "optimization": 5}))
    assert r["risk_warning"] is None
    assert r["optimization"] == "Continue current optimization approach."
test("partial generator output gets default slots", t_intelligence_fills_missing_slots)


# ═══════════════════════════════════════════════════════════════════════
# COACH SERVICE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Coach Service]")

def ok_response(text):
    response = mock.MagicMock()
    response.json.return_value = {"response": text}
    return response

def t_parse_full():
    r = parse_coach_response(GOOD_TEXT)
    assert r["protection_strategy"] == "Guard your mornings."
    assert r["optimization"] == "Batch reviews."
    assert r["risk_warning"] is None
test("parse all four sections", t_parse_full)

def t_parse_defaults():
    r = parse_coach_response("INSIGHT: Fine.\nRISK: Watch sleep.")
    assert r["protection_strategy"] == "Maintain current protective patterns."
    assert r["optimization"] == "Continue current optimization approach."
    assert r["risk_warning"] == "Watch sleep."
test("missing sections get defaults", t_parse_defaults)

def t_parse_no_insight():
    assert parse_coach_response("PROTECTION: x\nOPTIMIZATION: y") is None
    assert parse_coach_response("") is None
test("missing INSIGHT → None", t_parse_no_insight)

def t_ollama_request():
    gen = OllamaCoachGenerator("http://localhost:11434/", "llama3.2", timeout=8.0)
    with mock.patch("cogload.coach_service.requests.post", return_value=ok_response(GOOD_TEXT)) as post:
        r = gen.try_generate("ctx")
    assert r["insight"].startswith("Your system is steady.")
    args, kwargs = post.call_args
    assert args[0] == "http://localhost:11434/api/generate"
    assert kwargs["json"]["model"] == "llama3.2" and kwargs["json"]["stream"] is False
    assert kwargs["json"]["prompt"].endswith("ctx")
    assert kwargs["timeout"] == 8.0
test("generator posts to /api/generate", t_ollama_request)

def t_ollama_errors():
    gen = OllamaCoachGenerator("http://localhost:11434", "llama3.2")
    for err in (requests.ConnectionError("down"), requests.Timeout("slow")):
        with mock.patch("cogload.coach_service.requests.post", side_effect=err):
            assert gen.try_generate("ctx") is None
    bad = mock.MagicMock()
    bad.json.side_effect = ValueError("not json")
    with mock.patch("cogload.coach_service.requests.post", return_value=bad):
        assert gen.try_generate("ctx") is None
    http_err = mock.MagicMock()
    http_err.raise_for_status.side_effect = requests.HTTPError("500")
    with mock.patch("cogload.coach_service.requests.post", return_value=http_err):
        assert gen.try_generate("ctx") is None
test("network, timeout, JSON, HTTP errors → None", t_ollama_errors)

def t_ollama_env():
    with mock.patch.dict(os.environ, {"COGLOAD_LLM_URL": "http://coach:9000/", "COGLOAD_LLM_MODEL": "mistral"}):
        gen = OllamaCoachGenerator.from_config()
    assert gen.endpoint == "http://coach:9000/api/generate" and gen.model == "mistral"
test("environment overrides endpoint and model", t_ollama_env)

def t_enabled_config_uses_ollama():
    cfg = replace(CFG, coach_service=replace(CFG.coach_service, enabled=True))
    with mock.patch("cogload.coach_service.requests.post", return_value=ok_response(GOOD_TEXT)):
        assert get_coach_intelligence([A], MOD_LOAD, SOLID, cfg=cfg)["source"] == "llm"
    with mock.patch("cogload.coach_service.requests.post", side_effect=requests.ConnectionError()):
        assert get_coach_intelligence([A], MOD_LOAD, SOLID, cfg=cfg)["source"] == "algorithmic"
test("enabled config routes through HTTP client", t_enabled_config_uses_ollama)


# ═══════════════════════════════════════════════════════════════════════
# STORAGE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Storage]")

def t_store_checkins():
    store = CheckInStore(InMemoryRepository())
    store.save_checkin(dict(A, id="1", date="2026-01-01"))
    store.save_checkin(CheckIn.from_record(dict(B, id="2", date="2026-01-02")))
    got = store.get_checkins()
    assert [c.id for c in got] == ["1", "2"]
    assert got[1].deadline_pressure == 10.0
test("check-ins append in order", t_store_checkins)

def t_store_flags():
    store = CheckInStore()
    assert store.has_consented() is False and store.is_llm_enabled() is False
    assert store.get_calibration() is None
    store.set_consent(True)
    store.set_llm_enabled(True)
    store.save_calibration({"baseline": 42})
    assert store.has_consented() and store.is_llm_enabled()
    assert store.get_calibration() == {"baseline": 42}
test("consent, calibration, LLM flag", t_store_flags)

def t_store_clear():
    store = CheckInStore()
    store.save_checkin(A)
    store.save_experiments(start_experiment([], "deep-work", 50, today=START))
    store.set_consent(True)
    store.set_llm_enabled(True)
    store.clear_all_data()
    assert store.get_checkins() == [] and store.get_experiments() == []
    assert store.has_consented() is False
    assert store.is_llm_enabled() is True
test("clear_all_data wipes user data only", t_store_clear)

def t_file_repository():
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckInStore(JsonFileRepository(tmp))
        store.save_experiments(start_experiment([], "deep-work", 64, today=START))
        raw = json.loads((Path(tmp) / "cogload_experiments.json").read_text())
        assert raw[0]["baselineValue"] == 64 and raw[0]["startDate"] == "2026-01-01"
        reopened = CheckInStore(JsonFileRepository(tmp))
        assert reopened.get_experiments()[0].baseline_value == 64
test("file repository persists camelCase records", t_file_repository)

def t_file_repository_malformed():
    with tempfile.TemporaryDirectory() as tmp:
        (Path(tmp) / f"{CHECKINS_KEY}.json").write_text("{not json")
        assert CheckInStore(JsonFileRepository(tmp)).get_checkins() == []
        (Path(tmp) / f"{CHECKINS_KEY}.json").write_text('{"a": 1}')
        assert CheckInStore(JsonFileRepository(tmp)).get_checkins() == []
        (Path(tmp) / f"{CHECKINS_KEY}.json").write_text('[{"focusHours": 1}]')
        assert CheckInStore(JsonFileRepository(tmp)).get_checkins() == []
test("malformed stored data reads as empty", t_file_repository_malformed)

def t_file_repository_bad_encoding():
    with tempfile.TemporaryDirectory() as tmp:
        store = CheckInStore(JsonFileRepository(tmp))
        for key in ("cogload_calibration", "cogload_consent", "cogload_llm_enabled", CHECKINS_KEY):
            (Path(tmp) / f"{key}.json").write_bytes(b'{"a": "\xff\xfe"}')
        assert store.get_calibration() is None
        assert store.has_consented() is False
        assert store.is_llm_enabled() is False
        assert store.get_checkins() == []
test("undecodable stored bytes read as empty", t_file_repository_bad_encoding)


# ═══════════════════════════════════════════════════════════════════════
# PIPELINE
# ═══════════════════════════════════════════════════════════════════════
print("\n[Pipeline]")

def t_load_data():
    df = load_data(TEST_DATA)
    assert len(df) == 21 and "sleep_hours" in df.columns
    assert df["id"].iloc[0] == "ci-01"
test("load_data maps fixture to snake_case", t_load_data)

def t_load_keeps_order():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "d.json"
        path.write_text(json.dumps([dict(A, date="2026-01-05"), dict(B, date="2026-01-01")]))
        df = load_data(path)
    assert list(df["deadline_pressure"]) == [50.0, 10.0]
test("load_data keeps file order", t_load_keeps_order)

def t_missing_file():
    try:
        analyze("nonexistent.json")
        raise RuntimeError("Should have raised FileNotFoundError")
    except FileNotFoundError:
        pass
test("missing file raises FileNotFoundError", t_missing_file)

def t_missing_fields():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "d.json"
        path.write_text(json.dumps([{"focusHours": 1}]))
        try:
            load_data(path)
            raise RuntimeError("Should have raised ValueError")
        except ValueError as e:
            assert "sleepHours" in str(e)
test("missing fields raise ValueError", t_missing_fields)

def t_analyze_fixture():
    result = analyze(TEST_DATA)
    assert result["entries"] == 21
    assert 0 <= result["load"]["load_index"] <= 100
    assert result["archetype"]["available"] is True
    assert result["pattern_comparison"]["available"] is True
    assert len(result["correlations"]) == 3
    assert result["coach"]["source"] == "algorithmic"
    assert result["simulation"] is None
test("full analysis of fixture", t_analyze_fixture)

def t_analyze_empty():
    result = analyze_data([])
    assert result["load"]["load_index"] == 0
    assert result["stability"]["label"] == "Calibrating"
    assert result["archetype"]["name"] == "Emerging"
    assert result["correlations"] == [] and result["recovery_signals"] == []
test("empty history analyzes without error", t_analyze_empty)

def t_analyze_inputs_agree():
    records = json.loads(TEST_DATA.read_text())
    from_records = analyze_data(records)
    from_objects = analyze_data([CheckIn.from_record(r) for r in records])
    assert from_records == from_objects
test("records and CheckIn objects analyze identically", t_analyze_inputs_agree)

def t_fractional_clarity_agrees():
    records = [dict(A, mentalClarity=3.7), dict(H, mentalClarity=2.5), dict(L, mentalClarity=4.2)]
    from_records = analyze_data(records)
    mixed = analyze_data([CheckIn.from_record(records[0])] + records[1:])
    assert from_records == mixed
    approx(raw_load(records[0]), raw_load(CheckIn.from_record(records[0])), 1e-9)
test("fractional clarity scores the same on every input path", t_fractional_clarity_agrees)

def t_determinism():
    records = json.loads(TEST_DATA.read_text())
    assert analyze_data(records) == analyze_data(records)
test("analysis is deterministic", t_determinism)

def t_analyze_experiments():
    exps = start_experiment([], "increase-sleep", 60, today=START)
    result = analyze_data([A] * 5, experiments=exps, today=date(2026, 1, 4),
                          simulation=SimulationInput(50, 2, 7.5, 50))
    assert result["experiments"][0]["delta"] == 40
    assert len(result["simulation"]["projected_loads"]) == 7
test("experiments and simulation flow through", t_analyze_experiments)

def t_report():
    result = analyze(TEST_DATA)
    report = generate_report(result)
    assert report.startswith("COGLOAD STATUS REPORT")
    assert "Load Index" in report and "Coach (algorithmic)" in report
test("report formatting", t_report)

def t_report_partial_generator():
    result = analyze_data([A] * 3, generator=FakeGenerator(result={"insight": "hi"}))
    report = generate_report(result)
    assert "Coach (llm)" in report
    assert "Maintain current protective patterns." in report
test("report renders partial generator advice", t_report_partial_generator)


# ═══════════════════════════════════════════════════════════════════════
# SUMMARY
# ═══════════════════════════════════════════════════════════════════════
print(f"\n{'=' * 58}")
print(f"  {passed} passed, {failed} failed")
print(f"{'=' * 58}")
sys.exit(1 if failed else 0)
