"""
COGLOAD v1.0: Explainable Cognitive Load Modeling Engine

A deterministic, interpretable engine that turns daily self-reported
check-ins into structured intelligence about cognitive load, stability,
recovery, and risk.

Architecture:
    config        All thresholds, weights, and window sizes (single source of truth)
    models        CheckIn / Experiment records and the DataFrame conversion point
    scoring       Raw load, smoothed load index, tier, contributing factors
    signals       Stability, elasticity, model confidence
    archetype     Behavioral archetype cascade
    detectors     Risk forecast, system shift, recovery signals, micro-streaks
    simulation    7-day what-if projection and preset scenarios
    evolution     Level ladder and milestones
    experiments   Behavioral experiment lifecycle
    correlation   Pairwise correlations and period comparison
    profile       Cognitive DNA
    narrative     Hypothesis, insight cards, weekly reflection
    coach         Rule-based coaching with optional generator override
    coach_service Ollama-compatible text generator client
    storage       Repository abstraction and typed store
    pipeline      Orchestration: load → score → signal → detect → narrate → report

Public API:
    analyze(filepath)        → CLI mode
    analyze_data(data)       → integration mode
    generate_report(result)  → formatted report
"""

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckIn, Experiment
from cogload.pipeline import analyze, analyze_data, generate_report
from cogload.simulation import SimulationInput
from cogload.storage import CheckInStore, InMemoryRepository, JsonFileRepository

__version__ = "1.0.0"

__all__ = [
    "analyze",
    "analyze_data",
    "generate_report",
    "CogloadConfig",
    "DEFAULT_CONFIG",
    "CheckIn",
    "Experiment",
    "SimulationInput",
    "CheckInStore",
    "InMemoryRepository",
    "JsonFileRepository",
]
