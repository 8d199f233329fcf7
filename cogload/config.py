"""
Centralized configuration for all thresholds, weights, and window parameters.

Every tunable constant lives here, including the heuristic ones (archetype
cascade cut-offs, the simulation's daily drift) that have no derivation
beyond observed behavior. Pass a modified CogloadConfig to any model
function to override defaults.
"""

from dataclasses import dataclass, field
from typing import Tuple


# ---------------------------------------------------------------------------
# Load weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoadWeights:
    """Weights used to compose the raw load from the five sub-scores."""

    focus: float = 0.20
    sleep: float = 0.25
    deadline: float = 0.20
    switching: float = 0.20
    clarity: float = 0.15

    def __post_init__(self):
        total = self.focus + self.sleep + self.deadline + self.switching + self.clarity
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Load weights must sum to 1.0, got {total}")


# ---------------------------------------------------------------------------
# Load scoring parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringParams:
    """Parameters for raw-to-score transformations and smoothing."""

    # Focus saturates at this many hours
    focus_cap_hours: float = 12.0

    # Sleep deficit is measured against this target
    sleep_target_hours: float = 8.0

    # Mental clarity is an ordinal 1..5
    clarity_max: float = 5.0
    clarity_span: float = 4.0

    # Latest raw load vs. mean of prior window entries
    current_weight: float = 0.6
    history_weight: float = 0.4

    # Factor description levels (sub-score value)
    factor_high: float = 66.0
    factor_moderate: float = 33.0
    top_factors: int = 3
    trend_points: int = 3

    scale_max: float = 100.0


@dataclass(frozen=True)
class TierThresholds:
    """Load index boundaries: low < moderate <= x < high."""

    moderate: int = 40
    high: int = 70


# ---------------------------------------------------------------------------
# Windows and minimum samples
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WindowParams:
    """Trailing window sizes (number of most recent entries)."""

    load: int = 14
    stability: int = 14
    archetype: int = 21
    elasticity: int = 14
    risk: int = 7
    correlation: int = 21
    coach: int = 7
    recovery: int = 14
    dna: int = 14


@dataclass(frozen=True)
class MinSamples:
    """Minimum entry counts below which a model reports a calibrating result."""

    stability: int = 3
    archetype: int = 7
    elasticity: int = 5
    risk: int = 3
    shift: int = 2
    correlation: int = 5
    comparison: int = 14
    evolution_deltas: int = 14
    recovery_signals: int = 5
    streaks: int = 2


# ---------------------------------------------------------------------------
# Stability
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StabilityThresholds:
    """Stability score = 100 - sigma_multiplier * sigma, then labeled."""

    sigma_multiplier: float = 3.0
    stable: int = 70
    variable: int = 40
    regular_sigma: float = 8.0
    variable_sigma: float = 15.0
    projection_min_points: int = 5
    projection_delta: float = 5.0
    calibrating_score: int = 50


# ---------------------------------------------------------------------------
# Archetype cascade
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArchetypeThresholds:
    """Cut-offs for the ordered archetype rule cascade."""

    high_load: float = 65.0
    deadline_spike: float = 70.0
    recovery_peak: float = 60.0
    recovery_trough: float = 45.0

    burst_sigma: float = 18.0
    burst_high_day_ratio: float = 0.30
    min_recovery_patterns: int = 2
    deadline_ratio: float = 0.35
    elastic_sigma: float = 14.0
    elastic_mean: float = 45.0
    recovery_sleep: float = 6.5
    steady_sigma: float = 12.0
    steady_mean: float = 55.0

    emerging_confidence: float = 40.0
    # (min entries, confidence), checked top-down
    confidence_tiers: Tuple[Tuple[int, int], ...] = ((21, 95), (14, 78), (0, 55))


# ---------------------------------------------------------------------------
# Elasticity and model confidence
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ElasticityParams:
    """Spike detection and recovery scoring."""

    spike_jump: float = 15.0
    recovery_drop: float = 10.0
    penalty_per_day: float = 20.0
    default_recovery_days: float = 2.0
    default_velocity: int = 50
    high: int = 70
    moderate: int = 40
    calibrating_score: int = 50

    buffer_focus_hours: float = 5.0
    buffer_deadline: float = 30.0
    strong_buffer_days: int = 3


@dataclass(frozen=True)
class ConfidenceBands:
    """Step functions of total entry count: (upper bound exclusive, value)."""

    data_full_at: int = 21
    pattern: Tuple[Tuple[int, int], ...] = ((3, 10), (7, 35), (14, 60), (21, 80))
    pattern_max: int = 95
    projection: Tuple[Tuple[int, int], ...] = ((5, 15), (10, 40), (21, 65))
    projection_max: int = 90


# ---------------------------------------------------------------------------
# Risk and system shift
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskParams:
    """Burnout, instability, and recovery-deficit forecast."""

    high_load: float = 65.0
    sleep_reference: float = 7.0
    high_day_weight: float = 40.0
    sleep_gap_weight: float = 10.0
    sigma_weight: float = 0.8
    instability_sigma_weight: float = 3.5
    deficit_sleep_weight: float = 15.0
    long_focus_hours: float = 8.0
    long_focus_weight: float = 8.0
    cap: int = 95

    default_burnout: int = 10
    default_instability: int = 15
    default_deficit: int = 10


@dataclass(frozen=True)
class ShiftParams:
    """Day-over-day change thresholds."""

    pressure_delta: float = 10.0
    sleep_delta: float = 0.5
    divergence_delta: float = 20.0

    forecast_load_weight: float = 0.6
    forecast_sleep_weight: float = 0.2
    forecast_deadline_weight: float = 0.2
    sleep_proxy_per_hour: float = 12.0
    default_forecast: int = 15


@dataclass(frozen=True)
class RecoverySignalParams:
    """Thresholds for recovery-signal detection."""

    low_focus_hours: float = 6.0
    prior_high_load: float = 55.0
    sleep_window: int = 5
    sleep_gain_hours: float = 0.5
    switching_window: int = 6
    switching_drop: float = 10.0


@dataclass(frozen=True)
class StreakParams:
    """Micro-streak conditions."""

    stable_load: float = 60.0
    sleep_hours: float = 7.0
    volatility_delta: float = 10.0
    active_days: int = 2


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioPreset:
    """A named hypothetical week used for side-by-side comparison."""

    name: str
    expected_workload: float
    major_deadlines: int
    planned_sleep: float
    recovery_intention: float


DEFAULT_SCENARIOS: tuple = (
    ScenarioPreset("High Load", expected_workload=80, major_deadlines=3,
                   planned_sleep=6, recovery_intention=20),
    ScenarioPreset("High Recovery", expected_workload=30, major_deadlines=1,
                   planned_sleep=8.5, recovery_intention=80),
    ScenarioPreset("Balanced", expected_workload=50, major_deadlines=2,
                   planned_sleep=7.5, recovery_intention=50),
)


@dataclass(frozen=True)
class SimulationParams:
    """Parametric 7-day projection."""

    horizon_days: int = 7
    baseline_window: int = 7
    default_baseline: float = 40.0
    baseline_weight: float = 0.4
    workload_weight: float = 35.0
    sleep_weight: float = 25.0
    deadline_amplitude: float = 12.0
    # Heuristic upward drift per projected day
    daily_drift: float = 1.5
    recovery_weight: float = 15.0

    stability_recovery_weight: float = 20.0
    stability_workload_weight: float = 10.0
    scenarios: tuple = DEFAULT_SCENARIOS


# ---------------------------------------------------------------------------
# Evolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EvolutionLevel:
    """One rung of the evolution ladder."""

    level: int
    name: str
    min_entries: int
    min_stability: int


DEFAULT_EVOLUTION_LEVELS: tuple = (
    EvolutionLevel(5, "Cognitive Strategist", min_entries=30, min_stability=70),
    EvolutionLevel(4, "Self-Regulating", min_entries=21, min_stability=55),
    EvolutionLevel(3, "Adaptive", min_entries=14, min_stability=40),
    EvolutionLevel(2, "Aware", min_entries=7, min_stability=0),
)

DEFAULT_MILESTONES: tuple = (
    (1, "First check-in completed"),
    (7, "One week of data"),
    (14, "Archetype identified"),
    (21, "Full pattern confidence"),
    (30, "Longitudinal analysis available"),
)


@dataclass(frozen=True)
class EvolutionParams:
    levels: tuple = DEFAULT_EVOLUTION_LEVELS
    base_level: int = 1
    base_name: str = "Reactive"
    milestones: tuple = DEFAULT_MILESTONES
    full_progress_entries: int = 30


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CorrelationParams:
    significance: float = 0.3
    volatility_window: int = 3
    sleep_shift_hours: float = 0.3
    load_shift_points: int = 5


# ---------------------------------------------------------------------------
# Cognitive DNA profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProfileParams:
    min_entries: int = 5

    default_range: Tuple[int, int] = (30, 60)
    default_mean: float = 45.0
    default_std: float = 10.0

    reactivity_scale: float = 3.0
    default_reactivity: int = 50

    low_sleep: float = 6.5
    rested_sleep: float = 7.0
    sensitivity_scale: float = 2.0
    default_sensitivity: int = 50

    deadline_high: float = 60.0
    amplification_scale: float = 150.0
    default_amplification: int = 50

    default_switching: float = 40.0

    # cognitive_age = base + mean/100*mean_years + σ/σ_span*σ_years - elasticity/100*elastic_years
    age_base: float = 25.0
    age_mean_years: float = 15.0
    age_sigma_span: float = 30.0
    age_sigma_years: float = 10.0
    age_elastic_years: float = 8.0


# ---------------------------------------------------------------------------
# Narrative: hypothesis, insight cards, weekly reflection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NarrativeParams:
    window: int = 7
    hypothesis_min_entries: int = 3
    insights_min_entries: int = 2

    volatile_stability: int = 50
    reactive_deadline: float = 50.0
    low_sleep: float = 6.5
    long_focus: float = 8.0
    high_switching: float = 60.0

    consistent_sigma: float = 8.0
    variable_sigma: float = 15.0
    high_elasticity_ratio: float = 3.0
    moderate_elasticity_ratio: float = 1.5
    recovery_focus: float = 5.0
    recovery_deadline: float = 30.0
    pressured_deadline: float = 50.0
    clear_clarity: float = 3.0
    high_pressure_deadline: float = 60.0
    sleep_note_hours: float = 7.0
    crowded_pressure_days: int = 3


# ---------------------------------------------------------------------------
# Coaching
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CoachThresholds:
    """Branch points for the rule-based coaching narrative."""

    low_sleep: float = 6.5
    high_switching: float = 60.0
    critical_sleep: float = 5.5
    risk_load: int = 75
    risk_stability: int = 40

    default_sleep: float = 7.0
    default_switching: float = 30.0


@dataclass(frozen=True)
class CoachServiceParams:
    """External text-generation override."""

    enabled: bool = False
    base_url: str = "http://localhost:11434"
    model: str = "llama3.2"
    timeout_seconds: float = 8.0


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CogloadConfig:
    """Complete engine configuration. Pass to any model to override defaults."""

    weights: LoadWeights = field(default_factory=LoadWeights)
    scoring: ScoringParams = field(default_factory=ScoringParams)
    tiers: TierThresholds = field(default_factory=TierThresholds)
    windows: WindowParams = field(default_factory=WindowParams)
    min_samples: MinSamples = field(default_factory=MinSamples)
    stability: StabilityThresholds = field(default_factory=StabilityThresholds)
    archetype: ArchetypeThresholds = field(default_factory=ArchetypeThresholds)
    elasticity: ElasticityParams = field(default_factory=ElasticityParams)
    confidence: ConfidenceBands = field(default_factory=ConfidenceBands)
    risk: RiskParams = field(default_factory=RiskParams)
    shift: ShiftParams = field(default_factory=ShiftParams)
    recovery: RecoverySignalParams = field(default_factory=RecoverySignalParams)
    streaks: StreakParams = field(default_factory=StreakParams)
    simulation: SimulationParams = field(default_factory=SimulationParams)
    evolution: EvolutionParams = field(default_factory=EvolutionParams)
    correlation: CorrelationParams = field(default_factory=CorrelationParams)
    profile: ProfileParams = field(default_factory=ProfileParams)
    narrative: NarrativeParams = field(default_factory=NarrativeParams)
    coach: CoachThresholds = field(default_factory=CoachThresholds)
    coach_service: CoachServiceParams = field(default_factory=CoachServiceParams)


DEFAULT_CONFIG = CogloadConfig()
