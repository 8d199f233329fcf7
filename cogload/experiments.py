"""
Behavioral experiment lifecycle: available → active → completed.

Experiment lists belong to the persistence collaborator. Every function
here takes a list and returns a new one; nothing is mutated in place.
The live stability value is computed on demand and never written back
into the stored record.
"""

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Union

from cogload.config import CogloadConfig, DEFAULT_CONFIG
from cogload.models import CheckInSequence, Experiment
from cogload.scoring import round_half_up
from cogload.signals import compute_stability_index


EXPERIMENT_TEMPLATES = (
    Experiment(
        id="reduce-switching",
        name="Reduce Task Switching",
        description="Minimize context switches for 7 days. Batch similar tasks together.",
        duration=7,
        metric="Volatility change",
    ),
    Experiment(
        id="increase-sleep",
        name="Sleep Optimization",
        description="Target 7.5+ hours of sleep each night for 7 days.",
        duration=7,
        metric="Stability improvement",
    ),
    Experiment(
        id="deadline-batching",
        name="Deadline Batching",
        description="Consolidate deadlines into 2 peak days, keeping other days lighter.",
        duration=7,
        metric="Recovery delta",
    ),
    Experiment(
        id="deep-work",
        name="Deep Work Blocks",
        description="Implement 2-hour uninterrupted focus blocks each day.",
        duration=7,
        metric="Focus efficiency",
    ),
)


def get_available_experiments() -> List[Experiment]:
    return list(EXPERIMENT_TEMPLATES)


def _as_date(value: Union[str, date, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _find_template(template_id: str) -> Experiment:
    for template in EXPERIMENT_TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(f"Unknown experiment template: {template_id}")


def start_experiment(
    experiments: Sequence[Experiment],
    template_id: str,
    baseline_stability: int,
    today: Optional[date] = None,
) -> List[Experiment]:
    """
    Start an experiment from a template, snapshotting the baseline.

    Any existing instance with the same id is replaced, so at most one
    active instance per template exists.
    """
    today = today or date.today()
    started = replace(
        _find_template(template_id),
        status="active",
        start_date=today.isoformat(),
        end_date=None,
        baseline_value=int(baseline_stability),
        current_value=None,
    )
    return [e for e in experiments if e.id != template_id] + [started]


def complete_experiment(
    experiments: Sequence[Experiment],
    experiment_id: str,
    today: Optional[date] = None,
) -> List[Experiment]:
    """Mark an active experiment completed; other entries pass through."""
    today = today or date.today()
    return [
        replace(e, status="completed", end_date=today.isoformat())
        if e.id == experiment_id and e.status == "active" else e
        for e in experiments
    ]


def days_elapsed(experiment: Experiment, today: Optional[date] = None) -> int:
    start = _as_date(experiment.start_date)
    if start is None:
        return 0
    return max(0, ((today or date.today()) - start).days)


def refresh_experiments(
    experiments: Sequence[Experiment],
    today: Optional[date] = None,
) -> List[Experiment]:
    """Complete every active experiment whose duration has elapsed."""
    today = today or date.today()
    return [
        replace(e, status="completed", end_date=today.isoformat())
        if e.status == "active" and days_elapsed(e, today) >= e.duration else e
        for e in experiments
    ]


def active_experiments(experiments: Sequence[Experiment]) -> List[Experiment]:
    return [e for e in experiments if e.status == "active"]


def experiment_progress(
    experiment: Experiment,
    checkins: CheckInSequence,
    today: Optional[date] = None,
    cfg: CogloadConfig | None = None,
) -> Dict[str, object]:
    """
    Live progress of a started experiment.

    progress = min(100, elapsed / duration * 100); delta is live stability
    minus the stored baseline.
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    elapsed = days_elapsed(experiment, today)
    progress = (
        min(100, round_half_up(elapsed / experiment.duration * 100))
        if experiment.duration > 0 else 100
    )
    current = compute_stability_index(checkins, cfg)["score"]
    baseline = experiment.baseline_value or 0

    return {
        "id": experiment.id,
        "name": experiment.name,
        "status": experiment.status,
        "days_elapsed": elapsed,
        "progress": progress,
        "baseline": baseline,
        "current": current,
        "delta": current - baseline,
    }
