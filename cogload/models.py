"""
Record types owned by the persistence collaborator, and the single
conversion point from a check-in sequence to a DataFrame.

Persisted records use camelCase keys; everything inside the engine uses
snake_case columns. Row order is chronology: nothing here sorts by date.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------

METRIC_COLUMNS = (
    "focus_hours",
    "sleep_hours",
    "deadline_pressure",
    "task_switching",
    "mental_clarity",
)

RECORD_FIELDS = {
    "id": "id",
    "date": "date",
    "focusHours": "focus_hours",
    "sleepHours": "sleep_hours",
    "deadlinePressure": "deadline_pressure",
    "taskSwitching": "task_switching",
    "mentalClarity": "mental_clarity",
    "moodWord": "mood_word",
}

REQUIRED_RECORD_FIELDS = {
    "focusHours", "sleepHours", "deadlinePressure", "taskSwitching", "mentalClarity",
}


# ---------------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CheckIn:
    """One daily self-reported data point. Immutable once created."""

    id: str
    date: str
    focus_hours: float
    sleep_hours: float
    deadline_pressure: float
    task_switching: float
    mental_clarity: float
    mood_word: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict) -> "CheckIn":
        """Build from a persisted camelCase record (or a snake_case dict)."""
        values = {RECORD_FIELDS.get(k, k): v for k, v in record.items()}
        return cls(
            id=str(values.get("id", "")),
            date=str(values.get("date", "")),
            focus_hours=float(values["focus_hours"]),
            sleep_hours=float(values["sleep_hours"]),
            deadline_pressure=float(values["deadline_pressure"]),
            task_switching=float(values["task_switching"]),
            mental_clarity=float(values["mental_clarity"]),
            mood_word=values.get("mood_word") or None,
        )

    def to_record(self) -> Dict:
        record = {
            "id": self.id,
            "date": self.date,
            "focusHours": self.focus_hours,
            "sleepHours": self.sleep_hours,
            "deadlinePressure": self.deadline_pressure,
            "taskSwitching": self.task_switching,
            "mentalClarity": self.mental_clarity,
        }
        if self.mood_word:
            record["moodWord"] = self.mood_word
        return record


# ---------------------------------------------------------------------------
# Experiment
# ---------------------------------------------------------------------------

EXPERIMENT_STATUSES = ("available", "active", "completed")


@dataclass(frozen=True)
class Experiment:
    """A behavioral intervention template or a started instance of one."""

    id: str
    name: str
    description: str
    duration: int
    metric: str
    status: str = "available"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    baseline_value: Optional[int] = None
    current_value: Optional[int] = None

    def __post_init__(self):
        if self.status not in EXPERIMENT_STATUSES:
            raise ValueError(f"Unknown experiment status: {self.status!r}")

    @classmethod
    def from_record(cls, record: Dict) -> "Experiment":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            description=str(record.get("description", "")),
            duration=int(record.get("duration", 0)),
            metric=str(record.get("metric", "")),
            status=record.get("status", "available"),
            start_date=record.get("startDate"),
            end_date=record.get("endDate"),
            baseline_value=record.get("baselineValue"),
            current_value=record.get("currentValue"),
        )

    def to_record(self) -> Dict:
        record = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "metric": self.metric,
            "status": self.status,
        }
        optional = {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "baselineValue": self.baseline_value,
            "currentValue": self.current_value,
        }
        record.update({k: v for k, v in optional.items() if v is not None})
        return record


# ---------------------------------------------------------------------------
# Sequence → DataFrame
# ---------------------------------------------------------------------------

CheckInSequence = Union[pd.DataFrame, Iterable[Union[CheckIn, Dict]]]


def to_frame(checkins: CheckInSequence) -> pd.DataFrame:
    """
    Normalize a check-in sequence into a DataFrame with METRIC_COLUMNS.

    Accepts a DataFrame (returned unchanged), or any iterable of CheckIn
    objects / persisted records. Order is preserved; the index is reset.
    """
    if isinstance(checkins, pd.DataFrame):
        return checkins

    rows: List[Dict] = []
    for item in checkins:
        entry = item if isinstance(item, CheckIn) else CheckIn.from_record(item)
        rows.append({col: getattr(entry, col) for col in METRIC_COLUMNS})

    if not rows:
        return pd.DataFrame({col: pd.Series(dtype="float64") for col in METRIC_COLUMNS})

    return pd.DataFrame(rows, columns=list(METRIC_COLUMNS)).astype("float64")
