"""
Persistence for check-ins, experiments, consent, calibration, and the
coach-override flag.

The engine never touches storage directly. A Repository is a small
key/value store of JSON-compatible values; CheckInStore layers the typed
accessors on top. Unreadable or malformed stored data is treated as
absent (logged at WARNING).
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from cogload.models import CheckIn, Experiment

logger = logging.getLogger(__name__)


CHECKINS_KEY = "cogload_checkins"
EXPERIMENTS_KEY = "cogload_experiments"
CONSENT_KEY = "cogload_consent"
CALIBRATION_KEY = "cogload_calibration"
LLM_ENABLED_KEY = "cogload_llm_enabled"

# clear_all_data leaves the LLM preference in place
USER_DATA_KEYS = (CONSENT_KEY, CHECKINS_KEY, EXPERIMENTS_KEY, CALIBRATION_KEY)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class Repository(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    def clear(self, keys=USER_DATA_KEYS) -> None:
        for key in keys:
            self.remove(key)


class InMemoryRepository(Repository):
    """Dict-backed store. Values are JSON round-tripped to match file storage."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileRepository(Repository):
    """One JSON file per key under a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(value, f, indent=2)
        tmp.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Typed facade
# ---------------------------------------------------------------------------

class CheckInStore:
    """Typed accessors over a Repository."""

    def __init__(self, repository: Optional[Repository] = None):
        self.repository = repository if repository is not None else InMemoryRepository()

    def _get_list(self, key: str) -> List[Dict]:
        data = self.repository.get(key, [])
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed {key}: expected a list, got {type(data).__name__}")
            return []
        return data

    # --- check-ins ---

    def get_checkins(self) -> List[CheckIn]:
        try:
            return [CheckIn.from_record(r) for r in self._get_list(CHECKINS_KEY)]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed check-in history: {e}")
            return []

    def save_checkin(self, checkin: Union[CheckIn, Dict]) -> None:
        """Append one check-in. Insertion order is chronological order."""
        if not isinstance(checkin, CheckIn):
            checkin = CheckIn.from_record(checkin)
        records = [c.to_record() for c in self.get_checkins()]
        records.append(checkin.to_record())
        self.repository.save(CHECKINS_KEY, records)

    # --- experiments ---

    def get_experiments(self) -> List[Experiment]:
        try:
            return [Experiment.from_record(r) for r in self._get_list(EXPERIMENTS_KEY)]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed experiment list: {e}")
            return []

    def save_experiments(self, experiments: List[Experiment]) -> None:
        self.repository.save(EXPERIMENTS_KEY, [e.to_record() for e in experiments])

    # --- consent / calibration / flags ---

    def has_consented(self) -> bool:
        return self.repository.get(CONSENT_KEY, False) is True

    def set_consent(self, value: bool) -> None:
        self.repository.save(CONSENT_KEY, bool(value))

    def save_calibration(self, data: Dict) -> None:
        self.repository.save(CALIBRATION_KEY, data)

    def get_calibration(self) -> Optional[Dict]:
        data = self.repository.get(CALIBRATION_KEY)
        return data if isinstance(data, dict) else None

    def is_llm_enabled(self) -> bool:
        return self.repository.get(LLM_ENABLED_KEY, False) is True

    def set_llm_enabled(self, enabled: bool) -> None:
        self.repository.save(LLM_ENABLED_KEY, bool(enabled))

    def clear_all_data(self) -> None:
        self.repository.clear(USER_DATA_KEYS)
