"""Process-wide services shared by all progress tasks.

The single-active-task guard and the location cache used to be class-level
globals. They live on an explicit ProgressContext that is created once per
process (see `default_context()`) and can be replaced in tests or embedded
hosts by passing `context=` to the runner.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Hashable, Iterator, Optional, Tuple

from platformdirs import user_config_dir

from stepbar.core.utils.logging import get_logger

logger = get_logger(__name__)

Location = Tuple[float, float]

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1


class SingleActiveTaskGuard:
    """At most one active task per process.

    Holds a reference to the owning runner so presentation and host code can
    ask which task is running.
    """

    def __init__(self) -> None:
        self._owner: Optional[object] = None

    @property
    def is_active(self) -> bool:
        return self._owner is not None

    @property
    def owner(self) -> Optional[object]:
        return self._owner

    def try_activate(self, owner: object) -> bool:
        """Claim the guard for `owner`. Returns False (no-op) if already active."""
        if self._owner is not None:
            return False
        self._owner = owner
        return True

    def deactivate(self, owner: Optional[object] = None) -> None:
        """Release the guard.

        With `owner` given, only releases if `owner` currently holds it, so a
        finished task cannot clear a newer task's claim.
        """
        if owner is not None and self._owner is not owner:
            return
        self._owner = None


class LocationCache:
    """Last known screen location per opaque id. Entries are never removed."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._locations: Dict[Hashable, Location] = {}

    def get(self, key: Hashable) -> Optional[Location]:
        with self._lock:
            return self._locations.get(key)

    def set(self, key: Hashable, location: Location) -> None:
        x, y = location
        with self._lock:
            self._locations[key] = (x, y)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._locations

    def __len__(self) -> int:
        with self._lock:
            return len(self._locations)

    def __iter__(self) -> Iterator[Hashable]:
        with self._lock:
            return iter(list(self._locations))

    # -----------------------------
    # Optional persistence
    # -----------------------------
    @staticmethod
    def default_path(
        app_name: str = "stepbar",
        filename: str = "locations.json",
        app_author: str | None = None,
    ) -> Path:
        """OS-appropriate per-user file, e.g. ~/.config/stepbar/locations.json on Linux."""
        d = Path(user_config_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "LocationCache":
        """Load a cache from disk. Missing or unreadable files give an empty cache."""
        path = path or cls.default_path()
        cache = cls(path=path)
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info(f"Location cache not found at {path}, starting empty")
            return cache
        except Exception as e:
            logger.warning(f"Failed to read location cache {path}: {e}")
            return cache

        if not isinstance(parsed, dict) or parsed.get("schema_version") != SCHEMA_VERSION:
            logger.warning(f"Location cache {path} has an unexpected layout, starting empty")
            return cache

        for key, raw in (parsed.get("locations") or {}).items():
            try:
                cache.set(str(key), (float(raw[0]), float(raw[1])))
            except (TypeError, ValueError, IndexError):
                logger.warning(f"Skipping malformed location for id {key!r}: {raw!r}")
        return cache

    def save(self, path: Optional[Path] = None) -> Path:
        """Write string-keyed entries as JSON. Other ids are process-local only."""
        path = path or self.path or self.default_path()
        with self._lock:
            items = dict(self._locations)
        payload: Dict[str, Any] = {
            "schema_version": SCHEMA_VERSION,
            "locations": {k: list(v) for k, v in items.items() if isinstance(k, str)},
        }
        skipped = len(items) - len(payload["locations"])
        if skipped:
            logger.debug(f"Not persisting {skipped} location(s) with non-string ids")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        self.path = path
        return path


class ProgressContext:
    """Shared services for progress tasks.

    Attributes:
        guard: SingleActiveTaskGuard for the whole process.
        locations: LocationCache consulted on task start and updated on drags.
    """

    def __init__(
        self,
        guard: Optional[SingleActiveTaskGuard] = None,
        locations: Optional[LocationCache] = None,
    ) -> None:
        self.guard = guard if guard is not None else SingleActiveTaskGuard()
        self.locations = locations if locations is not None else LocationCache()

    @property
    def is_task_active(self) -> bool:
        return self.guard.is_active


_DEFAULT_CONTEXT: Optional[ProgressContext] = None


def default_context() -> ProgressContext:
    """Process-wide context, created on first use."""
    global _DEFAULT_CONTEXT
    if _DEFAULT_CONTEXT is None:
        logger.info("Creating default ProgressContext")
        _DEFAULT_CONTEXT = ProgressContext()
    return _DEFAULT_CONTEXT


def reset_default_context() -> ProgressContext:
    """Replace the process-wide context (useful for testing)."""
    global _DEFAULT_CONTEXT
    _DEFAULT_CONTEXT = ProgressContext()
    return _DEFAULT_CONTEXT
