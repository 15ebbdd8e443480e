"""Persistent storage of the daemon's process state."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any

STATE_VERSION = "1.0.0"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class StateError(Exception):
    """Base error for state persistence problems."""


class StateCorruptionError(StateError):
    """The state is structurally invalid."""


class StateLoadError(StateError):
    """The state file could not be read or parsed."""


class StateSaveError(StateError):
    """The state file could not be written."""


class ProcessState(Enum):
    """Lifecycle state of a managed process."""

    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERRORED = "errored"
    RESTARTING = "restarting"

    def __str__(self) -> str:
        return self.value


def _duration_to_dict(value: timedelta) -> dict[str, int]:
    secs = value.days * 86400 + value.seconds
    return {"secs": secs, "nanos": value.microseconds * 1000}


def _duration_from_dict(data: dict[str, Any]) -> timedelta:
    return timedelta(seconds=int(data["secs"]), microseconds=int(data["nanos"]) // 1000)


def _time_to_dict(value: datetime) -> dict[str, int]:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return {
        "secs_since_epoch": delta.days * 86400 + delta.seconds,
        "nanos_since_epoch": delta.microseconds * 1000,
    }


def _time_from_dict(data: dict[str, Any]) -> datetime:
    return _EPOCH + timedelta(
        seconds=int(data["secs_since_epoch"]),
        microseconds=int(data["nanos_since_epoch"]) // 1000,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProcessStats:
    """Runtime statistics of a process."""

    pid: int | None = None
    uptime: timedelta = field(default_factory=timedelta)
    restarts: int = 0
    cpu_usage: float = 0.0
    memory_usage: int = 0
    last_restart: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pid": self.pid,
            "uptime": _duration_to_dict(self.uptime),
            "restarts": self.restarts,
            "cpu_usage": self.cpu_usage,
            "memory_usage": self.memory_usage,
            "last_restart": (
                None if self.last_restart is None else _time_to_dict(self.last_restart)
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessStats:
        last_restart = data.get("last_restart")
        pid = data.get("pid")
        return cls(
            pid=None if pid is None else int(pid),
            uptime=_duration_from_dict(data["uptime"]),
            restarts=int(data["restarts"]),
            cpu_usage=float(data["cpu_usage"]),
            memory_usage=int(data["memory_usage"]),
            last_restart=None if last_restart is None else _time_from_dict(last_restart),
        )


@dataclass
class PersistedProcess:
    """Persistent record of a single managed process."""

    id: int
    name: str
    script: Path
    args: list[str] = field(default_factory=list)
    cwd: Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    state: ProcessState = ProcessState.STOPPED
    stats: ProcessStats = field(default_factory=ProcessStats)
    autorestart: bool = True
    max_restarts: int = 10
    instances: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "script": str(self.script),
            "args": list(self.args),
            "cwd": None if self.cwd is None else str(self.cwd),
            "env": dict(self.env),
            "state": self.state.value,
            "stats": self.stats.to_dict(),
            "autorestart": self.autorestart,
            "max_restarts": self.max_restarts,
            "instances": self.instances,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersistedProcess:
        cwd = data.get("cwd")
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            script=Path(data["script"]),
            args=[str(arg) for arg in data["args"]],
            cwd=None if cwd is None else Path(cwd),
            env={str(k): str(v) for k, v in data["env"].items()},
            state=ProcessState(data["state"]),
            stats=ProcessStats.from_dict(data["stats"]),
            autorestart=bool(data["autorestart"]),
            max_restarts=int(data["max_restarts"]),
            instances=int(data["instances"]),
        )


@dataclass
class DaemonState:
    """Complete daemon state as persisted to disk."""

    version: str = STATE_VERSION
    processes: list[PersistedProcess] = field(default_factory=list)
    last_updated: datetime = field(default_factory=_now)

    def validate(self) -> None:
        """Raise StateCorruptionError if the state is inconsistent."""
        if self.version != STATE_VERSION:
            raise StateCorruptionError(
                f"Incompatible state version: expected {STATE_VERSION}, "
                f"found {self.version}"
            )

        seen_ids: set[int] = set()
        for process in self.processes:
            if process.id in seen_ids:
                raise StateCorruptionError(f"Duplicate process ID found: {process.id}")
            seen_ids.add(process.id)

        seen_names: set[str] = set()
        for process in self.processes:
            if process.name in seen_names:
                raise StateCorruptionError(
                    f"Duplicate process name found: {process.name}"
                )
            seen_names.add(process.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "processes": [process.to_dict() for process in self.processes],
            "last_updated": _time_to_dict(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DaemonState:
        return cls(
            version=str(data["version"]),
            processes=[PersistedProcess.from_dict(item) for item in data["processes"]],
            last_updated=_time_from_dict(data["last_updated"]),
        )


class StateStore:
    """Reads and atomically writes the daemon state file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> DaemonState:
        """Load the state, or an empty one if the file does not exist."""
        if not self.path.exists():
            return DaemonState()

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                try:
                    state = DaemonState.from_dict(json.load(handle))
                except (ValueError, KeyError, TypeError, AttributeError) as exc:
                    raise StateLoadError(f"Failed to parse state file: {exc}") from exc
        except OSError as exc:
            raise StateLoadError(f"Failed to open state file: {exc}") from exc

        state.validate()
        return state

    def save(self, state: DaemonState) -> None:
        """Validate and write the state via a temporary file and rename."""
        state.validate()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StateSaveError(f"Failed to create state directory: {exc}") from exc

        temp_path = self.path.with_suffix(".tmp")
        try:
            payload = json.dumps(state.to_dict(), indent=2)
        except (TypeError, ValueError) as exc:
            raise StateSaveError(f"Failed to serialize state: {exc}") from exc

        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
        except OSError as exc:
            raise StateSaveError(f"Failed to create temp state file: {exc}") from exc

        try:
            os.replace(temp_path, self.path)
        except OSError as exc:
            raise StateSaveError(f"Failed to rename temp state file: {exc}") from exc

    def clear(self) -> None:
        """Remove the state file if present."""
        if self.path.exists():
            try:
                self.path.unlink()
            except OSError as exc:
                raise StateError(f"Failed to clear state file: {exc}") from exc