# adasa

Persistent state storage for a process manager daemon. The `adasa.state`
module records the processes the daemon manages in a human-readable JSON
file: their script, arguments, working directory, environment, restart
policy and latest statistics. It validates the state when loading and
saving, and writes the file atomically.

## Installation

```
pip install .
```

## Usage

```python
from pathlib import Path

from adasa.state import (
    DaemonState,
    PersistedProcess,
    ProcessState,
    ProcessStats,
    StateStore,
)

store = StateStore(Path("~/.adasa/state.json").expanduser())

state = store.load()          # an empty DaemonState if the file does not exist
state.processes.append(
    PersistedProcess(
        id=1,
        name="web",
        script=Path("/usr/bin/node"),
        args=["server.js"],
        cwd=Path("/srv/app"),
        env={"NODE_ENV": "production"},
        state=ProcessState.RUNNING,
        stats=ProcessStats(pid=4242),
        autorestart=True,
        max_restarts=10,
        instances=1,
    )
)
store.save(state)             # validated, written to "state.tmp", then renamed

store.clear()                 # removes the state file if it exists
```

`StateStore.save()` creates the file's parent directories if they are
missing. The data goes to a sibling file with the `.tmp` suffix first. That
file is then renamed over the target, so a reader never sees a half-written
state.

### Data model

- `ProcessState`: the lifecycle state of a process. Its values are
  `starting`, `running`, `stopping`, `stopped`, `errored` and `restarting`,
  and `str()` gives the value.
- `ProcessStats`: `pid`, `uptime` (a `timedelta`), `restarts`, `cpu_usage`,
  `memory_usage` and `last_restart` (a `datetime` or `None`).
- `PersistedProcess`: `id`, `name`, `script`, `args`, `cwd`, `env`,
  `state`, `stats`, `autorestart` (default `True`), `max_restarts` (default
  `10`) and `instances` (default `1`).
- `DaemonState`: `version` (the format version, `"1.0.0"`), `processes`
  and `last_updated`.

`ProcessStats`, `PersistedProcess` and `DaemonState` each provide
`to_dict()` and a `from_dict()` class method. These convert to and from the
plain JSON structures stored on disk. Durations are stored as
`{"secs", "nanos"}` and times as `{"secs_since_epoch", "nanos_since_epoch"}`.

### Validation and errors

`DaemonState.validate()` raises `StateCorruptionError` in these cases:

- the state's version is not the supported format version,
- two processes share an id,
- two processes share a name.

Both `StateStore.load()` and `StateStore.save()` call it.
`StateStore.load()` raises `StateLoadError` when the file cannot be opened
or parsed. `StateStore.save()` raises `StateSaveError` when the directory,
temporary file or rename fails. `StateStore.clear()` raises `StateError`
when the file cannot be removed. All of these derive from `StateError`.

## What this package does not do

This package only stores and validates state. It does not start, stop,
restart or monitor processes. It does not capture their logs, enforce
resource limits or run a daemon or IPC server. It has no command-line
interface.

## Running the tests

```
pip install .[test]
pytest
```