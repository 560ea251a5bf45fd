# castweb/state.py: persisted pairing state (state.json)
import os, json, tempfile
from dataclasses import dataclass, asdict

STATE_FILE = "state.json"

class StateError(Exception):
    pass

@dataclass
class State:
    ytcast_code: str = ""

def state_path(state_dir: str) -> str:
    return os.path.join(state_dir, STATE_FILE)

def load_state(path: str) -> State:
    """
    Missing or empty file -> default State.
    A file that exists but cannot be read or decoded raises StateError so
    the caller can log it.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        return State()
    except OSError as e:
        raise StateError(f"read state: {e}") from e
    if not raw.strip():
        return State()
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise StateError(f"decode state: {e}") from e
    if not isinstance(data, dict):
        raise StateError("decode state: not an object")
    return State(ytcast_code=str(data.get("ytcast_code", "") or ""))

def save_state(path: str, state: State) -> None:
    """Write state.json through a temp file and an atomic os.replace."""
    state_dir = os.path.dirname(path) or "."
    os.makedirs(state_dir, mode=0o750, exist_ok=True)
    tmp = ""
    try:
        # unique temp name per call; concurrent writers must not share one
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=state_dir, prefix=STATE_FILE + ".",
            suffix=".tmp", delete=False,
        ) as f:
            tmp = f.name
            json.dump(asdict(state), f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except OSError as e:
        try:
            if tmp and os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass
        raise StateError(f"write state: {e}") from e
