# castweb/ytcast.py: calls into the external ytcast executable
import os, re, shlex, logging, subprocess
from typing import List

log = logging.getLogger(__name__)

YTCAST_BIN = os.getenv("YTCAST_BIN", "ytcast")
CAST_TIMEOUT = 15
_code_re = re.compile(r"[0-9]{12}")

class CastError(Exception):
    pass

def valid_code(code: str) -> bool:
    return bool(code) and _code_re.fullmatch(code) is not None

def _run(args: List[str], timeout: float = CAST_TIMEOUT) -> str:
    cmd = [YTCAST_BIN] + args
    log.info("exec %s", " ".join(shlex.quote(a) for a in cmd))
    try:
        res = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        log.warning("ytcast not found: %s", e)
        raise CastError("ytcast not found") from e
    except subprocess.TimeoutExpired as e:
        log.warning("ytcast timed out after %ss", timeout)
        raise CastError("ytcast timed out") from e
    except OSError as e:
        log.warning("ytcast failed to start: %s", e)
        raise CastError(str(e)) from e
    if res.returncode != 0:
        log.warning("ytcast failed: exit=%d\nstdout: %s\nstderr: %s",
                    res.returncode, res.stdout.strip(), res.stderr.strip())
        raise CastError(f"ytcast exited with {res.returncode}")
    return res.stdout

def cast(device: str, url: str) -> None:
    log.info("casting %s to device=%s", url, device)
    _run(["-d", device, url])

def pair(code: str) -> None:
    _run(["-p", code])

def list_devices() -> str:
    return _run(["-l"])
