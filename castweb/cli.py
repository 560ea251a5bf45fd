# castweb/cli.py: `castweb --root DIR` runs the web UI under uvicorn
import os, sys, argparse, logging
from typing import Tuple

import uvicorn

from .config import Settings
from .main import create_app

log = logging.getLogger("castweb")

def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="castweb", description="Browse a .strm/.nfo tree and cast to YouTube TV")
    ap.add_argument("root_pos", nargs="?", metavar="ROOT", help="root directory (same as --root)")
    ap.add_argument("--root", default=None, help="root directory containing the .strm/.nfo hierarchy")
    ap.add_argument("--host", default=defaults.host)
    ap.add_argument("--port", type=int, default=defaults.port)
    ap.add_argument("--ytcast", dest="ytcast_device", default=defaults.ytcast_device,
                    help="ytcast device to cast to (env YTCAST_DEVICE)")
    ap.add_argument("--state", dest="state_dir", default=defaults.state_dir,
                    help="directory for persistent state (state.json)")
    ap.add_argument("--svtplay-endpoint", default=defaults.svtplay_endpoint,
                    help="URL that receives SVT Play links as ?url=")
    ap.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "info"),
                    choices=["debug", "info", "warning", "error"])
    return ap

def parse_settings(argv=None) -> Tuple[Settings, str]:
    env = Settings.from_env()
    args = build_parser(env).parse_args(argv)
    root = args.root or args.root_pos or os.getenv("CASTWEB_ROOT", "")
    return Settings(
        root=root,
        host=args.host,
        port=args.port,
        ytcast_device=args.ytcast_device,
        state_dir=args.state_dir,
        svtplay_endpoint=args.svtplay_endpoint,
        silence_health=env.silence_health,
    ), args.log_level

def main(argv=None) -> int:
    settings, level = parse_settings(argv)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.root:
        log.error("missing root directory (pass --root PATH or positional PATH)")
        return 1
    if not os.path.isdir(settings.root):
        log.error("invalid root directory: %s", settings.root)
        return 1

    app = create_app(settings)
    log.info("serving %s on %s:%d", settings.root, settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=level)
    log.info("server stopped")
    return 0

if __name__ == "__main__":
    sys.exit(main())
