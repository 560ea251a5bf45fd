# castweb/config.py
import os
from dataclasses import dataclass

@dataclass
class Settings:
    root: str = "."
    host: str = "0.0.0.0"
    port: int = 8080
    ytcast_device: str = ""
    state_dir: str = "/var/lib/castweb"
    svtplay_endpoint: str = ""
    silence_health: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            root=os.getenv("CASTWEB_ROOT", "."),
            host=os.getenv("CASTWEB_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            ytcast_device=os.getenv("YTCAST_DEVICE", ""),
            state_dir=os.getenv("CASTWEB_STATE_DIR", "/var/lib/castweb"),
            svtplay_endpoint=os.getenv("SVTPLAY_ENDPOINT", ""),
            silence_health=os.getenv("SILENCE_HEALTH_LOGS", "1") == "1",
        )
