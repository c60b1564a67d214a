# chatstack/settings.py

# Imports
import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
from . import temporary

CONFIG_PATH = Path("data/persistent.json")

# Default settings
DEFAULTS = {
    "model": temporary.DEFAULT_MODEL,
    "app_name": temporary.APP_NAME,
    "native_port": temporary.NATIVE_PORT_UI,
    "internal_port": temporary.INTERNAL_PORT_UI,
    "runtime_timeout": 60,
    "runtime_interval": 3,
    "health_timeout": None,           # None = wait forever, image pulls can be slow
    "health_interval": 2,
    "compose_file": temporary.COMPOSE_FILE,
}

INT_KEYS = {"native_port", "internal_port"}
SECONDS_KEYS = {"runtime_timeout", "runtime_interval", "health_timeout", "health_interval"}
# Per-run choices: honoured when present in the file, never written back
RUN_SCOPED_KEYS = {"model", "runtime_timeout", "health_timeout"}


@dataclass(frozen=True)
class InstallConfig:
    """Settings for one installer run; built once from defaults, saved file and flags."""
    model: str = temporary.DEFAULT_MODEL
    skip_docker_check: bool = False
    native_port: int = temporary.NATIVE_PORT_UI
    internal_port: int = temporary.INTERNAL_PORT_UI
    app_name: str = temporary.APP_NAME
    runtime_timeout: float = 60
    runtime_interval: float = 3
    health_timeout: Optional[float] = None
    health_interval: float = 2
    skip_desktop: bool = False
    skip_model: bool = False
    compose_file: str = temporary.COMPOSE_FILE

    @property
    def health_url(self) -> str:
        return f"http://localhost:{self.native_port}/health"

    @property
    def ui_url(self) -> str:
        return f"http://localhost:{self.native_port}"


# Functions...
def load_config(path: Path = CONFIG_PATH) -> dict:
    """
    Read saved install settings from persistent.json.
    A missing file means "no overrides"; an unreadable or malformed one aborts
    instead of silently falling back.
    """
    if not path.exists():
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except Exception as e:
        raise RuntimeError(
            f"Cannot read or decode configuration file {path}: {e}\n"
            "Delete it or re-run the installer."
        ) from e

    install_settings = config.get("install_settings") if isinstance(config, dict) else None
    if not isinstance(install_settings, dict):
        raise RuntimeError(
            "Invalid configuration: 'install_settings' object is missing or corrupted."
        )

    overrides = {}
    for key, value in install_settings.items():
        if key not in DEFAULTS:
            continue
        try:
            if key in INT_KEYS:
                value = int(value)
            elif key in SECONDS_KEYS and value is not None:
                value = float(value)
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"Configuration corrupted: '{key}' has invalid value {value!r}") from e
        overrides[key] = value
    return overrides

def build_config(args=None, overrides: dict = None) -> InstallConfig:
    """Merge DEFAULTS <- saved overrides <- command-line flags (flags win)."""
    values = dict(DEFAULTS)
    values.update(overrides or {})

    if args is not None:
        if getattr(args, "model", None):
            values["model"] = args.model
        if getattr(args, "docker_timeout", None) is not None:
            values["runtime_timeout"] = args.docker_timeout
        if getattr(args, "health_timeout", None) is not None:
            # 0 on the command line means "no limit"
            values["health_timeout"] = args.health_timeout or None
        values["skip_docker_check"] = bool(getattr(args, "skip_docker_check", False))
        values["skip_desktop"] = bool(getattr(args, "skip_desktop", False))
        values["skip_model"] = bool(getattr(args, "skip_model", False))

    return InstallConfig(**values)

def save_config(config: InstallConfig, path: Path = CONFIG_PATH, extra: dict = None) -> Path:
    """Record the lasting settings of a finished install; per-run choices belong in `extra`."""
    settings = {
        key: value for key, value in asdict(config).items()
        if key in DEFAULTS and key not in RUN_SCOPED_KEYS
    }
    payload = {"install_settings": settings}
    if extra:
        payload["install_state"] = extra

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(payload, f, indent=4)
    return path

def load_install_state(path: Path = CONFIG_PATH) -> dict:
    """The `install_state` block written by a finished install, empty when absent."""
    if not path.exists():
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except Exception as e:
        raise RuntimeError(f"Cannot read or decode configuration file {path}: {e}") from e
    state = config.get("install_state") if isinstance(config, dict) else None
    return state if isinstance(state, dict) else {}
