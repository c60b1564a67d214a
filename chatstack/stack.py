# chatstack/stack.py

# Imports
import subprocess
from pathlib import Path
import yaml
from . import temporary
from . import utility
from .temporary import print_status

# Constants / Variables ...
OLLAMA_IMAGE = "ollama/ollama:latest"
WEBUI_IMAGE = "ghcr.io/open-webui/open-webui:main"
CHROMA_IMAGE = "ghcr.io/chroma-core/chroma:latest"
RESTART_POLICY = "unless-stopped"
MODEL_VOLUME = "ollama"
SERVICE_NAMES = ["ollama", "webui", "chroma"]

# Functions...
def compose_definition(config) -> dict:
    """Static three-service stack: model runtime, web UI, vector database."""
    return {
        "services": {
            "ollama": {
                "image": OLLAMA_IMAGE,
                "container_name": temporary.OLLAMA_CONTAINER,
                "restart": RESTART_POLICY,
                "ports": [f"{temporary.OLLAMA_PORT}:{temporary.OLLAMA_PORT}"],
                "volumes": [f"{MODEL_VOLUME}:/root/.ollama"],
            },
            "webui": {
                "image": WEBUI_IMAGE,
                "container_name": temporary.WEBUI_CONTAINER,
                "restart": RESTART_POLICY,
                "environment": [f"OLLAMA_BASE_URL=http://ollama:{temporary.OLLAMA_PORT}"],
                "ports": [f"{config.native_port}:{config.internal_port}"],
                "depends_on": ["ollama"],
            },
            "chroma": {
                "image": CHROMA_IMAGE,
                "container_name": temporary.CHROMA_CONTAINER,
                "restart": RESTART_POLICY,
                "ports": [f"{temporary.CHROMA_HOST_PORT}:{temporary.CHROMA_CONTAINER_PORT}"],
            },
        },
        "volumes": {MODEL_VOLUME: None},
    }

def write_compose_file(config) -> Path:
    path = Path(config.compose_file)
    with open(path, "w") as f:
        yaml.safe_dump(compose_definition(config), f, sort_keys=False, default_flow_style=False)
    print_status(f"Wrote {utility.short_path(path.resolve())}")
    return path

def read_compose_file(path) -> dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}

def compose_command(config, *args) -> list:
    return utility.docker_command(["compose", "-f", str(config.compose_file), *args])

def launch_stack(config, pull: bool = True) -> bool:
    """Pull images (first run fetches several GB) and start every service detached."""
    try:
        if pull:
            print_status("Pulling container images (first run pulls ~8 GB)...")
            utility.run_command(compose_command(config, "pull", "--quiet"))
        utility.run_command(compose_command(config, "up", "-d"))
    except (subprocess.CalledProcessError, OSError) as e:
        print_status(f"Failed to start the stack: {e}", False)
        return False
    print_status(f"Stack started ({', '.join(SERVICE_NAMES)})")
    return True

def stop_stack(config) -> bool:
    try:
        utility.run_command(compose_command(config, "down"))
    except (subprocess.CalledProcessError, OSError) as e:
        print_status(f"Failed to stop the stack: {e}", False)
        return False
    print_status("Stack stopped")
    return True
