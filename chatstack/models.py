# chatstack/models.py

# Imports
import subprocess
import requests
from . import temporary
from . import utility
from .temporary import print_status

OLLAMA_API = f"http://localhost:{temporary.OLLAMA_PORT}"

# Functions...
def pull_command(model: str) -> list:
    return utility.docker_command(["exec", temporary.OLLAMA_CONTAINER, "ollama", "pull", model])

def prefetch_model(model: str) -> bool:
    """Download `model` into the running ollama container (a no-op when already pulled)."""
    print_status(f"Pulling model '{model}' (first time only)...")
    try:
        utility.run_command(pull_command(model))
    except (subprocess.CalledProcessError, OSError) as e:
        print_status(f"Model pull failed: {e}", False)
        return False
    print_status(f"Model '{model}' ready")
    return True

def list_models(base_url: str = OLLAMA_API, timeout: float = 10) -> list:
    """Tags held by the model runtime, or None when it does not answer."""
    try:
        response = requests.get(f"{base_url}/api/tags", timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError):
        return None
    return [entry.get("name", "") for entry in data.get("models", [])]

def has_model(model: str, available: list) -> bool:
    """Match a tag, treating a bare name as `<name>:latest`."""
    wanted = model if ":" in model else f"{model}:latest"
    return wanted in (available or [])
