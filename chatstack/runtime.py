# chatstack/runtime.py

# Imports
import os
import time
from pathlib import Path
from . import prober
from . import temporary
from . import utility
from .temporary import print_status, fatal

WINDOWS_DOCKER_DESKTOP = Path(os.environ.get("ProgramFiles", "C:/Program Files")) / "Docker" / "Docker" / "Docker Desktop.exe"

# Functions...
def start_command(os_name: str) -> list:
    """OS action that (re)starts the Docker daemon."""
    if os_name == "linux":
        return utility.sudo(["systemctl", "start", "docker"])
    if os_name == "darwin":
        return ["open", "-g", "-a", "Docker"]
    if os_name == "windows":
        return ["cmd", "/c", "start", "", str(WINDOWS_DOCKER_DESKTOP)]
    return None

def issue_start(os_name: str) -> bool:
    """Fire the start action; failure is only reported, the poll decides."""
    cmd = start_command(os_name)
    if cmd is None:
        print_status(f"No known way to start Docker on '{os_name}'", False)
        return False
    try:
        result = utility.run_command(cmd, check=False, quiet=True)
    except OSError as e:
        print(f"  Warning: could not start Docker: {e}")
        return False
    if result.returncode != 0:
        print(f"  Warning: `{' '.join(cmd)}` exited with {result.returncode}, waiting anyway")
        return False
    return True

def wait_for_runtime(timeout: float, interval: float) -> bool:
    """
    Poll the prober at a fixed interval until the daemon answers.
    Returns on the first RUNNING probe. Each probe only gets the time left,
    so neither a slow probe nor a sleep carries the wait past `timeout`.
    """
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        if prober.probe_environment(timeout=remaining) == temporary.STATUS_RUNNING:
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        time.sleep(min(interval, remaining))

def start_runtime(config, os_name: str = None) -> str:
    """Start the daemon and wait for it, aborting after config.runtime_timeout seconds."""
    os_name = os_name or temporary.PLATFORM
    print_status("Starting Docker daemon...")
    issue_start(os_name)

    print(f"  Waiting for Docker to respond (max {config.runtime_timeout:g} s)...")
    if not wait_for_runtime(config.runtime_timeout, config.runtime_interval):
        hint = "Start Docker manually, then re-run with --skip-docker-check."
        if os_name == "linux":
            hint += " If Docker was just installed, log out and back in so the docker group applies."
        fatal(f"Docker failed to start within {config.runtime_timeout:g} s", hint)
    print_status("Docker daemon is running")
    return temporary.STATUS_RUNNING
