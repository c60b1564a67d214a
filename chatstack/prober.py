# chatstack/prober.py

# Imports
import subprocess
import time
from . import temporary
from . import utility
from .temporary import print_status

DOCKER_CLI = "docker"
COMPOSE_VERSION_ARGS = ["compose", "version"]
SYSTEM_INFO_ARGS = ["system", "info"]
PROBE_TIMEOUT = 30
SOCKET_DENIED = "permission denied"

# Functions...
def probe_environment(timeout: float = PROBE_TIMEOUT) -> str:
    """
    Report the container runtime state without changing anything.

    ABSENT   docker CLI or its compose plugin cannot be invoked (needs install)
    STOPPED  both answer, but `docker system info` cannot reach the daemon (needs start)
    RUNNING  daemon answers

    Both commands together take at most `timeout` seconds.
    """
    deadline = time.monotonic() + timeout
    if not utility.need(DOCKER_CLI):
        return temporary.STATUS_ABSENT
    if not utility.command_succeeds(utility.docker_command(COMPOSE_VERSION_ARGS), timeout=timeout):
        return temporary.STATUS_ABSENT
    remaining = deadline - time.monotonic()
    if remaining <= 0 or not daemon_reachable(remaining):
        return temporary.STATUS_STOPPED
    return temporary.STATUS_RUNNING

def daemon_reachable(timeout: float) -> bool:
    """
    `docker system info` succeeds. When the socket refuses this user (group
    membership granted during install only applies at the next login), retry
    through sudo and keep using sudo for docker for the rest of the session.
    """
    try:
        result = utility.run_command(utility.docker_command(SYSTEM_INFO_ARGS), check=False,
                                     capture=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
    if result.returncode == 0:
        return True
    if temporary.DOCKER_PREFIX or SOCKET_DENIED not in (result.stderr or "").lower():
        return False

    elevated = utility.sudo([DOCKER_CLI, *SYSTEM_INFO_ARGS])
    if elevated[0] != "sudo" or not utility.command_succeeds(elevated, timeout=timeout):
        return False
    temporary.DOCKER_PREFIX = ["sudo"]
    print_status("Docker socket not yet open to this user (docker group applies at next login), using sudo for docker")
    return True

def describe_status(status: str) -> str:
    return {
        temporary.STATUS_ABSENT: "Docker Engine / Compose not installed",
        temporary.STATUS_STOPPED: "Docker installed but daemon not running",
        temporary.STATUS_RUNNING: "Docker & Compose detected, daemon running",
    }.get(status, f"Unknown Docker status: {status}")
