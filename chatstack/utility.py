# Script: `./chatstack/utility.py`

# Imports
import os
import platform
import re
import shutil
import subprocess
import sys
import psutil
from . import temporary

# Maps/Lists...
ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

# Functions...
def detect_platform() -> tuple:
    """Map the interpreter platform onto linux / darwin / windows plus a nativefier arch."""
    if sys.platform.startswith("linux"):
        os_name = "linux"
    elif sys.platform == "darwin":
        os_name = "darwin"
    elif sys.platform in ("win32", "cygwin", "msys"):
        os_name = "windows"
    else:
        os_name = platform.system().lower() or sys.platform
    machine = platform.machine().lower()
    return os_name, ARCH_NAMES.get(machine, machine)

def set_platform() -> str:
    temporary.PLATFORM, temporary.ARCH = detect_platform()
    return temporary.PLATFORM

def need(command: str) -> bool:
    """True when `command` resolves on PATH."""
    return shutil.which(command) is not None

def sudo(cmd: list) -> list:
    """Prefix with sudo unless already root (or on Windows)."""
    if temporary.PLATFORM == "windows" or not hasattr(os, "geteuid"):
        return list(cmd)
    if os.geteuid() == 0:
        return list(cmd)
    return ["sudo", *cmd]

def docker_command(args: list) -> list:
    """`docker <args>`, prefixed with sudo when the session needs it for the socket."""
    return [*temporary.DOCKER_PREFIX, "docker", *args]

def run_command(cmd, check: bool = True, quiet: bool = False, capture: bool = False,
                env: dict = None, input_text: str = None, timeout: float = None):
    """
    Run an external command.
    check=True raises CalledProcessError on a non-zero exit, quiet silences
    stdout/stderr, capture returns them as text on the CompletedProcess.
    """
    kwargs = {"env": env, "timeout": timeout, "check": check}
    if input_text is not None:
        kwargs["input"] = input_text
        kwargs["text"] = True
    if capture:
        kwargs["capture_output"] = True
        kwargs["text"] = True
    elif quiet:
        kwargs["stdout"] = subprocess.DEVNULL
        kwargs["stderr"] = subprocess.DEVNULL
    return subprocess.run(cmd, **kwargs)

def command_succeeds(cmd, timeout: float = 30) -> bool:
    """Quiet probe: True on exit code 0, False on failure, timeout or missing binary."""
    try:
        result = run_command(cmd, check=False, quiet=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0

def command_output(cmd, timeout: float = 30) -> str:
    """Captured stdout of a command, empty string when it cannot run."""
    try:
        result = run_command(cmd, check=False, capture=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return ""
    if result.returncode != 0:
        return ""
    return (result.stdout or "").strip()

def node_major_version() -> int:
    """Major version of the installed Node.js, 0 when node is missing or unparsable."""
    if not need("node"):
        return 0
    match = re.match(r"v?(\d+)", command_output(["node", "-v"]))
    return int(match.group(1)) if match else 0

def os_release_id() -> str:
    """`ID` field of /etc/os-release (ubuntu, debian, fedora...)."""
    try:
        with open("/etc/os-release", "r") as f:
            for line in f:
                if line.startswith("ID="):
                    return line.split("=", 1)[1].strip().strip('"')
    except OSError:
        pass
    return ""

def running_process_names(candidates: list) -> list:
    """Names from `candidates` that match a live process (case-insensitive)."""
    wanted = {name.lower() for name in candidates}
    found = set()
    for proc in psutil.process_iter(['name']):
        try:
            name = (proc.info['name'] or "").lower()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if name in wanted:
            found.add(name)
    return sorted(found)

def short_path(path_str, max_len=44):
    """Truncate path to last max_len chars with ... prefix"""
    path = str(path_str)
    if len(path) <= max_len:
        return path
    return "..." + path[-max_len:]
