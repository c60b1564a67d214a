# chatstack/bootstrap.py

# Imports
from . import prober
from . import provisioner
from . import runtime
from . import temporary
from .temporary import print_status, fatal

# Functions...
def ensure_environment(config, status: str = None) -> str:
    """
    Bring Docker to RUNNING: detect -> install-if-absent -> start -> wait.

    The installer only runs when the CLI is ABSENT. A STOPPED daemon is
    started, never reinstalled. A RUNNING daemon means no action at all, so
    repeat runs are no-ops. `status` may carry an earlier probe result.
    """
    if config.skip_docker_check:
        print_status("Skipping Docker check (--skip-docker-check)")
        return None

    if status is None:
        status = prober.probe_environment()
    print_status(prober.describe_status(status), status != temporary.STATUS_ABSENT)

    if status == temporary.STATUS_ABSENT:
        if not provisioner.install_runtime():
            fatal("Docker installation failed", "Install Docker manually, then re-run with --skip-docker-check.")
        status = prober.probe_environment()
        if status == temporary.STATUS_ABSENT:
            fatal("Docker CLI still not available after installation", "Open a new terminal and re-run the installer.")

    if status == temporary.STATUS_STOPPED:
        status = runtime.start_runtime(config)

    return status
