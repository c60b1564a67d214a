# chatstack/readiness.py

# Imports
import time
import requests
from .temporary import print_status

PROBE_TIMEOUT = 5

# Functions...
def probe_health(url: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """One GET; any status below 400 counts as healthy, connection errors do not."""
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException:
        return False
    return response.status_code < 400

def wait_for_health(url: str, interval: float = 2, timeout: float = None) -> bool:
    """
    Poll `url` every `interval` seconds until it answers.
    timeout=None waits forever, since image pulls on a slow link have no
    useful upper bound. With a timeout, neither a request nor a sleep
    reaches past it and False is returned once it runs out.
    """
    print(f"⌛ Waiting for WebUI to be healthy ({url})... ", end="", flush=True)
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        probe_timeout = PROBE_TIMEOUT
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                print()
                print_status(f"WebUI not healthy after {timeout:g} s", False)
                return False
            probe_timeout = min(PROBE_TIMEOUT, remaining)

        if probe_health(url, probe_timeout):
            print(" ready.")
            return True
        print(".", end="", flush=True)

        pause = interval
        if deadline is not None:
            pause = min(interval, deadline - time.monotonic())
        if pause > 0:
            time.sleep(pause)
