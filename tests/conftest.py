"""Shared pytest fixtures: a scripted host, a fake clock and a fake HTTP layer.

No test touches Docker, a package manager or the network.
"""
from __future__ import annotations

import subprocess
import time

import pytest
import requests

from chatstack import temporary, utility


class FakeHost:
    """Stands in for PATH lookups and subprocess, simulating the Docker lifecycle.

    `start_delay` is how many `docker system info` probes fail after a start
    action before the daemon answers. With `socket_denied` the daemon socket
    refuses every docker call not made through sudo. `packages` are the
    distro packages dpkg/rpm report as installed.
    """

    def __init__(self, commands=(), docker_installed=False, daemon_running=False,
                 compose_plugin=True, start_delay=0, daemon_starts=True,
                 socket_denied=False, packages=()):
        self.commands = set(commands)
        self.docker_installed = docker_installed
        self.daemon_running = daemon_running
        self.compose_plugin = compose_plugin
        self.start_delay = start_delay
        self.daemon_starts = daemon_starts
        self.socket_denied = socket_denied
        self.packages = set(packages)
        self.pending_probes = None
        self.failures = {}
        self.outputs = {
            ("dpkg", "--print-architecture"): "amd64",
            ("lsb_release", "-cs"): "jammy",
        }
        self.calls = []
        self.sudo_calls = []
        self.inputs = []

    # PATH
    def which(self, name: str) -> bool:
        if name == "docker":
            return self.docker_installed
        return name in self.commands

    # subprocess
    def run(self, cmd, check=True, quiet=False, capture=False, env=None,
            input_text=None, timeout=None):
        cmd = [str(part) for part in cmd]
        elevated = bool(cmd) and cmd[0] == "sudo"
        if elevated:
            cmd = cmd[1:]
            if cmd and cmd[0] == "-E":
                cmd = cmd[1:]
        self.calls.append(cmd)
        if elevated:
            self.sudo_calls.append(cmd)
        if input_text is not None:
            self.inputs.append((cmd, input_text))
        if self.socket_denied and not elevated and cmd[:1] == ["docker"] \
                and cmd[1:3] != ["compose", "version"]:
            code, out, err = 1, "", "permission denied while trying to connect to the Docker daemon socket"
        else:
            code, out = self.respond(cmd)
            err = "" if code == 0 else "error"
        if check and code != 0:
            raise subprocess.CalledProcessError(code, cmd)
        return subprocess.CompletedProcess(cmd, code, stdout=out, stderr=err)

    def fail(self, *prefix, code=1):
        self.failures[tuple(prefix)] = code

    def respond(self, cmd):
        for prefix, code in self.failures.items():
            if tuple(cmd[:len(prefix)]) == prefix:
                return code, ""

        if cmd[:3] == ["docker", "compose", "version"]:
            return (0 if self.docker_installed and self.compose_plugin else 1), ""
        if cmd[:3] == ["docker", "system", "info"]:
            return (0 if self.daemon_answers() else 1), ""

        if cmd[:2] in (["dpkg", "-s"], ["rpm", "-q"]):
            return (0 if cmd[2] in self.packages else 1), ""
        if cmd[0] in ("apt-get", "dnf") and "remove" in cmd:
            self.packages.difference_update(cmd)
        if cmd[0] in ("apt-get", "dnf") and "install" in cmd and "docker-ce" in cmd:
            self.docker_installed = True
            self.compose_plugin = "docker-compose-plugin" in cmd or self.compose_plugin
        if cmd[:3] == ["systemctl", "enable", "--now"] or cmd[:2] == ["systemctl", "start"]:
            self.schedule_start()
        if cmd[:1] == ["open"]:
            self.schedule_start()

        return 0, self.outputs.get(tuple(cmd[:2]), "")

    def schedule_start(self):
        if self.docker_installed and self.daemon_starts and not self.daemon_running \
                and self.pending_probes is None:
            self.pending_probes = self.start_delay

    def daemon_answers(self) -> bool:
        if self.daemon_running:
            return True
        if self.pending_probes is None:
            return False
        if self.pending_probes <= 0:
            self.daemon_running = True
            return True
        self.pending_probes -= 1
        return False

    # assertions
    def ran(self, *prefix) -> bool:
        return any(tuple(call[:len(prefix)]) == prefix for call in self.calls)

    def count(self, *prefix) -> int:
        return sum(1 for call in self.calls if tuple(call[:len(prefix)]) == prefix)

    def mutating_calls(self) -> list:
        """Every call except the read-only Docker probes."""
        probes = (["docker", "compose", "version"], ["docker", "system", "info"])
        return [call for call in self.calls if call[:3] not in probes]


class FakeClock:
    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeHTTP:
    """`requests.get` replacement. Each URL maps to a list of outcomes consumed
    in order (the last one repeats); an outcome is a status code, a
    FakeResponse or an exception instance."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def route(self, url, *outcomes):
        self.routes[url] = list(outcomes)

    def get(self, url, timeout=None, **kwargs):
        self.requests.append(url)
        outcomes = self.routes.get(url)
        if not outcomes:
            raise requests.exceptions.ConnectionError(f"no route to {url}")
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return FakeResponse(outcome)
        return outcome

    def count(self, url) -> int:
        return self.requests.count(url)


@pytest.fixture
def linux():
    temporary.PLATFORM, temporary.ARCH = "linux", "x64"
    yield "linux"
    temporary.PLATFORM = temporary.ARCH = None


@pytest.fixture
def host(monkeypatch) -> FakeHost:
    fake = FakeHost()
    monkeypatch.setattr(utility, "need", fake.which)
    monkeypatch.setattr(utility, "run_command", fake.run)
    monkeypatch.setattr(utility, "os_release_id", lambda: "ubuntu")
    monkeypatch.setattr(temporary, "DOCKER_PREFIX", [])
    return fake


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(time, "monotonic", fake.monotonic)
    monkeypatch.setattr(time, "sleep", fake.sleep)
    return fake


@pytest.fixture
def http(monkeypatch) -> FakeHTTP:
    fake = FakeHTTP()
    monkeypatch.setattr(requests, "get", fake.get)
    return fake
