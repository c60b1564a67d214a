# Script: `./chatstack/provisioner.py` (Docker Engine + Compose installation)

# Imports
import getpass
import os
import subprocess
from pathlib import Path
import requests
from . import temporary
from . import utility
from .temporary import print_status, fatal

# Constants / Variables ...
DOCKER_PACKAGES = ["docker-ce", "docker-ce-cli", "containerd.io", "docker-compose-plugin"]
DOCKER_CASK = "docker-desktop"
DOCKER_WINGET_ID = "Docker.DockerDesktop"
APT_KEYRING = "/etc/apt/keyrings/docker.gpg"
APT_SOURCE_LIST = "/etc/apt/sources.list.d/docker.list"
DNF_REPO_URL = "https://download.docker.com/linux/fedora/docker-ce.repo"
HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_PREFIXES = ["/opt/homebrew/bin", "/usr/local/bin"]

# Distro builds of Docker that conflict with docker-ce / containerd.io
CONFLICTING_PACKAGES = {
    "apt-get": [
        "docker.io", "docker-doc", "docker-compose", "docker-compose-v2",
        "podman-docker", "containerd", "runc",
    ],
    "dnf": [
        "docker", "docker-client", "docker-client-latest", "docker-common",
        "docker-latest", "docker-latest-logrotate", "docker-logrotate",
        "docker-selinux", "docker-engine-selinux", "docker-engine",
        "moby-engine", "podman-docker",
    ],
}
PACKAGE_QUERY = {
    "apt-get": ["dpkg", "-s"],
    "dnf": ["rpm", "-q"],
}

# Homebrew refuses to link the cask while these shims from an older Docker Desktop exist
STALE_DOCKER_LINKS = [
    "/usr/local/bin/kubectl.docker",
    "/usr/local/bin/docker",
    "/usr/local/bin/docker-compose",
    "/usr/local/bin/compose",
    "/usr/local/bin/docker-compose-v1",
    "/usr/local/bin/docker-compose.docker",
]

# Functions...
def remove_stale_docker_links() -> int:
    """Best-effort removal of leftover Docker Desktop CLI links; returns how many went."""
    removed = 0
    for link in STALE_DOCKER_LINKS:
        if not os.path.lexists(link):
            continue
        result = utility.run_command(utility.sudo(["rm", "-f", link]), check=False, quiet=True)
        if result.returncode == 0:
            removed += 1
        else:
            print(f"  Warning: could not remove {link}, continuing")
    if removed:
        print_status(f"Removed {removed} stale Docker link(s)")
    return removed

def add_user_to_docker_group() -> None:
    user = os.environ.get("SUDO_USER") or os.environ.get("USER") or getpass.getuser()
    result = utility.run_command(utility.sudo(["usermod", "-aG", "docker", user]), check=False, quiet=True)
    if result.returncode == 0:
        print_status(f"Added '{user}' to the docker group (log out and back in to apply)")
    else:
        print(f"  Note: could not add '{user}' to the docker group, continuing")

def enable_docker_service() -> None:
    utility.run_command(utility.sudo(["systemctl", "enable", "--now", "docker"]))
    print_status("Docker service enabled")
    add_user_to_docker_group()

def remove_conflicting_packages(manager: str) -> list:
    """Best-effort removal of installed distro Docker packages; returns those removed."""
    installed = [
        package for package in CONFLICTING_PACKAGES[manager]
        if utility.command_succeeds([*PACKAGE_QUERY[manager], package])
    ]
    if not installed:
        return []
    print_status(f"Removing conflicting packages: {', '.join(installed)}")
    result = utility.run_command(utility.sudo([manager, "remove", "-y", *installed]), check=False)
    if result.returncode != 0:
        print("  Warning: could not remove every conflicting package, continuing")
    return installed

def fetch_text(url: str) -> str:
    response = requests.get(url, timeout=60)
    response.raise_for_status()
    return response.text

def install_docker_apt() -> None:
    distro = utility.os_release_id() or "ubuntu"
    utility.run_command(utility.sudo(["apt-get", "update"]))
    utility.run_command(utility.sudo([
        "apt-get", "install", "-y", "ca-certificates", "curl", "gnupg", "lsb-release"
    ]))
    utility.run_command(utility.sudo(["mkdir", "-p", str(Path(APT_KEYRING).parent)]))

    key = fetch_text(f"https://download.docker.com/linux/{distro}/gpg")
    utility.run_command(utility.sudo(["gpg", "--dearmor", "--yes", "-o", APT_KEYRING]), input_text=key)
    print_status("Docker repository key installed")

    arch = utility.command_output(["dpkg", "--print-architecture"]) or "amd64"
    codename = utility.command_output(["lsb_release", "-cs"])
    source = (
        f"deb [arch={arch} signed-by={APT_KEYRING}] "
        f"https://download.docker.com/linux/{distro} {codename} stable\n"
    )
    utility.run_command(utility.sudo(["tee", APT_SOURCE_LIST]), input_text=source, quiet=True)
    print_status(f"Docker apt repository added ({distro} {codename})")

    remove_conflicting_packages("apt-get")
    utility.run_command(utility.sudo(["apt-get", "update"]))
    utility.run_command(utility.sudo(["apt-get", "install", "-y", *DOCKER_PACKAGES]))
    enable_docker_service()

def install_docker_dnf() -> None:
    utility.run_command(utility.sudo(["dnf", "install", "-y", "dnf-plugins-core"]))
    utility.run_command(utility.sudo(["dnf", "config-manager", "--add-repo", DNF_REPO_URL]))
    print_status("Docker dnf repository added")
    remove_conflicting_packages("dnf")
    utility.run_command(utility.sudo(["dnf", "install", "-y", *DOCKER_PACKAGES]))
    enable_docker_service()

def ensure_homebrew() -> None:
    if utility.need("brew"):
        return
    print_status("Installing Homebrew...")
    script = fetch_text(HOMEBREW_INSTALL_URL)
    env = os.environ.copy()
    env["NONINTERACTIVE"] = "1"
    utility.run_command(["/bin/bash", "-c", script], env=env)

    # equivalent of `eval "$(brew shellenv)"` for this process
    for prefix in HOMEBREW_PREFIXES:
        if (Path(prefix) / "brew").exists() and prefix not in os.environ["PATH"].split(os.pathsep):
            os.environ["PATH"] = f"{prefix}{os.pathsep}{os.environ['PATH']}"
    if not utility.need("brew"):
        fatal("Homebrew installed but `brew` is not on PATH", "Open a new terminal and re-run the installer.")
    print_status("Homebrew installed")

def install_docker_brew() -> None:
    ensure_homebrew()
    remove_stale_docker_links()

    if utility.command_succeeds(["brew", "list", "--cask", DOCKER_CASK]):
        print_status("Docker Desktop already present, upgrading...")
        upgrade = utility.run_command(["brew", "upgrade", "--cask", DOCKER_CASK], check=False)
        if upgrade.returncode != 0:
            print("  brew upgrade failed, attempting reinstall...")
            utility.run_command(["brew", "uninstall", "--cask", DOCKER_CASK], check=False)
            remove_stale_docker_links()
            utility.run_command(["brew", "install", "--cask", DOCKER_CASK])
    else:
        utility.run_command(["brew", "install", "--cask", DOCKER_CASK])
    print_status("Docker Desktop installed")

def install_docker_winget() -> None:
    utility.run_command([
        "winget", "install", "-e", "--id", DOCKER_WINGET_ID,
        "--accept-package-agreements", "--accept-source-agreements"
    ])
    print_status("Docker Desktop installed (a sign-out may be required before first start)")

# Install strategies, in order of preference per platform
INSTALL_STRATEGIES = {
    ("linux", "apt-get"): install_docker_apt,
    ("linux", "dnf"): install_docker_dnf,
    ("darwin", "brew"): install_docker_brew,
    ("windows", "winget"): install_docker_winget,
}

# Managers the strategy can bootstrap itself when missing
SELF_INSTALLING = {"brew"}

def select_strategy(os_name: str) -> tuple:
    """Pick (package manager, install function) for this host, or abort."""
    managers = [manager for platform_name, manager in INSTALL_STRATEGIES if platform_name == os_name]
    if not managers:
        fatal(f"Unsupported OS '{os_name}'", "Install Docker and Docker Compose manually, then re-run with --skip-docker-check.")
    for manager in managers:
        if utility.need(manager) or manager in SELF_INSTALLING:
            return manager, INSTALL_STRATEGIES[(os_name, manager)]
    fatal(
        f"No supported package manager found ({', '.join(managers)})",
        "Unsupported distro: install Docker manually, then re-run with --skip-docker-check."
    )

def install_runtime(os_name: str = None) -> bool:
    os_name = os_name or temporary.PLATFORM
    manager, strategy = select_strategy(os_name)
    print_status(f"Installing Docker Engine + Compose via {manager}...")
    try:
        strategy()
    except (subprocess.CalledProcessError, requests.exceptions.RequestException, OSError) as e:
        print_status(f"Docker installation failed: {e}", False)
        return False
    return True
