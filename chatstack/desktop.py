# Script: `./chatstack/desktop.py` (nativefier desktop wrapper)

# Imports
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
import requests
from . import temporary
from . import utility
from .temporary import print_status

# Constants / Variables ...
MIN_NODE_MAJOR = 18
NODESOURCE_SETUP = {
    "apt-get": "https://deb.nodesource.com/setup_lts.x",
    "dnf": "https://rpm.nodesource.com/setup_lts.x",
}
NATIVEFIER_PLATFORMS = {"linux": "linux", "darwin": "darwin", "windows": "windows"}
NATIVEFIER_FLAGS = [
    "--internal-urls", ".*",
    "--single-instance",
    "--tray",
    "--disable-dev-tools",
    "--overwrite",
]
LINUX_BIN_DIR = Path("/usr/local/bin")
LINUX_LIB_DIR = Path("/usr/local/lib")
MACOS_APPS_DIR = Path("/Applications")
# Executables Electron ships next to the app's own launcher
ELECTRON_HELPERS = {"chrome-sandbox", "chrome_crashpad_handler"}

# Functions...
def linux_app_name(config) -> str:
    return config.app_name.replace(" ", "-")

def artifact_path(config, os_name: str = None) -> Path:
    """Where the finished desktop app lives on this OS."""
    os_name = os_name or temporary.PLATFORM
    if os_name == "darwin":
        return MACOS_APPS_DIR / f"{config.app_name}.app"
    if os_name == "linux":
        return LINUX_BIN_DIR / f"{linux_app_name(config)}.AppImage"
    if os_name == "windows":
        return windows_install_dir(config)
    return None

def windows_install_dir(config) -> Path:
    return Path(os.environ.get("ProgramFiles", "C:/Program Files")) / config.app_name

def ensure_node(os_name: str) -> None:
    """Install Node LTS when node is missing or older than MIN_NODE_MAJOR."""
    if utility.node_major_version() >= MIN_NODE_MAJOR:
        return
    print_status("Installing Node LTS...")
    if os_name == "darwin":
        utility.run_command(["brew", "install", "node@20"])
        utility.run_command(["brew", "link", "--overwrite", "--force", "node@20"], check=False, quiet=True)
    elif os_name == "linux":
        manager = next((m for m in NODESOURCE_SETUP if utility.need(m)), None)
        if manager is None:
            raise RuntimeError("Node.js >= 18 required and no apt-get/dnf to install it")
        response = requests.get(NODESOURCE_SETUP[manager], timeout=60)
        response.raise_for_status()
        shell = ["bash", "-"]
        if utility.sudo(shell)[0] == "sudo":
            shell = ["sudo", "-E", *shell]
        utility.run_command(shell, input_text=response.text)
        utility.run_command(utility.sudo([manager, "install", "-y", "nodejs"]))
    elif os_name == "windows":
        utility.run_command([
            "winget", "install", "-e", "--id", "OpenJS.NodeJS.LTS",
            "--accept-package-agreements", "--accept-source-agreements"
        ])
    if utility.node_major_version() < MIN_NODE_MAJOR:
        raise RuntimeError(f"Node.js >= {MIN_NODE_MAJOR} still not available on PATH")

def ensure_nativefier(os_name: str) -> None:
    cmd = ["npm", "install", "-g", "nativefier"]
    if os_name == "linux":
        cmd = utility.sudo(cmd)
    utility.run_command(cmd, quiet=True)

def nativefier_command(config, out_dir: Path, os_name: str) -> list:
    return [
        "nativefier", config.ui_url,
        "--name", config.app_name,
        *NATIVEFIER_FLAGS,
        "--platform", NATIVEFIER_PLATFORMS[os_name],
        "--arch", temporary.ARCH or "x64",
        str(out_dir),
    ]

def find_first(build_dir: Path, pattern: str) -> Path:
    return next(iter(sorted(build_dir.rglob(pattern))), None)

def find_launcher(bundle: Path) -> Path:
    """The app's executable in a nativefier Linux bundle (its name is sanitised by nativefier)."""
    for item in sorted(bundle.iterdir()):
        if not item.is_file() or item.is_symlink() or item.name in ELECTRON_HELPERS:
            continue
        if ".so" in item.suffixes or not os.access(item, os.X_OK):
            continue
        return item
    raise FileNotFoundError(f"No launcher executable found in {bundle}")

def place_macos_app(build_dir: Path, config) -> Path:
    bundle = find_first(build_dir, "*.app")
    if bundle is None:
        raise FileNotFoundError(f"No .app bundle produced in {build_dir}")
    dest = artifact_path(config, "darwin")
    utility.run_command(utility.sudo(["rm", "-rf", str(dest)]))
    utility.run_command(utility.sudo(["mv", str(bundle), str(dest)]))
    print_status(f"Desktop app installed to {MACOS_APPS_DIR}")
    return dest

def place_linux_app(build_dir: Path, config) -> Path:
    dest = artifact_path(config, "linux")
    image = find_first(build_dir, "*.AppImage")
    if image is not None:
        image.chmod(0o755)
        utility.run_command(utility.sudo(["mv", str(image), str(dest)]))
        print_status(f"AppImage placed in {LINUX_BIN_DIR}")
        return dest

    # nativefier emits a plain bundle folder; keep it whole and link its launcher
    bundle = next((p for p in sorted(build_dir.iterdir()) if p.is_dir()), None)
    if bundle is None:
        raise FileNotFoundError(f"No desktop bundle produced in {build_dir}")
    launcher_name = find_launcher(bundle).name
    lib_dest = LINUX_LIB_DIR / linux_app_name(config)
    utility.run_command(utility.sudo(["rm", "-rf", str(lib_dest)]))
    utility.run_command(utility.sudo(["mv", str(bundle), str(lib_dest)]))
    launcher = lib_dest / launcher_name
    utility.run_command(utility.sudo(["ln", "-sf", str(launcher), str(dest)]))
    print_status(f"Desktop launcher linked in {LINUX_BIN_DIR}")
    return dest

def place_windows_app(build_dir: Path, config) -> Path:
    exe = find_first(build_dir, "*.exe")
    if exe is None:
        raise FileNotFoundError(f"No .exe produced in {build_dir}")
    install_dir = windows_install_dir(config)
    install_dir.mkdir(parents=True, exist_ok=True)
    for item in exe.parent.iterdir():
        target = install_dir / item.name
        if target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
        shutil.move(str(item), str(target))

    shortcut = Path(os.environ.get("PUBLIC", "C:/Users/Public")) / "Desktop" / f"{config.app_name}.lnk"
    script = (
        "$s=(New-Object -ComObject WScript.Shell).CreateShortcut('{lnk}');"
        "$s.TargetPath='{target}';$s.Save()"
    ).format(lnk=shortcut, target=install_dir / exe.name)
    result = utility.run_command(["powershell.exe", "-NoProfile", "-Command", script], check=False, quiet=True)
    if result.returncode == 0:
        print_status("Windows shortcut created on Public Desktop")
    else:
        print("  Note: could not create the desktop shortcut")
    return install_dir

ARTIFACT_PLACERS = {
    "darwin": place_macos_app,
    "linux": place_linux_app,
    "windows": place_windows_app,
}

def build_app(config, os_name: str = None) -> Path:
    """Bundle the running web UI into a desktop app; returns the installed path or None."""
    os_name = os_name or temporary.PLATFORM
    if os_name not in ARTIFACT_PLACERS:
        print_status(f"Desktop packaging not supported on '{os_name}'", False)
        return None

    print_status("Bundling desktop app...")
    build_dir = Path(tempfile.mkdtemp(prefix="chatstack-app-"))
    try:
        ensure_node(os_name)
        ensure_nativefier(os_name)
        utility.run_command(nativefier_command(config, build_dir, os_name), quiet=True)
        return ARTIFACT_PLACERS[os_name](build_dir, config)
    except (subprocess.CalledProcessError, requests.exceptions.RequestException,
            RuntimeError, OSError) as e:
        print_status(f"Desktop packaging failed: {e}", False)
        return None
    finally:
        shutil.rmtree(build_dir, ignore_errors=True)
