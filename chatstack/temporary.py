# chatstack/temporary.py

# Imports
import shutil
import sys

# Configuration variables with defaults
APP_NAME = "Local LLM Chat"
DEFAULT_MODEL = "llama3:8b"
NATIVE_PORT_UI = 3000
INTERNAL_PORT_UI = 8080               # Open WebUI default
OLLAMA_PORT = 11434
CHROMA_HOST_PORT = 8001
CHROMA_CONTAINER_PORT = 8000
PLATFORM = None                       # set by installer.py / launcher.py / validater.py
ARCH = None
DOCKER_PREFIX = []                    # ["sudo"] while this session cannot reach the docker socket

# Environment status values
STATUS_ABSENT = "ABSENT"              # docker CLI or compose plugin missing
STATUS_STOPPED = "STOPPED"            # CLI present, daemon unreachable
STATUS_RUNNING = "RUNNING"
ENVIRONMENT_STATES = [STATUS_ABSENT, STATUS_STOPPED, STATUS_RUNNING]

# General Constants/Variables/Lists/Maps/Arrays
SUPPORTED_PLATFORMS = ["linux", "darwin", "windows"]
COMPOSE_FILE = "docker-compose.yml"
OLLAMA_CONTAINER = "ollama"
WEBUI_CONTAINER = "open-webui"
CHROMA_CONTAINER = "chromadb"
SEPARATOR = "=" * 40


# Status Printers
def print_status(message: str, success: bool = True) -> None:
    status = "[✓]" if success else "[✗]"
    print(f"{status} {message}")

def print_step(message: str) -> None:
    """Announce the next pipeline stage."""
    print(f"\n▶ {message}")

def print_header(title: str) -> None:
    width = shutil.get_terminal_size().columns - 1
    print("=" * width)
    print(f"    {APP_NAME} - {title}")
    print("=" * width)
    print()

def fatal(message: str, hint: str = None) -> None:
    """Print a failure line (and optional hint) then abort with exit code 1."""
    print_status(message, False)
    if hint:
        print(f"  {hint}")
    sys.exit(1)
