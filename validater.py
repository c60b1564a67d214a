# Script: validater.py

# Imports
import os
import sys
from pathlib import Path
import yaml
import chatstack.temporary as temporary
from chatstack import desktop, models, prober, readiness, settings, stack, utility

# Process names that show a Docker daemon / Docker Desktop is alive
DOCKER_PROCESSES = ["dockerd", "docker desktop", "docker desktop.exe", "com.docker.backend"]

def print_status(msg: str, success: bool = True) -> None:
    """Simplified status printer"""
    status = "✓" if success else "✗"
    print(f"  {status} {msg}")

def test_config():
    """Verify the saved configuration loads"""
    print("=== Configuration Validation ===")
    if not settings.CONFIG_PATH.exists():
        print_status("persistent.json not found!", False)
        print("  Please run the installer first: python installer.py")
        return None
    try:
        config = settings.build_config(overrides=settings.load_config())
    except RuntimeError as e:
        print_status(str(e), False)
        return None
    print_status(f"Config valid (model: {config.model}, port: {config.native_port})")
    return config

def test_compose_file(config):
    """Verify docker-compose.yml declares the three services"""
    print("\n=== Compose File Validation ===")
    path = Path(config.compose_file)
    if not path.exists():
        print_status(f"{path} missing", False)
        return False
    try:
        definition = stack.read_compose_file(path)
    except yaml.YAMLError as e:
        print_status(f"{path} is not valid YAML: {e}", False)
        return False

    services = definition.get("services") or {}
    success = True
    for name in stack.SERVICE_NAMES:
        if name in services:
            print_status(f"service '{name}'")
        else:
            print_status(f"service '{name}' missing", False)
            success = False

    ui_port = f"{config.native_port}:{config.internal_port}"
    if ui_port not in (services.get("webui") or {}).get("ports", []):
        print_status(f"webui port mapping {ui_port} missing", False)
        success = False
    return success

def test_docker():
    """Verify Docker is installed and its daemon answers"""
    print("\n=== Docker Validation ===")
    status = prober.probe_environment()
    ok = status == temporary.STATUS_RUNNING
    print_status(prober.describe_status(status), ok)
    if not ok:
        alive = utility.running_process_names(DOCKER_PROCESSES)
        if alive:
            print(f"  Docker processes present: {', '.join(alive)} (daemon may still be starting)")
        else:
            print("  No Docker process found; start Docker Desktop or `sudo systemctl start docker`")
    return ok

def test_web_ui(config):
    """Verify the WebUI health endpoint"""
    print("\n=== WebUI Validation ===")
    if readiness.probe_health(config.health_url):
        print_status(f"WebUI healthy at {config.ui_url}")
        return True
    print_status(f"WebUI not answering at {config.health_url}", False)
    print("  Run: python launcher.py")
    return False

def test_model(config, model):
    """Verify the model runtime answers and holds the model pulled at install"""
    print("\n=== Model Validation ===")
    if model is None:
        print_status("No model pulled at install (skipped)")
        return True
    available = models.list_models()
    if available is None:
        print_status("Ollama API not answering", False)
        return False
    if models.has_model(model, available):
        print_status(f"{model} available")
        return True
    print_status(f"{model} not pulled", False)
    print(f"  Run: docker exec {temporary.OLLAMA_CONTAINER} ollama pull {model}")
    return False

def test_desktop_app(state):
    """Verify the desktop app recorded by the installer still exists"""
    print("\n=== Desktop App Validation ===")
    app_path = state.get("desktop_app")
    if not app_path:
        print_status("No desktop app recorded (skipped at install)")
        return True
    path = Path(app_path)
    if path.exists():
        print_status(f"{utility.short_path(path)}")
        return True
    if path.is_symlink():
        print_status(f"Broken link: {path} -> {os.readlink(path)}", False)
    else:
        print_status(f"Missing: {path}", False)
    return False

def main():
    """Main validation routine - check config first"""
    utility.set_platform()
    print(f"=== {temporary.APP_NAME} Validator ({temporary.PLATFORM.upper()}) ===\n")

    config = test_config()
    if config is None:
        return 1
    state = settings.load_install_state()

    overall_success = True
    if not test_compose_file(config):
        overall_success = False
    if not test_docker():
        overall_success = False
    if not test_web_ui(config):
        overall_success = False
    if not test_model(config, state.get("model", config.model)):
        overall_success = False
    if not test_desktop_app(state):
        overall_success = False

    # Final result
    print("\n=== Validation Summary ===")
    if overall_success:
        print_status("All validations passed successfully!")
        return 0
    print_status("Validation failed with errors", False)
    print("\nRecommendations:")
    print("1. Start the stack: python launcher.py")
    print("2. Run installer again: python installer.py")
    print(f"3. Expected desktop app at: {desktop.artifact_path(config)}")
    return 1

if __name__ == "__main__":
    sys.exit(main())
