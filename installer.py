# Script: installer.py (Installation script for Local LLM Chat)

# Imports
import argparse
import sys
import chatstack.temporary as temporary
from chatstack import bootstrap, desktop, models, readiness, settings, stack, utility
from chatstack.temporary import print_status, print_step, print_header, fatal

# Functions...
def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="installer.py",
        description=f"Install the {temporary.APP_NAME} stack (Ollama + Open WebUI + ChromaDB).",
    )
    parser.add_argument('-m', '--model', metavar='<tag>',
                        help=f'Ollama model tag to pre-pull (default: {temporary.DEFAULT_MODEL})')
    parser.add_argument('--skip-docker-check', action='store_true',
                        help='Assume Docker & Compose are already installed and running')
    parser.add_argument('--skip-desktop', action='store_true',
                        help='Do not build the desktop app')
    parser.add_argument('--skip-model', action='store_true',
                        help='Do not pre-pull the model')
    parser.add_argument('--docker-timeout', type=float, metavar='<seconds>',
                        help='How long to wait for the Docker daemon to start (default: 60)')
    parser.add_argument('--health-timeout', type=float, metavar='<seconds>',
                        help='Give up waiting for the WebUI after this long (default: wait forever)')
    return parser.parse_args(argv)

def print_summary(config) -> None:
    print(f"""
🎉  All set!

➡  Launch the "{config.app_name}" desktop icon (or visit {config.ui_url}).

   Need another model?   docker exec {temporary.OLLAMA_CONTAINER} ollama pull <model-name>
   Stop the stack?       docker compose -f {config.compose_file} down
""")


# Main install flow
def install(config) -> dict:
    """Run every stage in order; any fatal condition exits the process."""
    print_header("Installation")
    print(f"Installing {config.app_name} on {temporary.PLATFORM} ({temporary.ARCH})")

    print_step("Checking Docker")
    status = bootstrap.ensure_environment(config)

    print_step("Generating docker-compose.yml")
    stack.write_compose_file(config)

    print_step("Booting local-LLM stack")
    if not stack.launch_stack(config):
        fatal("Stack launch failed", f"Check `docker compose -f {config.compose_file} logs`.")

    if not readiness.wait_for_health(config.health_url, config.health_interval, config.health_timeout):
        fatal("WebUI did not become healthy", "Re-run with a larger --health-timeout, or without one.")

    app_path = None
    if config.skip_desktop:
        print_status("Skipping desktop app (--skip-desktop)")
    else:
        print_step("Bundling desktop app")
        app_path = desktop.build_app(config)
        if app_path is None:
            fatal("Desktop app packaging failed", "Re-run with --skip-desktop to use the browser instead.")

    if config.skip_model:
        print_status("Skipping model pull (--skip-model)")
    else:
        print_step("Pre-pulling model")
        if not models.prefetch_model(config.model):
            fatal(f"Could not pull model '{config.model}'")

    state = {
        "platform": temporary.PLATFORM,
        "model": None if config.skip_model else config.model,
        "docker_status": status,
        "desktop_app": str(app_path) if app_path else None,
    }
    settings.save_config(config, extra=state)
    print_status("Configuration saved")
    print_summary(config)
    return state

def main(argv=None) -> int:
    args = parse_args(argv)
    utility.set_platform()
    config = settings.build_config(args, settings.load_config())
    install(config)
    return 0


# ------------------------------------------------------------------
#  Protected main block
# ------------------------------------------------------------------
if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInstallation cancelled")
        sys.exit(1)
    except Exception as e:
        print(f"\nInstallation failed: {e}")
        sys.exit(1)
