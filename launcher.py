# launcher.py

# Imports
import sys, argparse, webbrowser
from pathlib import Path
import chatstack.temporary as temporary
from chatstack import bootstrap, prober, readiness, settings, stack, utility
from chatstack.temporary import print_status, fatal

def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="launcher.py",
                                     description=f"Start or stop an installed {temporary.APP_NAME} stack.")
    parser.add_argument('--stop', action='store_true', help='Stop the stack (docker compose down)')
    parser.add_argument('--skip-docker-check', action='store_true',
                        help='Assume the Docker daemon is already running')
    parser.add_argument('--no-browser', action='store_true', help='Do not open the WebUI in a browser')
    return parser.parse_args(argv)

def start(config, open_browser: bool = True) -> int:
    """Bring an installed stack back up and wait until the WebUI answers."""
    bootstrap.ensure_environment(config)

    if not Path(config.compose_file).exists():
        print_status(f"{config.compose_file} missing, regenerating")
        stack.write_compose_file(config)

    if not stack.launch_stack(config, pull=False):
        fatal("Stack launch failed", f"Check `docker compose -f {config.compose_file} logs`.")
    if not readiness.wait_for_health(config.health_url, config.health_interval, config.health_timeout):
        fatal("WebUI did not become healthy")

    if open_browser:
        webbrowser.open(config.ui_url)
    print_status(f"{config.app_name} running at {config.ui_url}")
    return 0

def main(argv=None) -> int:
    args = parse_args(argv)
    utility.set_platform()
    config = settings.build_config(args, settings.load_config())

    if args.stop:
        # detects whether docker needs sudo in this session
        prober.probe_environment()
        return 0 if stack.stop_stack(config) else 1
    return start(config, open_browser=not args.no_browser)

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nLauncher cancelled")
        sys.exit(1)
    except Exception as e:
        print(f"Fatal error in launcher: {str(e)}")
        sys.exit(1)
