"""CLI - onboarding, config and server start via command line."""
import argparse
import getpass
import os
import sys
from pathlib import Path

import yaml

from src.config import DRIVE_SCOPE

ROOT = Path(__file__).parent.parent
CONFIG_DIR = ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"
APP_FACTORY = "src.server.app:create_app_from_config"


def _ensure_config_dir() -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def _load_settings() -> dict:
    if not SETTINGS_PATH.exists():
        return {}
    with open(SETTINGS_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _save_settings(data: dict) -> None:
    _ensure_config_dir()
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _prompt(prompt: str, default: str = "", secret: bool = False) -> str:
    if default and not secret:
        p = f"{prompt} [{default}]: "
    else:
        p = f"{prompt}: "
    if secret:
        v = getpass.getpass(p)
    else:
        v = input(p).strip()
    return v if v else default


def _prompt_yes(prompt: str, default: bool = True) -> bool:
    d = "Y/n" if default else "y/N"
    v = input(f"{prompt} [{d}]: ").strip().lower()
    if not v:
        return default
    return v in ("y", "yes")


def cmd_setup() -> None:
    """Interactive onboarding - webhook secret, Google service account, workspace, scheduling."""
    print("\nIssue Folder Hooks - Setup\n")
    settings = _load_settings()
    settings.setdefault("data_dir", "./data")
    settings.setdefault("log_level", "INFO")
    secrets = settings.setdefault("secrets", {})

    print("--- GitHub ---")
    secrets["github_secret"] = _prompt("Webhook secret", secrets.get("github_secret", ""), secret=True)

    print("\n--- Google Drive (service account) ---")
    google = settings.setdefault("google", {})
    if _prompt_yes("Use a service account JSON key file?", bool(google.get("credentials_file"))):
        google["credentials_file"] = _prompt("Key file path", google.get("credentials_file", ""))
    else:
        google["credentials_file"] = ""
        secrets["google_client_email"] = _prompt("Client email", secrets.get("google_client_email", ""))
        secrets["google_private_key"] = _prompt("Private key (\\n escapes allowed)", secrets.get("google_private_key", ""), secret=True)
    google.setdefault("scopes", [DRIVE_SCOPE])
    google["work_dir"] = _prompt("Workspace folder name", google.get("work_dir", "Issues"))
    google["root_id"] = _prompt("Parent folder id for the workspace (optional)", google.get("root_id", ""))

    scheduler = settings.setdefault("scheduler", {})
    scheduler["delay_seconds"] = float(_prompt("Delay before provisioning (seconds)", str(scheduler.get("delay_seconds", 60))))
    scheduler["timezone"] = _prompt("Timezone for log output", scheduler.get("timezone", "America/New_York"))

    server = settings.setdefault("server", {})
    server["host"] = _prompt("Server host", server.get("host", "127.0.0.1"))
    server["port"] = int(_prompt("Server port", str(server.get("port", 3000))))
    server["workers"] = int(_prompt("Worker processes", str(server.get("workers", 1))))

    _save_settings(settings)
    print("\nConfiguration saved.\n")
    if _prompt_yes("Start the server now?", True):
        cmd_run()


def cmd_run(workers: int | None = None) -> None:
    """Run the webhook server."""
    os.chdir(ROOT)
    if not SETTINGS_PATH.exists():
        print("Run setup first: python main.py setup")
        sys.exit(1)
    server = _load_settings().get("server", {})
    host = server.get("host", "127.0.0.1")
    port = server.get("port", 3000)
    workers = workers or server.get("workers", 1)
    if workers > 1:
        print(f"Warning: {workers} workers - only the process holding the scheduler lock arms jobs;")
        print("deliveries reaching the others get 503 and are left for GitHub to redeliver.")
    import uvicorn
    uvicorn.run(APP_FACTORY, factory=True, host=host, port=port, workers=workers)


def cmd_config_get(key: str) -> None:
    """Get config value."""
    settings = _load_settings()
    keys = key.split(".")
    v = settings
    for k in keys:
        if isinstance(v, dict):
            v = v.get(k, "")
        else:
            v = ""
            break
    print(v)


def cmd_config_set(key: str, value: str) -> None:
    """Set config value."""
    settings = _load_settings()
    keys = key.split(".")
    d = settings
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    if keys[0] == "secrets":
        # Secrets that look like numbers must survive as written
        val = value
    else:
        try:
            val = int(value)
        except ValueError:
            try:
                val = float(value)
            except ValueError:
                val = value
    d[keys[-1]] = val
    _save_settings(settings)
    print(f"Set {key} = {value}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="issue-hooks", description="GitHub issues -> Google Drive folders")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("setup", help="Interactive setup")
    run = sub.add_parser("run", help="Run the webhook server")
    run.add_argument("--workers", "-w", type=int, default=None, help="Worker processes (overrides config)")
    cfg = sub.add_parser("config", help="Get/set config")
    cfg.add_argument("action", choices=["get", "set"])
    cfg.add_argument("key")
    cfg.add_argument("value", nargs="*", default=[])

    args = parser.parse_args(argv)

    if args.cmd == "setup":
        cmd_setup()
    elif args.cmd == "run":
        cmd_run(args.workers)
    elif args.cmd == "config":
        if args.action == "get":
            cmd_config_get(args.key)
        else:
            val = " ".join(args.value) if args.value else ""
            if not val:
                print("config set requires a value")
                sys.exit(1)
            cmd_config_set(args.key, val)
    else:
        # Default: run setup if no config, else run
        if not SETTINGS_PATH.exists():
            print("No config found. Running setup...")
            cmd_setup()
        else:
            cmd_run()


if __name__ == "__main__":
    main()
