"""Configuration loader - reads from config/settings.yaml. Secrets fall back to env."""
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"


def _read_settings_file(root: Path) -> dict:
    config_path = root / "config" / "settings.yaml"
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _secret(secrets: dict, key: str, env_var: str) -> str:
    # YAML turns all-digit secrets into ints
    value = secrets.get(key)
    if value is None or value == "":
        return os.getenv(env_var, "")
    return str(value)


class Settings:
    """Webhook secret and service account credentials - from config file first, then env."""

    def __init__(self, project_root: Path | None = None):
        root = project_root or Path(__file__).parent.parent
        secrets = _read_settings_file(root).get("secrets", {}) or {}
        self.github_secret = _secret(secrets, "github_secret", "GITHUB_WEBHOOK_SECRET")
        self.google_client_email = _secret(secrets, "google_client_email", "GOOGLE_CLIENT_EMAIL")
        # Keys pasted into env vars usually carry literal "\n" sequences
        private_key = _secret(secrets, "google_private_key", "GOOGLE_PRIVATE_KEY")
        self.google_private_key = private_key.replace("\\n", "\n")


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    workers: int = 1


class GithubConfig(BaseModel):
    event: str = "issues"


class GoogleConfig(BaseModel):
    credentials_file: str = ""
    scopes: list[str] = [DRIVE_SCOPE]
    work_dir: str = "Issues"
    root_id: str = ""
    page_size: int = 100


class SchedulerConfig(BaseModel):
    delay_seconds: float = 60.0
    timezone: str = "America/New_York"
    lock_file: str = "scheduler.lock"


class SettingsYaml(BaseModel):
    model_config = ConfigDict(extra="ignore")
    data_dir: str = "./data"
    log_level: str = "INFO"
    server: ServerConfig = ServerConfig()
    github: GithubConfig = GithubConfig()
    google: GoogleConfig = GoogleConfig()
    scheduler: SchedulerConfig = SchedulerConfig()


def load_config(project_root: Path | None = None) -> SettingsYaml:
    """Load settings from config/settings.yaml. Missing file means defaults."""
    root = project_root or Path(__file__).parent.parent
    settings_data = _read_settings_file(root)
    settings_data.pop("secrets", None)
    return SettingsYaml(**settings_data)


def get_env(project_root: Path | None = None) -> Settings:
    """Load secrets from config file (written by CLI) or env."""
    return Settings(project_root)
