import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic_settings import BaseSettings


class GrievanceApiSettings(BaseSettings):
    base_url: str = "https://teamelogisolgrievanceapi.onrender.com"
    'Origin of the Grievance API (e.g. "http://localhost:4000" for a local server)'
    timeout: float = 30.0
    page_size: int = 10

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api"


class StorageSettings(BaseSettings):
    session_dir: Optional[Path] = None
    "Directory for per-console session files; sessions stay in memory when unset"


class ConsoleSettings(BaseSettings):
    max_consoles: int = 1000
    "Live consoles kept in memory; the least recently used one is dropped beyond this"
    idle_timeout: float = 3600.0
    "Seconds without a call after which a console is dropped"


class AnalyticsSettings(BaseSettings):
    recent_days: int = 7


class Settings(BaseSettings):
    grievance: GrievanceApiSettings = GrievanceApiSettings()
    storage: StorageSettings = StorageSettings()
    consoles: ConsoleSettings = ConsoleSettings()
    analytics: AnalyticsSettings = AnalyticsSettings()
    app_root_path: str = ""
    'Prefix for the API path (e.g. "/console-api")'
    log_level: str = "info"
    cors_allow_origins: list[str] = ["*"]

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> "Settings":
        if path.exists():
            return cls.from_yaml(path)
        return cls()


_settings_path = Path(
    os.environ.get("GRIEVANCE_CONSOLE_SETTINGS", Path(__file__).parent.parent / "settings.yaml")
)
settings = Settings.load(_settings_path)
