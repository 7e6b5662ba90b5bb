from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).parent


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: Env = Env.local
    html_dir: Path = PACKAGE_DIR / "templates"
    assets_dir: Path = PACKAGE_DIR / "assets"
    db_url: str = "sqlite+aiosqlite:///ocra.db"
    core_model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    llm_timeout: float = 30.0
    max_tokens: int = 3000
    share_param: str = "dish"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
