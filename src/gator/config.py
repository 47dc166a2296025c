"""Application configuration.

Process-wide settings come from environment variables (``GATOR_*``). The
currently logged-in user lives in a small JSON file in the home directory so
that it survives between command invocations.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    db_path: Path = Field(
        default=Path.home() / ".config" / "gator" / "gator.db",
        description="Path to SQLite database file",
    )

    # Local user config
    config_path: Path = Field(
        default=Path.home() / ".gatorconfig.json",
        description="Path to the JSON file holding the current user",
    )

    # Fetching
    user_agent: str = Field(default="gator", description="User-Agent sent with feed requests")
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound on a single feed request",
    )

    log_level: str = Field(default="WARNING", description="Root logging level")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


class UserConfig(BaseModel):
    """Per-user state persisted between CLI runs."""

    current_user_name: str | None = None

    def set_user(self, user_name: str, path: Path | None = None) -> None:
        """Switch the current user and write the config back to disk."""
        self.current_user_name = user_name
        write_user_config(self, path)


def read_user_config(path: Path | None = None) -> UserConfig:
    """Read the user config, returning an empty one if the file is missing."""
    config_path = path or get_settings().config_path
    if not config_path.exists():
        return UserConfig()
    return UserConfig.model_validate_json(config_path.read_text(encoding="utf-8"))


def write_user_config(config: UserConfig, path: Path | None = None) -> None:
    """Persist the user config as JSON."""
    config_path = path or get_settings().config_path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
