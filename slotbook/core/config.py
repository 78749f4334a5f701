from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env and the scheduling document from the project root so they load regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql://localhost:5432/slotbook"
    database_ssl: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling
    timezone: str = "UTC"  # single zone for all civil times, IANA name
    appointment_config_path: Path = _PROJECT_ROOT / "appointment-config.json"
    revalidate_on_update: bool = False
    max_query_days: int = 62

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
