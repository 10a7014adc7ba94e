import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

from errors import ConfigError

BASE_DIR = Path(__file__).resolve().parent

REQUIRED_DB_VARS = ("DB_USERNAME", "DB_PASSWORD", "DB_HOST", "DB_PORT", "DB_NAME")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE")


def _int_var(env: Mapping[str, str], name: str, default: str) -> int:
    raw = env.get(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class Settings:
    # API settings
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    # Database settings
    db_driver: str = "mysql+pymysql"
    db_username: str = ""
    db_password: str = ""
    db_host: str = ""
    db_port: int = 3306
    db_name: str = ""
    database_url: Optional[str] = None  # full override, e.g. sqlite:///library.db

    # Web settings
    templates_dir: str = str(BASE_DIR / "templates")
    dist_dir: str = "dist"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment.

        A ``.env`` file in the working directory is loaded first when reading
        from ``os.environ``. Raises ``ConfigError`` when a required database
        variable is missing, a numeric one does not parse or the log level
        is unknown.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        database_url = env.get("DATABASE_URL") or None
        if database_url is None:
            missing = [name for name in REQUIRED_DB_VARS if not env.get(name)]
            # DB_PASSWORD may legitimately be empty, it only has to be present
            if "DB_PASSWORD" in missing and "DB_PASSWORD" in env:
                missing.remove("DB_PASSWORD")
            if missing:
                raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        log_level = env.get("LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

        return cls(
            api_host=env.get("API_HOST", "127.0.0.1"),
            api_port=_int_var(env, "API_PORT", "8080"),
            db_driver=env.get("DB_DRIVER", "mysql+pymysql"),
            db_username=env.get("DB_USERNAME", ""),
            db_password=env.get("DB_PASSWORD", ""),
            db_host=env.get("DB_HOST", ""),
            db_port=_int_var(env, "DB_PORT", "3306"),
            db_name=env.get("DB_NAME", ""),
            database_url=database_url,
            templates_dir=env.get("TEMPLATES_DIR", str(BASE_DIR / "templates")),
            dist_dir=env.get("DIST_DIR", "dist"),
            log_level=log_level,
        )

    def connection_url(self) -> URL | str:
        """Database URL handed to SQLAlchemy; DATABASE_URL wins over the DB_* parts."""
        if self.database_url:
            return self.database_url
        return URL.create(
            self.db_driver,
            username=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
