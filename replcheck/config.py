"""
Connection settings for the primary/standby pair.
Everything is read from environment variables (optionally from a .env file),
with defaults matching the docker compose demo setup.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Demo defaults. Use environment variables for anything real.
DEFAULT_USER = "postgres"
DEFAULT_PASSWORD = "password"
DEFAULT_DATABASE = "testdb"
DEFAULT_PRIMARY_PORT = 5432
DEFAULT_STANDBY_PORT = 5433
DEFAULT_CONTAINER = "postgres-primary"


def load_env_file(path: str = ".env") -> bool:
    """Load a .env file if present; variables already set win"""
    env_path = Path(path)
    if env_path.exists():
        return load_dotenv(env_path, override=False)
    return False


def get_env(key: str, default: str) -> str:
    """Environment value, or default when unset or empty"""
    value = os.getenv(key)
    if value:
        return value
    return default


def get_env_int(key: str, default: int) -> int:
    value = get_env(key, str(default))
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key}={value!r}, using {default}")
        return default


def force_ipv4(host: str) -> str:
    if host == "localhost":
        return "127.0.0.1"
    return host


@dataclass
class DatabaseConfig:
    host: str
    port: int
    database: str
    user: str
    password: str
    connect_timeout: int = 10

    def connect_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect"""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "sslmode": "disable",
            "connect_timeout": self.connect_timeout,
        }

    def describe(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class ContainerConfig:
    runtime: str = "docker"
    container: str = DEFAULT_CONTAINER
    user: str = DEFAULT_USER
    database: str = DEFAULT_DATABASE
    timeout: int = 30


def _credentials():
    return (
        get_env("POSTGRES_USER", DEFAULT_USER),
        get_env("POSTGRES_PASSWORD", DEFAULT_PASSWORD),
        get_env("POSTGRES_DB", DEFAULT_DATABASE),
    )


def primary_config() -> DatabaseConfig:
    user, password, database = _credentials()
    return DatabaseConfig(
        host=get_env("POSTGRES_PRIMARY_HOST", "localhost"),
        port=get_env_int("POSTGRES_PRIMARY_PORT", DEFAULT_PRIMARY_PORT),
        database=database,
        user=user,
        password=password,
    )


def standby_config() -> DatabaseConfig:
    user, password, database = _credentials()
    return DatabaseConfig(
        host=get_env("POSTGRES_STANDBY_HOST", "localhost"),
        port=get_env_int("POSTGRES_STANDBY_PORT", DEFAULT_STANDBY_PORT),
        database=database,
        user=user,
        password=password,
    )


def container_config() -> ContainerConfig:
    user, _, database = _credentials()
    return ContainerConfig(
        runtime=get_env("CONTAINER_RUNTIME", "docker"),
        container=get_env("POSTGRES_PRIMARY_CONTAINER", DEFAULT_CONTAINER),
        user=user,
        database=database,
        timeout=get_env_int("CONTAINER_EXEC_TIMEOUT", 30),
    )


def setup_logging(verbose: bool = False):
    """Console logging for the CLI tools"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
