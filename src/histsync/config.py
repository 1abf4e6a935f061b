"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

CONFIG_DIR = Path.home() / ".histsync"
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_FILE = CONFIG_DIR / "server.log"


@dataclass
class ServerConfig:
    addr: str = "http://0.0.0.0:8080"

    def host_port(self) -> tuple[str, int]:
        """Split the listen address into host and port, ignoring any scheme."""
        addr = self.addr.replace("http://", "").replace("https://", "").rstrip("/")
        host, sep, port = addr.rpartition(":")
        if not sep:
            return addr or "0.0.0.0", 8080
        return host or "0.0.0.0", int(port)


@dataclass
class AuthConfig:
    secret: str = ""
    token_hours: int = 10000


@dataclass
class StorageConfig:
    db_path: str = "~/.histsync/history.db"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "~/.histsync/server.log"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        server = data.get("server", {})
        config.server.addr = server.get("addr", config.server.addr)

        auth = data.get("auth", {})
        config.auth.secret = auth.get("secret", config.auth.secret)
        config.auth.token_hours = auth.get("token_hours", config.auth.token_hours)

        storage = data.get("storage", {})
        config.storage.db_path = storage.get("db_path", config.storage.db_path)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_addr := os.environ.get("HISTSYNC_ADDR"):
        config.server.addr = env_addr
    if env_secret := os.environ.get("HISTSYNC_SECRET"):
        config.auth.secret = env_secret
    if env_hours := os.environ.get("HISTSYNC_TOKEN_HOURS"):
        config.auth.token_hours = int(env_hours)
    if env_db := os.environ.get("HISTSYNC_DB_PATH"):
        config.storage.db_path = env_db
    if env_log_level := os.environ.get("HISTSYNC_LOG_LEVEL"):
        config.logging.level = env_log_level
    if env_log_file := os.environ.get("HISTSYNC_LOG_FILE"):
        config.logging.file = env_log_file

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "server": {
            "addr": config.server.addr,
        },
        "auth": {
            "secret": config.auth.secret,
            "token_hours": config.auth.token_hours,
        },
        "storage": {
            "db_path": config.storage.db_path,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    # The file holds the token signing secret
    os.chmod(CONFIG_FILE, 0o600)
