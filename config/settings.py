"""
Global Settings for Memecoin Observatory
Grouped pydantic schemas loaded from defaults, an optional YAML file and the
environment, in increasing order of precedence
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from utils.constants import DEFAULT_RPC_URL, PROJECT_DESCRIPTION, PROJECT_NAME, VERSION
from utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if not 0 < v < 65536:
            raise ValueError('port must be between 1 and 65535')
        return v


class SolanaConfig(BaseModel):
    rpc_url: str = DEFAULT_RPC_URL
    commitment: str = "confirmed"
    request_timeout: float = 15.0
    max_retries: int = 2


class TwitterConfig(BaseModel):
    bearer_token: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.bearer_token)


class TelegramConfig(BaseModel):
    channels: list = Field(default_factory=lambda: ["solana", "SolanaMemeCoins", "solanadaily"])


class DatabaseConfig(BaseModel):
    """Database configuration schema"""
    path: str = "./data/memecoin_observatory.db"
    echo_sql: bool = False


class MCPConfig(BaseModel):
    schema_version: str = "v1"
    name: str = PROJECT_NAME
    description: str = PROJECT_DESCRIPTION
    version: str = VERSION
    base_url: str = "/mcp"
    execute_url: str = "/mcp/execute"


class TaskConfig(BaseModel):
    enabled: bool = True
    interval_minutes: float
    limit: Optional[int] = None

    @field_validator('interval_minutes')
    @classmethod
    def validate_interval(cls, v):
        if v <= 0:
            raise ValueError('interval_minutes must be positive')
        return v


class ScheduledTasksConfig(BaseModel):
    token_discovery: TaskConfig = TaskConfig(interval_minutes=30, limit=100)
    social_update: TaskConfig = TaskConfig(interval_minutes=60, limit=50)
    meme_correlation: TaskConfig = TaskConfig(interval_minutes=360)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = "./logs"
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        level = str(v).upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'unknown log level {v}')
        return level


class MemeFeedConfig(BaseModel):
    ttl_seconds: int = 1800


class Settings(BaseModel):
    """Application settings"""
    server: ServerConfig = ServerConfig()
    solana: SolanaConfig = SolanaConfig()
    twitter: TwitterConfig = TwitterConfig()
    telegram: TelegramConfig = TelegramConfig()
    database: DatabaseConfig = DatabaseConfig()
    mcp: MCPConfig = MCPConfig()
    scheduled_tasks: ScheduledTasksConfig = ScheduledTasksConfig()
    logging: LoggingConfig = LoggingConfig()
    meme_feed: MemeFeedConfig = MemeFeedConfig()


# Environment variable -> (section, field)
ENV_OVERRIDES = {
    'HOST': ('server', 'host'),
    'PORT': ('server', 'port'),
    'ENVIRONMENT': ('server', 'environment'),
    'SOLANA_RPC_URL': ('solana', 'rpc_url'),
    'SOLANA_COMMITMENT': ('solana', 'commitment'),
    'TWITTER_BEARER_TOKEN': ('twitter', 'bearer_token'),
    'DB_PATH': ('database', 'path'),
    'LOG_LEVEL': ('logging', 'level'),
    'LOG_DIR': ('logging', 'directory'),
    'MEME_FEED_TTL': ('meme_feed', 'ttl_seconds'),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _load_env(environ) -> Dict[str, Any]:
    env_data: Dict[str, Any] = {}
    for var, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is not None and value not in ('', 'null', 'None'):
            env_data.setdefault(section, {})[field] = value
    return env_data


def load_settings(config_file: Optional[str] = None, environ=None, use_dotenv: bool = True) -> Settings:
    """Build settings from defaults, then YAML, then environment variables."""
    if use_dotenv:
        load_dotenv()
    environ = os.environ if environ is None else environ
    config_file = config_file or environ.get('OBSERVATORY_CONFIG')

    data = Settings().model_dump()
    data = _deep_merge(data, _load_yaml(config_file))
    data = _deep_merge(data, _load_env(environ))

    try:
        settings = Settings(**data)
    except ValidationError as e:
        logger.error(f"Validation error in settings: {e}")
        raise ConfigurationError(str(e)) from e

    logger.info(f"Loaded settings for {settings.server.environment} environment")
    return settings
