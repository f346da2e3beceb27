"""Configuration management for BDL MCP Server."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .bdl_client import LANGUAGES, BDLConfig


CONFIG_ENV_VAR = "BDL_MCP_CONFIG"


@dataclass
class ServerConfig:
    """MCP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/bdl_mcp_server.log"
    api_log_file: Optional[str] = "logs/bdl_api.log"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class Config:
    """Main configuration."""
    bdl: BDLConfig = field(default_factory=BDLConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for logging setup."""
        return {
            "log_level": self.server.log_level,
            "host": self.server.host,
            "port": self.server.port,
            "log_file": self.server.log_file,
            "api_log_file": self.server.api_log_file
        }


def _apply_env_overrides(config: Config) -> Config:
    base_url = os.environ.get("BDL_API_BASE_URL")
    if base_url:
        config.bdl.base_url = base_url

    language = os.environ.get("DEFAULT_LANGUAGE")
    if language:
        config.bdl.default_language = language

    if config.bdl.default_language not in LANGUAGES:
        raise ValueError(f"Unsupported default_language '{config.bdl.default_language}'. Supported: {list(LANGUAGES)}")
    return config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file, falling back to defaults.

    Without an explicit path, ``BDL_MCP_CONFIG`` names the file. The
    ``BDL_API_BASE_URL`` and ``DEFAULT_LANGUAGE`` environment variables take
    precedence over the file.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or None
    if config_path is None:
        for path in ["config.json", "../config.json"]:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return _apply_env_overrides(Config())

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        config = Config(
            bdl=BDLConfig(**data.get("bdl", {})),
            server=ServerConfig(**data.get("server", {}))
        )
    except (FileNotFoundError, json.JSONDecodeError, TypeError) as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}")

    return _apply_env_overrides(config)
