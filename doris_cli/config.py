#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Configuration loading for doris-cli.

Connection parameters are resolved with the precedence
process environment > side config (``mcp.json``) > ``.env`` file > defaults.
The CLI and the tool adapter may instead read a full ``config.json`` that also
carries the FE HTTP endpoint.
"""
import os
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from dotenv import dotenv_values

from doris_cli.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9030
DEFAULT_USER = "root"
DEFAULT_PASSWORD = ""
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_HTTP_PORT = 8030

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_SIDE_CONFIG_FILE = "mcp.json"
DEFAULT_DOTENV_FILE = ".env"

# Environment variable -> ConnectionConfig field
ENV_KEYS = {
    "DORIS_HOST": "host",
    "DORIS_PORT": "port",
    "DORIS_USER": "user",
    "DORIS_PASSWORD": "password",
    "DORIS_DATABASE": "database",
}


@dataclass(frozen=True)
class ConnectionConfig:
    """Parameters for one SQL connection. Immutable once built."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = DEFAULT_PASSWORD
    database: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT_MS

    def with_database(self, database):
        """Return a copy targeting another database."""
        return replace(self, database=database)

    @property
    def connect_timeout(self):
        """Connect timeout in seconds."""
        return self.timeout / 1000.0

    @classmethod
    def from_dict(cls, data):
        """Build a config from a ``doris`` section, ignoring unknown keys.

        Args:
            data (dict): Mapping with any of host, port, user, password, database, timeout

        Returns:
            ConnectionConfig: The parsed configuration

        Raises:
            ConfigError: If the section is not a JSON object or holds invalid numbers
        """
        data = _section(data, "doris")
        return cls(
            host=data.get("host") or DEFAULT_HOST,
            port=_to_int(data.get("port", DEFAULT_PORT), "port"),
            user=data.get("user") or DEFAULT_USER,
            password=data.get("password") or DEFAULT_PASSWORD,
            database=data.get("database") or None,
            timeout=_to_int(data.get("timeout", DEFAULT_TIMEOUT_MS), "timeout"),
        )


@dataclass(frozen=True)
class FrontendConfig:
    """FE node HTTP endpoint."""

    host: str = DEFAULT_HOST
    http_port: int = DEFAULT_HTTP_PORT

    @property
    def base_url(self):
        return f"http://{self.host}:{self.http_port}"


@dataclass(frozen=True)
class AppConfig:
    """Full configuration: SQL connection plus FE admin endpoint."""

    doris: ConnectionConfig = field(default_factory=ConnectionConfig)
    fe: FrontendConfig = field(default_factory=FrontendConfig)

    @classmethod
    def from_dict(cls, data):
        """Build from the parsed ``config.json`` document."""
        data = _section(data, "config")
        doris = ConnectionConfig.from_dict(data.get("doris"))
        fe_section = _section(data.get("fe"), "fe")
        http_port = fe_section.get("httpPort", fe_section.get("http_port", DEFAULT_HTTP_PORT))
        fe = FrontendConfig(
            host=fe_section.get("host") or doris.host,
            http_port=_to_int(http_port, "fe.httpPort"),
        )
        return cls(doris=doris, fe=fe)

    def override(self, host=None, port=None, user=None, password=None, database=None):
        """Apply command line overrides. ``None`` keeps the current value."""
        changes = {}
        if host:
            changes["host"] = host
        if port:
            changes["port"] = int(port)
        if user:
            changes["user"] = user
        if password is not None:
            changes["password"] = password
        if database:
            changes["database"] = database
        if not changes:
            return self
        doris = replace(self.doris, **changes)
        fe = self.fe
        # The FE follows the SQL host unless configured separately
        if host and self.fe.host == self.doris.host:
            fe = replace(self.fe, host=host)
        return AppConfig(doris=doris, fe=fe)


def _section(value, name):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Invalid {name} section: expected an object, got {type(value).__name__}")
    return value


def _to_int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}", e)


def resolve_env_placeholders(env_section, environ=None):
    """Substitute ``${NAME}`` placeholders with environment values.

    Args:
        env_section (dict): Mapping of variable names to values or placeholders
        environ (dict, optional): Environment to read from, defaults to ``os.environ``

    Returns:
        dict: Resolved mapping. Unset variables resolve to an empty string.
    """
    environ = os.environ if environ is None else environ
    resolved = {}
    for key, value in env_section.items():
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            resolved[key] = environ.get(value[2:-1], "")
        else:
            resolved[key] = value
    return resolved


def load_side_config(path=None, environ=None):
    """Read the ``doris.env`` section of the optional JSON side config.

    A missing file yields an empty mapping. A file that cannot be parsed is
    reported and ignored.
    """
    path = path or os.path.join(os.getcwd(), DEFAULT_SIDE_CONFIG_FILE)
    if not os.path.exists(path):
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Unable to load side config %s: %s", path, e)
        return {}

    doris_section = data.get("doris") if isinstance(data, dict) else None
    env_section = doris_section.get("env") if isinstance(doris_section, dict) else None
    if not isinstance(env_section, dict):
        if data:
            logger.warning("Ignoring side config %s: no doris.env object", path)
        return {}
    return resolve_env_placeholders(env_section, environ)


def resolve_connection_config(environ=None, side_config_path=None, dotenv_path=None):
    """Resolve connection parameters from the environment and side files.

    Args:
        environ (dict, optional): Process environment, defaults to ``os.environ``
        side_config_path (str, optional): Path of the JSON side config
        dotenv_path (str, optional): Path of the ``.env`` file

    Returns:
        ConnectionConfig: The resolved configuration
    """
    environ = os.environ if environ is None else environ
    dotenv_path = dotenv_path or os.path.join(os.getcwd(), DEFAULT_DOTENV_FILE)

    merged = {}
    if os.path.exists(dotenv_path):
        merged.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
    merged.update(load_side_config(side_config_path, environ))
    merged.update({k: environ[k] for k in ENV_KEYS if environ.get(k)})

    values = {ENV_KEYS[k]: v for k, v in merged.items() if k in ENV_KEYS and v != ""}
    return ConnectionConfig.from_dict(values)


def load_config(path=None, environ=None):
    """Load the full application configuration.

    Reads ``config.json`` when present. Without an explicit path and without a
    ``config.json`` in the working directory, the connection is resolved from
    the environment and the FE endpoint defaults to the SQL host.

    Args:
        path (str, optional): Path to the JSON configuration file
        environ (dict, optional): Environment used for the fallback resolution

    Returns:
        AppConfig: The loaded configuration

    Raises:
        ConfigError: If an explicit file is missing or the file cannot be parsed
    """
    if path is None:
        default_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
        if not os.path.exists(default_path):
            doris = resolve_connection_config(environ)
            return AppConfig(doris=doris, fe=FrontendConfig(host=doris.host))
        path = default_path

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load config file %s: %s", path, e)
        raise ConfigError(f"Failed to load config file {path}: {e}", e)

    if not isinstance(data, dict):
        logger.error("Config file %s must contain a JSON object", path)
        raise ConfigError(f"Config file {path} must contain a JSON object")

    return AppConfig.from_dict(data)
