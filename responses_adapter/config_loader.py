"""Configuration loading from YAML files and environment variables.

Settings are resolved in this order (first wins):

1. Process environment: ``LITELLM_URL``, ``LITELLM_KEY``, ``PORT``, ``HOST``,
   ``BACKEND_TIMEOUT``, ``MODELS_OWNED_BY``
2. The YAML config file (``RESPONSES_ADAPTER_CONFIG``), whose ``${VAR}``
   placeholders are filled from a sibling ``.env`` file or the environment
3. Built-in defaults
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .core.backend import DEFAULT_OWNED_BY, DEFAULT_TIMEOUT, Backend
from .core.exceptions import ConfigurationError

logger = logging.getLogger("responses-adapter")

# Default path to the config file (relative to project root)
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
CONFIG_PATH_ENV = "RESPONSES_ADAPTER_CONFIG"

DEFAULT_BACKEND_URL = "http://localhost:11434"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4011

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class AdapterSettings:
    """Resolved runtime settings."""

    backend_url: str = DEFAULT_BACKEND_URL
    backend_api_key: str = ""
    backend_timeout: float = DEFAULT_TIMEOUT
    owned_by: str = DEFAULT_OWNED_BY
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def build_backend(self) -> Backend:
        return Backend(
            base_url=self.backend_url,
            api_key=self.backend_api_key,
            timeout=self.backend_timeout,
            owned_by=self.owned_by,
        )


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def resolve_env_path(config_path: Path) -> Path:
    """Resolve the env file path for a config file."""
    stem = config_path.stem
    if stem.startswith("config_"):
        suffix = stem[len("config_"):]
        return config_path.with_name(f".env_{suffix}")
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def load_config(path: Optional[str] = None, substitute_env: bool = True) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Path to the config file. Defaults to RESPONSES_ADAPTER_CONFIG,
              or configs/config_default.yaml in the project root.
        substitute_env: Whether to substitute environment variables in the config.

    Returns:
        Parsed configuration dictionary (empty when the default file is absent).

    Raises:
        ConfigurationError: An explicitly requested file is missing or invalid.
    """
    explicit = path is not None or os.getenv(CONFIG_PATH_ENV) is not None
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH

    config_path = resolve_config_path(path)

    if not config_path.exists():
        if explicit:
            logger.error(f"Config file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}")
        logger.info(f"No config file at {config_path}; using environment and defaults")
        return {}

    logger.info(f"Loading configuration from {config_path}")

    env_values: dict[str, str] = {}
    if substitute_env:
        env_file = resolve_env_path(config_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env_values = load_env_values(env_file)

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    if substitute_env:
        data = _substitute_env_vars(data, env_values)

    logger.info(f"Configuration loaded successfully from {config_path}")
    return data


def load_settings(
    config: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AdapterSettings:
    """Resolve settings from the config mapping and the environment.

    Args:
        config: Parsed config; loaded with ``load_config()`` when omitted.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    if config is None:
        config = load_config()
    if environ is None:
        environ = os.environ

    backend_cfg = _section(config, "backend")
    server_cfg = _section(config, "server")

    backend_url = environ.get("LITELLM_URL") or backend_cfg.get("base_url") or DEFAULT_BACKEND_URL
    api_key = environ.get("LITELLM_KEY")
    if api_key is None:
        api_key = backend_cfg.get("api_key") or ""
    owned_by = environ.get("MODELS_OWNED_BY") or backend_cfg.get("owned_by") or DEFAULT_OWNED_BY
    host = environ.get("HOST") or server_cfg.get("host") or DEFAULT_HOST

    port = _to_int(environ.get("PORT"), "PORT")
    if port is None:
        port = _to_int(server_cfg.get("port"), "server.port")
    timeout = _to_float(environ.get("BACKEND_TIMEOUT"), "BACKEND_TIMEOUT")
    if timeout is None:
        timeout = _to_float(backend_cfg.get("timeout"), "backend.timeout")

    return AdapterSettings(
        backend_url=str(backend_url),
        backend_api_key=str(api_key),
        backend_timeout=timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT,
        owned_by=str(owned_by),
        host=str(host),
        port=port if port is not None else DEFAULT_PORT,
    )


def _section(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = config.get(key) if isinstance(config, Mapping) else None
    return value if isinstance(value, Mapping) else {}


def _to_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r; using default", name, value)
        return None


def _to_float(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number for %s=%r; using default", name, value)
        return None


def _substitute_env_vars(
    obj: Any, env_values: Optional[Mapping[str, str]] = None
) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports two formats:
    - ${VAR_NAME}: Braced format
    - $VAR_NAME: Simple format

    Args:
        obj: The configuration object (dict, list, or string).

    Returns:
        The object with environment variables substituted. Unset variables
        keep their placeholder.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                    f"Check your .env file or export it in your shell. "
                    f"The literal placeholder will be used."
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    return obj
