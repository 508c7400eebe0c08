"""
Build ClientConfig from the environment or a configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import ClientConfig, RetryPolicy
from ..logging.config import LoggingConfig
from .settings import QuickRequestSettings

logger = logging.getLogger(__name__)

# Accepted by ClientConfig but not representable in the environment
_CALLABLE_KEYS = ("before_request", "after_response")


class ConfigValidationError(ValueError):
    """Configuration file or environment values are invalid."""


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> ClientConfig:
    """
    Load ClientConfig from QUICKREQUEST_* environment variables.

    Priority (highest to lowest):
    1. **overrides
    2. Environment variables
    3. .env file (env_file or ./.env)
    4. Defaults

    Args:
        env_file: Custom .env file path
        **overrides: Settings fields, plus before_request/after_response hooks

    Returns:
        ClientConfig instance

    Raises:
        ConfigValidationError: Invalid values

    Example:
        >>> config = load_from_env(base_url="https://custom.api.com")
        >>> client = QuickRequestClient(config=config)
    """
    hooks = {key: overrides.pop(key) for key in _CALLABLE_KEYS if key in overrides}
    kwargs: Dict[str, Any] = dict(overrides)
    if env_file is not None:
        kwargs["_env_file"] = env_file

    try:
        settings = QuickRequestSettings(**kwargs)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid QuickRequest settings: {e}") from e

    logger.debug("Loaded settings", extra={"settings": settings.summary()})
    return build_config(settings, **hooks)


def load_from_file(path: Union[str, Path], **overrides: Any) -> ClientConfig:
    """
    Загрузить конфиг из YAML или JSON файла.

    Ключи те же, что у QuickRequestSettings (без префикса). Значения файла
    перекрывают окружение, overrides перекрывают файл.

    Args:
        path: Путь к .yaml/.yml/.json файлу

    Raises:
        FileNotFoundError: Файл не найден
        ConfigValidationError: Невалидный синтаксис или значения

    Example:
        >>> config = load_from_file("quickrequest.yaml", timeout_ms=3000)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = _read_file(path)
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Config file must contain a mapping: {path}")

    data.update(overrides)
    return load_from_env(**data)


def _read_file(path: Path) -> Any:
    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Invalid YAML syntax in {path}: {e}") from e
        if suffix == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigValidationError(f"Invalid JSON syntax in {path}: {e}") from e
    raise ConfigValidationError(
        f"Unsupported config format: {suffix}. Use .yaml, .yml or .json"
    )


def build_config(settings: QuickRequestSettings, **hooks: Any) -> ClientConfig:
    """Convert validated settings to ClientConfig."""
    retry = RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        base_delay_ms=settings.retry_base_delay_ms,
        max_delay_ms=settings.retry_max_delay_ms,
        backoff_factor=settings.retry_backoff_factor,
    )

    logging_config = None
    if settings.log_enabled:
        logging_config = LoggingConfig.create(
            level=settings.log_level,
            format=settings.log_format,
            enable_console=settings.log_enable_console,
            enable_file=settings.log_enable_file,
            file_path=settings.log_file_path,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count,
            enable_correlation_id=settings.log_enable_correlation_id,
        )

    return ClientConfig(
        base_url=settings.base_url,
        headers=settings.headers,
        timeout_ms=settings.timeout_ms,
        cache_ttl_ms=settings.cache_ttl_ms,
        retry=retry,
        logging=logging_config,
        **hooks,
    )
