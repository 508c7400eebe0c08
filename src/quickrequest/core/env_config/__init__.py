"""
Environment and file configuration for QuickRequest.

Example:
    >>> from quickrequest.core.env_config import load_from_env, load_from_file
    >>>
    >>> config = load_from_env()                      # QUICKREQUEST_* and .env
    >>> config = load_from_file("quickrequest.yaml")  # YAML / JSON
"""

from .loader import ConfigValidationError, build_config, load_from_env, load_from_file
from .settings import QuickRequestSettings

__all__ = [
    "ConfigValidationError",
    "QuickRequestSettings",
    "build_config",
    "load_from_env",
    "load_from_file",
]
