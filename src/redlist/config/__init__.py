"""redlist-pi configuration package.

This package provides configuration management with:
- Pydantic models and validation
- YAML parsing
- Environment variable overrides (API_URL, TOKEN, VIEW_LIMIT)
"""

from .manager import ConfigManager, ConfigurationError
from .models import RedListConfig

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "RedListConfig",
]
