"""
Storage factory for creating storage backends.
"""

from pathlib import Path
from typing import Any, Dict

from nvim_macros.errors import ConfigError
from nvim_macros.formatters import DEFAULT_TIMEOUT, NO_FORMATTER
from nvim_macros.storage import StorageBackend
from nvim_macros.storage.json_backend import JSONStorage


def get_storage_backend(config: Dict[str, Any]) -> StorageBackend:
    """
    Factory function to create the storage backend for a configuration.

    Args:
        config: Configuration dictionary with storage settings

    Returns:
        StorageBackend instance

    Configuration options:
        - json_file_path: path to macros.json (required)
        - json_formatter: "none" (default), "jq" or "yq"
        - formatter_timeout: seconds before the formatter is killed
    """
    storage_path = config.get("json_file_path")
    if not storage_path:
        raise ConfigError("json_file_path is not configured")

    try:
        timeout = float(config.get("formatter_timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid formatter_timeout: {config.get('formatter_timeout')!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"formatter_timeout must be positive, got {timeout}")

    return JSONStorage(
        Path(storage_path),
        formatter=config.get("json_formatter") or NO_FORMATTER,
        timeout=timeout,
    )
