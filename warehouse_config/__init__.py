"""
warehouse_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_active_config()`` is the only way services, scripts and tests obtain
    settings.  It merges the packaged ``defaults.yaml``, an optional settings
    file and ``WAREHOUSE_*`` environment variables, then validates the result
    into a frozen ``WarehouseSettings``.

Architecture position:
    Configuration -- sits above ``warehouse_kernel``.  The kernel never
    imports from ``warehouse_config``.

Failure modes:
    - ``FileNotFoundError`` -- explicit settings file missing.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from warehouse_config.loader import compute_checksum, load_settings_mapping
from warehouse_config.settings import (
    DatabaseSettings,
    LoggingSettings,
    WarehouseSettings,
)
from warehouse_kernel.logging_config import get_logger

_logger = get_logger("config")


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> WarehouseSettings:
    """
    Build the active settings.

    Args:
        path: Optional YAML file merged over the packaged defaults.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated WarehouseSettings.
    """
    data = load_settings_mapping(Path(path) if path is not None else None, environ)
    settings = WarehouseSettings.from_dict(data)
    _logger.info(
        "warehouse_config_trace",
        extra={
            "source": str(path) if path is not None else "defaults",
            "checksum": compute_checksum(data),
            "issue_method": settings.inventory.issue_method,
        },
    )
    return settings


__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "WarehouseSettings",
    "get_active_config",
]
