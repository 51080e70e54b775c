"""
Warehouse settings schema.

Dataclasses validated in ``__post_init__``; built from the merged YAML/env
mapping by ``WarehouseSettings.from_dict``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Self

from warehouse_kernel.logging_config import get_logger
from warehouse_modules.inventory.config import InventoryConfig

logger = get_logger("config.settings")

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///warehouse.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10

    def __post_init__(self):
        if not self.url or not self.url.strip():
            raise ValueError("database.url cannot be blank")
        if self.pool_size <= 0:
            raise ValueError("database.pool_size must be positive")
        if self.max_overflow < 0:
            raise ValueError("database.max_overflow cannot be negative")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self):
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.level}'"
            )

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass(frozen=True)
class WarehouseSettings:
    """Root settings object returned by ``get_active_config()``."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    inventory: InventoryConfig = field(default_factory=InventoryConfig.with_defaults)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        unknown = set(data) - {"database", "logging", "inventory"}
        if unknown:
            raise ValueError(f"Unknown settings sections: {sorted(unknown)}")
        settings = cls(
            database=DatabaseSettings(**(data.get("database") or {})),
            logging=LoggingSettings(**(data.get("logging") or {})),
            inventory=InventoryConfig.from_dict(data.get("inventory") or {}),
        )
        logger.info(
            "warehouse_settings_built",
            extra={
                "database_dialect": settings.database.url.split(":", 1)[0],
                "log_level": settings.logging.level,
                "issue_method": settings.inventory.issue_method,
            },
        )
        return settings
