"""
Inventory Configuration Schema.

Defines the structure and defaults for inventory settings shared by the
inventory, purchasing and fulfillment modules.  Values are loaded from the
``inventory`` section of the warehouse settings file at runtime.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Self

from warehouse_kernel.domain.dtos import IssuePolicy
from warehouse_kernel.logging_config import get_logger

logger = get_logger("modules.inventory.config")


VALID_ISSUE_METHODS = {policy.value for policy in IssuePolicy}

# Settings key reported when a price falls below the configured floor
MIN_UNIT_PRICE_SETTING = "inventory.min_unit_price"


@dataclass
class InventoryConfig:
    """
    Configuration schema for the inventory modules.

        config = InventoryConfig(issue_method="fefo")
    """

    # Issues: "fifo" (received date) or "fefo" (first expired, then received)
    issue_method: str = "fifo"

    # Pricing / receiving
    min_unit_price: Decimal = Decimal("0.01")

    # Products
    default_unit: str = "unit"

    # Manual stock-in note placeholder when none is given
    stock_in_default_note: str = "-"

    def __post_init__(self):
        if self.issue_method not in VALID_ISSUE_METHODS:
            raise ValueError(
                f"issue_method must be one of {sorted(VALID_ISSUE_METHODS)}, "
                f"got '{self.issue_method}'"
            )

        self.min_unit_price = Decimal(str(self.min_unit_price))
        if self.min_unit_price <= 0:
            raise ValueError("min_unit_price must be positive")

        if not self.default_unit or not self.default_unit.strip():
            raise ValueError("default_unit cannot be blank")

        logger.info(
            "inventory_config_initialized",
            extra={
                "issue_method": self.issue_method,
                "min_unit_price": self.min_unit_price,
                "default_unit": self.default_unit,
            },
        )

    @property
    def issue_policy(self) -> IssuePolicy:
        return IssuePolicy(self.issue_method)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults (FIFO issue)."""
        logger.info("inventory_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML file)."""
        logger.info(
            "inventory_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Unknown inventory settings: {sorted(unknown)}")
        return cls(**data)
